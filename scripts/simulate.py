"""
Driver Claim Race Simulation

Creates a batch of confirmed orders and lets several drivers try to claim
them at the same moment. Every order must end up with exactly one driver;
losing claims must come back as 409.

Run from project root against a running API: python scripts/simulate.py
"""

import asyncio
import sys
import random
import time
import argparse
from collections import Counter
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 20
TOTAL_DRIVERS = 5

FIRST_NAMES = ["Ali", "Sara", "Omar", "Lina", "Yousef", "Huda", "Khaled", "Noor", "Fahad", "Reem"]
STREETS = ["King Fahd Rd", "Olaya St", "Tahlia St", "Prince Sultan Rd", "Al Urubah Rd"]
MENU_ITEMS = [
    {"name": "Chicken Shawarma", "price": 12.0},
    {"name": "Falafel Wrap", "price": 8.5},
    {"name": "Mixed Grill", "price": 35.0},
    {"name": "Hummus", "price": 9.0},
    {"name": "Fresh Juice", "price": 6.5},
]


def generate_order_payload(restaurant_id: int) -> dict[str, Any]:
    items = []
    for _ in range(random.randint(1, 3)):
        item = random.choice(MENU_ITEMS).copy()
        item["quantity"] = random.randint(1, 3)
        items.append(item)

    return {
        "customerName": random.choice(FIRST_NAMES),
        "customerPhone": f"05{random.randint(10000000, 99999999)}",
        "deliveryAddress": f"{random.randint(1, 300)} {random.choice(STREETS)}",
        "restaurantId": restaurant_id,
        "items": items,
    }


# =============================================================================
# SETUP
# =============================================================================

async def prepare(client: httpx.AsyncClient, num_orders: int, num_drivers: int) -> tuple[list[int], list[int]]:
    """Create a restaurant, drivers and confirmed orders."""
    restaurant = (await client.post("/api/restaurants", json={
        "name": f"Simulation Kitchen {datetime.now():%H%M%S}",
        "deliveryFee": 7.0,
        "openingTime": "00:00",
        "closingTime": "23:59",
    })).json()

    driver_ids = []
    for i in range(num_drivers):
        response = await client.post("/api/drivers", json={
            "name": f"Driver {i + 1}",
            "phone": f"07{random.randint(10000000, 99999999)}",
            "password": "simulate123",
        })
        response.raise_for_status()
        driver_ids.append(response.json()["id"])

    order_ids = []
    for _ in range(num_orders):
        response = await client.post("/api/orders", json=generate_order_payload(restaurant["id"]))
        response.raise_for_status()
        order_id = response.json()["id"]
        confirm = await client.put(f"/api/orders/{order_id}", json={"status": "confirmed"})
        confirm.raise_for_status()
        order_ids.append(order_id)

    return driver_ids, order_ids


# =============================================================================
# RACE
# =============================================================================

async def claim(client: httpx.AsyncClient, driver_id: int, order_id: int) -> dict[str, Any]:
    start_time = time.time()
    try:
        response = await client.post(
            f"/api/drivers/{driver_id}/accept-order",
            json={"orderId": order_id},
        )
        status = response.status_code
    except httpx.HTTPError as e:
        status = f"error: {e}"
    return {
        "driver_id": driver_id,
        "order_id": order_id,
        "status": status,
        "time": round(time.time() - start_time, 3),
    }


async def free_driver(client: httpx.AsyncClient, driver_id: int) -> None:
    await client.put(f"/api/drivers/{driver_id}/status", json={"status": "available"})


async def run_simulation(num_orders: int = TOTAL_ORDERS, num_drivers: int = TOTAL_DRIVERS) -> dict[str, Any]:
    print("=" * 70)
    print("DRIVER CLAIM RACE")
    print("=" * 70)
    print(f"Orders: {num_orders}   Drivers: {num_drivers}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    results = []
    start_time = time.time()

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        driver_ids, order_ids = await prepare(client, num_orders, num_drivers)

        for order_id in order_ids:
            # A claim makes the driver busy, so put everyone back on duty first
            await asyncio.gather(*(free_driver(client, d) for d in driver_ids))
            round_results = await asyncio.gather(*(claim(client, d, order_id) for d in driver_ids))
            results.extend(round_results)

        final_orders = [
            (await client.get(f"/api/orders/{order_id}")).json() for order_id in order_ids
        ]

    total_time = round(time.time() - start_time, 2)

    winners = Counter(r["order_id"] for r in results if r["status"] == 200)
    conflicts = [r for r in results if r["status"] == 409]
    unexpected = [r for r in results if r["status"] not in (200, 409)]
    double_claimed = [order_id for order_id, wins in winners.items() if wins > 1]
    unclaimed = [o["id"] for o in final_orders if o.get("driverId") is None]

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"Claims sent:       {len(results)}")
    print(f"Winning claims:    {sum(winners.values())}")
    print(f"Rejected (409):    {len(conflicts)}")
    print(f"Unexpected:        {len(unexpected)}")
    print(f"Double-claimed:    {double_claimed or 'none'}")
    print(f"Left unclaimed:    {unclaimed or 'none'}")
    print(f"Total time:        {total_time}s")

    if unexpected:
        print("\nUnexpected responses (first 5):")
        for r in unexpected[:5]:
            print(f"   driver #{r['driver_id']} order #{r['order_id']}: {r['status']}")

    ok = not double_claimed and not unclaimed and not unexpected
    print("\n" + ("PASS: every order has exactly one driver" if ok else "FAIL: claim race broke exclusivity"))
    print("=" * 70)

    return {
        "orders": num_orders,
        "drivers": num_drivers,
        "winning_claims": sum(winners.values()),
        "conflicts": len(conflicts),
        "double_claimed": double_claimed,
        "unclaimed": unclaimed,
        "total_time": total_time,
        "ok": ok,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Driver claim race simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--drivers", type=int, default=TOTAL_DRIVERS, help="Number of competing drivers")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    summary = asyncio.run(run_simulation(num_orders=args.orders, num_drivers=args.drivers))
    sys.exit(0 if summary["ok"] else 1)
