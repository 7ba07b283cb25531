import asyncio

import httpx
import pytest

from foodhub.clients import (
    AdminDashboardView,
    CustomerOrdersView,
    DriverQueueView,
    OrderTrackingView,
    UiSettings,
    load_ui_settings,
)

pytestmark = pytest.mark.anyio


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://foodhub.test")


async def test_default_intervals():
    async with make_client(lambda request: httpx.Response(200, json=[])) as client:
        assert DriverQueueView(client, driver_id=1).interval == 3.0
        assert AdminDashboardView(client).interval == 5.0
        assert OrderTrackingView(client, order_id=1).interval == 10.0
        assert CustomerOrdersView(client, 1, UiSettings({})).interval == 30.0


async def test_refresh_replaces_state_wholesale():
    batches = iter([[{"id": 1}, {"id": 2}], [{"id": 3}]])

    def handler(request):
        assert request.url.path == "/api/drivers/7/available-orders"
        return httpx.Response(200, json=next(batches))

    async with make_client(handler) as client:
        view = DriverQueueView(client, driver_id=7)
        assert await view.refresh()
        assert view.state == [{"id": 1}, {"id": 2}]
        assert await view.refresh()
        assert view.state == [{"id": 3}]
        assert view.refresh_count == 2


async def test_failed_fetch_keeps_previous_state():
    responses = iter([
        httpx.Response(200, json={"order": {"status": "pending"}, "tracking": []}),
        httpx.Response(500, json={"error": "Internal server error"}),
        httpx.Response(200, json={"order": {"status": "confirmed"}, "tracking": []}),
    ])

    async with make_client(lambda request: next(responses)) as client:
        view = OrderTrackingView(client, order_id=3)
        await view.refresh()
        assert view.status == "pending"

        assert not await view.refresh()
        assert view.status == "pending"
        assert view.error_count == 1
        assert view.last_error.status_code == 500

        await view.refresh()
        assert view.status == "confirmed"
        assert view.last_error is None


async def test_transport_errors_do_not_stop_the_loop():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"stats": {"totalOrders": calls["n"]}})

    async with make_client(handler) as client:
        view = AdminDashboardView(client, interval=0.01)
        await view.run(asyncio.Event(), max_cycles=3)

    assert calls["n"] == 3
    assert view.error_count == 1
    assert view.state == {"stats": {"totalOrders": 3}}


async def test_stop_event_ends_run():
    async with make_client(lambda request: httpx.Response(200, json={})) as client:
        view = AdminDashboardView(client, interval=60)
        stop = asyncio.Event()
        task = asyncio.create_task(view.run(stop))
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=1)

    assert view.refresh_count == 1


async def test_ui_settings_loaded_once_and_applied():
    requests = []
    history = {
        "orders": [{"id": 1, "rating": 5, "review": "Great"}],
        "pagination": {"page": 1, "limit": 10, "total": 1, "pages": 1},
    }

    def handler(request):
        requests.append(request.url.path)
        if request.url.path == "/api/settings":
            return httpx.Response(200, json={"show_ratings": "false"})
        return httpx.Response(200, json=history)

    async with make_client(handler) as client:
        ui_settings = await load_ui_settings(client)
        assert not ui_settings.is_enabled("show_ratings")

        view = CustomerOrdersView(client, customer_id=4, ui_settings=ui_settings)
        await view.refresh()
        await view.refresh()

    assert requests.count("/api/settings") == 1
    assert requests.count("/api/customers/4/orders") == 2
    assert "rating" not in view.state["orders"][0]


async def test_non_json_body_is_counted_and_loop_continues():
    responses = iter([
        httpx.Response(200, text="<html>proxy</html>"),
        httpx.Response(200, json=[{"id": 9}]),
    ])

    async with make_client(lambda request: next(responses)) as client:
        view = DriverQueueView(client, driver_id=1, interval=0.01)
        await view.run(asyncio.Event(), max_cycles=2)

    assert view.error_count == 1
    assert view.refresh_count == 1
    assert view.state == [{"id": 9}]


async def test_error_body_that_is_not_an_object():
    responses = iter([
        httpx.Response(502, json=["bad gateway"]),
        httpx.Response(200, json={"stats": {}}),
    ])

    async with make_client(lambda request: next(responses)) as client:
        view = AdminDashboardView(client, interval=0.01)
        assert not await view.refresh()
        assert view.last_error.status_code == 502
        assert "bad gateway" in view.last_error.message

        await view.run(asyncio.Event(), max_cycles=1)

    assert view.state == {"stats": {}}
