"""
Shared fixtures.

The environment is configured before ``foodhub`` is imported: a throwaway
SQLite database, mock notifications without latency or failures, Celery
tasks executed inline and reports written to a temporary directory.
"""

import asyncio
import os
import tempfile
from pathlib import Path

import pytest

_TMP_DIR = Path(tempfile.mkdtemp(prefix="foodhub-tests-"))

os.environ.update(
    {
        "ENV_MODE": "development",
        "DATABASE_URL": f"sqlite+aiosqlite:///{_TMP_DIR / 'test.db'}",
        "CELERY_TASK_ALWAYS_EAGER": "true",
        "MOCK_NOTIFICATION_LATENCY": "0",
        "MOCK_NOTIFICATION_FAILURE_RATE": "0",
        "ENFORCE_RESTAURANT_HOURS": "false",
        "DATA_DIRECTORY": str(_TMP_DIR / "data"),
        "BCRYPT_ROUNDS": "4",
    }
)

from fastapi.testclient import TestClient  # noqa: E402

from foodhub.database import Base, engine  # noqa: E402
from foodhub.main import app  # noqa: E402
from foodhub import models  # noqa: E402,F401


async def reset_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    # Connections are bound to this event loop; the app gets fresh ones
    await engine.dispose()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def data_dir() -> Path:
    return _TMP_DIR / "data"


@pytest.fixture
def client():
    asyncio.run(reset_schema())
    with TestClient(app) as c:
        yield c


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture
def make_restaurant(client):
    def _make(**overrides):
        payload = {"name": "Shawarma House", "deliveryFee": 5.0, "minimumOrder": 0}
        payload.update(overrides)
        response = client.post("/api/restaurants", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_driver(client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        payload = {
            "name": f"Driver {counter['n']}",
            "phone": f"05000000{counter['n']:02d}",
            "password": "secret123",
        }
        payload.update(overrides)
        response = client.post("/api/drivers", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_order(client):
    def _make(**overrides):
        payload = {
            "customerName": "Ali",
            "customerPhone": "0501234567",
            "deliveryAddress": "12 Olaya St",
            "items": [{"name": "Burger", "price": 20.0, "quantity": 2}],
        }
        payload.update(overrides)
        response = client.post("/api/orders", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def confirmed_order(client, make_order, make_restaurant):
    """A confirmed order from a restaurant with a 5.00 delivery fee."""
    def _make(**overrides):
        restaurant = make_restaurant()
        order = make_order(restaurantId=restaurant["id"], **overrides)
        response = client.put(f"/api/orders/{order['id']}", json={"status": "confirmed"})
        assert response.status_code == 200, response.text
        return response.json()
    return _make
