"""Concrete polling views for the driver, admin and customer apps."""

from typing import Any, Optional

import httpx

from foodhub.clients.polling import PollingView, UiSettings, get_json


class DriverQueueView(PollingView):
    """Claimable orders for one driver."""
    interval = 3.0

    def __init__(self, client: httpx.AsyncClient, driver_id: int, interval: Optional[float] = None):
        super().__init__(client, interval)
        self.driver_id = driver_id

    async def fetch(self) -> list[dict]:
        return await get_json(self.client, f"/api/drivers/{self.driver_id}/available-orders")


class AdminDashboardView(PollingView):
    interval = 5.0

    async def fetch(self) -> dict:
        return await get_json(self.client, "/api/admin/dashboard")


class OrderTrackingView(PollingView):
    """Order, tracking history and driver location for the tracking page."""
    interval = 10.0

    def __init__(self, client: httpx.AsyncClient, order_id: int, interval: Optional[float] = None):
        super().__init__(client, interval)
        self.order_id = order_id

    async def fetch(self) -> dict:
        return await get_json(self.client, f"/api/orders/{self.order_id}/track")

    @property
    def status(self) -> Optional[str]:
        return self.state["order"]["status"] if self.state else None


class CustomerOrdersView(PollingView):
    """
    A customer's order history.

    Ratings are only shown when the ``show_ratings`` flag is on.
    """
    interval = 30.0

    def __init__(
        self,
        client: httpx.AsyncClient,
        customer_id: int,
        ui_settings: UiSettings,
        interval: Optional[float] = None,
    ):
        super().__init__(client, interval)
        self.customer_id = customer_id
        self.ui_settings = ui_settings

    async def fetch(self) -> dict[str, Any]:
        data = await get_json(self.client, f"/api/customers/{self.customer_id}/orders")
        if not self.ui_settings.is_enabled("show_ratings"):
            for order in data["orders"]:
                order.pop("rating", None)
                order.pop("review", None)
        return data
