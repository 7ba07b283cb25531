"""
Polling clients used by the driver, admin and customer apps.
"""

from foodhub.clients.polling import ClientError, PollingView, UiSettings, load_ui_settings
from foodhub.clients.views import (
    AdminDashboardView,
    CustomerOrdersView,
    DriverQueueView,
    OrderTrackingView,
)

__all__ = [
    "ClientError",
    "PollingView",
    "UiSettings",
    "load_ui_settings",
    "AdminDashboardView",
    "CustomerOrdersView",
    "DriverQueueView",
    "OrderTrackingView",
]
