"""
API routers, one module per area of the marketplace.
"""

from foodhub.api import admin, catalog, customers, drivers, orders, settings

routers = [
    catalog.router,
    orders.router,
    customers.router,
    drivers.router,
    admin.router,
    admin.notifications_router,
    settings.router,
]

__all__ = ["routers"]
