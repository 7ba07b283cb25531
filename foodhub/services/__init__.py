"""
                        Services Module

Business logic shared by the API routers and background tasks.

Services:
    - order_workflow: order lifecycle, driver claim and delivery completion
    - hours: restaurant opening hours
    - notifications: SMS/Email with Mock and Real implementations
    - excel_manager: Process-safe Excel exports
"""

from foodhub.services.excel_manager import ExcelManager

__all__ = ["ExcelManager"]
