"""
                FoodHub Delivery Marketplace

Backend for a food-delivery marketplace: catalog browsing, ordering,
order tracking, driver assignment and admin workflows.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
