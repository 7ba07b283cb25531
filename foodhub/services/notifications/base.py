"""
Notification Service Abstract Base Class

Defines interface for sending SMS and Email notifications about order
progress. Supports both Mock (development) and Real (production)
implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

STATUS_MESSAGES = {
    "pending": "has been received",
    "confirmed": "has been confirmed by the restaurant",
    "preparing": "is being prepared",
    "on_way": "is on its way",
    "delivered": "has been delivered. Enjoy your meal!",
    "cancelled": "has been cancelled",
}


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def status_update_text(marketplace: str, customer_name: str, order_number: str, status: str) -> str:
    phrase = STATUS_MESSAGES.get(status, f"is now {status}")
    return f"Hi {customer_name}! Your {marketplace} order {order_number} {phrase}"


def driver_assignment_text(marketplace: str, driver_name: str, order_number: str, delivery_address: Optional[str]) -> str:
    destination = delivery_address or "the customer"
    return f"{driver_name}, you have been assigned {marketplace} order {order_number}. Deliver to: {destination}"


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send an SMS message."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    async def send_status_update(
        self,
        order_number: str,
        status: str,
        customer_name: str,
        customer_phone: Optional[str],
        customer_email: Optional[str] = None,
    ) -> NotificationResult:
        """Tell the customer their order changed status."""
        pass

    @abstractmethod
    async def send_driver_assignment(
        self,
        order_number: str,
        driver_name: str,
        driver_phone: str,
        delivery_address: Optional[str] = None,
    ) -> NotificationResult:
        """Tell a driver an order was assigned to them."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass
