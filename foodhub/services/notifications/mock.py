"""
Mock Notification Service

Simulates SMS and Email sending for development.
No actual messages are sent - just logged.
"""

import asyncio
import random
import uuid
import logging
from typing import Optional

from foodhub.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
    driver_assignment_text,
    status_update_text,
)
from foodhub.core.config import get_settings

logger = logging.getLogger(__name__)


class MockNotificationService(BaseNotificationService):
    """Mock notification service for development."""

    def __init__(self, failure_rate: float = 0.05, max_latency: float = 0.3):
        self.failure_rate = failure_rate
        self.max_latency = max_latency
        self.sent: list[dict] = []
        logger.info(f"MockNotificationService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(0, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Simulate sending SMS."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock SMS failed (simulated) to {to_phone}")
            return NotificationResult(
                success=False,
                error_message="Simulated SMS failure",
                provider="mock"
            )

        message_id = f"sms_mock_{uuid.uuid4().hex[:12]}"
        self.sent.append({"channel": "sms", "to": to_phone, "body": message, "id": message_id})
        logger.info(f"Mock SMS sent to {to_phone}: {message[:50]}... (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Simulate sending email."""
        await self._simulate_latency()

        if self._should_fail():
            logger.warning(f"Mock email failed (simulated) to {to_email}")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider="mock"
            )

        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        self.sent.append({"channel": "email", "to": to_email, "body": subject, "id": message_id})
        logger.info(f"Mock email sent to {to_email}: {subject} (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def send_status_update(
        self,
        order_number: str,
        status: str,
        customer_name: str,
        customer_phone: Optional[str],
        customer_email: Optional[str] = None,
    ) -> NotificationResult:
        settings = get_settings()
        message = status_update_text(settings.marketplace_name, customer_name, order_number, status)

        sms_result = None
        if customer_phone:
            sms_result = await self.send_sms(customer_phone, message)

        email_result = None
        if customer_email:
            email_result = await self.send_email(
                to_email=customer_email,
                subject=f"Order {order_number} - {settings.marketplace_name}",
                body_html=f"<p>{message}</p>",
                body_text=message,
            )

        results = [r for r in (sms_result, email_result) if r is not None]
        return NotificationResult(
            success=any(r.success for r in results),
            message_id=sms_result.message_id if sms_result else None,
            error_message=None if results else "No contact details",
            provider="mock"
        )

    async def send_driver_assignment(
        self,
        order_number: str,
        driver_name: str,
        driver_phone: str,
        delivery_address: Optional[str] = None,
    ) -> NotificationResult:
        settings = get_settings()
        message = driver_assignment_text(settings.marketplace_name, driver_name, order_number, delivery_address)
        return await self.send_sms(driver_phone, message)

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
