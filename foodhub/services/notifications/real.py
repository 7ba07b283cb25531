"""
Real Notification Service

Production implementation using:
- Twilio for SMS
- SendGrid for Email

The provider SDKs are synchronous, so calls run in a worker thread.
"""

import asyncio
import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from twilio.rest import Client as TwilioClient
from twilio.base.exceptions import TwilioException

from foodhub.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
    driver_assignment_text,
    status_update_text,
)
from foodhub.core.config import get_settings

logger = logging.getLogger(__name__)


class RealNotificationService(BaseNotificationService):
    """Production notification service using Twilio and SendGrid."""

    def __init__(self):
        self.settings = get_settings()

        if self.settings.twilio_account_sid and self.settings.twilio_auth_token:
            self.twilio_client = TwilioClient(
                self.settings.twilio_account_sid,
                self.settings.twilio_auth_token
            )
            self.twilio_from_number = self.settings.twilio_phone_number
        else:
            self.twilio_client = None
            logger.warning("Twilio credentials not configured")

        if self.settings.sendgrid_api_key:
            self.sendgrid_client = SendGridAPIClient(self.settings.sendgrid_api_key)
            self.sendgrid_from_email = self.settings.sendgrid_from_email
        else:
            self.sendgrid_client = None
            logger.warning("SendGrid credentials not configured")

        logger.info("RealNotificationService initialized")

    @property
    def provider_name(self) -> str:
        return "real"

    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send SMS via Twilio."""
        if not self.twilio_client:
            return NotificationResult(
                success=False,
                error_message="Twilio not configured",
                provider="twilio"
            )

        try:
            result = await asyncio.to_thread(
                self.twilio_client.messages.create,
                body=message,
                from_=self.twilio_from_number,
                to=to_phone,
            )

            logger.info(f"SMS sent to {to_phone}: {result.sid}")

            return NotificationResult(
                success=True,
                message_id=result.sid,
                provider="twilio"
            )

        except TwilioException as e:
            logger.error(f"Twilio error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="twilio"
            )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send email via SendGrid."""
        if not self.sendgrid_client:
            return NotificationResult(
                success=False,
                error_message="SendGrid not configured",
                provider="sendgrid"
            )

        try:
            message = Mail(
                from_email=self.sendgrid_from_email,
                to_emails=to_email,
                subject=subject,
                html_content=body_html,
                plain_text_content=body_text
            )

            response = await asyncio.to_thread(self.sendgrid_client.send, message)

            logger.info(f"Email sent to {to_email}: {response.status_code}")

            return NotificationResult(
                success=response.status_code in [200, 201, 202],
                message_id=response.headers.get('X-Message-Id'),
                provider="sendgrid"
            )

        except Exception as e:
            # SendGrid raises python_http_client errors without a common base
            logger.error(f"SendGrid error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="sendgrid"
            )

    async def send_status_update(
        self,
        order_number: str,
        status: str,
        customer_name: str,
        customer_phone: Optional[str],
        customer_email: Optional[str] = None,
    ) -> NotificationResult:
        marketplace = self.settings.marketplace_name
        message = status_update_text(marketplace, customer_name, order_number, status)

        sms_result = None
        if customer_phone:
            sms_result = await self.send_sms(customer_phone, message)

        email_result = None
        if customer_email:
            email_html = f"""
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h1 style="color: #ff4757;">Order {order_number}</h1>
                <p>{message}</p>
                <p>Thank you for ordering with {marketplace}!</p>
            </div>
            """
            email_result = await self.send_email(
                to_email=customer_email,
                subject=f"Order {order_number} - {marketplace}",
                body_html=email_html,
                body_text=message
            )

        results = [r for r in (sms_result, email_result) if r is not None]
        return NotificationResult(
            success=any(r.success for r in results),
            message_id=sms_result.message_id if sms_result else None,
            error_message=None if results else "No contact details",
            provider="real"
        )

    async def send_driver_assignment(
        self,
        order_number: str,
        driver_name: str,
        driver_phone: str,
        delivery_address: Optional[str] = None,
    ) -> NotificationResult:
        message = driver_assignment_text(
            self.settings.marketplace_name, driver_name, order_number, delivery_address
        )
        return await self.send_sms(driver_phone, message)

    async def health_check(self) -> bool:
        """Check the SMS provider credentials."""
        if not self.twilio_client:
            return False
        try:
            await asyncio.to_thread(
                self.twilio_client.api.accounts(self.settings.twilio_account_sid).fetch
            )
            return True
        except TwilioException as e:
            logger.error(f"Twilio health check failed: {e}")
            return False
