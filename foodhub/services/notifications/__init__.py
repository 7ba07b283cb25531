"""
Notification Service Factory

Returns Mock or Real notification service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from foodhub.core.config import get_settings
from foodhub.services.notifications.base import (
    BaseNotificationService,
    NotificationResult,
)
from foodhub.services.notifications.mock import MockNotificationService

logger = logging.getLogger(__name__)


@lru_cache()
def get_notification_service() -> BaseNotificationService:
    """Get the configured notification service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Notification Service: Using MockNotificationService (development mode)")
        return MockNotificationService(
            failure_rate=settings.mock_notification_failure_rate,
            max_latency=settings.mock_notification_latency,
        )

    # Provider SDKs are only imported when real services are in use
    from foodhub.services.notifications.real import RealNotificationService

    logger.info(f"Notification Service: Using RealNotificationService ({settings.env_mode.value} mode)")
    return RealNotificationService()


def reset_notification_service() -> None:
    """Clear the cached service instance."""
    get_notification_service.cache_clear()


__all__ = [
    "get_notification_service",
    "reset_notification_service",
    "BaseNotificationService",
    "NotificationResult",
    "MockNotificationService",
]
