import pytest

from foodhub.services.notifications import (
    MockNotificationService,
    get_notification_service,
    reset_notification_service,
)
from foodhub.services.notifications.base import status_update_text


@pytest.mark.anyio
async def test_status_update_goes_to_sms_and_email():
    service = MockNotificationService(failure_rate=0, max_latency=0)
    result = await service.send_status_update(
        order_number="ORD1",
        status="on_way",
        customer_name="Ali",
        customer_phone="0501234567",
        customer_email="ali@example.com",
    )

    assert result.success
    assert [m["channel"] for m in service.sent] == ["sms", "email"]
    assert "is on its way" in service.sent[0]["body"]


@pytest.mark.anyio
async def test_no_contact_details():
    service = MockNotificationService(failure_rate=0, max_latency=0)
    result = await service.send_status_update("ORD1", "pending", "Ali", None)
    assert not result.success
    assert service.sent == []


@pytest.mark.anyio
async def test_simulated_failures():
    service = MockNotificationService(failure_rate=1, max_latency=0)
    result = await service.send_driver_assignment("ORD1", "Khaled", "0511111111", "12 Olaya St")
    assert not result.success
    assert result.error_message == "Simulated SMS failure"


@pytest.mark.anyio
async def test_factory_uses_mock_in_development():
    reset_notification_service()
    service = get_notification_service()
    assert service.provider_name == "mock"
    assert get_notification_service() is service
    assert await service.health_check()


def test_status_text_for_unknown_status():
    assert status_update_text("FoodHub", "Ali", "ORD1", "lost").endswith("is now lost")
