"""
Order Workflow Service

Owns every mutation of an order's lifecycle:

    pending -> confirmed -> preparing -> on_way -> delivered
       \\-> cancelled

The transition table below is the only source of legal moves. Moves that
must not race (status changes, driver claims) are applied with a
conditional UPDATE and a rowcount check, so a concurrent writer gets a
ConflictError instead of silently overwriting the winner. Each public
coroutine commits exactly once: the order row, its tracking entry and any
driver/notification rows land in the same transaction.
"""

import json
import logging
import random
import time
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from foodhub.core.config import get_settings
from foodhub.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from foodhub.models import (
    ActorType,
    Driver,
    Notification,
    Order,
    OrderStatus,
    OrderTracking,
    RecipientType,
    Restaurant,
    utcnow,
)
from foodhub.schemas import OrderCreate
from foodhub.services.hours import can_order_from
from foodhub.services.notifications import get_notification_service

logger = logging.getLogger(__name__)


# =============================================================================
# STATE MACHINE
# =============================================================================

TRANSITIONS: dict[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING}),
    OrderStatus.PREPARING: frozenset({OrderStatus.ON_WAY}),
    OrderStatus.ON_WAY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

TRACKING_MESSAGES = {
    OrderStatus.PENDING: "Order received",
    OrderStatus.CONFIRMED: "Order confirmed by the restaurant",
    OrderStatus.PREPARING: "Order is being prepared",
    OrderStatus.ON_WAY: "Order is on the way",
    OrderStatus.DELIVERED: "Order delivered",
    OrderStatus.CANCELLED: "Order cancelled",
}

# Drivers only ever see orders that are ready to be claimed
CLAIMABLE_STATUS = OrderStatus.CONFIRMED
AVAILABLE_ORDERS_LIMIT = 10


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    """Convert a wire value into an OrderStatus, rejecting unknown strings."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        valid = [s.value for s in OrderStatus]
        raise ValidationError(f"Invalid status '{value}'. Options: {valid}")


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def allowed_transitions(status: OrderStatus) -> list[OrderStatus]:
    """Legal next statuses, in lifecycle order."""
    return [s for s in OrderStatus if s in TRANSITIONS[status]]


def generate_order_number() -> str:
    """ORD + epoch milliseconds + a 0-999 suffix."""
    return f"ORD{int(time.time() * 1000)}{random.randint(0, 999)}"


# =============================================================================
# LOOKUPS
# =============================================================================

async def get_order_or_404(db: AsyncSession, order_id: int) -> Order:
    order = await db.get(Order, order_id)
    if order is None:
        raise NotFoundError.for_entity("Order", order_id)
    return order


async def get_driver_or_404(db: AsyncSession, driver_id: int) -> Driver:
    driver = await db.get(Driver, driver_id)
    if driver is None:
        raise NotFoundError.for_entity("Driver", driver_id)
    return driver


def _tracking(
    order_id: int,
    status: OrderStatus,
    message: Optional[str],
    actor_type: ActorType,
    actor_id: Optional[int],
) -> OrderTracking:
    return OrderTracking(
        order_id=order_id,
        status=status,
        message=message or TRACKING_MESSAGES[status],
        created_by_type=actor_type,
        created_by_id=actor_id,
    )


def _driver_notification(driver_id: int, order: Order) -> Notification:
    return Notification(
        recipient_type=RecipientType.DRIVER,
        recipient_id=driver_id,
        order_id=order.id,
        type="order",
        title="New order",
        message=f"You have been assigned order {order.order_number}",
    )


# =============================================================================
# ORDER CREATION
# =============================================================================

async def create_order(
    db: AsyncSession,
    data: OrderCreate,
    now: Optional[datetime] = None,
) -> Order:
    """
    Insert a pending order and its first tracking entry.

    Missing totals are computed: the subtotal from the item lines, the
    delivery fee from the restaurant (or the configured default), the
    total as subtotal plus fee.
    """
    settings = get_settings()

    restaurant = None
    if data.restaurant_id is not None:
        restaurant = await db.get(Restaurant, data.restaurant_id)
        if restaurant is None:
            raise NotFoundError.for_entity("Restaurant", data.restaurant_id)
        if settings.enforce_restaurant_hours:
            allowed, reason = can_order_from(restaurant, now)
            if not allowed:
                raise ConflictError(reason)

    subtotal = data.subtotal
    if subtotal is None:
        subtotal = round(sum(item.price * item.quantity for item in data.items), 2)

    delivery_fee = data.delivery_fee
    if delivery_fee is None:
        delivery_fee = restaurant.delivery_fee if restaurant else settings.default_delivery_fee

    total_amount = data.total_amount
    if total_amount is None:
        total_amount = round(subtotal + delivery_fee, 2)

    if restaurant and restaurant.minimum_order and subtotal < restaurant.minimum_order:
        raise ValidationError(
            f"Minimum order for {restaurant.name} is {restaurant.minimum_order:.2f}"
        )

    order = Order(
        order_number=generate_order_number(),
        customer_id=data.customer_id,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        customer_email=data.customer_email,
        delivery_address=data.delivery_address,
        notes=data.notes,
        restaurant_id=data.restaurant_id,
        items=json.dumps([item.model_dump() for item in data.items]),
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        total_amount=total_amount,
        payment_method=data.payment_method,
        status=OrderStatus.PENDING,
        estimated_time=restaurant.delivery_time if restaurant else settings.default_estimated_time,
    )
    db.add(order)
    await db.flush()

    actor_type = ActorType.CUSTOMER if data.customer_id else ActorType.SYSTEM
    db.add(_tracking(order.id, OrderStatus.PENDING, None, actor_type, data.customer_id))
    await db.commit()
    await db.refresh(order)

    logger.info(f"Order {order.order_number} created (#{order.id}, total={order.total_amount})")
    return order


# =============================================================================
# STATUS TRANSITIONS
# =============================================================================

async def transition_order(
    db: AsyncSession,
    order_id: int,
    target: Union[str, OrderStatus],
    *,
    driver_id: Optional[int] = None,
    actor_type: ActorType = ActorType.SYSTEM,
    actor_id: Optional[int] = None,
    message: Optional[str] = None,
) -> Order:
    """
    Move an order to ``target`` if the transition table allows it.

    Only ``status``, ``updated_at`` and (when given) ``driver_id`` are
    written.

    Raises:
        NotFoundError: order or driver does not exist
        InvalidTransitionError: move not in the table
        ConflictError: another writer changed the status first
    """
    target = parse_status(target)
    order = await get_order_or_404(db, order_id)
    current = order.status

    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)

    values = {"status": target, "updated_at": utcnow()}
    if driver_id is not None:
        driver = await get_driver_or_404(db, driver_id)
        if not driver.is_active:
            raise ConflictError(f"Driver #{driver.id} is not active")
        values["driver_id"] = driver_id

    result = await db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == current)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError(f"Order #{order.id} was modified concurrently; reload and retry")

    db.add(_tracking(order.id, target, message, actor_type, actor_id))
    if driver_id is not None and driver_id != order.driver_id:
        db.add(_driver_notification(driver_id, order))

    assigned_driver_id = driver_id if driver_id is not None else order.driver_id
    if target in TERMINAL_STATUSES and assigned_driver_id is not None:
        await _release_driver(db, assigned_driver_id)

    await db.commit()
    await db.refresh(order)

    logger.info(f"Order {order.order_number}: {current.value} -> {target.value} (by {actor_type.value})")
    return order


async def _release_driver(db: AsyncSession, driver_id: int) -> None:
    """Mark a driver available again once none of their orders is still open."""
    open_orders = await db.scalar(
        select(func.count(Order.id)).where(
            Order.driver_id == driver_id,
            Order.status.notin_(TERMINAL_STATUSES),
        )
    )
    if open_orders:
        return
    await db.execute(
        update(Driver)
        .where(Driver.id == driver_id, Driver.is_active.is_(True))
        .values(is_available=True)
        .execution_options(synchronize_session=False)
    )


async def assign_driver(
    db: AsyncSession,
    order_id: int,
    driver_id: int,
    *,
    actor_type: ActorType = ActorType.ADMIN,
    actor_id: Optional[int] = None,
) -> Order:
    """Set ``driver_id`` on a non-terminal order without touching its status."""
    order = await get_order_or_404(db, order_id)
    if order.status in TERMINAL_STATUSES:
        raise ConflictError(f"Order #{order.id} is already {order.status.value}")

    driver = await get_driver_or_404(db, driver_id)
    if not driver.is_active:
        raise ConflictError(f"Driver #{driver.id} is not active")

    result = await db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == order.status)
        .values(driver_id=driver.id, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError(f"Order #{order.id} was modified concurrently; reload and retry")

    db.add(_tracking(order.id, order.status, f"Driver {driver.name} assigned", actor_type, actor_id))
    db.add(_driver_notification(driver.id, order))
    await db.commit()
    await db.refresh(order)

    logger.info(f"Order {order.order_number} assigned to driver #{driver.id}")
    return order


# =============================================================================
# DRIVER WORKFLOW
# =============================================================================

async def available_orders_for(db: AsyncSession, driver_id: int) -> list[Order]:
    """Claimable orders for a driver; empty while the driver is off duty."""
    driver = await get_driver_or_404(db, driver_id)
    if not driver.is_available or not driver.is_active:
        return []

    result = await db.execute(
        select(Order)
        .where(Order.status == CLAIMABLE_STATUS, Order.driver_id.is_(None))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(AVAILABLE_ORDERS_LIMIT)
    )
    return list(result.scalars().all())


async def claim_order(db: AsyncSession, driver_id: int, order_id: int) -> Order:
    """
    Atomically attach an unclaimed confirmed order to a driver.

    The status stays ``confirmed``; the driver becomes unavailable. The
    first claim wins and later ones get a ConflictError.
    """
    driver = await get_driver_or_404(db, driver_id)
    if not driver.is_active:
        raise ConflictError(f"Driver #{driver.id} is not active")
    if not driver.is_available:
        raise ConflictError(f"Driver #{driver.id} is not available")

    order = await get_order_or_404(db, order_id)

    result = await db.execute(
        update(Order)
        .where(
            Order.id == order.id,
            Order.driver_id.is_(None),
            Order.status == CLAIMABLE_STATUS,
        )
        .values(driver_id=driver.id, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError(f"Order #{order.id} is no longer available")

    driver.is_available = False
    db.add(_tracking(order.id, CLAIMABLE_STATUS, f"Accepted by driver {driver.name}", ActorType.DRIVER, driver.id))
    db.add(_driver_notification(driver.id, order))
    await db.commit()
    await db.refresh(order)

    logger.info(f"Driver #{driver.id} claimed order {order.order_number}")
    return order


async def _require_assigned(db: AsyncSession, driver_id: int, order_id: int) -> tuple[Driver, Order]:
    driver = await get_driver_or_404(db, driver_id)
    order = await get_order_or_404(db, order_id)
    if order.driver_id != driver.id:
        raise PermissionDeniedError(f"Order #{order.id} is not assigned to driver #{driver.id}")
    return driver, order


async def pickup_order(db: AsyncSession, driver_id: int, order_id: int) -> Order:
    """preparing -> on_way, by the assigned driver."""
    driver, order = await _require_assigned(db, driver_id, order_id)
    return await transition_order(
        db,
        order.id,
        OrderStatus.ON_WAY,
        actor_type=ActorType.DRIVER,
        actor_id=driver.id,
        message=f"Picked up by driver {driver.name}",
    )


async def complete_order(db: AsyncSession, driver_id: int, order_id: int) -> Order:
    """
    on_way -> delivered, by the assigned driver.

    Credits the order's delivery fee to the driver and frees the driver
    in the same transaction.
    """
    driver, order = await _require_assigned(db, driver_id, order_id)

    if not can_transition(order.status, OrderStatus.DELIVERED):
        raise InvalidTransitionError(order.status.value, OrderStatus.DELIVERED.value)

    result = await db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == OrderStatus.ON_WAY)
        .values(status=OrderStatus.DELIVERED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError(f"Order #{order.id} was modified concurrently; reload and retry")

    await db.execute(
        update(Driver)
        .where(Driver.id == driver.id)
        .values(earnings=Driver.earnings + order.delivery_fee, is_available=True)
        .execution_options(synchronize_session=False)
    )
    db.add(_tracking(order.id, OrderStatus.DELIVERED, f"Delivered by driver {driver.name}", ActorType.DRIVER, driver.id))
    await db.commit()
    await db.refresh(order)
    await db.refresh(driver)

    logger.info(f"Driver #{driver.id} delivered order {order.order_number} (+{order.delivery_fee:.2f})")
    return order


# =============================================================================
# SIDE EFFECTS (after commit)
# =============================================================================

def delivery_export_payload(order: Order) -> dict:
    """JSON-serialisable row for the deliveries ledger."""
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "restaurant_id": order.restaurant_id,
        "driver_id": order.driver_id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "delivery_address": order.delivery_address,
        "items": order.items,
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "total_amount": order.total_amount,
        "payment_method": order.payment_method.value,
        "created_at": order.created_at.isoformat(),
        "delivered_at": order.updated_at.isoformat(),
    }


def queue_delivery_export(order: Order) -> None:
    # Imported here so the API does not pull in Celery at module import time
    from foodhub.tasks import export_delivery_to_excel

    try:
        export_delivery_to_excel.delay(delivery_export_payload(order))
    except Exception as e:
        logger.error(f"Could not queue delivery export for {order.order_number}: {e}")


async def notify_status_change(order: Order) -> None:
    """Tell the customer about the order's current status."""
    if not order.customer_phone and not order.customer_email:
        return

    service = get_notification_service()
    result = await service.send_status_update(
        order_number=order.order_number,
        status=order.status.value,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=order.customer_email,
    )
    if result.success:
        logger.info(f"Status notification sent for {order.order_number} via {result.provider}")
    else:
        logger.warning(f"Status notification failed for {order.order_number}: {result.error_message}")


async def notify_driver_assignment(order: Order, driver: Driver) -> None:
    service = get_notification_service()
    result = await service.send_driver_assignment(
        order_number=order.order_number,
        driver_name=driver.name,
        driver_phone=driver.phone,
        delivery_address=order.delivery_address,
    )
    if not result.success:
        logger.warning(f"Driver notification failed for {order.order_number}: {result.error_message}")
