"""
Orders API

Order creation, admin listing and status/driver mutation, and the tracking
view polled by customers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from foodhub.api.common import paginate
from foodhub.database import get_db
from foodhub.models import ActorType, Driver, Order, OrderStatus, OrderTracking
from foodhub.schemas import (
    AssignDriverRequest,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderTrackResponse,
    OrderUpdate,
    TrackingEntry,
)
from foodhub.services import order_workflow as workflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(data: OrderCreate, db: AsyncSession = Depends(get_db)):
    """
    Place a new order.

    The order starts as ``pending`` with a generated order number and a
    first tracking entry.
    """
    logger.info(f"Creating order for: {data.customer_name}")
    order = await workflow.create_order(db, data)
    await workflow.notify_status_change(order)
    return order


@router.get("", response_model=OrderListResponse)
async def list_orders(
    status: Optional[str] = Query(None),
    restaurant_id: Optional[int] = Query(None, alias="restaurantId"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Newest first; ``search`` matches order number, customer name or phone."""
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())

    if status:
        query = query.where(Order.status == workflow.parse_status(status))
    if restaurant_id is not None:
        query = query.where(Order.restaurant_id == restaurant_id)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Order.order_number.ilike(pattern),
                Order.customer_name.ilike(pattern),
                Order.customer_phone.ilike(pattern),
            )
        )

    orders, pagination = await paginate(db, query, page, limit)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        pagination=pagination,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    return await workflow.get_order_or_404(db, order_id)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(order_id: int, data: OrderUpdate, db: AsyncSession = Depends(get_db)):
    """
    Change the status and/or the driver of an order.

    A status change must follow the transition table; a driver may be
    written alongside it or on its own.
    """
    if data.status is not None:
        order = await workflow.transition_order(
            db,
            order_id,
            data.status,
            driver_id=data.driver_id,
            actor_type=ActorType.ADMIN,
        )
        await workflow.notify_status_change(order)
        if order.status == OrderStatus.DELIVERED:
            workflow.queue_delivery_export(order)
    else:
        order = await workflow.assign_driver(db, order_id, data.driver_id)

    if data.driver_id is not None:
        driver = await db.get(Driver, data.driver_id)
        await workflow.notify_driver_assignment(order, driver)
    return order


@router.put("/{order_id}/assign-driver", response_model=OrderResponse)
async def assign_driver(order_id: int, data: AssignDriverRequest, db: AsyncSession = Depends(get_db)):
    order = await workflow.assign_driver(db, order_id, data.driver_id)
    driver = await db.get(Driver, data.driver_id)
    await workflow.notify_driver_assignment(order, driver)
    return order


@router.get("/{order_id}/track", response_model=OrderTrackResponse)
async def track_order(order_id: int, db: AsyncSession = Depends(get_db)):
    """Order, its tracking history (oldest first) and the driver's last location."""
    order = await workflow.get_order_or_404(db, order_id)

    result = await db.execute(
        select(OrderTracking)
        .where(OrderTracking.order_id == order.id)
        .order_by(OrderTracking.created_at, OrderTracking.id)
    )
    tracking = result.scalars().all()

    driver_location = None
    if order.driver_id is not None:
        driver = await db.get(Driver, order.driver_id)
        driver_location = driver.current_location if driver else None

    return OrderTrackResponse(
        order=OrderResponse.model_validate(order),
        tracking=[TrackingEntry.model_validate(t) for t in tracking],
        driver_location=driver_location,
    )
