"""
Driver API

Driver accounts, availability, the claimable order pool and the
accept / pickup / complete workflow.
"""

import logging
from datetime import timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from foodhub.api.common import apply_changes
from foodhub.core.exceptions import AuthenticationError, ConflictError, PermissionDeniedError
from foodhub.core.security import hash_password, verify_password
from foodhub.database import get_db
from foodhub.models import Driver, Order, OrderStatus, utcnow
from foodhub.schemas import (
    AvailableOrder,
    DriverCreate,
    DriverLogin,
    DriverOrderAction,
    DriverResponse,
    DriverStats,
    DriverStatusUpdate,
    DriverUpdate,
    OrderResponse,
    SuccessResponse,
)
from foodhub.services import order_workflow as workflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/drivers", tags=["Drivers"])

STATS_PERIODS = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


async def _ensure_phone_free(db: AsyncSession, phone: str, exclude_id: Optional[int] = None) -> None:
    query = select(Driver.id).where(Driver.phone == phone)
    if exclude_id is not None:
        query = query.where(Driver.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(f"A driver with phone {phone} already exists")


# =============================================================================
# ACCOUNTS
# =============================================================================

@router.get("", response_model=list[DriverResponse])
async def list_drivers(
    available: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """All drivers; ``available=true`` keeps active drivers that are on duty."""
    query = select(Driver).order_by(Driver.name, Driver.id)
    if available:
        query = query.where(Driver.is_available.is_(True), Driver.is_active.is_(True))
    elif available is False:
        query = query.where(Driver.is_available.is_(False))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=DriverResponse, status_code=201)
async def create_driver(data: DriverCreate, db: AsyncSession = Depends(get_db)):
    await _ensure_phone_free(db, data.phone)
    driver = Driver(
        password_hash=hash_password(data.password),
        **data.model_dump(exclude={"password"}),
    )
    db.add(driver)
    await db.commit()
    await db.refresh(driver)
    logger.info(f"Driver #{driver.id} created: {driver.name}")
    return driver


@router.post("/login", response_model=DriverResponse)
async def login(data: DriverLogin, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Driver).where(Driver.phone == data.phone))
    driver = result.scalar_one_or_none()
    if driver is None or not verify_password(data.password, driver.password_hash):
        logger.warning(f"Failed driver login for {data.phone}")
        raise AuthenticationError("Invalid phone or password")
    if not driver.is_active:
        raise PermissionDeniedError("Driver account is deactivated")
    return driver


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(driver_id: int, db: AsyncSession = Depends(get_db)):
    return await workflow.get_driver_or_404(db, driver_id)


@router.put("/{driver_id}", response_model=DriverResponse)
async def update_driver(driver_id: int, data: DriverUpdate, db: AsyncSession = Depends(get_db)):
    driver = await workflow.get_driver_or_404(db, driver_id)
    changes = data.model_dump(exclude_unset=True)

    if "phone" in changes and changes["phone"] != driver.phone:
        await _ensure_phone_free(db, changes["phone"], exclude_id=driver.id)
    password = changes.pop("password", None)
    if password:
        driver.password_hash = hash_password(password)

    apply_changes(driver, changes)
    await db.commit()
    await db.refresh(driver)
    return driver


@router.delete("/{driver_id}", response_model=SuccessResponse)
async def delete_driver(driver_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a driver; their orders keep existing without a driver."""
    driver = await workflow.get_driver_or_404(db, driver_id)
    await db.execute(update(Order).where(Order.driver_id == driver.id).values(driver_id=None))
    await db.delete(driver)
    await db.commit()
    logger.info(f"Driver #{driver_id} deleted")
    return SuccessResponse()


@router.put("/{driver_id}/status", response_model=DriverResponse)
async def update_status(driver_id: int, data: DriverStatusUpdate, db: AsyncSession = Depends(get_db)):
    driver = await workflow.get_driver_or_404(db, driver_id)
    driver.is_available = data.status == "available"
    if data.latitude is not None and data.longitude is not None:
        driver.current_location = f"{data.latitude},{data.longitude}"
    await db.commit()
    await db.refresh(driver)
    logger.info(f"Driver #{driver.id} is now {data.status}")
    return driver


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/{driver_id}/orders", response_model=list[OrderResponse])
async def list_driver_orders(
    driver_id: int,
    status: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    await workflow.get_driver_or_404(db, driver_id)
    query = (
        select(Order)
        .where(Order.driver_id == driver_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    if status:
        query = query.where(Order.status == workflow.parse_status(status))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{driver_id}/available-orders", response_model=list[AvailableOrder])
async def available_orders(driver_id: int, db: AsyncSession = Depends(get_db)):
    return await workflow.available_orders_for(db, driver_id)


@router.post("/{driver_id}/accept-order", response_model=OrderResponse)
async def accept_order(driver_id: int, data: DriverOrderAction, db: AsyncSession = Depends(get_db)):
    order = await workflow.claim_order(db, driver_id, data.order_id)
    return order


@router.post("/{driver_id}/pickup-order", response_model=OrderResponse)
async def pickup_order(driver_id: int, data: DriverOrderAction, db: AsyncSession = Depends(get_db)):
    order = await workflow.pickup_order(db, driver_id, data.order_id)
    await workflow.notify_status_change(order)
    return order


@router.post("/{driver_id}/complete-order", response_model=OrderResponse)
async def complete_order(driver_id: int, data: DriverOrderAction, db: AsyncSession = Depends(get_db)):
    order = await workflow.complete_order(db, driver_id, data.order_id)
    await workflow.notify_status_change(order)
    workflow.queue_delivery_export(order)
    return order


# =============================================================================
# STATS
# =============================================================================

@router.get("/{driver_id}/stats", response_model=DriverStats)
async def driver_stats(
    driver_id: int,
    period: Literal["today", "week", "month"] = Query("today"),
    db: AsyncSession = Depends(get_db),
):
    """Delivered orders in the period: count, value and earned fees."""
    await workflow.get_driver_or_404(db, driver_id)

    end_date = utcnow()
    if period == "today":
        start_date = end_date.replace(hour=0, minute=0, second=0, microsecond=0)
    else:
        start_date = end_date - STATS_PERIODS[period]

    result = await db.execute(
        select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0.0),
            func.coalesce(func.sum(Order.delivery_fee), 0.0),
        ).where(
            Order.driver_id == driver_id,
            Order.status == OrderStatus.DELIVERED,
            Order.created_at >= start_date,
            Order.created_at <= end_date,
        )
    )
    total_orders, total_amount, earnings = result.one()

    return DriverStats(
        driver_id=driver_id,
        period=period,
        start_date=start_date,
        end_date=end_date,
        total_orders=total_orders,
        total_amount=round(float(total_amount), 2),
        avg_order_value=round(float(total_amount) / total_orders, 2) if total_orders else 0.0,
        earnings=round(float(earnings), 2),
    )
