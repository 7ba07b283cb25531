"""
Admin API

Dashboard aggregates, review moderation, sales report exports and in-app
notifications.
"""

import logging
from datetime import timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from foodhub.api.common import get_or_404, recompute_restaurant_rating
from foodhub.database import get_db
from foodhub.models import (
    Customer,
    Driver,
    Notification,
    Order,
    OrderStatus,
    RecipientType,
    Restaurant,
    Review,
    utcnow,
)
from foodhub.schemas import (
    DashboardResponse,
    DashboardStats,
    NotificationResponse,
    OrderResponse,
    ReportQueuedResponse,
    ReviewApproval,
    ReviewResponse,
    SuccessResponse,
)
from foodhub.tasks import export_sales_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])
notifications_router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

RECENT_ORDERS_LIMIT = 10
REPORT_PERIODS = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


async def _count(db: AsyncSession, *criteria, model=Order) -> int:
    query = select(func.count(model.id))
    if criteria:
        query = query.where(*criteria)
    result = await db.execute(query)
    return result.scalar() or 0


async def _revenue(db: AsyncSession, *criteria) -> float:
    result = await db.execute(
        select(func.coalesce(func.sum(Order.total_amount), 0.0)).where(
            Order.status == OrderStatus.DELIVERED, *criteria
        )
    )
    return round(float(result.scalar() or 0.0), 2)


# =============================================================================
# DASHBOARD
# =============================================================================

@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(db: AsyncSession = Depends(get_db)):
    """Aggregated counters; revenue counts delivered orders only."""
    today_start = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)

    stats = DashboardStats(
        total_restaurants=await _count(db, model=Restaurant),
        total_orders=await _count(db),
        total_drivers=await _count(db, model=Driver),
        total_customers=await _count(db, model=Customer),
        today_orders=await _count(db, Order.created_at >= today_start),
        pending_orders=await _count(db, Order.status == OrderStatus.PENDING),
        active_drivers=await _count(db, Driver.is_active.is_(True), model=Driver),
        available_drivers=await _count(
            db, Driver.is_active.is_(True), Driver.is_available.is_(True), model=Driver
        ),
        total_revenue=await _revenue(db),
        today_revenue=await _revenue(db, Order.created_at >= today_start),
    )

    result = await db.execute(
        select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(RECENT_ORDERS_LIMIT)
    )
    return DashboardResponse(
        stats=stats,
        recent_orders=[OrderResponse.model_validate(o) for o in result.scalars().all()],
    )


# =============================================================================
# REVIEWS
# =============================================================================

@router.get("/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    approved: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Review).order_by(Review.created_at.desc(), Review.id.desc())
    if approved is not None:
        query = query.where(Review.is_approved.is_(approved))
    result = await db.execute(query)
    return result.scalars().all()


@router.put("/reviews/{review_id}/approve", response_model=ReviewResponse)
async def approve_review(
    review_id: int,
    data: Optional[ReviewApproval] = None,
    db: AsyncSession = Depends(get_db),
):
    review = await get_or_404(db, Review, review_id, "Review")
    review.is_approved = data.approved if data else True
    await db.commit()
    await db.refresh(review)
    return review


@router.delete("/reviews/{review_id}", response_model=SuccessResponse)
async def delete_review(review_id: int, db: AsyncSession = Depends(get_db)):
    review = await get_or_404(db, Review, review_id, "Review")
    restaurant_id = review.restaurant_id
    order = await db.get(Order, review.order_id)
    if order is not None:
        order.rating = None
        order.review = None
    await db.delete(review)
    await db.flush()
    await recompute_restaurant_rating(db, restaurant_id)
    await db.commit()
    return SuccessResponse()


# =============================================================================
# REPORTS
# =============================================================================

@router.post("/reports/sales", response_model=ReportQueuedResponse, status_code=202)
async def queue_sales_report(
    period: Literal["today", "week", "month"] = Query("today"),
    db: AsyncSession = Depends(get_db),
):
    """Collect the period's orders and hand them to the Excel export task."""
    end_date = utcnow()
    if period == "today":
        start_date = end_date.replace(hour=0, minute=0, second=0, microsecond=0)
    else:
        start_date = end_date - REPORT_PERIODS[period]

    result = await db.execute(
        select(Order)
        .where(Order.created_at >= start_date, Order.status != OrderStatus.CANCELLED)
        .order_by(Order.created_at)
    )
    rows = [
        {
            "order_number": o.order_number,
            "restaurant_id": o.restaurant_id,
            "status": o.status.value,
            "subtotal": o.subtotal,
            "delivery_fee": o.delivery_fee,
            "total_amount": o.total_amount,
            "created_at": o.created_at.isoformat(),
        }
        for o in result.scalars().all()
    ]

    task = export_sales_report.delay(rows, period)
    logger.info(f"Sales report queued: {period} ({len(rows)} orders, task {task.id})")
    return ReportQueuedResponse(task_id=task.id, period=period, rows=len(rows))


# =============================================================================
# NOTIFICATIONS
# =============================================================================

@notifications_router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    recipient_type: Optional[RecipientType] = Query(None, alias="recipientType"),
    recipient_id: Optional[int] = Query(None, alias="recipientId"),
    unread: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Notification).order_by(Notification.created_at.desc(), Notification.id.desc())
    if recipient_type is not None:
        query = query.where(Notification.recipient_type == recipient_type)
    if recipient_id is not None:
        query = query.where(Notification.recipient_id == recipient_id)
    if unread:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.limit(100))
    return result.scalars().all()


@notifications_router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(notification_id: int, db: AsyncSession = Depends(get_db)):
    notification = await get_or_404(db, Notification, notification_id, "Notification")
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification
