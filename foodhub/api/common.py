"""Helpers shared by the API routers."""

import math
from typing import Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from foodhub.core.exceptions import NotFoundError
from foodhub.database import Base
from foodhub.models import Restaurant, Review
from foodhub.schemas import Pagination

ModelT = TypeVar("ModelT", bound=Base)


async def get_or_404(db: AsyncSession, model: type[ModelT], entity_id: int, label: str) -> ModelT:
    instance = await db.get(model, entity_id)
    if instance is None:
        raise NotFoundError.for_entity(label, entity_id)
    return instance


async def paginate(db: AsyncSession, query: Select, page: int, limit: int) -> tuple[list, Pagination]:
    """Run ``query`` for one page and count the full result set."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    rows = list(result.scalars().all())

    return rows, Pagination(
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit) if total else 0,
    )


def apply_changes(instance, changes: dict) -> None:
    for field, value in changes.items():
        setattr(instance, field, value)


async def recompute_restaurant_rating(db: AsyncSession, restaurant_id: Optional[int]) -> None:
    """Refresh a restaurant's rating aggregate from its reviews."""
    if restaurant_id is None:
        return
    restaurant = await db.get(Restaurant, restaurant_id)
    if restaurant is None:
        return

    result = await db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.restaurant_id == restaurant_id)
    )
    average, count = result.one()
    restaurant.rating = round(float(average), 2) if average is not None else 0.0
    restaurant.review_count = count
