"""
Customer API

Phone-number sign-in, profile, address book, order history and reviews.
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from foodhub.api.common import apply_changes, get_or_404, paginate, recompute_restaurant_rating
from foodhub.core.exceptions import ConflictError, NotFoundError
from foodhub.database import get_db
from foodhub.models import Customer, CustomerAddress, Order, OrderStatus, Review
from foodhub.schemas import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    CustomerAuthRequest,
    CustomerResponse,
    CustomerUpdate,
    OrderListResponse,
    OrderResponse,
    ReviewCreate,
    ReviewResponse,
    SuccessResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["Customers"])


# =============================================================================
# ACCOUNT
# =============================================================================

@router.post("/auth", response_model=CustomerResponse)
async def authenticate(data: CustomerAuthRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """Find a customer by phone or create one; 201 when created."""
    phone = data.phone.strip()
    result = await db.execute(select(Customer).where(Customer.phone == phone))
    customer = result.scalar_one_or_none()
    if customer is not None:
        return customer

    customer = Customer(phone=phone, name=data.name.strip())
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    logger.info(f"Customer #{customer.id} registered")
    response.status_code = 201
    return customer


@router.get("/{customer_id}/profile", response_model=CustomerResponse)
async def get_profile(customer_id: int, db: AsyncSession = Depends(get_db)):
    return await get_or_404(db, Customer, customer_id, "Customer")


@router.put("/{customer_id}/profile", response_model=CustomerResponse)
async def update_profile(customer_id: int, data: CustomerUpdate, db: AsyncSession = Depends(get_db)):
    customer = await get_or_404(db, Customer, customer_id, "Customer")
    apply_changes(customer, data.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(customer)
    return customer


# =============================================================================
# ADDRESS BOOK
# =============================================================================

async def _get_address(db: AsyncSession, customer_id: int, address_id: int) -> CustomerAddress:
    address = await db.get(CustomerAddress, address_id)
    if address is None or address.customer_id != customer_id:
        raise NotFoundError.for_entity("Address", address_id)
    return address


async def _clear_default(db: AsyncSession, customer_id: int) -> None:
    # Must run before the new default is flushed, or the partial unique index trips
    await db.execute(
        update(CustomerAddress)
        .where(CustomerAddress.customer_id == customer_id, CustomerAddress.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


@router.get("/{customer_id}/addresses", response_model=list[AddressResponse])
async def list_addresses(customer_id: int, db: AsyncSession = Depends(get_db)):
    """Default address first."""
    await get_or_404(db, Customer, customer_id, "Customer")
    result = await db.execute(
        select(CustomerAddress)
        .where(CustomerAddress.customer_id == customer_id)
        .order_by(CustomerAddress.is_default.desc(), CustomerAddress.created_at.desc(), CustomerAddress.id.desc())
    )
    return result.scalars().all()


@router.post("/{customer_id}/addresses", response_model=AddressResponse, status_code=201)
async def create_address(customer_id: int, data: AddressCreate, db: AsyncSession = Depends(get_db)):
    """The first address always becomes the default."""
    await get_or_404(db, Customer, customer_id, "Customer")

    existing = (
        await db.execute(
            select(func.count(CustomerAddress.id)).where(CustomerAddress.customer_id == customer_id)
        )
    ).scalar() or 0

    values = data.model_dump()
    if existing == 0:
        values["is_default"] = True
    elif values["is_default"]:
        await _clear_default(db, customer_id)

    address = CustomerAddress(customer_id=customer_id, **values)
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address


@router.put("/{customer_id}/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    customer_id: int,
    address_id: int,
    data: AddressUpdate,
    db: AsyncSession = Depends(get_db),
):
    address = await _get_address(db, customer_id, address_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("is_default"):
        await _clear_default(db, customer_id)

    apply_changes(address, changes)
    await db.commit()
    await db.refresh(address)
    return address


@router.delete("/{customer_id}/addresses/{address_id}", response_model=SuccessResponse)
async def delete_address(customer_id: int, address_id: int, db: AsyncSession = Depends(get_db)):
    address = await _get_address(db, customer_id, address_id)
    await db.delete(address)
    await db.commit()
    return SuccessResponse()


# =============================================================================
# ORDERS & REVIEWS
# =============================================================================

@router.get("/{customer_id}/orders", response_model=OrderListResponse)
async def list_customer_orders(
    customer_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    await get_or_404(db, Customer, customer_id, "Customer")
    query = (
        select(Order)
        .where(Order.customer_id == customer_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    orders, pagination = await paginate(db, query, page, limit)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in orders],
        pagination=pagination,
    )


@router.post("/orders/{order_id}/review", response_model=ReviewResponse, status_code=201)
async def review_order(order_id: int, data: ReviewCreate, db: AsyncSession = Depends(get_db)):
    """
    Rate a delivered order.

    One review per order. The restaurant's rating aggregate is updated in
    the same transaction.
    """
    order = await get_or_404(db, Order, order_id, "Order")
    if order.status != OrderStatus.DELIVERED:
        raise ConflictError("Only delivered orders can be reviewed")

    existing = await db.execute(select(Review.id).where(Review.order_id == order.id))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Order #{order.id} has already been reviewed")

    review = Review(
        order_id=order.id,
        customer_id=data.customer_id or order.customer_id,
        restaurant_id=order.restaurant_id,
        **data.model_dump(exclude={"customer_id"}),
    )
    db.add(review)
    order.rating = data.rating
    order.review = data.comment

    await recompute_restaurant_rating(db, order.restaurant_id)
    await db.commit()
    await db.refresh(review)

    logger.info(f"Order {order.order_number} reviewed: {data.rating}/5")
    return review
