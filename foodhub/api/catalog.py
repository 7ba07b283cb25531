"""
Catalog API

Categories, restaurants (with computed opening status), menus, special
offers and search. Read endpoints are public; the write endpoints back the
admin screens.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from foodhub.api.common import apply_changes, get_or_404, paginate
from foodhub.database import get_db
from foodhub.models import Category, MenuItem, Order, Restaurant, SpecialOffer, utcnow
from foodhub.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MenuSection,
    RestaurantCreate,
    RestaurantDetailResponse,
    RestaurantMenuResponse,
    RestaurantResponse,
    RestaurantStatusResponse,
    RestaurantUpdate,
    SearchResponse,
    SpecialOfferCreate,
    SpecialOfferResponse,
    SpecialOfferUpdate,
    SuccessResponse,
)
from foodhub.services.hours import get_restaurant_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Catalog"])

SEARCH_LIMIT = 20


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Active categories in display order."""
    result = await db.execute(
        select(Category)
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.name)
    )
    return result.scalars().all()


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    category = Category(**data.model_dump())
    db.add(category)
    await db.commit()
    await db.refresh(category)
    logger.info(f"Category #{category.id} created: {category.name}")
    return category


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: int, data: CategoryUpdate, db: AsyncSession = Depends(get_db)):
    category = await get_or_404(db, Category, category_id, "Category")
    apply_changes(category, data.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(category)
    return category


@router.delete("/categories/{category_id}", response_model=SuccessResponse)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await get_or_404(db, Category, category_id, "Category")
    await db.execute(
        update(Restaurant).where(Restaurant.category_id == category.id).values(category_id=None)
    )
    await db.delete(category)
    await db.commit()
    logger.info(f"Category #{category_id} deleted")
    return SuccessResponse()


# =============================================================================
# RESTAURANTS
# =============================================================================

def _detail(restaurant: Restaurant) -> RestaurantDetailResponse:
    status = get_restaurant_status(restaurant)
    base = RestaurantResponse.model_validate(restaurant)
    return RestaurantDetailResponse(
        **base.model_dump(),
        open_status=RestaurantStatusResponse.model_validate(status),
    )


@router.get("/restaurants", response_model=list[RestaurantResponse])
async def list_restaurants(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    query = select(Restaurant).order_by(Restaurant.rating.desc(), Restaurant.id)
    if category_id is not None:
        query = query.where(Restaurant.category_id == category_id)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Restaurant.name.ilike(pattern), Restaurant.description.ilike(pattern)))

    restaurants, _ = await paginate(db, query, page, limit)
    return restaurants


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantDetailResponse)
async def get_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    restaurant = await get_or_404(db, Restaurant, restaurant_id, "Restaurant")
    return _detail(restaurant)


@router.post("/restaurants", response_model=RestaurantResponse, status_code=201)
async def create_restaurant(data: RestaurantCreate, db: AsyncSession = Depends(get_db)):
    if data.category_id is not None:
        await get_or_404(db, Category, data.category_id, "Category")
    restaurant = Restaurant(**data.model_dump())
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)
    logger.info(f"Restaurant #{restaurant.id} created: {restaurant.name}")
    return restaurant


@router.put("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(restaurant_id: int, data: RestaurantUpdate, db: AsyncSession = Depends(get_db)):
    restaurant = await get_or_404(db, Restaurant, restaurant_id, "Restaurant")
    changes = data.model_dump(exclude_unset=True)
    if changes.get("category_id") is not None:
        await get_or_404(db, Category, changes["category_id"], "Category")
    apply_changes(restaurant, changes)
    await db.commit()
    await db.refresh(restaurant)
    return restaurant


@router.delete("/restaurants/{restaurant_id}", response_model=SuccessResponse)
async def delete_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    restaurant = await get_or_404(db, Restaurant, restaurant_id, "Restaurant")
    # Orders keep their snapshot; catalog rows go with the restaurant
    await db.execute(update(Order).where(Order.restaurant_id == restaurant.id).values(restaurant_id=None))
    await db.execute(delete(MenuItem).where(MenuItem.restaurant_id == restaurant.id))
    await db.execute(delete(SpecialOffer).where(SpecialOffer.restaurant_id == restaurant.id))
    await db.delete(restaurant)
    await db.commit()
    logger.info(f"Restaurant #{restaurant_id} deleted")
    return SuccessResponse()


@router.get("/restaurants/{restaurant_id}/menu", response_model=RestaurantMenuResponse)
async def get_restaurant_menu(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    """Menu grouped by item category; ``allItems`` includes unavailable items."""
    restaurant = await get_or_404(db, Restaurant, restaurant_id, "Restaurant")
    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant.id)
        .order_by(MenuItem.category, MenuItem.name)
    )
    items = result.scalars().all()

    sections: dict[str, list[MenuItem]] = {}
    for item in items:
        if item.is_available:
            sections.setdefault(item.category, []).append(item)

    return RestaurantMenuResponse(
        restaurant=RestaurantResponse.model_validate(restaurant),
        menu=[
            MenuSection(category=category, items=[MenuItemResponse.model_validate(i) for i in section])
            for category, section in sections.items()
        ],
        all_items=[MenuItemResponse.model_validate(i) for i in items],
    )


# =============================================================================
# MENU ITEMS
# =============================================================================

@router.post("/menu-items", response_model=MenuItemResponse, status_code=201)
async def create_menu_item(data: MenuItemCreate, db: AsyncSession = Depends(get_db)):
    await get_or_404(db, Restaurant, data.restaurant_id, "Restaurant")
    item = MenuItem(**data.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


@router.put("/menu-items/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(item_id: int, data: MenuItemUpdate, db: AsyncSession = Depends(get_db)):
    item = await get_or_404(db, MenuItem, item_id, "Menu item")
    apply_changes(item, data.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(item)
    return item


@router.delete("/menu-items/{item_id}", response_model=SuccessResponse)
async def delete_menu_item(item_id: int, db: AsyncSession = Depends(get_db)):
    item = await get_or_404(db, MenuItem, item_id, "Menu item")
    await db.delete(item)
    await db.commit()
    return SuccessResponse()


# =============================================================================
# SPECIAL OFFERS
# =============================================================================

@router.get("/special-offers", response_model=list[SpecialOfferResponse])
async def list_special_offers(
    restaurant_id: Optional[int] = Query(None, alias="restaurantId"),
    db: AsyncSession = Depends(get_db),
):
    """Active offers that have not expired."""
    query = (
        select(SpecialOffer)
        .where(
            SpecialOffer.is_active.is_(True),
            or_(SpecialOffer.valid_until.is_(None), SpecialOffer.valid_until > utcnow()),
        )
        .order_by(SpecialOffer.created_at.desc(), SpecialOffer.id.desc())
    )
    if restaurant_id is not None:
        query = query.where(SpecialOffer.restaurant_id == restaurant_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/special-offers", response_model=SpecialOfferResponse, status_code=201)
async def create_special_offer(data: SpecialOfferCreate, db: AsyncSession = Depends(get_db)):
    if data.restaurant_id is not None:
        await get_or_404(db, Restaurant, data.restaurant_id, "Restaurant")
    offer = SpecialOffer(**data.model_dump())
    db.add(offer)
    await db.commit()
    await db.refresh(offer)
    return offer


@router.put("/special-offers/{offer_id}", response_model=SpecialOfferResponse)
async def update_special_offer(offer_id: int, data: SpecialOfferUpdate, db: AsyncSession = Depends(get_db)):
    offer = await get_or_404(db, SpecialOffer, offer_id, "Special offer")
    apply_changes(offer, data.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(offer)
    return offer


@router.delete("/special-offers/{offer_id}", response_model=SuccessResponse)
async def delete_special_offer(offer_id: int, db: AsyncSession = Depends(get_db)):
    offer = await get_or_404(db, SpecialOffer, offer_id, "Special offer")
    await db.delete(offer)
    await db.commit()
    return SuccessResponse()


# =============================================================================
# SEARCH
# =============================================================================

@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query(..., min_length=1),
    type: Literal["all", "restaurants", "menu"] = Query("all"),
    db: AsyncSession = Depends(get_db),
):
    pattern = f"%{q.strip()}%"
    response = SearchResponse()

    if type in ("all", "restaurants"):
        result = await db.execute(
            select(Restaurant)
            .where(or_(Restaurant.name.ilike(pattern), Restaurant.description.ilike(pattern)))
            .order_by(Restaurant.rating.desc(), Restaurant.id)
            .limit(SEARCH_LIMIT)
        )
        response.restaurants = [RestaurantResponse.model_validate(r) for r in result.scalars().all()]

    if type in ("all", "menu"):
        result = await db.execute(
            select(MenuItem)
            .where(
                MenuItem.is_available.is_(True),
                or_(MenuItem.name.ilike(pattern), MenuItem.description.ilike(pattern)),
            )
            .order_by(MenuItem.name, MenuItem.id)
            .limit(SEARCH_LIMIT)
        )
        response.menu_items = [MenuItemResponse.model_validate(i) for i in result.scalars().all()]

    return response
