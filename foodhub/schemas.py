"""
Pydantic Schemas for Request/Response Validation

JSON on the wire is camelCase; snake_case keys are accepted on input too.
"""

import json
import re
from datetime import datetime
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from foodhub.models import ActorType, OrderStatus, PaymentMethod, RecipientType

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def normalize_working_days(value: str) -> str:
    days = [d.strip() for d in value.split(",") if d.strip()]
    if not days or any(not d.isdigit() or int(d) > 6 for d in days):
        raise ValueError("workingDays must be comma-separated weekday numbers 0-6")
    return ",".join(days)


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, ORM objects accepted."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# GENERIC
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str


class SuccessResponse(CamelModel):
    success: bool = True


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    notification_service: str
    timestamp: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


# =============================================================================
# CATALOG
# =============================================================================

class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="", max_length=100)
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=100)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    icon: str
    sort_order: int
    is_active: bool


class RestaurantCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200, examples=["Al Baik"])
    description: Optional[str] = None
    image: str = ""
    delivery_time: str = Field(default="30-45 min", max_length=50)
    is_open: bool = True
    minimum_order: float = Field(default=0.0, ge=0)
    delivery_fee: float = Field(default=0.0, ge=0)
    category_id: Optional[int] = None
    opening_time: str = Field(default="08:00", pattern=TIME_PATTERN)
    closing_time: str = Field(default="23:00", pattern=TIME_PATTERN)
    working_days: str = Field(default="0,1,2,3,4,5,6")
    is_temporarily_closed: bool = False
    temporary_close_reason: Optional[str] = None

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: str) -> str:
        return normalize_working_days(v)


class RestaurantUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    delivery_time: Optional[str] = Field(None, max_length=50)
    is_open: Optional[bool] = None
    minimum_order: Optional[float] = Field(None, ge=0)
    delivery_fee: Optional[float] = Field(None, ge=0)
    category_id: Optional[int] = None
    opening_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    closing_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    working_days: Optional[str] = None
    is_temporarily_closed: Optional[bool] = None
    temporary_close_reason: Optional[str] = None

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return normalize_working_days(v)


class RestaurantResponse(CamelModel):
    id: int
    name: str
    description: Optional[str]
    image: str
    rating: float
    review_count: int
    delivery_time: str
    is_open: bool
    minimum_order: float
    delivery_fee: float
    category_id: Optional[int]
    opening_time: str
    closing_time: str
    working_days: str
    is_temporarily_closed: bool
    temporary_close_reason: Optional[str]
    created_at: datetime


class RestaurantStatusResponse(CamelModel):
    is_open: bool
    message: str
    status_color: Literal["green", "yellow", "red"]
    next_open_time: Optional[str] = None
    close_time: Optional[str] = None


class RestaurantDetailResponse(RestaurantResponse):
    open_status: RestaurantStatusResponse


class MenuItemCreate(CamelModel):
    restaurant_id: int
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    image: str = ""
    category: str = Field(default="main", min_length=1, max_length=100)
    is_available: bool = True
    is_special_offer: bool = False


class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    is_available: Optional[bool] = None
    is_special_offer: Optional[bool] = None


class MenuItemResponse(CamelModel):
    id: int
    restaurant_id: int
    name: str
    description: Optional[str]
    price: float
    original_price: Optional[float]
    image: str
    category: str
    is_available: bool
    is_special_offer: bool


class MenuSection(CamelModel):
    category: str
    items: List[MenuItemResponse]


class RestaurantMenuResponse(CamelModel):
    restaurant: RestaurantResponse
    menu: List[MenuSection]
    all_items: List[MenuItemResponse]


class SpecialOfferCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    image: str = ""
    discount_percent: Optional[int] = Field(None, ge=1, le=100)
    discount_amount: Optional[float] = Field(None, gt=0)
    minimum_order: float = Field(default=0.0, ge=0)
    valid_until: Optional[datetime] = None
    restaurant_id: Optional[int] = None
    is_active: bool = True


class SpecialOfferUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    discount_percent: Optional[int] = Field(None, ge=1, le=100)
    discount_amount: Optional[float] = Field(None, gt=0)
    minimum_order: Optional[float] = Field(None, ge=0)
    valid_until: Optional[datetime] = None
    restaurant_id: Optional[int] = None
    is_active: Optional[bool] = None


class SpecialOfferResponse(CamelModel):
    id: int
    title: str
    description: str
    image: str
    discount_percent: Optional[int]
    discount_amount: Optional[float]
    minimum_order: float
    valid_until: Optional[datetime]
    restaurant_id: Optional[int]
    is_active: bool
    created_at: datetime


class SearchResponse(CamelModel):
    restaurants: List[RestaurantResponse] = []
    menu_items: List[MenuItemResponse] = []


# =============================================================================
# ORDERS
# =============================================================================

class OrderItem(CamelModel):
    """Single line item, stored inside ``Order.items`` as JSON."""
    name: str = Field(..., min_length=1, max_length=200, examples=["Chicken Shawarma"])
    price: float = Field(..., ge=0, examples=[12.5])
    quantity: int = Field(default=1, ge=1, le=99, examples=[2])


class OrderCreate(CamelModel):
    """Request schema for creating a new order."""

    customer_name: str = Field(..., min_length=1, max_length=100, examples=["Ali"])
    customer_phone: Optional[str] = Field(None, max_length=20, examples=["0501234567"])
    customer_email: Optional[str] = Field(None, max_length=255)
    customer_id: Optional[int] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)

    restaurant_id: Optional[int] = None
    items: List[OrderItem] = Field(..., min_length=1)

    subtotal: Optional[float] = Field(None, ge=0)
    delivery_fee: Optional[float] = Field(None, ge=0)
    total_amount: Optional[float] = Field(None, ge=0, examples=[50.0])
    payment_method: PaymentMethod = PaymentMethod.CASH

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, v: Any) -> Any:
        # Clients send the item list either as an array or as a JSON string
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                raise ValueError("items must be a JSON array of {name, price, quantity}")
        return v

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not re.match(r"^[\w\.+-]+@[\w\.-]+\.\w+$", v):
            raise ValueError("Invalid email format")
        return v


class OrderUpdate(CamelModel):
    """Status and/or driver mutation."""
    status: Optional[str] = Field(None, examples=["confirmed"])
    driver_id: Optional[int] = None

    @model_validator(mode="after")
    def require_change(self) -> "OrderUpdate":
        if self.status is None and self.driver_id is None:
            raise ValueError("status or driverId is required")
        return self


class AssignDriverRequest(CamelModel):
    driver_id: int


class OrderResponse(CamelModel):
    """Response schema for a single order."""
    id: int
    order_number: str
    customer_id: Optional[int]
    customer_name: str
    customer_phone: Optional[str]
    customer_email: Optional[str]
    delivery_address: Optional[str]
    notes: Optional[str]
    restaurant_id: Optional[int]
    items: str
    subtotal: float
    delivery_fee: float
    total_amount: float
    payment_method: PaymentMethod
    status: OrderStatus
    driver_id: Optional[int]
    estimated_time: Optional[str]
    rating: Optional[int]
    review: Optional[str]
    created_at: datetime
    updated_at: datetime


class OrderListResponse(CamelModel):
    orders: List[OrderResponse]
    pagination: Pagination


class TrackingEntry(CamelModel):
    id: int
    order_id: int
    status: OrderStatus
    message: str
    created_by_type: ActorType
    created_by_id: Optional[int]
    created_at: datetime


class OrderTrackResponse(CamelModel):
    order: OrderResponse
    tracking: List[TrackingEntry]
    driver_location: Optional[str] = None


# =============================================================================
# CUSTOMERS
# =============================================================================

class CustomerAuthRequest(CamelModel):
    phone: str = Field(..., min_length=3, max_length=20, examples=["0501234567"])
    name: str = Field(default="", max_length=100)


class CustomerUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class CustomerResponse(CamelModel):
    id: int
    phone: str
    name: str
    email: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]


class AddressCreate(CamelModel):
    title: str = Field(default="home", min_length=1, max_length=100)
    address: str = Field(..., min_length=1)
    details: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_default: bool = False


class AddressUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, min_length=1)
    details: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_default: Optional[bool] = None


class AddressResponse(CamelModel):
    id: int
    customer_id: int
    title: str
    address: str
    details: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    is_default: bool
    created_at: datetime


class ReviewCreate(CamelModel):
    customer_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)
    food_quality: Optional[int] = Field(None, ge=1, le=5)
    delivery_speed: Optional[int] = Field(None, ge=1, le=5)
    packaging: Optional[int] = Field(None, ge=1, le=5)
    driver_service: Optional[int] = Field(None, ge=1, le=5)


class ReviewResponse(CamelModel):
    id: int
    order_id: int
    customer_id: Optional[int]
    restaurant_id: Optional[int]
    rating: int
    comment: Optional[str]
    food_quality: Optional[int]
    delivery_speed: Optional[int]
    packaging: Optional[int]
    driver_service: Optional[int]
    is_approved: bool
    created_at: datetime


class ReviewApproval(CamelModel):
    approved: bool = True


# =============================================================================
# DRIVERS
# =============================================================================

class DriverCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=3, max_length=20)
    password: str = Field(..., min_length=6, max_length=72)
    is_available: bool = True
    is_active: bool = True
    current_location: Optional[str] = Field(None, max_length=200)


class DriverUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=3, max_length=20)
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    is_available: Optional[bool] = None
    is_active: Optional[bool] = None
    current_location: Optional[str] = Field(None, max_length=200)


class DriverResponse(CamelModel):
    id: int
    name: str
    phone: str
    is_available: bool
    is_active: bool
    current_location: Optional[str]
    earnings: float
    created_at: datetime


class DriverStatusUpdate(CamelModel):
    status: Literal["available", "busy"]
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class DriverLogin(CamelModel):
    phone: str
    password: str


class DriverOrderAction(CamelModel):
    order_id: int


class AvailableOrder(CamelModel):
    id: int
    order_number: str
    total_amount: float
    delivery_fee: float
    status: OrderStatus
    created_at: datetime
    delivery_address: Optional[str]
    restaurant_id: Optional[int]
    customer_name: str


class DriverStats(CamelModel):
    driver_id: int
    period: str
    start_date: datetime
    end_date: datetime
    total_orders: int
    total_amount: float
    avg_order_value: float
    earnings: float


# =============================================================================
# ADMIN
# =============================================================================

class DashboardStats(CamelModel):
    total_restaurants: int
    total_orders: int
    total_drivers: int
    total_customers: int
    today_orders: int
    pending_orders: int
    active_drivers: int
    available_drivers: int
    total_revenue: float
    today_revenue: float


class DashboardResponse(CamelModel):
    stats: DashboardStats
    recent_orders: List[OrderResponse]


class NotificationResponse(CamelModel):
    id: int
    recipient_type: RecipientType
    recipient_id: Optional[int]
    order_id: Optional[int]
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime


class ReportQueuedResponse(CamelModel):
    task_id: str
    period: str
    rows: int


# =============================================================================
# SETTINGS
# =============================================================================

class UiSettingResponse(CamelModel):
    id: int
    key: str
    value: str
    description: Optional[str]
    category: str
    is_public: bool
    updated_at: datetime


class UiSettingUpdate(CamelModel):
    """Flags are stored as strings; booleans and numbers are converted."""
    value: Optional[Union[bool, int, float, str]] = None

    def as_text(self) -> str:
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)
