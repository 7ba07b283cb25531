"""
SQLAlchemy Database Models

Relational schema for the delivery marketplace:
- Catalog: categories, restaurants, menu items, special offers
- People: customers (+ address book), drivers
- Orders with an append-only tracking log
- Reviews, notifications and system settings (feature flags)
"""

import enum
import json
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)

from foodhub.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    ON_WAY = "on_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"


class ActorType(str, enum.Enum):
    """Who caused a tracking event."""
    SYSTEM = "system"
    ADMIN = "admin"
    DRIVER = "driver"
    CUSTOMER = "customer"


class RecipientType(str, enum.Enum):
    DRIVER = "driver"
    CUSTOMER = "customer"
    ADMIN = "admin"


# =============================================================================
# CATALOG
# =============================================================================

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    icon = Column(String(100), nullable=False, default="")
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Category #{self.id} {self.name}>"


class Restaurant(Base):
    """
    Restaurant listing.

    ``is_open`` is the manual switch; ``opening_time``/``closing_time`` and
    ``working_days`` drive the computed opening status (see services.hours).
    """
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=False, default="")
    rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)
    delivery_time = Column(String(50), nullable=False, default="30-45 min")
    is_open = Column(Boolean, nullable=False, default=True)
    minimum_order = Column(Float, nullable=False, default=0.0)
    delivery_fee = Column(Float, nullable=False, default=0.0)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    # Opening hours ("HH:MM", weekday numbers with 0 = Sunday)
    opening_time = Column(String(5), nullable=False, default="08:00")
    closing_time = Column(String(5), nullable=False, default="23:00")
    working_days = Column(String(20), nullable=False, default="0,1,2,3,4,5,6")
    is_temporarily_closed = Column(Boolean, nullable=False, default=False)
    temporary_close_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Restaurant #{self.id} {self.name}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    original_price = Column(Float, nullable=True)
    image = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="main")
    is_available = Column(Boolean, nullable=False, default=True)
    is_special_offer = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<MenuItem #{self.id} {self.name} {self.price}>"


class SpecialOffer(Base):
    __tablename__ = "special_offers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    image = Column(Text, nullable=False, default="")
    discount_percent = Column(Integer, nullable=True)
    discount_amount = Column(Float, nullable=True)
    minimum_order = Column(Float, nullable=False, default=0.0)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


# =============================================================================
# PEOPLE
# =============================================================================

class Customer(Base):
    """Customer identified by phone number."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    phone = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    def __repr__(self):
        return f"<Customer #{self.id} {self.phone}>"


class CustomerAddress(Base):
    """
    Address book entry.

    The partial unique index allows at most one default address per customer.
    """
    __tablename__ = "customer_addresses"
    __table_args__ = (
        Index(
            "uq_customer_addresses_default",
            "customer_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False, default="home")
    address = Column(Text, nullable=False)
    details = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Driver(Base):
    """
    Delivery driver.

    ``is_available`` is toggled by the driver, ``is_active`` by an admin.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    current_location = Column(String(200), nullable=True)
    earnings = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Driver #{self.id} {self.name} available={self.is_available}>"


# =============================================================================
# ORDERS
# =============================================================================

class Order(Base):
    """
    Customer order.

    Keeps a snapshot of the customer's name, phone and address so later
    profile edits do not rewrite history. ``items`` is a JSON string of
    ``{name, price, quantity}`` objects.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True)

    # =========================================================================
    # CUSTOMER SNAPSHOT
    # =========================================================================
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=True, index=True)
    customer_email = Column(String(255), nullable=True)
    delivery_address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="SET NULL"), nullable=True, index=True)
    items = Column(Text, nullable=False)  # JSON string of ordered items

    # =========================================================================
    # PRICING
    # =========================================================================
    subtotal = Column(Float, nullable=False, default=0.0)
    delivery_fee = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False)
    payment_method = Column(
        Enum(PaymentMethod, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
        default=PaymentMethod.CASH,
    )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================
    status = Column(
        Enum(OrderStatus, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )
    driver_id = Column(Integer, ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True, index=True)
    estimated_time = Column(String(50), nullable=True)

    # =========================================================================
    # FEEDBACK
    # =========================================================================
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def item_list(self) -> list[dict]:
        return json.loads(self.items) if self.items else []

    def __repr__(self):
        return f"<Order #{self.id} {self.order_number} - {self.customer_name} - {self.status.value}>"


class OrderTracking(Base):
    """Append-only status history of an order."""
    __tablename__ = "order_tracking"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(OrderStatus, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
    )
    message = Column(Text, nullable=False)
    created_by_type = Column(
        Enum(ActorType, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
        default=ActorType.SYSTEM,
    )
    created_by_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="SET NULL"), nullable=True, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    food_quality = Column(Integer, nullable=True)
    delivery_speed = Column(Integer, nullable=True)
    packaging = Column(Integer, nullable=True)
    driver_service = Column(Integer, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


# =============================================================================
# SETTINGS & NOTIFICATIONS
# =============================================================================

class SystemSetting(Base):
    """String key/value pair, mostly UI feature flags."""
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True, index=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="ui")
    is_public = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Notification(Base):
    """In-app notification shown to drivers, customers or admins."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    recipient_type = Column(
        Enum(RecipientType, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
    )
    recipient_id = Column(Integer, nullable=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=True)
    type = Column(String(50), nullable=False, default="order")
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
