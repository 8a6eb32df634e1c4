from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .database import Base
from .status import OrderStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Customers and admins. The api_token is issued elsewhere and only looked
# up here.
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(String(20), nullable=False, default="customer")  # "customer" or "admin"
    api_token = Column(String(128), unique=True, index=True, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# A catalog entry. The order flow only reads name/price/stock and writes stock.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    images = Column(JSON, nullable=False, default=list)
    stock = Column(Integer, nullable=False, default=0)  # Available units, never negative.

    @property
    def image(self):
        return self.images[0] if self.images else None


# One purchase. Everything except status is a snapshot taken at placement.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(36), unique=True, index=True, nullable=False)  # Public identifier (uuid4).
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    user_name = Column(String(100), nullable=False)
    user_email = Column(String(255), nullable=False)

    # Shipping address, all fields required.
    ship_name = Column(String(100), nullable=False)
    ship_email = Column(String(255), nullable=False)
    ship_phone = Column(String(50), nullable=False)
    ship_address = Column(String(255), nullable=False)
    ship_city = Column(String(100), nullable=False)
    ship_postal_code = Column(String(20), nullable=False)
    ship_country = Column(String(100), nullable=False)

    payment_method = Column(String(20), nullable=False)
    # Stored in plaintext and only for credit cards. Not tokenized.
    card_number = Column(String(32), nullable=True)
    expiry_date = Column(String(10), nullable=True)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    total_price = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def shipping_address(self) -> dict:
        return {
            "name": self.ship_name,
            "email": self.ship_email,
            "phone": self.ship_phone,
            "address": self.ship_address,
            "city": self.ship_city,
            "postal_code": self.ship_postal_code,
            "country": self.ship_country,
        }

    @property
    def payment_details(self):
        if self.card_number is None and self.expiry_date is None:
            return None
        return {"card_number": self.card_number, "expiry_date": self.expiry_date}


# A line of an order with its price and name frozen at placement time.
class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_pk = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, nullable=False)
    product_id = Column(Integer, nullable=False, index=True)
    product_name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    subtotal = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
