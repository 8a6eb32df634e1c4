"""Request and response models for the HTTP API.

JSON keys are camelCase on the wire; the Python side uses snake_case and
also accepts snake_case input.
"""

import enum
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .status import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "creditCard"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bankTransfer"


# Largest value a signed 64-bit INTEGER column can hold.
MAX_ID = 2**63 - 1


# --- Requests ---


class OrderItemRequest(CamelModel):
    product_id: int = Field(..., ge=1, le=MAX_ID)
    quantity: int = Field(..., ge=1)


class ShippingAddress(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1, validation_alias=AliasChoices("address", "street"))
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class PaymentDetails(CamelModel):
    card_number: Optional[str] = None
    expiry_date: Optional[str] = None


class PlaceOrderRequest(CamelModel):
    """Body of ``POST /api/orders``."""

    products: List[OrderItemRequest] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    payment_details: Optional[PaymentDetails] = None


class StatusUpdateRequest(CamelModel):
    status: OrderStatus


class ProductCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    images: List[str] = Field(default_factory=list)
    stock: int = Field(..., ge=0)


class ProductUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    images: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)


# --- Responses ---


class ProductOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    description: str
    price: float
    category: str
    images: List[str]
    stock: int


class ProductSummary(CamelModel):
    """Live catalog view of a product, shown next to an order line."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    price: float
    image: Optional[str] = None
    category: str
    description: str


class OrderItemOut(CamelModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float
    # Current catalog data; None when the product has since been removed.
    product: Optional[ProductSummary] = None


class ShippingAddressOut(CamelModel):
    name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str
    country: str


class PaymentDetailsOut(CamelModel):
    card_number: Optional[str] = None
    expiry_date: Optional[str] = None


class OrderOut(CamelModel):
    id: str
    user_id: int
    user_name: str
    user_email: str
    items: List[OrderItemOut]
    shipping_address: ShippingAddressOut
    payment_method: PaymentMethod
    payment_details: Optional[PaymentDetailsOut] = None
    status: OrderStatus
    total_price: float
    created_at: datetime
    updated_at: datetime


class OrderResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: OrderOut


class OrderListResponse(CamelModel):
    success: bool = True
    results: int
    total: int
    page: int
    total_pages: int
    data: List[OrderOut]


class ProductResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: ProductOut


class ProductListResponse(CamelModel):
    success: bool = True
    results: int
    total: int
    page: int
    total_pages: int
    data: List[ProductOut]
