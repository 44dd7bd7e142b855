"""Pydantic schemas for bakery service."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from services.bakery_service.catalog import WeightOption
from services.bakery_service.models import OrderStatus

# ============================================================================
# TAXONOMY SCHEMAS
# ============================================================================


class BaseCategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=255)


class BaseCategoryCreate(BaseCategoryBase):
    pass


class BaseCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=255)


class BaseCategoryResponse(BaseCategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=255)
    base_category_id: Optional[uuid.UUID] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=255)
    base_category_id: Optional[uuid.UUID] = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime


class CategoryWithBase(CategoryResponse):
    base_category: Optional[BaseCategoryResponse] = None


class TagBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)


class TagCreate(TagBase):
    pass


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)


class TagResponse(TagBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    info: Optional[str] = None
    image: Optional[str] = Field(None, max_length=1024)
    mrp: Decimal = Field(..., ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    category_id: Optional[uuid.UUID] = None
    stock: int = Field(0, ge=0)
    base_weight: Optional[Decimal] = Field(None, ge=0)
    weight_unit: Optional[str] = Field(None, max_length=20)
    weight_options: list[WeightOption] = []
    site_display: bool = True


class ProductCreate(ProductBase):
    tag_ids: list[uuid.UUID] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    info: Optional[str] = None
    image: Optional[str] = Field(None, max_length=1024)
    mrp: Optional[Decimal] = Field(None, ge=0)
    selling_price: Optional[Decimal] = Field(None, ge=0)
    category_id: Optional[uuid.UUID] = None
    stock: Optional[int] = Field(None, ge=0)
    base_weight: Optional[Decimal] = Field(None, ge=0)
    weight_unit: Optional[str] = Field(None, max_length=20)
    weight_options: Optional[list[WeightOption]] = None
    site_display: Optional[bool] = None
    tag_ids: Optional[list[uuid.UUID]] = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    info: Optional[str] = None
    image: Optional[str] = None
    mrp: Decimal
    selling_price: Optional[Decimal] = None
    price: Optional[Decimal] = None
    category: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    stock: int = 0
    base_weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None
    weight_options: list[WeightOption] = []
    site_display: bool = True
    created_at: datetime

    @field_validator("weight_options", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class ProductDetail(ProductResponse):
    tags: list[TagResponse] = []


# ============================================================================
# CART & CHECKOUT SCHEMAS
# ============================================================================


class CartLineRequest(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(1, ge=0)
    weight: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = None


class CartQuoteRequest(BaseModel):
    items: list[CartLineRequest] = []
    shipping_charges: Decimal = Field(Decimal("0"), ge=0)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None
    image: Optional[str] = None
    total: int


class CartQuoteResponse(BaseModel):
    items: list[CartLineResponse]
    item_count: int
    subtotal: int
    shipping_charges: int
    discount_amount: int
    total: int


class CustomerDetails(BaseModel):
    name: str = Field(..., max_length=255)
    phone: str = Field(..., max_length=50)
    address: str
    email: Optional[EmailStr] = None
    delivery_date: Optional[date] = None

    @field_validator("name", "phone", "address")
    @classmethod
    def _required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class CheckoutRequest(CartQuoteRequest):
    customer: CustomerDetails
    notes: Optional[str] = None
    order_date: Optional[date] = None
    invoice_date: Optional[date] = None


class WhatsAppOrderRequest(BaseModel):
    items: list[CartLineRequest] = []
    customer: CustomerDetails


class WhatsAppOrderResponse(BaseModel):
    message: str
    url: str
    subtotal: int


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    product_price: Decimal
    quantity: int
    total: Decimal
    weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: Optional[str] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    notes: Optional[str] = None
    subtotal: Decimal
    shipping_charges: Decimal
    discount_amount: Decimal
    total: Decimal
    status: OrderStatus
    shipment_number: Optional[str] = None
    order_date: datetime
    custom_order_date: Optional[date] = None
    custom_invoice_date: Optional[date] = None
    delivery_date: Optional[date] = None
    created_at: datetime


class OrderDetail(OrderResponse):
    items: list[OrderItemResponse] = []


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemEdit(BaseModel):
    id: uuid.UUID
    product_name: Optional[str] = Field(None, min_length=1, max_length=255)
    product_price: Optional[Decimal] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    weight: Optional[Decimal] = Field(None, ge=0)
    weight_unit: Optional[str] = Field(None, max_length=20)


class OrderUpdate(BaseModel):
    """Admin order edit. ``discount_amount`` is absolute, not a percent."""

    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_email: Optional[str] = Field(None, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_address: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[OrderStatus] = None
    shipment_number: Optional[str] = Field(None, max_length=100)
    custom_order_date: Optional[date] = None
    custom_invoice_date: Optional[date] = None
    delivery_date: Optional[date] = None
    shipping_charges: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    items: list[OrderItemEdit] = []

    @field_validator("customer_name", "customer_email", "status")
    @classmethod
    def _not_null(cls, v):
        # Required on the order; may be omitted from an edit but never cleared
        if v is None:
            raise ValueError("must not be null")
        return v


# ============================================================================
# ACCOUNT SCHEMAS
# ============================================================================


class InvoiceSettingsBase(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=255)
    business_subtitle: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)


class InvoiceSettingsUpdate(InvoiceSettingsBase):
    pass


class InvoiceSettingsResponse(InvoiceSettingsBase):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[uuid.UUID] = None
    user_id: Optional[str] = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class DashboardStats(BaseModel):
    total_orders: int
    pending_orders: int
    shipped_orders: int
    orders_by_status: dict[str, int]
    total_revenue: Decimal
    total_products: int
