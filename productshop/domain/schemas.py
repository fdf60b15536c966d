# productshop/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List
from datetime import datetime

from productshop.domain.order_status import CardCompany, OrderStatus


class LineIn(BaseModel):
    """One requested product (optionally with an option)."""

    product_id: int = Field(..., gt=0, description="Product id (> 0)")
    option_id: int | None = Field(None, ge=0, description="Option id, 0 or null for no option")
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")


class PreviewIn(BaseModel):
    lines: List[LineIn] = Field(..., min_length=1)


class PayIn(BaseModel):
    """Checkout request. Recipient fields default to the member profile."""

    lines: List[LineIn] = Field(..., min_length=1)
    card_company: CardCompany
    recipient_name: str | None = Field(None, min_length=1, max_length=100)
    recipient_zip_code: str | None = Field(None, min_length=1, max_length=10)
    recipient_address: str | None = Field(None, min_length=1, max_length=255)
    recipient_phone: str | None = Field(None, min_length=1, max_length=20)
    request_note: str = Field("", max_length=255)
    expected_order_price: int | None = Field(None, ge=0)

    @field_validator("card_company", mode="before")
    @classmethod
    def upper_card_company(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


class ShippingProfileOut(BaseModel):
    name: str
    zip_code: str
    address: str
    phone: str


class PricedLineOut(BaseModel):
    product_id: int
    product_title: str
    option_id: int | None = None
    option_name: str | None = None
    quantity: int
    product_price: int
    option_price: int
    unit_price: int
    line_total: int


class PreviewOut(BaseModel):
    shipping_profile: ShippingProfileOut
    lines: List[PricedLineOut]
    total_order_price: int
    shipping_fee: int
    order_price: int


class PaymentOut(BaseModel):
    order_id: int
    payment_status: OrderStatus
    failure_reason: str | None = None
    card_company: CardCompany
    shipping_profile: ShippingProfileOut
    request_note: str
    total_order_price: int
    shipping_fee: int
    order_price: int


class OrderStatusOut(BaseModel):
    order_id: int
    status: OrderStatus
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderSummaryOut(BaseModel):
    order_id: int
    order_date: datetime
    status: OrderStatus
    order_price: int
    product_title: str
    line_count: int


class OrderPageOut(BaseModel):
    items: List[OrderSummaryOut]
    page: int
    size: int
    total_elements: int
    total_pages: int


class OrderLineDetailOut(BaseModel):
    line_id: int
    product_id: int
    product_title: str
    option_id: int | None = None
    option_name: str
    quantity: int
    product_price: int
    option_price: int
    line_total: int


class OrderDetailOut(BaseModel):
    order_id: int
    order_date: datetime
    status: OrderStatus
    paid: bool
    card_company: CardCompany
    shipping_profile: ShippingProfileOut
    request_note: str
    total_order_price: int
    shipping_fee: int
    order_price: int
    lines: List[OrderLineDetailOut]


class MemberRead(BaseModel):
    id: int
    name: str
    zip_code: str
    address: str
    phone: str

    model_config = ConfigDict(from_attributes=True)
