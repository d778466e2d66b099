from pydantic import Field
from typing import Optional
from datetime import datetime

from storefront.schemas.base import CamelModel


class OrderRead(CamelModel):
    id: int
    user_id: int
    book_id: int
    gateway_order_id: str
    gateway_payment_id: Optional[str] = None
    amount: int
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime


class CreateOrderRequest(CamelModel):
    # anything else in the body (e.g. an "amount") is ignored
    item_id: int


class ItemSummary(CamelModel):
    id: int
    title: str


class CreateOrderResponse(CamelModel):
    order_id: int
    gateway_order_id: str
    amount: int
    currency: str
    key_id: Optional[str] = None
    item: ItemSummary


class VerifyPaymentRequest(CamelModel):
    item_id: int
    gateway_order_id: str = Field(..., min_length=1)
    gateway_payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class VerifyPaymentResponse(CamelModel):
    message: str
    order: OrderRead
