from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.timestamps import utc_now

from storefront.constants.order_status import CREATED


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    book_id: int = Field(foreign_key="book.id", index=True)

    gateway_order_id: str = Field(index=True, unique=True)
    gateway_payment_id: Optional[str] = Field(default=None)

    # minor units, frozen at creation
    amount: int = Field(ge=0)
    currency: str = Field(default="INR")

    status: str = Field(default=CREATED, index=True)  # created | success | failed

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
