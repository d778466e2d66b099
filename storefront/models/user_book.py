from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.timestamps import utc_now


class UserBook(SQLModel, table=True):
    """One row per (user, book) pair in a user's access set."""

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    book_id: int = Field(foreign_key="book.id", primary_key=True)

    order_id: Optional[int] = Field(default=None, foreign_key="order.id")
    granted_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
