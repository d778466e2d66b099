from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.timestamps import utc_now


class Book(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    description: str = Field(max_length=5000)

    # whole currency units; orders charge price * 100
    price: int = Field(ge=0)

    thumbnail_ref: str
    # private: never part of any response schema
    pdf_ref: str

    is_deleted: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
