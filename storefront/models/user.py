from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime

from storefront.utils.timestamps import utc_now


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=80)
    email: str = Field(index=True, unique=True)
    password: str
    role: str = Field(default="user")  # user | admin
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
