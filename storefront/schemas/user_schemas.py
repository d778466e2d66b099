from pydantic import EmailStr, Field, field_validator
from typing import List

from storefront.schemas.base import CamelModel


class UserRegister(CamelModel):
    # no role field: registration always creates a plain user
    name: str = Field(..., min_length=2, max_length=80)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("name must be at least 2 characters")
        return value


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserRead(CamelModel):
    id: int
    name: str
    email: str
    role: str
    purchased_books: List[int] = []


class AuthResponse(CamelModel):
    token: str
    user: UserRead


class MeResponse(CamelModel):
    user: UserRead
