from typing import List, Optional
from datetime import datetime

from storefront.schemas.base import CamelModel


class BookPublic(CamelModel):
    """Catalog view of a book. Deliberately has no PDF field."""

    id: int
    title: str
    description: str
    price: int
    thumbnail_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookEnvelope(CamelModel):
    book: BookPublic


class BookList(CamelModel):
    books: List[BookPublic]
