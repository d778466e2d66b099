from typing import List

from sqlmodel import Session, select

from storefront.errors import NotFoundError
from storefront.models.book import Book
from storefront.schemas.book_schemas import BookPublic
from storefront.services.storage import StorageBackend


def get_item(session: Session, book_id: int, include_deleted: bool = False) -> Book:
    book = session.get(Book, book_id)
    if not book or (book.is_deleted and not include_deleted):
        raise NotFoundError("Book not found")
    return book


def list_items(session: Session) -> List[Book]:
    return list(session.exec(
        select(Book)
        .where(Book.is_deleted == False)  # noqa: E712
        .order_by(Book.created_at.desc(), Book.id.desc())
    ).all())


def to_public(book: Book, storage: StorageBackend) -> BookPublic:
    return BookPublic(
        id=book.id,
        title=book.title,
        description=book.description,
        price=book.price,
        thumbnail_url=storage.public_url(book.thumbnail_ref) if book.thumbnail_ref else None,
        created_at=book.created_at,
        updated_at=book.updated_at,
    )
