from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_capability
from storefront.models.book import Book
from storefront.models.user import User
from storefront.schemas.book_schemas import BookEnvelope, BookList
from storefront.services import catalog
from storefront.services.book_assets import check_pdf, check_thumbnail, upload_pdf, upload_thumbnail
from storefront.services.storage import StorageBackend, get_storage
from storefront.utils.capabilities import Capability
from storefront.utils.timestamps import utc_now

router = APIRouter()

manage_catalog = require_capability(Capability.MANAGE_CATALOG)


def _save(session: Session, book: Book) -> Book:
    session.add(book)
    session.commit()
    session.refresh(book)
    return book


# -------- PUBLIC --------

@router.get("", response_model=BookList)
def list_books(
    session: Session = Depends(get_session),
    storage: StorageBackend = Depends(get_storage),
):
    books = catalog.list_items(session)
    return BookList(books=[catalog.to_public(b, storage) for b in books])


@router.get("/{book_id}", response_model=BookEnvelope)
def get_book(
    book_id: int,
    session: Session = Depends(get_session),
    storage: StorageBackend = Depends(get_storage),
):
    book = catalog.get_item(session, book_id)
    return BookEnvelope(book=catalog.to_public(book, storage))


# -------- ADMIN --------

@router.post("", response_model=BookEnvelope, status_code=status.HTTP_201_CREATED)
async def create_book(
    title: str = Form(..., min_length=1, max_length=200),
    description: str = Form(..., min_length=1, max_length=5000),
    price: int = Form(..., ge=0),
    thumbnail: UploadFile = File(...),
    pdf: UploadFile = File(...),
    session: Session = Depends(get_session),
    storage: StorageBackend = Depends(get_storage),
    _: User = Depends(manage_catalog),
):
    # reject bad types before anything is stored
    check_thumbnail(thumbnail)
    check_pdf(pdf)

    thumbnail_ref = await upload_thumbnail(storage, thumbnail)
    pdf_ref = await upload_pdf(storage, pdf)

    book = Book(
        title=title.strip(),
        description=description.strip(),
        price=price,
        thumbnail_ref=thumbnail_ref,
        pdf_ref=pdf_ref,
    )

    book = await run_in_threadpool(_save, session, book)

    return BookEnvelope(book=catalog.to_public(book, storage))


@router.put("/{book_id}", response_model=BookEnvelope)
async def update_book(
    book_id: int,
    title: Optional[str] = Form(None, min_length=1, max_length=200),
    description: Optional[str] = Form(None, min_length=1, max_length=5000),
    price: Optional[int] = Form(None, ge=0),
    thumbnail: Optional[UploadFile] = File(None),
    pdf: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    storage: StorageBackend = Depends(get_storage),
    _: User = Depends(manage_catalog),
):
    book = await run_in_threadpool(catalog.get_item, session, book_id)

    if thumbnail is not None:
        check_thumbnail(thumbnail)
    if pdf is not None:
        check_pdf(pdf)

    if title is not None:
        book.title = title.strip()
    if description is not None:
        book.description = description.strip()
    if price is not None:
        # open orders keep the amount they were created with
        book.price = price

    if thumbnail is not None:
        book.thumbnail_ref = await upload_thumbnail(storage, thumbnail)
    if pdf is not None:
        book.pdf_ref = await upload_pdf(storage, pdf)

    book.updated_at = utc_now()
    book = await run_in_threadpool(_save, session, book)

    return BookEnvelope(book=catalog.to_public(book, storage))


@router.delete("/{book_id}")
def delete_book(
    book_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(manage_catalog),
):
    book = catalog.get_item(session, book_id)

    # soft delete: orders reference the book and buyers keep their copy
    book.is_deleted = True
    book.updated_at = utc_now()
    session.add(book)
    session.commit()

    return {"message": "Book deleted"}
