from dataclasses import dataclass
from typing import Iterator, Optional

from slugify import slugify
from sqlmodel import Session

from storefront.errors import ForbiddenError
from storefront.models.user import User
from storefront.services import catalog
from storefront.services.access_set import is_in_access_set
from storefront.services.storage import StorageBackend, content_disposition
from storefront.utils.capabilities import Capability, has_capability


@dataclass
class ContentHandle:
    """Either a short-lived URL to redirect to, or a byte stream to serve."""

    filename: str
    disposition: str
    redirect_url: Optional[str] = None
    stream: Optional[Iterator[bytes]] = None


def can_read(session: Session, user: User, book_id: int) -> bool:
    if has_capability(user, Capability.READ_ANY_CONTENT):
        return True
    return is_in_access_set(session, user.id, book_id)


def open_content(
    *,
    session: Session,
    storage: StorageBackend,
    user: User,
    book_id: int,
    download: bool = False,
) -> ContentHandle:
    # owners keep access to books removed from the catalog
    book = catalog.get_item(session, book_id, include_deleted=True)

    if not can_read(session, user, book_id):
        raise ForbiddenError("You have not purchased this book")

    filename = f"{slugify(book.title) or 'book'}.pdf"
    disposition = content_disposition(filename, download)

    url = storage.temporary_url(book.pdf_ref, filename, download)
    if url:
        return ContentHandle(filename=filename, disposition=disposition, redirect_url=url)

    return ContentHandle(
        filename=filename,
        disposition=disposition,
        stream=storage.resolve(book.pdf_ref),
    )
