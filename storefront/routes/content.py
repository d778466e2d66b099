from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse, StreamingResponse
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.user import User
from storefront.services.content_gate import open_content
from storefront.services.storage import StorageBackend, get_storage
from storefront.utils.token import get_current_user

router = APIRouter()


@router.get("/{book_id}/content")
def read_content(
    book_id: int,
    download: bool = False,
    session: Session = Depends(get_session),
    storage: StorageBackend = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    """Serve a purchased PDF: ``?download=true`` for an attachment, inline otherwise."""
    handle = open_content(
        session=session,
        storage=storage,
        user=current_user,
        book_id=book_id,
        download=download,
    )

    if handle.redirect_url:
        return RedirectResponse(handle.redirect_url, status_code=302)

    return StreamingResponse(
        handle.stream,
        media_type="application/pdf",
        headers={"Content-Disposition": handle.disposition},
    )
