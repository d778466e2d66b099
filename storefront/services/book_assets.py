from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from storefront.config import settings
from storefront.errors import ValidationError
from storefront.services.storage import PDFS, THUMBNAILS, StorageBackend, safe_filename

THUMBNAIL_TYPES = {"image/jpeg", "image/png", "image/webp"}
PDF_TYPES = {"application/pdf"}


def check_thumbnail(file: UploadFile) -> None:
    if file.content_type not in THUMBNAIL_TYPES:
        raise ValidationError("Thumbnail must be jpg/png/webp")


def check_pdf(file: UploadFile) -> None:
    if file.content_type not in PDF_TYPES:
        raise ValidationError("PDF must be application/pdf")


async def _read_limited(file: UploadFile) -> bytes:
    limit = settings.max_upload_mb * 1024 * 1024
    contents = await file.read(limit + 1)
    if len(contents) > limit:
        raise ValidationError(f"File too large (max {settings.max_upload_mb}MB)")
    if not contents:
        raise ValidationError(f"{file.filename or 'File'} is empty")
    return contents


async def upload_thumbnail(storage: StorageBackend, file: UploadFile) -> str:
    check_thumbnail(file)
    contents = await _read_limited(file)
    name = f"{THUMBNAILS}/{safe_filename(file.filename, 'thumbnail')}"
    return await run_in_threadpool(storage.put, name, contents, file.content_type)


async def upload_pdf(storage: StorageBackend, file: UploadFile) -> str:
    check_pdf(file)
    contents = await _read_limited(file)
    name = f"{PDFS}/{safe_filename(file.filename or 'book.pdf', 'book')}"
    return await run_in_threadpool(storage.put, name, contents, file.content_type)
