# scripts/migrate_uploads_to_r2.py
# Usage: python -m scripts.migrate_uploads_to_r2
#
# Copies thumbnails and PDFs that still live on disk (/uploads/...) into R2
# and points the book rows at the r2:// copies. Books already on R2 are
# skipped, so running it twice is safe.
import mimetypes
import sys
from typing import Optional

from sqlmodel import Session, select

from storefront.config import settings
from storefront.database import engine
from storefront.errors import NotFoundError
from storefront.models.book import Book
from storefront.services.storage import DiskStorage, R2Storage


def _on_disk(ref: Optional[str]) -> bool:
    return bool(ref) and ref.startswith(DiskStorage.URL_PREFIX)


def _copy(disk: DiskStorage, r2: R2Storage, ref: str, content_type: Optional[str] = None) -> Optional[str]:
    name = ref[len(DiskStorage.URL_PREFIX):]
    try:
        data = b"".join(disk.resolve(ref))
    except NotFoundError:
        print(f"  Missing on disk: {ref}")
        return None

    content_type = content_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
    return r2.put(name, data, content_type)


def migrate_uploads(session: Session, disk: DiskStorage, r2: R2Storage) -> dict:
    # deleted books included: buyers still read them
    books = session.exec(select(Book).order_by(Book.id)).all()
    report = {"updated": 0, "skipped": 0, "missing": 0}

    for book in books:
        move_thumbnail = _on_disk(book.thumbnail_ref)
        move_pdf = _on_disk(book.pdf_ref)
        if not move_thumbnail and not move_pdf:
            report["skipped"] += 1
            continue

        print(f"Migrating book {book.id}: {book.title}")
        changed = False

        if move_thumbnail:
            ref = _copy(disk, r2, book.thumbnail_ref)
            if ref is None:
                report["missing"] += 1
            else:
                book.thumbnail_ref = ref
                changed = True

        if move_pdf:
            ref = _copy(disk, r2, book.pdf_ref, "application/pdf")
            if ref is None:
                report["missing"] += 1
            else:
                book.pdf_ref = ref
                changed = True

        if changed:
            # refs only change once the upload went through
            session.add(book)
            session.commit()
            report["updated"] += 1

    return report


def main():
    r2 = R2Storage.from_settings()
    disk = DiskStorage(settings.upload_dir)

    with Session(engine) as session:
        report = migrate_uploads(session, disk, r2)

    print(f"Done: {report['updated']} updated, {report['skipped']} skipped, {report['missing']} missing file(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
