"""
The user's access set: which books they may read.

Grants are set-union inserts keyed by ``(user_id, book_id)``, so granting the
same book twice is a no-op at the database level.
"""
from typing import List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.models.user_book import UserBook
from storefront.utils.timestamps import utc_now


def _insert_if_absent(session: Session, values: dict) -> None:
    table = UserBook.__table__
    dialect = session.get_bind().dialect.name

    if dialect == "postgresql":
        stmt = postgresql.insert(table).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table).values(**values)
    else:
        stmt = None

    if stmt is not None:
        session.exec(stmt.on_conflict_do_nothing(index_elements=["user_id", "book_id"]))
        return

    try:
        with session.begin_nested():
            session.exec(table.insert().values(**values))
    except IntegrityError:
        # already granted
        pass


def add_to_access_set(
    session: Session,
    user_id: int,
    book_id: int,
    order_id: Optional[int] = None,
) -> None:
    """Grant ``book_id`` to ``user_id``. Does not commit."""
    _insert_if_absent(
        session,
        {
            "user_id": user_id,
            "book_id": book_id,
            "order_id": order_id,
            "granted_at": utc_now(),
        },
    )


def is_in_access_set(session: Session, user_id: int, book_id: int) -> bool:
    return session.get(UserBook, (user_id, book_id)) is not None


def list_access_set(session: Session, user_id: int) -> List[int]:
    return list(session.exec(
        select(UserBook.book_id)
        .where(UserBook.user_id == user_id)
        .order_by(UserBook.granted_at)
    ).all())
