"""
Order ledger: one row per checkout attempt.

Status moves one way only (see ``constants.order_status``). Transitions are
single conditional UPDATEs matched on gateway order id, buyer and book
together, so a row owned by someone else, or one that already left
``created``, is never touched.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from storefront.constants.order_status import CREATED, FAILED, SUCCESS, sources_for
from storefront.models.book import Book
from storefront.models.order import Order
from storefront.utils.timestamps import utc_now

logger = logging.getLogger(__name__)


def open_order(
    *,
    session: Session,
    user_id: int,
    book_id: int,
    gateway_order_id: str,
    amount: int,
    currency: str,
) -> Order:
    order = Order(
        user_id=user_id,
        book_id=book_id,
        gateway_order_id=gateway_order_id,
        amount=amount,
        currency=currency,
        status=CREATED,
    )
    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} opened: user {user_id}, book {book_id}, {amount} {currency}")
    return order


def find_order(
    *,
    session: Session,
    gateway_order_id: str,
    user_id: int,
    book_id: int,
) -> Optional[Order]:
    return session.exec(
        select(Order)
        .where(Order.gateway_order_id == gateway_order_id)
        .where(Order.user_id == user_id)
        .where(Order.book_id == book_id)
    ).first()


def transition(
    *,
    session: Session,
    gateway_order_id: str,
    user_id: int,
    book_id: int,
    target: str,
    gateway_payment_id: Optional[str] = None,
) -> bool:
    """Move the matching order to ``target``. Returns False when nothing matched.

    Does not commit; callers decide the transaction boundary.
    """
    values = {"status": target, "updated_at": utc_now()}
    if gateway_payment_id is not None:
        values["gateway_payment_id"] = gateway_payment_id

    result = session.exec(
        update(Order)
        .where(Order.gateway_order_id == gateway_order_id)
        .where(Order.user_id == user_id)
        .where(Order.book_id == book_id)
        .where(Order.status.in_(sources_for(target)))
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


def mark_success(*, session: Session, gateway_order_id: str, user_id: int,
                 book_id: int, gateway_payment_id: str) -> bool:
    return transition(
        session=session,
        gateway_order_id=gateway_order_id,
        user_id=user_id,
        book_id=book_id,
        target=SUCCESS,
        gateway_payment_id=gateway_payment_id,
    )


def mark_failed(*, session: Session, gateway_order_id: str, user_id: int, book_id: int) -> bool:
    return transition(
        session=session,
        gateway_order_id=gateway_order_id,
        user_id=user_id,
        book_id=book_id,
        target=FAILED,
    )


def list_orders_for_user(session: Session, user_id: int) -> List[Tuple[Order, Optional[str]]]:
    return list(session.exec(
        select(Order, Book.title)
        .join(Book, Book.id == Order.book_id, isouter=True)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all())


def list_all_orders(session: Session) -> List[Tuple[Order, Optional[str]]]:
    return list(session.exec(
        select(Order, Book.title)
        .join(Book, Book.id == Order.book_id, isouter=True)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all())
