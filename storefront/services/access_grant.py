"""
Payment verification and access granting.

``verify_and_grant`` is the only path that moves an order to ``success`` and
puts a book in a user's access set. It trusts nothing the client sends
until the gateway signature checks out, and nothing the signature covers
until a matching order created by this server is found.

The status change and the grant are committed together. Retries of a
verify call that already succeeded return the stored order and re-assert
the grant, which is a no-op.
"""
import logging

from sqlmodel import Session, select

from storefront.constants.order_status import FAILED, SUCCESS
from storefront.errors import ConflictError, NotFoundError, VerificationFailedError
from storefront.models.order import Order
from storefront.models.user import User
from storefront.models.user_book import UserBook
from storefront.services import order_ledger
from storefront.services.access_set import add_to_access_set
from storefront.services.payment_gateway import RazorpayGateway

logger = logging.getLogger(__name__)


def verify_and_grant(
    *,
    session: Session,
    gateway: RazorpayGateway,
    book_id: int,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    buyer: User,
) -> Order:
    keys = {
        "gateway_order_id": gateway_order_id,
        "user_id": buyer.id,
        "book_id": book_id,
    }

    if not gateway.verify_signature(gateway_order_id, gateway_payment_id, signature):
        failed = order_ledger.mark_failed(session=session, **keys)
        session.commit()
        logger.warning(
            f"Signature mismatch for gateway order {gateway_order_id} "
            f"(user {buyer.id}, book {book_id}, marked failed: {failed})"
        )
        raise VerificationFailedError("Payment verification failed")

    order = order_ledger.find_order(session=session, **keys)
    if not order:
        logger.warning(
            f"Valid signature for unknown order {gateway_order_id} "
            f"(user {buyer.id}, book {book_id})"
        )
        raise NotFoundError("Order not found")

    if order.status == SUCCESS:
        return _already_granted(session, order, gateway_payment_id)

    if order.status == FAILED:
        raise ConflictError("This order has already failed. Please start a new checkout.")

    if order_ledger.mark_success(session=session, gateway_payment_id=gateway_payment_id, **keys):
        add_to_access_set(session, buyer.id, book_id, order_id=order.id)
        session.commit()
        session.refresh(order)
        logger.info(f"Order {order.id} paid ({gateway_payment_id}); book {book_id} granted to user {buyer.id}")
        return order

    # lost a race with a concurrent verify of the same order
    session.rollback()
    order = order_ledger.find_order(session=session, **keys)
    if order is not None and order.status == SUCCESS:
        return _already_granted(session, order, gateway_payment_id)
    raise ConflictError("This order has already failed. Please start a new checkout.")


def _already_granted(session: Session, order: Order, gateway_payment_id: str) -> Order:
    if order.gateway_payment_id != gateway_payment_id:
        logger.warning(
            f"Order {order.id} already paid with {order.gateway_payment_id}, "
            f"ignoring second payment id {gateway_payment_id}"
        )
    add_to_access_set(session, order.user_id, order.book_id, order_id=order.id)
    session.commit()
    session.refresh(order)
    return order


def reconcile_access_grants(session: Session) -> int:
    """Grant every ``success`` order whose book is missing from its buyer's access set."""
    missing = session.exec(
        select(Order)
        .join(
            UserBook,
            (UserBook.user_id == Order.user_id) & (UserBook.book_id == Order.book_id),
            isouter=True,
        )
        .where(Order.status == SUCCESS)
        .where(UserBook.user_id == None)  # noqa: E711
    ).all()

    # a buyer may hold several paid orders for the same book
    pending = {}
    for order in missing:
        pending.setdefault((order.user_id, order.book_id), order)

    for (user_id, book_id), order in pending.items():
        add_to_access_set(session, user_id, book_id, order_id=order.id)
        logger.warning(f"Repaired missing grant: book {book_id} for user {user_id} (order {order.id})")

    session.commit()
    return len(pending)
