import logging
import time

from sqlmodel import Session

from storefront.errors import ValidationError
from storefront.models.order import Order
from storefront.models.user import User
from storefront.services import catalog, order_ledger
from storefront.services.payment_gateway import RazorpayGateway
from storefront.utils.currency import to_minor_units

logger = logging.getLogger(__name__)


def create_intent(
    *,
    session: Session,
    gateway: RazorpayGateway,
    book_id: int,
    buyer: User,
) -> Order:
    """Open a gateway order for ``book_id`` priced from the catalog, and record it."""
    book = catalog.get_item(session, book_id)

    amount = to_minor_units(book.price)
    if amount <= 0:
        raise ValidationError("This book is free and cannot be checked out")

    gateway_order = gateway.create_order(
        amount=amount,
        receipt=f"rcpt_{buyer.id}_{book.id}_{int(time.time() * 1000)}",
        notes={
            "book_id": str(book.id),
            "user_id": str(buyer.id),
        },
    )

    return order_ledger.open_order(
        session=session,
        user_id=buyer.id,
        book_id=book.id,
        gateway_order_id=gateway_order["id"],
        amount=amount,
        currency=gateway_order.get("currency", gateway.currency),
    )
