from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_capability
from storefront.models.user import User
from storefront.schemas.order_schemas import OrderList, OrderWithItem
from storefront.services import order_ledger
from storefront.utils.capabilities import Capability
from storefront.utils.token import get_current_user

router = APIRouter()


def _order_list(rows) -> OrderList:
    return OrderList(orders=[
        OrderWithItem.model_validate(order).model_copy(update={"item_title": title})
        for order, title in rows
    ])


@router.get("/my", response_model=OrderList)
def my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _order_list(order_ledger.list_orders_for_user(session, current_user.id))


@router.get("", response_model=OrderList)
def all_orders(
    session: Session = Depends(get_session),
    _: User = Depends(require_capability(Capability.VIEW_ALL_ORDERS)),
):
    return _order_list(order_ledger.list_all_orders(session))
