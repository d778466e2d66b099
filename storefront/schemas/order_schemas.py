from typing import List, Optional

from storefront.schemas.base import CamelModel
from storefront.schemas.payment_schemas import OrderRead


class OrderWithItem(OrderRead):
    item_title: Optional[str] = None


class OrderList(CamelModel):
    orders: List[OrderWithItem]


class ReconcileResponse(CamelModel):
    repaired: int
