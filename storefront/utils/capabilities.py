"""
Role -> capability table and the one check every route goes through.

Handlers never compare ``user.role`` themselves; they ask
``has_capability`` (or depend on ``require_capability``).
"""
from enum import Enum

from storefront.models.user import User


class Capability(str, Enum):
    MANAGE_CATALOG = "manage_catalog"
    VIEW_ALL_ORDERS = "view_all_orders"
    RECONCILE_GRANTS = "reconcile_grants"
    READ_ANY_CONTENT = "read_any_content"


ROLE_CAPABILITIES = {
    "admin": frozenset(Capability),
    "user": frozenset(),
}


def has_capability(user: User, capability: Capability) -> bool:
    if user is None:
        return False
    return capability in ROLE_CAPABILITIES.get(user.role, frozenset())
