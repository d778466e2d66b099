from fastapi import Depends
from storefront.errors import ForbiddenError
from storefront.models.user import User
from storefront.utils.capabilities import Capability, has_capability
from storefront.utils.token import get_current_user


def require_capability(capability: Capability):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user, capability):
            raise ForbiddenError("Forbidden: admin access required")
        return current_user

    return dependency
