from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_capability
from storefront.models.user import User
from storefront.schemas.order_schemas import ReconcileResponse
from storefront.services.access_grant import reconcile_access_grants
from storefront.utils.capabilities import Capability

router = APIRouter()


@router.post("/reconcile-grants", response_model=ReconcileResponse)
def reconcile_grants(
    session: Session = Depends(get_session),
    _: User = Depends(require_capability(Capability.RECONCILE_GRANTS)),
):
    return ReconcileResponse(repaired=reconcile_access_grants(session))
