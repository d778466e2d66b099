import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from storefront.database import get_session
from storefront.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def health_check(session: Session = Depends(get_session)):
    db_status = "connected"

    try:
        # simple DB ping
        session.exec(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Health check database ping failed: {e}")
        db_status = "disconnected"

    return {
        "ok": True,
        "service": "storefront",
        "database": db_status,
        "timestamp": utc_now().isoformat(),
    }
