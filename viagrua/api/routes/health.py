"""
Liveness endpoint for the load balancer and uptime checks.
"""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from viagrua.core.auth_dependency import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

API_VERSION = "1.0.0"


@router.get("")
def health_check(db: Session = Depends(get_db)):
    """Always 200; `degraded` when the database doesn't answer."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        database = "error"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "checked_at": datetime.utcnow().isoformat(),
        "version": API_VERSION,
    }
