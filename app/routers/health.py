"""
System health check endpoint.
Returns status of backend + DB + live log size.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.models.presence_record import PresenceRecord
from app.utils.dates import local_now

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Rows currently in the live presence log (0 right after rotation)
    """
    result = {
        "status": "ok",
        "timestamp": local_now().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "live_log_rows": None,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["live_log_rows"] = db.query(func.count(PresenceRecord.id)).scalar()
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
