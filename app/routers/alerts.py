from fastapi import APIRouter, Depends
from app.deps import get_alert_store
from app.exceptions import PresenceError
from app.repositories.sql import SqlAlertStore
from app.schemas.alert import AlertOut
from typing import Optional

router = APIRouter()

@router.get("/alerts", summary="Expired-registration and log-failure alerts")
def get_all_alerts(
    alert_type: Optional[str] = None,
    is_resolved: Optional[int] = None,
    limit: int = 50,
    alerts: SqlAlertStore = Depends(get_alert_store),
):
    """Filter by alert_type (expired_registration | log_write_failed) or is_resolved."""
    try:
        rows = alerts.list(alert_type=alert_type, is_resolved=is_resolved, limit=limit)
    except PresenceError as e:
        return {"success": False, "message": str(e)}
    return {"success": True, "data": [AlertOut.model_validate(a).model_dump(mode="json") for a in rows]}
