"""
Shared alert creation service.
Used by the toggle engine for expired registrations and for log writes that
failed after the member directory was already updated.
"""

from datetime import datetime
from typing import Optional

from app.models.alert import Alert
from app.repositories.base import AlertStore
from app.utils.dates import local_now
from app.utils.logger import get_logger

logger = get_logger(__name__)

EXPIRED_REGISTRATION = "expired_registration"
LOG_WRITE_FAILED = "log_write_failed"


async def create_alert(alerts: AlertStore, alert_type: str, email: str, description: str,
                       when: Optional[datetime] = None) -> Alert:
    """Create and persist an alert record stamped `when` (default: now). Always commits immediately."""
    alert = alerts.add(Alert(alert_type=alert_type, email=email, description=description,
                             is_resolved=0, triggered_at=when or local_now()))
    logger.warning(f"[ALERT][{alert_type.upper()}] {description}")
    return alert
