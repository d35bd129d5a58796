"""FastAPI dependencies wiring the SQL stores into the services."""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.repositories.sql import SqlAlertStore, SqlArchiveStore, SqlMemberDirectory, SqlPresenceLogStore
from app.services.presence_service import PresenceToggleEngine


def get_log_store(db: Session = Depends(get_db)) -> SqlPresenceLogStore:
    return SqlPresenceLogStore(db)


def get_archive_store(db: Session = Depends(get_db)) -> SqlArchiveStore:
    return SqlArchiveStore(db)


def get_alert_store(db: Session = Depends(get_db)) -> SqlAlertStore:
    return SqlAlertStore(db)


def get_toggle_engine(db: Session = Depends(get_db)) -> PresenceToggleEngine:
    return PresenceToggleEngine(
        SqlMemberDirectory(db),
        SqlPresenceLogStore(db),
        SqlAlertStore(db),
        trust_client_action=settings.TRUST_CLIENT_ACTION,
    )
