"""
SQLAlchemy implementations of the store interfaces.
Every SQLAlchemyError is rolled back and re-raised as StoreUnavailable.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import StoreUnavailable
from app.models.alert import Alert
from app.models.member import Member
from app.models.presence_archive import PresenceArchive
from app.models.presence_record import PresenceRecord
from app.utils.dates import canonical_day_marker
from app.utils.logger import get_logger

logger = get_logger(__name__)

ARCHIVED_COLUMNS = (
    "email", "name", "entry_time", "exit_time", "member_type", "area", "jhf_no",
    "expiry", "equipment", "color", "day_marker", "flight_count", "expired", "created_at",
)


@contextmanager
def store_call(db: Session, what: str):
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[STORE] {what} failed: {e}", exc_info=True)
        raise StoreUnavailable(f"{what} failed") from e


class SqlMemberDirectory:
    def __init__(self, db: Session):
        self.db = db

    def find_by_key(self, email: str) -> Optional[Member]:
        with store_call(self.db, "member lookup"):
            return self.db.query(Member).filter(Member.email == email).first()

    def touch(self, member: Member, action: str, when: datetime) -> None:
        with store_call(self.db, "member update"):
            if action == "entry":
                member.last_entry_time = when
            else:
                member.last_exit_time = when
            self.db.commit()


class SqlPresenceLogStore:
    def __init__(self, db: Session):
        self.db = db

    def list_for_member(self, email: str) -> Sequence[PresenceRecord]:
        with store_call(self.db, "presence log read"):
            return (
                self.db.query(PresenceRecord)
                .filter(PresenceRecord.email == email)
                .order_by(PresenceRecord.id.asc())
                .all()
            )

    def list_all(self) -> Sequence[PresenceRecord]:
        with store_call(self.db, "presence log read"):
            return self.db.query(PresenceRecord).order_by(PresenceRecord.id.asc()).all()

    def append(self, record: PresenceRecord) -> PresenceRecord:
        with store_call(self.db, "presence log append"):
            self.db.add(record)
            self.db.commit()
            return record

    def update(self, record: PresenceRecord) -> PresenceRecord:
        with store_call(self.db, "presence log update"):
            self.db.commit()
            return record


class SqlArchiveStore:
    def __init__(self, db: Session):
        self.db = db

    def rotate(self, label: str, keep: Sequence[PresenceRecord], archived_at: datetime) -> int:
        with store_call(self.db, "presence log rotation"):
            for record in keep:
                row = PresenceArchive(source_id=record.id, archive_label=label, archived_at=archived_at)
                for column in ARCHIVED_COLUMNS:
                    setattr(row, column, getattr(record, column))
                row.day_marker = canonical_day_marker(record.day_marker)
                self.db.add(row)
            self.db.query(PresenceRecord).delete(synchronize_session=False)
            self.db.commit()
            return len(keep)

    def list_by_day(self, day: str) -> Sequence[PresenceArchive]:
        with store_call(self.db, "archive read"):
            return (
                self.db.query(PresenceArchive)
                .filter(PresenceArchive.day_marker == day)
                .order_by(PresenceArchive.id.asc())
                .all()
            )


class SqlAlertStore:
    def __init__(self, db: Session):
        self.db = db

    def add(self, alert: Alert) -> Alert:
        with store_call(self.db, "alert insert"):
            self.db.add(alert)
            self.db.commit()
            return alert

    def list(self, alert_type: Optional[str] = None, is_resolved: Optional[int] = None,
             limit: int = 50) -> Sequence[Alert]:
        with store_call(self.db, "alert read"):
            q = self.db.query(Alert)
            if alert_type:
                q = q.filter(Alert.alert_type == alert_type)
            if is_resolved is not None:
                q = q.filter(Alert.is_resolved == is_resolved)
            return q.order_by(Alert.triggered_at.desc()).limit(limit).all()
