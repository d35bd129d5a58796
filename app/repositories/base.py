"""
Store interfaces used by the toggle engine, report projection and rotation.
The services only ever talk to these; tests inject in-memory fakes.
"""

from datetime import datetime
from typing import Optional, Protocol, Sequence

from app.models.alert import Alert
from app.models.member import Member
from app.models.presence_archive import PresenceArchive
from app.models.presence_record import PresenceRecord


class MemberDirectory(Protocol):
    def find_by_key(self, email: str) -> Optional[Member]:
        raise NotImplementedError

    def touch(self, member: Member, action: str, when: datetime) -> None:
        """Overwrite last_entry_time (entry) or last_exit_time (exit) and persist."""
        raise NotImplementedError


class PresenceLogStore(Protocol):
    def list_for_member(self, email: str) -> Sequence[PresenceRecord]:
        """All live rows of one member, oldest first (append order). Day filtering is the caller's."""
        raise NotImplementedError

    def list_all(self) -> Sequence[PresenceRecord]:
        raise NotImplementedError

    def append(self, record: PresenceRecord) -> PresenceRecord:
        raise NotImplementedError

    def update(self, record: PresenceRecord) -> PresenceRecord:
        raise NotImplementedError


class ArchiveStore(Protocol):
    def rotate(self, label: str, keep: Sequence[PresenceRecord], archived_at: datetime) -> int:
        """
        Copy `keep` into the archive under `label` with canonical day markers,
        then clear the live log. One unit of work.
        """
        raise NotImplementedError

    def list_by_day(self, day: str) -> Sequence[PresenceArchive]:
        """Archived rows whose canonical day marker equals `day`."""
        raise NotImplementedError


class AlertStore(Protocol):
    def add(self, alert: Alert) -> Alert:
        raise NotImplementedError

    def list(self, alert_type: Optional[str] = None, is_resolved: Optional[int] = None,
             limit: int = 50) -> Sequence[Alert]:
        raise NotImplementedError
