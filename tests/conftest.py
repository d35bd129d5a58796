"""In-memory stores for the service tests, plus a SQLite-backed session for API tests."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("LOG_FILE", "")

import pytest
from datetime import date, datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import create_tables
from app.exceptions import StoreUnavailable
from app.models.member import Member
from app.services.presence_service import PresenceToggleEngine
from app.utils.dates import canonical_day_marker

NOW = datetime(2026, 10, 19, 9, 30, 0)


class FakeMemberDirectory:
    def __init__(self):
        self.members = {}
        self.touched = []

    def add(self, member):
        self.members[member.email] = member
        return member

    def find_by_key(self, email):
        return self.members.get(email)

    def touch(self, member, action, when):
        if action == "entry":
            member.last_entry_time = when
        else:
            member.last_exit_time = when
        self.touched.append((member.email, action, when))


class FakePresenceLog:
    def __init__(self):
        self.rows = []
        self.fail_writes = False
        self._next_id = 1

    def _check(self):
        if self.fail_writes:
            raise StoreUnavailable("presence log append failed")

    def list_for_member(self, email):
        return [r for r in self.rows if r.email == email]

    def list_all(self):
        return list(self.rows)

    def append(self, record):
        self._check()
        if record.id is None:
            record.id = self._next_id
            self._next_id += 1
        self.rows.append(record)
        return record

    def update(self, record):
        self._check()
        return record


class FakeArchive:
    def __init__(self, log):
        self.log = log
        self.rows = []
        self.labels = []

    def rotate(self, label, keep, archived_at):
        for r in keep:
            r.day_marker = canonical_day_marker(r.day_marker)
        self.rows.extend(keep)
        self.labels.extend(label for _ in keep)
        self.log.rows.clear()
        return len(keep)

    def list_by_day(self, day):
        return [r for r in self.rows if r.day_marker == day]


class FakeAlertStore:
    def __init__(self):
        self.alerts = []

    def add(self, alert):
        alert.id = len(self.alerts) + 1
        self.alerts.append(alert)
        return alert

    def list(self, alert_type=None, is_resolved=None, limit=50):
        rows = [a for a in self.alerts if alert_type is None or a.alert_type == alert_type]
        return rows[:limit]


def make_member(email="taro@example.com", **overrides):
    fields = dict(
        email=email,
        name="山田 太郎",
        member_type="正会員",
        area="2 AREA",
        jhf_no="JHF-0012345",
        expiry=date(2027, 3, 31),
        equipment="GIN Bolero 7",
        color="Blue",
        last_entry_time=None,
        last_exit_time=None,
    )
    fields.update(overrides)
    return Member(**fields)


@pytest.fixture
def members():
    directory = FakeMemberDirectory()
    directory.add(make_member())
    return directory


@pytest.fixture
def log():
    return FakePresenceLog()


@pytest.fixture
def archive(log):
    return FakeArchive(log)


@pytest.fixture
def alerts():
    return FakeAlertStore()


@pytest.fixture
def engine(members, log, alerts):
    return PresenceToggleEngine(members, log, alerts, clock=lambda: NOW)


@pytest.fixture
def db_session():
    """Fresh in-memory SQLite database with every table created."""
    sql_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=sql_engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=sql_engine)()
    try:
        yield session
    finally:
        session.close()
        sql_engine.dispose()
