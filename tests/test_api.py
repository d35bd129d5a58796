"""End-to-end tests of the scanner endpoints over a SQLite database."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import pytest
from datetime import date
from fastapi.testclient import TestClient
from app.database import get_db
from app.main import app
from app.models.alert import Alert
from app.models.member import Member
from app.models.presence_record import PresenceRecord
from app.repositories.sql import SqlAlertStore, SqlPresenceLogStore
from app.exceptions import StoreUnavailable
from app.utils.dates import day_marker, local_now
from conftest import make_member

URL = "/api/v1/presence"


@pytest.fixture
def client(db_session):
    db_session.add(make_member())
    db_session.add(make_member("old@example.com", name="古川 一郎", expiry=date(2020, 1, 1)))
    db_session.commit()
    app.dependency_overrides[get_db] = lambda: db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def scan(client, **body):
    # Same wire shape as the scanner app: JSON text under text/plain
    return client.post(URL, content=json.dumps(body),
                       headers={"Content-Type": "text/plain;charset=utf-8"}).json()


def log_rows(db_session):
    db_session.expire_all()
    return db_session.query(PresenceRecord).order_by(PresenceRecord.id).all()


class TestMemberLookup:
    def test_known_member(self, client):
        body = client.get(URL, params={"email": "taro@example.com"}).json()
        assert body["success"] is True
        assert body["data"] == {
            "name": "山田 太郎",
            "memberType": "正会員",
            "insuranceExpiry": "2027/03/31",
            "equipment": "GIN Bolero 7",
            "color": "Blue",
            "lastEntry": "",
            "lastExit": "",
            "nextAction": "entry",
        }

    def test_unknown_member(self, client):
        body = client.get(URL, params={"email": "nobody@example.com"}).json()
        assert body == {"success": False, "message": "User not found"}

    def test_no_parameters(self, client):
        assert client.get(URL).json() == {"success": False, "message": "Invalid parameters"}


class TestScan:
    def test_entry_exit_entry(self, client, db_session):
        first = scan(client, email="taro@example.com")
        assert first["success"] is True
        assert first["action"] == "entry"
        assert first["message"] == "entry recorded"
        assert first["logRecorded"] is True

        second = scan(client, email="taro@example.com", action="exit", flightCount=2)
        assert second["action"] == "exit"
        rows = log_rows(db_session)
        assert len(rows) == 1
        assert rows[0].exit_time is not None
        assert rows[0].flight_count == 2

        third = scan(client, email="taro@example.com")
        assert third["action"] == "entry"
        rows = log_rows(db_session)
        assert len(rows) == 2
        assert rows[1].exit_time is None

        status = client.get(URL, params={"email": "taro@example.com"}).json()["data"]
        assert status["lastEntry"] == third["timestamp"]
        assert status["lastExit"] == second["timestamp"]

    def test_unknown_member_no_mutation(self, client, db_session):
        body = scan(client, email="nobody@example.com", action="entry")
        assert body == {"success": False, "message": "User not found"}
        assert log_rows(db_session) == []

    def test_invalid_json(self, client):
        resp = client.post(URL, content="{not json", headers={"Content-Type": "text/plain"})
        assert resp.status_code == 200
        assert resp.json() == {"success": False, "message": "Invalid JSON"}

    def test_missing_email(self, client, db_session):
        body = scan(client, action="entry")
        assert body["success"] is False
        assert body["message"].startswith("Invalid email")
        assert log_rows(db_session) == []

    def test_unknown_action(self, client):
        body = scan(client, email="taro@example.com", action="fly")
        assert body["success"] is False
        assert body["message"].startswith("Invalid action")

    def test_conflicting_action_rejected(self, client, db_session):
        body = scan(client, email="taro@example.com", action="exit")
        assert body["success"] is False
        assert log_rows(db_session) == []
        member = db_session.query(Member).filter(Member.email == "taro@example.com").first()
        assert member.last_exit_time is None

    def test_log_failure_reported_separately(self, client, db_session, monkeypatch):
        def broken_append(self, record):
            raise StoreUnavailable("presence log append failed")

        monkeypatch.setattr(SqlPresenceLogStore, "append", broken_append)
        body = scan(client, email="taro@example.com")

        assert body["success"] is True
        assert body["logRecorded"] is False
        assert body["message"] == "entry recorded (log write failed)"
        member = db_session.query(Member).filter(Member.email == "taro@example.com").first()
        assert member.last_entry_time is not None
        assert db_session.query(Alert).filter(Alert.alert_type == "log_write_failed").count() == 1


class TestReportAndRotation:
    def test_report_accepts_both_separators(self, client):
        scan(client, email="taro@example.com")
        scan(client, email="old@example.com")
        today = day_marker(local_now())

        slash = client.get(URL, params={"reportDate": today}).json()
        hyphen = client.get(URL, params={"reportDate": today.replace("/", "-")}).json()
        assert slash["success"] is True
        assert slash == hyphen
        assert [r["name"] for r in slash["data"]] == ["山田 太郎", "古川 一郎"]
        assert [r["expired"] for r in slash["data"]] == [False, True]

    def test_bad_report_date(self, client):
        body = client.get(URL, params={"reportDate": "tomorrow"}).json()
        assert body["success"] is False

    def test_expired_entry_raises_alert(self, client):
        scan(client, email="old@example.com")
        body = client.get("/api/v1/alerts", params={"alert_type": "expired_registration"}).json()
        assert body["success"] is True
        assert len(body["data"]) == 1
        assert body["data"][0]["email"] == "old@example.com"

    def test_rotation_keeps_report_readable(self, client, db_session):
        scan(client, email="taro@example.com")
        scan(client, email="taro@example.com")
        today = day_marker(local_now())

        rotated = client.post("/api/v1/maintenance/rotate").json()
        assert rotated == {"success": True, "data": {"label": today, "archived": 1, "dropped": 0}}
        assert log_rows(db_session) == []
        assert client.get("/api/v1/health").json()["live_log_rows"] == 0

        report = client.get(URL, params={"reportDate": today}).json()
        assert len(report["data"]) == 1
        assert report["data"][0]["exitTime"] != ""


class TestFailureBodies:
    def test_alert_store_down_is_uniform_failure(self, client, monkeypatch):
        def broken_list(self, alert_type=None, is_resolved=None, limit=50):
            raise StoreUnavailable("alert read failed")

        monkeypatch.setattr(SqlAlertStore, "list", broken_list)
        resp = client.get("/api/v1/alerts")
        assert resp.status_code == 200
        assert resp.json() == {"success": False, "message": "alert read failed"}

    def test_unhandled_error_is_uniform_failure(self, db_session, monkeypatch):
        def crash(day, log, archive=None):
            raise RuntimeError("boom")

        monkeypatch.setattr("app.routers.presence.build_daily_report", crash)
        app.dependency_overrides[get_db] = lambda: db_session
        try:
            resp = TestClient(app, raise_server_exceptions=False).get(URL, params={"reportDate": "2026/10/19"})
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 200
        assert resp.json() == {"success": False, "message": "Internal server error"}
