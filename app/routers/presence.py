"""
Scanner app endpoint.
GET  /presence?email=...      — member card + next action (entry/exit)
GET  /presence?reportDate=... — daily report for one day
POST /presence                — record a scan {email, action?, flightCount?}

Always returns HTTP 200 with {"success": ..., ...}; the scanner reads the body,
not the status code.
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError

from app.deps import get_archive_store, get_log_store, get_toggle_engine
from app.exceptions import PresenceError
from app.models.member import Member
from app.repositories.sql import SqlArchiveStore, SqlPresenceLogStore
from app.schemas.presence import MemberStatusOut, ScanRequest, ScanResultOut
from app.services.presence_service import PresenceToggleEngine
from app.services.report_service import build_daily_report
from app.utils.dates import format_day, format_timestamp
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def failure(message: str) -> dict:
    return {"success": False, "message": message}


def member_status(member: Member, engine: PresenceToggleEngine) -> MemberStatusOut:
    return MemberStatusOut(
        name=member.name,
        member_type=member.member_type or "",
        insurance_expiry=format_day(member.expiry),
        equipment=member.equipment or "",
        color=member.color or "",
        last_entry=format_timestamp(member.last_entry_time),
        last_exit=format_timestamp(member.last_exit_time),
        next_action=engine.next_action(member),
    )


def _validation_message(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or "body"
    return f"Invalid {field}: {err.get('msg')}"


@router.get("/presence", summary="Member lookup or daily report")
def get_presence(
    email: Optional[str] = None,
    report_date: Optional[str] = Query(default=None, alias="reportDate"),
    engine: PresenceToggleEngine = Depends(get_toggle_engine),
    log: SqlPresenceLogStore = Depends(get_log_store),
    archive: SqlArchiveStore = Depends(get_archive_store),
):
    try:
        if email:
            member = engine.lookup(email.strip())
            return {"success": True, "data": member_status(member, engine).model_dump(by_alias=True)}
        if report_date:
            items = build_daily_report(report_date, log, archive)
            return {"success": True, "data": [i.model_dump(by_alias=True) for i in items]}
        return failure("Invalid parameters")
    except PresenceError as e:
        return failure(str(e))


@router.post("/presence", summary="Record an entry/exit scan")
async def post_scan(request: Request, engine: PresenceToggleEngine = Depends(get_toggle_engine)):
    """
    Accepts the JSON body under any content type; the scanner posts it as
    text/plain to avoid a CORS preflight.
    """
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body)
    except ValueError:
        return failure("Invalid JSON")

    try:
        body = ScanRequest.model_validate(payload)
    except ValidationError as e:
        return failure(_validation_message(e))

    try:
        outcome = await engine.record_scan(body.email, body.action, flight_count=body.flight_count)
    except PresenceError as e:
        return failure(str(e))

    return ScanResultOut(
        message=outcome.message,
        timestamp=format_timestamp(outcome.timestamp),
        action=outcome.action,
        log_recorded=outcome.log_recorded,
    ).model_dump(by_alias=True)
