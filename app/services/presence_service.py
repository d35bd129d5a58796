"""
Mountain entry/exit toggle (入山/下山).

How it works:
  - The scanner app reads a member's QR code (their email) and POSTs it here
  - decide_action compares the member's last entry and last exit timestamps:
    newer entry → the member is on the mountain → this scan is an EXIT,
    otherwise → ENTRY
  - The member directory's last_entry_time / last_exit_time is overwritten first
  - The presence log is then reconciled for (email, today):
      ENTRY → append a new open row with a snapshot of the member
      EXIT  → close the newest open row of the day, or append an exit-only
              row when the member forgot to check in
  - A log failure after the directory write does not fail the scan; it is
    reported as log_recorded=False and raised as an alert

Multiple open rows for one member/day (manual edits, two terminals racing):
the most recently appended open row is closed, older ones stay open until the
daily rotation drops them. Two near-simultaneous scans of one member may both
read "not entered"; nothing here locks across the read-decide-write sequence.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from app.exceptions import ActionConflict, InvalidInput, MemberNotFound, StoreUnavailable
from app.models.member import Member
from app.models.presence_record import PresenceRecord
from app.repositories.base import AlertStore, MemberDirectory, PresenceLogStore
from app.services.alert_service import EXPIRED_REGISTRATION, LOG_WRITE_FAILED, create_alert
from app.utils.dates import day_marker, format_day, local_now, same_day
from app.utils.logger import get_logger

logger = get_logger(__name__)

ENTRY = "entry"
EXIT = "exit"
ACTIONS = (ENTRY, EXIT)

_EPOCH = datetime.min


def decide_action(last_entry: Optional[datetime], last_exit: Optional[datetime]) -> str:
    """Entry unless the last entry is strictly newer than the last exit. Absent = epoch."""
    if (last_entry or _EPOCH) > (last_exit or _EPOCH):
        return EXIT
    return ENTRY


def find_open_record(records: Sequence[PresenceRecord]) -> Optional[PresenceRecord]:
    """Newest row (append order) whose exit is still empty."""
    for record in reversed(records):
        if record.exit_time is None:
            return record
    return None


def is_expired(member: Member, now: datetime) -> bool:
    return member.expiry is not None and member.expiry < now.date()


@dataclass
class ScanOutcome:
    email: str
    action: str
    timestamp: datetime
    log_recorded: bool
    reconciliation: Optional[str] = None    # appended | closed | exit_only
    record: Optional[PresenceRecord] = None

    @property
    def message(self) -> str:
        if self.log_recorded:
            return f"{self.action} recorded"
        return f"{self.action} recorded (log write failed)"


class PresenceToggleEngine:
    def __init__(
        self,
        members: MemberDirectory,
        log: PresenceLogStore,
        alerts: Optional[AlertStore] = None,
        *,
        trust_client_action: bool = False,
        clock: Callable[[], datetime] = local_now,
    ):
        self._members = members
        self._log = log
        self._alerts = alerts
        self._trust_client_action = trust_client_action
        self._clock = clock

    def lookup(self, email: str) -> Member:
        member = self._members.find_by_key(email)
        if not member:
            logger.warning(f"[SCAN] Unknown member {email}")
            raise MemberNotFound()
        return member

    def next_action(self, member: Member) -> str:
        return decide_action(member.last_entry_time, member.last_exit_time)

    async def record_scan(self, email: str, requested_action: Optional[str] = None,
                          now: Optional[datetime] = None,
                          flight_count: Optional[int] = None) -> ScanOutcome:
        """Server-authoritative scan: the action comes from the member directory."""
        if requested_action is not None and requested_action not in ACTIONS:
            raise InvalidInput(f"Unknown action: {requested_action!r}")
        member = self.lookup(email)
        decided = self.next_action(member)
        action = decided
        if requested_action and requested_action != decided:
            if not self._trust_client_action:
                logger.warning(f"[SCAN] {email}: client asked {requested_action}, state says {decided}")
                raise ActionConflict(f"Member is expected to {decided}, not {requested_action}")
            logger.warning(f"[SCAN] {email}: applying client action {requested_action} over {decided}")
            action = requested_action
        return await self._apply(member, action, now or self._clock(), flight_count)

    async def apply_action(self, email: str, action: str, now: Optional[datetime] = None,
                           flight_count: Optional[int] = None) -> ScanOutcome:
        """Apply `action` as given; the caller is trusted to have run decide_action."""
        if action not in ACTIONS:
            raise InvalidInput(f"Unknown action: {action!r}")
        member = self.lookup(email)
        return await self._apply(member, action, now or self._clock(), flight_count)

    async def _apply(self, member: Member, action: str, now: datetime,
                     flight_count: Optional[int]) -> ScanOutcome:
        if flight_count is not None and flight_count < 0:
            raise InvalidInput("flightCount must not be negative")

        # Directory write first; a failure here leaves nothing changed
        self._members.touch(member, action, now)
        logger.info(f"[SCAN] {member.email} → {action} at {now}")

        outcome = ScanOutcome(email=member.email, action=action, timestamp=now, log_recorded=False)
        try:
            outcome.record, outcome.reconciliation = await self._reconcile(member, action, now, flight_count)
            outcome.log_recorded = True
        except StoreUnavailable as e:
            logger.error(f"[LOG] {member.email} {action} at {now} not written to presence log: {e}")
            await self._alert(LOG_WRITE_FAILED, member.email, now,
                              f"{action} at {now} for {member.email} missing from presence log")
        return outcome

    async def _reconcile(self, member: Member, action: str, now: datetime,
                         flight_count: Optional[int]):
        today = day_marker(now)

        if action == ENTRY:
            record = self._log.append(self._snapshot(member, now, entry_time=now))
            if record.expired:
                await self._alert(EXPIRED_REGISTRATION, member.email, now,
                                  f"{member.name} entered with registration expired {format_day(member.expiry)}")
            return record, "appended"

        rows = [
            r for r in self._log.list_for_member(member.email)
            if same_day(r.day_marker, today)
        ]
        open_record = find_open_record(rows)
        if open_record:
            open_record.exit_time = now
            if flight_count is not None:
                open_record.flight_count = flight_count
            logger.info(f"[LOG] Closed row {open_record.id} for {member.email}")
            return self._log.update(open_record), "closed"

        logger.warning(f"[LOG] No open entry for {member.email} on {today} — recording exit only")
        record = self._snapshot(member, now, exit_time=now)
        record.flight_count = flight_count
        return self._log.append(record), "exit_only"

    def _snapshot(self, member: Member, now: datetime, entry_time: Optional[datetime] = None,
                  exit_time: Optional[datetime] = None) -> PresenceRecord:
        return PresenceRecord(
            email=member.email,
            name=member.name,
            entry_time=entry_time,
            exit_time=exit_time,
            member_type=member.member_type,
            area=member.area,
            jhf_no=member.jhf_no,
            expiry=member.expiry,
            equipment=member.equipment,
            color=member.color,
            day_marker=day_marker(now),
            expired=is_expired(member, now),
            created_at=now,
        )

    async def _alert(self, alert_type: str, email: str, when: datetime, description: str):
        if self._alerts is None:
            return
        try:
            await create_alert(self._alerts, alert_type, email, description, when=when)
        except StoreUnavailable as e:
            logger.error(f"[ALERT] Could not persist {alert_type} for {email}: {e}")
