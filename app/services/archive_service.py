"""
Daily rotation of the presence log.
Run once a day (cron → scripts/maintenance/rotate_log.py, or
POST /maintenance/rotate). Must not run concurrently with itself.

  1. Drop stale open duplicates: an open row is dropped when the same member
     has a row with a later entry time on the same day
  2. Copy the surviving rows into presence_archive under today's label,
     with day markers rewritten to canonical YYYY/MM/DD
  3. Clear the live log
"""

from datetime import datetime
from typing import Optional, Sequence

from app.models.presence_record import PresenceRecord
from app.repositories.base import ArchiveStore, PresenceLogStore
from app.schemas.presence import RotationOut
from app.utils.dates import canonical_day_marker, day_marker, local_now
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _group_key(record: PresenceRecord):
    return record.email, canonical_day_marker(record.day_marker)


def deduplicate(records: Sequence[PresenceRecord]) -> tuple[list[PresenceRecord], list[PresenceRecord]]:
    """Split rows into (keep, dropped). Closed and exit-only rows are always kept."""
    latest_entry = {}
    for r in records:
        if r.entry_time is None:
            continue
        key = _group_key(r)
        if key not in latest_entry or r.entry_time > latest_entry[key]:
            latest_entry[key] = r.entry_time

    keep, dropped = [], []
    for r in records:
        if r.is_open and r.entry_time < latest_entry[_group_key(r)]:
            dropped.append(r)
        else:
            keep.append(r)
    return keep, dropped


def rotate_presence_log(log: PresenceLogStore, archive: ArchiveStore,
                        now: Optional[datetime] = None) -> RotationOut:
    now = now or local_now()
    label = day_marker(now)

    records = list(log.list_all())
    keep, dropped = deduplicate(records)
    for r in dropped:
        logger.warning(f"[ROTATE] Dropping stale open row {r.id} for {r.email} ({r.day_marker})")

    result = RotationOut(label=label, archived=len(keep), dropped=len(dropped))
    archive.rotate(label, keep, archived_at=now)
    logger.info(f"[ROTATE] {label}: archived {result.archived}, dropped {result.dropped}, live log cleared")
    return result
