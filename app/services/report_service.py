"""
Daily report (日報): every presence row of one calendar day, live and archived.

The query date and each stored day marker are both normalized to YYYY/MM/DD
before comparing, so hyphenated, slashed and unpadded spellings of one day
all meet on the same key.
"""

from datetime import date
from typing import Optional, Union

from app.repositories.base import ArchiveStore, PresenceLogStore
from app.schemas.presence import ReportItemOut
from app.utils.dates import format_day, format_time, normalize_day_marker, same_day
from app.utils.logger import get_logger

logger = get_logger(__name__)


def to_report_item(row) -> ReportItemOut:
    return ReportItemOut(
        name=row.name or "",
        entry_time=format_time(row.entry_time),
        exit_time=format_time(row.exit_time),
        member_type=row.member_type or "",
        registration_area=row.area or "",
        jhf_no=row.jhf_no or "",
        registration_expiry=format_day(row.expiry),
        equipment=row.equipment or "",
        color=row.color or "",
        flight_count=row.flight_count,
        expired=bool(row.expired),
    )


def build_daily_report(
    day: Union[str, date],
    log: PresenceLogStore,
    archive: Optional[ArchiveStore] = None,
) -> list[ReportItemOut]:
    """Archived rows (older) first, then live rows, each in append order."""
    target = normalize_day_marker(day)
    # Archived markers are canonical; live rows may carry hand-edited spellings
    rows = list(archive.list_by_day(target)) if archive is not None else []
    rows += log.list_all()

    items = [to_report_item(r) for r in rows if same_day(r.day_marker, target)]
    logger.info(f"[REPORT] {target}: {len(items)} rows")
    return items
