# scripts/maintenance/rotate_log.py
"""
Daily presence log rotation: drop stale open duplicates, archive, clear.
Schedule once a day after the flight area closes, e.g.
  55 23 * * *  cd /opt/yamalog && python scripts/maintenance/rotate_log.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import SessionLocal
from app.exceptions import StoreUnavailable
from app.repositories.sql import SqlArchiveStore, SqlPresenceLogStore
from app.services.archive_service import rotate_presence_log


def main():
    db = SessionLocal()
    try:
        result = rotate_presence_log(SqlPresenceLogStore(db), SqlArchiveStore(db))
    except StoreUnavailable as e:
        print(f"❌ Rotation failed: {e}")
        sys.exit(1)
    finally:
        db.close()
    print(f"✅ {result.label}: archived {result.archived} rows, dropped {result.dropped} stale open rows")


if __name__ == "__main__":
    main()
