"""
Live presence log (daily report source).
One row per entry/exit pair. Entry appends a row; the matching exit fills
exit_time on the same row. Member attributes are copied at write time.
"""

from sqlalchemy import Boolean, Column, Integer, String, Date, DateTime
from app.database import Base


class PresenceColumns:
    """Columns shared by the live log and its archive snapshots."""

    email = Column(String(255), nullable=False, index=True)
    name = Column(String(100))
    entry_time = Column(DateTime)             # None on exit-only rows
    exit_time = Column(DateTime)              # None while on the mountain
    member_type = Column(String(50))
    area = Column(String(50))
    jhf_no = Column(String(50))
    expiry = Column(Date)
    equipment = Column(String(100))
    color = Column(String(50))
    day_marker = Column(String(10), nullable=False, index=True)   # YYYY/MM/DD
    flight_count = Column(Integer)            # set on exit
    expired = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime)


class PresenceRecord(PresenceColumns, Base):
    __tablename__ = "presence_log"

    id = Column(Integer, primary_key=True, autoincrement=True)

    @property
    def is_open(self) -> bool:
        return self.entry_time is not None and self.exit_time is None

    def __repr__(self):
        return f"<PresenceRecord {self.id} email={self.email} day={self.day_marker}>"
