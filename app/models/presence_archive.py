"""
Dated archive snapshots of the presence log, written by the daily rotation.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base
from app.models.presence_record import PresenceColumns


class PresenceArchive(PresenceColumns, Base):
    __tablename__ = "presence_archive"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_id = Column(Integer)                   # presence_log.id before rotation
    archive_label = Column(String(10), nullable=False, index=True)   # rotation day
    archived_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<PresenceArchive {self.id} label={self.archive_label} email={self.email}>"
