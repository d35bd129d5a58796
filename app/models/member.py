"""
Member directory table.
One row per registered club member, keyed by email (the QR code payload).
last_entry_time / last_exit_time are written only by the toggle engine.
"""

from sqlalchemy import Column, Integer, String, Date, DateTime
from app.database import Base


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    member_type = Column(String(50))      # 会員種別
    area = Column(String(50))             # registration area
    jhf_no = Column(String(50))           # JPA / JHF registration number
    expiry = Column(Date)                 # registration / insurance expiry
    equipment = Column(String(100))       # canopy maker / model
    color = Column(String(50))
    last_entry_time = Column(DateTime)
    last_exit_time = Column(DateTime)

    def __repr__(self):
        return f"<Member {self.id} email={self.email}>"
