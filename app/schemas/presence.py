# app/schemas/presence.py
from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional

Action = Literal["entry", "exit"]


class ScanRequest(BaseModel):
    """POST body sent by the scanner app after reading a member's QR code."""

    email: str
    action: Optional[Action] = None          # None = let the server decide
    flight_count: Optional[int] = Field(default=None, alias="flightCount", ge=0)

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v

    class Config:
        populate_by_name = True


class MemberStatusOut(BaseModel):
    name: str
    member_type: str = Field(alias="memberType")
    insurance_expiry: str = Field(alias="insuranceExpiry")
    equipment: str
    color: str
    last_entry: str = Field(alias="lastEntry")
    last_exit: str = Field(alias="lastExit")
    next_action: Action = Field(alias="nextAction")

    class Config:
        populate_by_name = True


class ScanResultOut(BaseModel):
    success: bool = True
    message: str
    timestamp: str
    action: Action
    log_recorded: bool = Field(alias="logRecorded")

    class Config:
        populate_by_name = True


class ReportItemOut(BaseModel):
    name: str
    entry_time: str = Field(alias="entryTime")
    exit_time: str = Field(alias="exitTime")
    member_type: str = Field(alias="memberType")
    registration_area: str = Field(alias="registrationArea")
    jhf_no: str = Field(alias="jhfNo")
    registration_expiry: str = Field(alias="registrationExpiry")
    equipment: str
    color: str
    flight_count: Optional[int] = Field(default=None, alias="flightCount")
    expired: bool = False

    class Config:
        populate_by_name = True


class RotationOut(BaseModel):
    label: str
    archived: int
    dropped: int
