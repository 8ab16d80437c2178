# clinic_slots/schemas/leave.py
from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime

from clinic_slots.scheduling.status import LeaveType


class LeaveCreate(BaseModel):
    staff_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str] = None


class LeaveApprove(BaseModel):
    notes: Optional[str] = None


class LeaveReject(BaseModel):
    reason: str


class LeaveResponse(BaseModel):
    id: int
    staff_id: int
    leave_type: str
    start_date: date
    end_date: date
    reason: Optional[str]
    status: str
    approved_by: Optional[str]
    approved_at: Optional[datetime]
    approval_notes: Optional[str]
    rejection_reason: Optional[str]
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True
