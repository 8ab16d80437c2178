# clinic_slots/schemas/schedule.py
from pydantic import BaseModel
from typing import Optional
from datetime import time, date, datetime

from clinic_slots.scheduling.status import ShiftType


class ScheduleCreate(BaseModel):
    staff_id: int
    date: date
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    shift_type: ShiftType = ShiftType.FULL_DAY
    notes: Optional[str] = None


class ScheduleResponse(BaseModel):
    id: int
    staff_id: int
    date: date
    start_time: time
    end_time: time
    break_start: Optional[time]
    break_end: Optional[time]
    shift_type: str
    status: str
    slots_generated: bool
    notes: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
