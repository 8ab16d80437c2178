# clinic_slots/schemas/slot.py
from pydantic import BaseModel
from typing import Optional
from datetime import time, date


class SlotResponse(BaseModel):
    id: int
    schedule_id: int
    staff_id: int
    date: date
    start_time: time
    end_time: time
    status: str
    max_capacity: int
    current_bookings: int
    notes: Optional[str]

    class Config:
        from_attributes = True


class SlotPlanItem(BaseModel):
    start_time: time
    end_time: time
    blocked: bool


class SlotCancel(BaseModel):
    notes: Optional[str] = None


class BookingResult(BaseModel):
    success: bool
    slot_id: int
