# clinic_slots/schemas/appointment.py
from pydantic import BaseModel
from typing import Optional
from datetime import date, time


class AppointmentCreate(BaseModel):
    slot_id: int
    patient_name: str
    reason: Optional[str] = None
    notes: Optional[str] = None


class AppointmentCancel(BaseModel):
    reason: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: int
    staff_id: int
    patient_name: str
    slot_id: Optional[int]
    appointment_date: date
    start_time: time
    duration_minutes: int
    status: str
    reason: Optional[str]
    notes: Optional[str]

    class Config:
        from_attributes = True
