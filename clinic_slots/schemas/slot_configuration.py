# clinic_slots/schemas/slot_configuration.py
from pydantic import BaseModel, Field, conint
from typing import Optional
from datetime import datetime


class SlotConfigurationCreate(BaseModel):
    staff_id: int
    slot_duration_minutes: conint(ge=1, le=24 * 60) = Field(30, description="Length of each slot")
    buffer_time_minutes: conint(ge=0) = Field(0, description="Dead time between slots")
    max_patients_per_slot: conint(ge=1) = 1
    advance_booking_days: conint(ge=0) = 30
    is_active: bool = True


class SlotConfigurationUpdate(BaseModel):
    slot_duration_minutes: Optional[conint(ge=1, le=24 * 60)] = None
    buffer_time_minutes: Optional[conint(ge=0)] = None
    max_patients_per_slot: Optional[conint(ge=1)] = None
    advance_booking_days: Optional[conint(ge=0)] = None
    is_active: Optional[bool] = None


class SlotConfigurationResponse(BaseModel):
    id: int
    staff_id: int
    slot_duration_minutes: int
    buffer_time_minutes: int
    max_patients_per_slot: int
    advance_booking_days: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
