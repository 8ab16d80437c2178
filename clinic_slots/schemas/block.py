# clinic_slots/schemas/block.py
from pydantic import BaseModel
from typing import Optional
from datetime import time, date, datetime
from datetime import date as date_

from clinic_slots.scheduling.status import BlockReason


class BlockCreate(BaseModel):
    staff_id: int
    date: date
    start_time: time
    end_time: time
    reason: BlockReason = BlockReason.OTHER
    notes: Optional[str] = None


class BlockUpdate(BaseModel):
    date: Optional[date_] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[BlockReason] = None
    notes: Optional[str] = None


class BlockResponse(BaseModel):
    id: int
    staff_id: int
    date: date
    start_time: time
    end_time: time
    reason: str
    notes: Optional[str]
    is_active: bool
    created_by: Optional[str]
    leave_id: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
