# clinic_slots/scheduling/coverage.py
from datetime import date, time
from typing import List, Optional

from sqlalchemy.orm import Session

from clinic_slots.db.models.block import Block
from clinic_slots.db.models.slot import Slot
from clinic_slots.scheduling.status import SlotStatus, derive_status


def active_blocks_on(db: Session, staff_id: int, on_date: date, exclude_id: Optional[int] = None) -> List[Block]:
    q = db.query(Block).filter(
        Block.staff_id == staff_id,
        Block.date == on_date,
        Block.is_active == True,  # noqa: E712
    )
    if exclude_id is not None:
        q = q.filter(Block.id != exclude_id)
    return q.order_by(Block.start_time).all()


def is_covered_by_block(db: Session, staff_id: int, on_date: date, start_time: time, end_time: time) -> bool:
    """True when an active block for the staff member overlaps [start_time, end_time)."""
    return db.query(
        db.query(Block).filter(
            Block.staff_id == staff_id,
            Block.date == on_date,
            Block.is_active == True,  # noqa: E712
            Block.start_time < end_time,
            Block.end_time > start_time,
        ).exists()
    ).scalar()


def refresh_status(db: Session, slot: Slot) -> bool:
    """Recompute a slot's cached status; returns whether it changed. Cancelled slots are left alone."""
    if slot.status == SlotStatus.CANCELLED:
        return False
    blocked = is_covered_by_block(db, slot.staff_id, slot.date, slot.start_time, slot.end_time)
    status = derive_status(slot.current_bookings, slot.max_capacity, blocked).value
    if slot.status == status:
        return False
    slot.status = status
    return True
