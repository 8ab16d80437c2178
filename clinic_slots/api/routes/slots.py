# clinic_slots/api/routes/slots.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from clinic_slots.db.base import get_db
from clinic_slots.core.security import get_current_actor
from clinic_slots.scheduling import booking
from clinic_slots.scheduling.permissions import Actor
from clinic_slots.scheduling.status import SlotStatus
from clinic_slots.schemas.slot import BookingResult, SlotCancel, SlotResponse

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("", response_model=List[SlotResponse])
def list_slots(
    staff_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    slot_status: Optional[SlotStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return booking.list_slots(db, staff_id, from_date, to_date, slot_status)


@router.get("/available", response_model=List[SlotResponse])
def list_available_slots(
    staff_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return booking.list_available_slots(db, staff_id, from_date, to_date)


@router.get("/{slot_id}", response_model=SlotResponse)
def get_slot(slot_id: int, db: Session = Depends(get_db)):
    return booking.get_slot(db, slot_id)


@router.post("/{slot_id}/book", response_model=SlotResponse)
def book_slot(slot_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return booking.book_slot(db, slot_id, actor)


@router.post("/{slot_id}/cancel-booking", response_model=BookingResult)
def cancel_slot_booking(slot_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    released = booking.cancel_slot_booking(db, slot_id, actor)
    return BookingResult(success=released, slot_id=slot_id)


@router.post("/{slot_id}/cancel", response_model=SlotResponse)
def cancel_slot(
    slot_id: int,
    payload: Optional[SlotCancel] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return booking.cancel_slot(db, slot_id, actor, notes=payload.notes if payload else None)


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(slot_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    booking.delete_slot(db, slot_id, actor)
