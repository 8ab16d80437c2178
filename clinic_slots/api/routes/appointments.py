# clinic_slots/api/routes/appointments.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from clinic_slots.db.base import get_db
from clinic_slots.core.security import get_current_actor
from clinic_slots.scheduling import appointments
from clinic_slots.scheduling.permissions import Actor
from clinic_slots.schemas.appointment import AppointmentCancel, AppointmentCreate, AppointmentResponse

router = APIRouter(prefix="/appointments", tags=["appointments"])


# Books the slot first; the appointment is only saved when the booking went through
@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.create_appointment(db, payload.model_dump(), actor)


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    staff_id: Optional[int] = Query(None),
    slot_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    return appointments.list_appointments(db, staff_id, slot_id)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    return appointments.get_appointment(db, appointment_id)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    payload: Optional[AppointmentCancel] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return appointments.cancel_appointment(db, appointment_id, actor, reason=payload.reason if payload else None)
