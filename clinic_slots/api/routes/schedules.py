# clinic_slots/api/routes/schedules.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from clinic_slots.db.base import get_db
from clinic_slots.core.security import get_current_actor
from clinic_slots.scheduling import generator, schedules
from clinic_slots.scheduling.permissions import Actor
from clinic_slots.schemas.schedule import ScheduleCreate, ScheduleResponse
from clinic_slots.schemas.slot import SlotPlanItem, SlotResponse

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(payload: ScheduleCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return schedules.create_schedule(db, payload.model_dump(), actor)


@router.get("", response_model=List[ScheduleResponse])
def list_schedules(
    staff_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return schedules.list_schedules(db, staff_id, from_date, to_date)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(schedule_id: int, db: Session = Depends(get_db)):
    return schedules.get_schedule(db, schedule_id)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(schedule_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    schedules.delete_schedule(db, schedule_id, actor)


# Slot generation


@router.post("/{schedule_id}/slots/generate", response_model=List[SlotResponse], status_code=status.HTTP_201_CREATED)
def generate_slots(schedule_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return generator.generate_slots_for_schedule(db, schedule_id, actor)


@router.post("/{schedule_id}/slots/regenerate", response_model=List[SlotResponse])
def regenerate_slots(schedule_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return generator.regenerate_slots_for_schedule(db, schedule_id, actor)


@router.get("/{schedule_id}/slots/preview", response_model=List[SlotPlanItem])
def preview_slots(schedule_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return [entry._asdict() for entry in generator.preview_slots(db, schedule_id, actor)]


@router.get("/{schedule_id}/slots", response_model=List[SlotResponse])
def list_schedule_slots(schedule_id: int, db: Session = Depends(get_db)):
    return schedules.list_schedule_slots(db, schedule_id)
