# clinic_slots/scheduling/schedules.py
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from clinic_slots.db.models.schedule import Schedule
from clinic_slots.db.models.slot import Slot
from clinic_slots.scheduling.errors import InvalidState, NotFound
from clinic_slots.scheduling.permissions import Actor, Permission
from clinic_slots.scheduling.status import ScheduleStatus, ShiftType
from clinic_slots.scheduling.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def validate_window(start_time, end_time, break_start=None, break_end=None):
    if start_time >= end_time:
        raise InvalidState("start_time must be before end_time")
    if (break_start is None) != (break_end is None):
        raise InvalidState("break_start and break_end must be given together")
    if break_start is not None:
        if break_start >= break_end:
            raise InvalidState("break_start must be before break_end")
        if break_start < start_time or break_end > end_time:
            raise InvalidState("Break must lie within the working window")


def get_schedule(db: Session, schedule_id: int) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise NotFound(f"Schedule {schedule_id} not found")
    return schedule


def create_schedule(db: Session, data: dict, actor: Actor) -> Schedule:
    actor.require(Permission.MANAGE_SCHEDULES, "create schedules")
    validate_window(data["start_time"], data["end_time"], data.get("break_start"), data.get("break_end"))
    data = {**data, "shift_type": ShiftType(data.get("shift_type") or ShiftType.FULL_DAY).value}

    def _create():
        duplicate = db.query(Schedule).filter(
            Schedule.staff_id == data["staff_id"],
            Schedule.date == data["date"],
            Schedule.start_time == data["start_time"],
            Schedule.end_time == data["end_time"],
        ).first()
        if duplicate:
            raise InvalidState(f"An identical schedule already exists (id={duplicate.id})")
        schedule = Schedule(**data, status=ScheduleStatus.SCHEDULED.value, slots_generated=False)
        db.add(schedule)
        db.flush()
        return schedule

    schedule = run_in_transaction(db, _create, "create schedule")
    logger.info("Schedule %s created for staff %s on %s", schedule.id, schedule.staff_id, schedule.date)
    return schedule


def list_schedules(
    db: Session,
    staff_id: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[Schedule]:
    q = db.query(Schedule)
    if staff_id is not None:
        q = q.filter(Schedule.staff_id == staff_id)
    if from_date is not None:
        q = q.filter(Schedule.date >= from_date)
    if to_date is not None:
        q = q.filter(Schedule.date <= to_date)
    return q.order_by(Schedule.date, Schedule.start_time).all()


def list_schedule_slots(db: Session, schedule_id: int) -> List[Slot]:
    get_schedule(db, schedule_id)
    return (
        db.query(Slot)
        .filter(Slot.schedule_id == schedule_id)
        .order_by(Slot.start_time)
        .all()
    )


def delete_schedule(db: Session, schedule_id: int, actor: Actor) -> None:
    """Delete a schedule and its slots; refused while any of its slots holds bookings."""
    actor.require(Permission.MANAGE_SCHEDULES, "delete schedules")

    def _delete():
        schedule = get_schedule(db, schedule_id)
        slots = db.query(Slot).filter(Slot.schedule_id == schedule_id).all()
        booked = [s for s in slots if s.current_bookings > 0]
        if booked:
            raise InvalidState(
                f"Cannot delete schedule {schedule_id}: {len(booked)} slot(s) have bookings"
            )
        for slot in slots:
            db.delete(slot)
        db.flush()
        db.delete(schedule)

    run_in_transaction(db, _delete, f"delete schedule {schedule_id}")
    logger.info("Schedule %s deleted", schedule_id)
