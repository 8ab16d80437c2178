# clinic_slots/scheduling/generator.py
"""
Slot Generation Service

Turns a Schedule plus the staff member's SlotConfiguration into persisted
Slots, marking slots that overlap an active Block for the same day.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from clinic_slots.core.config import DEFAULT_BUFFER_TIME_MINUTES, DEFAULT_SLOT_DURATION_MINUTES
from clinic_slots.db.models.schedule import Schedule
from clinic_slots.db.models.slot import Slot
from clinic_slots.scheduling.coverage import active_blocks_on
from clinic_slots.scheduling.configurations import (
    get_active_configuration,
    get_or_create_default_configuration,
)
from clinic_slots.scheduling.errors import InvalidState
from clinic_slots.scheduling.permissions import Actor, Permission
from clinic_slots.scheduling.schedules import get_schedule
from clinic_slots.scheduling.status import derive_status, overlaps
from clinic_slots.scheduling.transactions import run_in_transaction

logger = logging.getLogger(__name__)


class SlotPlan(NamedTuple):
    start_time: time
    end_time: time
    blocked: bool


def build_slot_plan(
    slot_date: date,
    start_time: time,
    end_time: time,
    break_start: Optional[time],
    break_end: Optional[time],
    duration_minutes: int,
    buffer_minutes: int = 0,
    blocks: Iterable[Tuple[time, time]] = (),
) -> List[SlotPlan]:
    """
    Lay out slots across [start_time, end_time).

    Algorithm:
        1. A cursor inside the break jumps to the break end.
        2. A slot that would not fit before end_time ends the day; the
           leftover shorter than one slot is dropped.
        3. A slot that would run into the break is not emitted; the cursor
           jumps to the break end instead.
        4. The slot is blocked when any block overlaps it (open intervals).
        5. The cursor advances by duration plus buffer.
    """
    if duration_minutes < 1:
        raise InvalidState("Slot duration must be at least one minute")
    if buffer_minutes < 0:
        raise InvalidState("Buffer time cannot be negative")

    has_break = break_start is not None and break_end is not None and break_start < break_end
    blocks = list(blocks)
    day_end = datetime.combine(slot_date, end_time)
    step = timedelta(minutes=duration_minutes + buffer_minutes)
    length = timedelta(minutes=duration_minutes)

    plan = []
    cursor = datetime.combine(slot_date, start_time)
    while True:
        if has_break and break_start <= cursor.time() < break_end and cursor.date() == slot_date:
            cursor = datetime.combine(slot_date, break_end)
            continue

        slot_end = cursor + length
        if slot_end > day_end:
            break

        if has_break and cursor.time() < break_start and slot_end > datetime.combine(slot_date, break_start):
            cursor = datetime.combine(slot_date, break_end)
            continue

        start, end = cursor.time(), slot_end.time()
        blocked = any(overlaps(start, end, b_start, b_end) for b_start, b_end in blocks)
        plan.append(SlotPlan(start, end, blocked))

        cursor += step

    return plan


def _plan_for(schedule: Schedule, duration: int, buffer: int, blocks) -> List[SlotPlan]:
    return build_slot_plan(
        schedule.date,
        schedule.start_time,
        schedule.end_time,
        schedule.break_start,
        schedule.break_end,
        duration,
        buffer,
        [(b.start_time, b.end_time) for b in blocks],
    )


def _create_slots(db: Session, schedule: Schedule, frozen: Sequence[Slot] = ()) -> List[Slot]:
    config = get_or_create_default_configuration(db, schedule.staff_id)
    blocks = active_blocks_on(db, schedule.staff_id, schedule.date)
    plan = _plan_for(schedule, config.slot_duration_minutes, config.buffer_time_minutes, blocks)

    slots = []
    for entry in plan:
        # booked slots from an earlier generation keep their place
        if any(overlaps(entry.start_time, entry.end_time, f.start_time, f.end_time) for f in frozen):
            continue
        slots.append(Slot(
            schedule_id=schedule.id,
            staff_id=schedule.staff_id,
            date=schedule.date,
            start_time=entry.start_time,
            end_time=entry.end_time,
            status=derive_status(0, config.max_patients_per_slot, entry.blocked).value,
            max_capacity=config.max_patients_per_slot,
            current_bookings=0,
        ))

    db.add_all(slots)
    schedule.slots_generated = True
    db.flush()
    return slots


def generate_slots_for_schedule(db: Session, schedule_id: int, actor: Actor) -> List[Slot]:
    """Generate slots once per schedule; a second call fails with InvalidState."""
    actor.require(Permission.GENERATE_SLOTS, "generate appointment slots")

    def _generate():
        schedule = get_schedule(db, schedule_id)
        if schedule.slots_generated:
            raise InvalidState(f"Slots have already been generated for schedule {schedule_id}")
        return _create_slots(db, schedule)

    slots = run_in_transaction(db, _generate, f"slot generation for schedule {schedule_id}")
    logger.info("Generated %d slots for schedule %s", len(slots), schedule_id)
    return slots


def regenerate_slots_for_schedule(db: Session, schedule_id: int, actor: Actor) -> List[Slot]:
    """
    Drop the schedule's unbooked slots and generate again.
    Slots holding bookings are frozen: they stay, and new slots overlapping them are skipped.
    """
    actor.require(Permission.GENERATE_SLOTS, "regenerate appointment slots")

    def _regenerate():
        schedule = get_schedule(db, schedule_id)
        existing = db.query(Slot).filter(Slot.schedule_id == schedule_id).all()
        frozen = [s for s in existing if s.current_bookings > 0]
        for slot in existing:
            if slot.current_bookings == 0:
                db.delete(slot)
        schedule.slots_generated = False
        db.flush()
        return frozen, _create_slots(db, schedule, frozen)

    frozen, slots = run_in_transaction(db, _regenerate, f"slot regeneration for schedule {schedule_id}")
    logger.info(
        "Regenerated %d slots for schedule %s (%d booked slots kept)",
        len(slots), schedule_id, len(frozen),
    )
    return slots


def preview_slots(db: Session, schedule_id: int, actor: Actor) -> List[SlotPlan]:
    """Plan the schedule's slots without persisting anything."""
    actor.require(Permission.VIEW_SLOTS, "preview appointment slots")
    schedule = get_schedule(db, schedule_id)
    config = get_active_configuration(db, schedule.staff_id)
    if config is not None:
        duration, buffer = config.slot_duration_minutes, config.buffer_time_minutes
    else:
        duration, buffer = DEFAULT_SLOT_DURATION_MINUTES, DEFAULT_BUFFER_TIME_MINUTES
    return _plan_for(schedule, duration, buffer, active_blocks_on(db, schedule.staff_id, schedule.date))

