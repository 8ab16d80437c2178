"""
Tests for slot generation.

Covers the pure slot planner (break handling, buffers, block overlap) and the
transactional generate/regenerate operations.
"""

import logging
from datetime import datetime, time, timedelta

import pytest

from clinic_slots.db.models.schedule import Schedule
from clinic_slots.db.models.slot import Slot
from clinic_slots.db.models.slot_configuration import SlotConfiguration
from clinic_slots.scheduling.blocks import create_block
from clinic_slots.scheduling.booking import book_slot
from clinic_slots.scheduling.errors import InvalidState, NotFound, PermissionDenied
from clinic_slots.scheduling.generator import (
    build_slot_plan,
    generate_slots_for_schedule,
    preview_slots,
    regenerate_slots_for_schedule,
)
from clinic_slots.scheduling.status import SlotStatus

from conftest import WORKDAY


def _times(plan):
    return [(p.start_time.strftime("%H:%M"), p.end_time.strftime("%H:%M")) for p in plan]


# =============================================================================
# build_slot_plan
# =============================================================================

class TestBuildSlotPlan:

    def test_plain_morning_gives_six_half_hour_slots(self):
        plan = build_slot_plan(WORKDAY, time(9), time(12), None, None, 30)

        assert _times(plan) == [
            ("09:00", "09:30"), ("09:30", "10:00"), ("10:00", "10:30"),
            ("10:30", "11:00"), ("11:00", "11:30"), ("11:30", "12:00"),
        ]
        assert not any(p.blocked for p in plan)

    def test_break_is_skipped(self):
        plan = build_slot_plan(WORKDAY, time(9), time(12), time(10), time(10, 30), 30)

        assert _times(plan) == [
            ("09:00", "09:30"), ("09:30", "10:00"),
            ("10:30", "11:00"), ("11:00", "11:30"), ("11:30", "12:00"),
        ]
        assert not any(time(10) <= p.start_time < time(10, 30) for p in plan)

    def test_slot_running_into_break_is_not_emitted(self):
        plan = build_slot_plan(WORKDAY, time(9), time(12), time(10), time(10, 30), 45)

        assert _times(plan) == [("09:00", "09:45"), ("10:30", "11:15"), ("11:15", "12:00")]

    def test_overlapping_block_marks_slots_blocked(self):
        plan = build_slot_plan(WORKDAY, time(9), time(12), None, None, 30, blocks=[(time(9, 15), time(9, 45))])

        assert [p.blocked for p in plan] == [True, True, False, False, False, False]

    def test_touching_block_does_not_overlap(self):
        plan = build_slot_plan(WORKDAY, time(9), time(12), None, None, 30, blocks=[(time(9, 30), time(10))])

        assert [p.blocked for p in plan] == [False, True, False, False, False, False]

    def test_buffer_is_dead_time(self):
        plan = build_slot_plan(WORKDAY, time(9), time(12), None, None, 30, buffer_minutes=10)

        assert _times(plan) == [
            ("09:00", "09:30"), ("09:40", "10:10"), ("10:20", "10:50"), ("11:00", "11:30"),
        ]

    def test_leftover_shorter_than_a_slot_is_dropped(self):
        plan = build_slot_plan(WORKDAY, time(9), time(10, 45), None, None, 30)

        assert _times(plan)[-1] == ("10:00", "10:30")
        assert len(plan) == 3

    def test_late_shift_does_not_wrap_past_midnight(self):
        plan = build_slot_plan(WORKDAY, time(22), time(23, 59), None, None, 60)

        assert _times(plan) == [("22:00", "23:00")]

    def test_zero_duration_is_rejected(self):
        with pytest.raises(InvalidState):
            build_slot_plan(WORKDAY, time(9), time(12), None, None, 0)

    @pytest.mark.parametrize("duration,buffer", [(15, 0), (20, 5), (25, 10), (40, 0), (50, 15)])
    def test_slots_never_overlap_and_stay_inside_window(self, duration, buffer):
        start, end = time(8), time(17, 10)
        break_start, break_end = time(12, 5), time(13, 20)

        plan = build_slot_plan(WORKDAY, start, end, break_start, break_end, duration, buffer)

        assert plan
        for current, following in zip(plan, plan[1:]):
            assert current.end_time <= following.start_time
        for p in plan:
            assert start <= p.start_time and p.end_time <= end
            assert p.end_time <= break_start or p.start_time >= break_end
            length = datetime.combine(WORKDAY, p.end_time) - datetime.combine(WORKDAY, p.start_time)
            assert length == timedelta(minutes=duration)


# =============================================================================
# generate_slots_for_schedule
# =============================================================================

class TestGenerateSlots:

    def test_generates_and_marks_schedule(self, db, admin, make_schedule, make_config):
        make_config()
        schedule = make_schedule()

        slots = generate_slots_for_schedule(db, schedule.id, admin)

        assert len(slots) == 6
        assert all(s.status == SlotStatus.AVAILABLE for s in slots)
        assert all(s.max_capacity == 1 and s.current_bookings == 0 for s in slots)
        db.refresh(schedule)
        assert schedule.slots_generated is True

    def test_second_generation_fails(self, db, admin, make_schedule):
        schedule = make_schedule()
        generate_slots_for_schedule(db, schedule.id, admin)

        with pytest.raises(InvalidState):
            generate_slots_for_schedule(db, schedule.id, admin)
        assert db.query(Slot).filter(Slot.schedule_id == schedule.id).count() == 6

    def test_missing_configuration_creates_one_default(self, db, admin, make_schedule):
        first = make_schedule()
        second = make_schedule(date=WORKDAY + timedelta(days=1))

        generate_slots_for_schedule(db, first.id, admin)
        generate_slots_for_schedule(db, second.id, admin)

        configs = db.query(SlotConfiguration).filter(SlotConfiguration.staff_id == 1).all()
        assert len(configs) == 1
        config = configs[0]
        assert (config.slot_duration_minutes, config.buffer_time_minutes,
                config.max_patients_per_slot, config.advance_booking_days) == (30, 0, 1, 30)

    def test_uses_latest_active_configuration(self, db, admin, make_schedule, make_config):
        make_config(slot_duration_minutes=60)
        make_config(slot_duration_minutes=20, max_patients_per_slot=3)
        schedule = make_schedule()

        slots = generate_slots_for_schedule(db, schedule.id, admin)

        assert len(slots) == 9
        assert all(s.max_capacity == 3 for s in slots)

    def test_block_created_before_generation(self, db, admin, make_schedule):
        create_block(db, {
            "staff_id": 1, "date": WORKDAY,
            "start_time": time(9, 15), "end_time": time(9, 45), "reason": "Meeting",
        }, admin)
        schedule = make_schedule()

        slots = generate_slots_for_schedule(db, schedule.id, admin)

        assert [s.status for s in slots] == ["Blocked", "Blocked"] + ["Available"] * 4

    def test_unknown_schedule(self, db, admin):
        with pytest.raises(NotFound):
            generate_slots_for_schedule(db, 999, admin)

    def test_patient_cannot_generate(self, db, patient, make_schedule):
        schedule = make_schedule()

        with pytest.raises(PermissionDenied):
            generate_slots_for_schedule(db, schedule.id, patient)

    def test_racing_generation_only_one_wins(self, session_factory, admin, make_schedule, caplog):
        schedule_id = make_schedule().id
        first, second = session_factory(), session_factory()
        try:
            # second session holds a stale view of the unflagged schedule
            held = second.get(Schedule, schedule_id)
            assert held.slots_generated is False

            generate_slots_for_schedule(first, schedule_id, admin)

            with caplog.at_level(logging.WARNING, logger="clinic_slots.scheduling.transactions"):
                with pytest.raises(InvalidState):
                    generate_slots_for_schedule(second, schedule_id, admin)

            assert any("Concurrent update" in r.getMessage() for r in caplog.records)
            assert held.slots_generated is True
            assert first.query(Slot).filter(Slot.schedule_id == schedule_id).count() == 6
        finally:
            first.close()
            second.close()

    def test_preview_does_not_persist(self, db, admin, make_schedule):
        schedule = make_schedule(break_start=time(10), break_end=time(10, 30))

        plan = preview_slots(db, schedule.id, admin)

        assert len(plan) == 5
        assert db.query(Slot).count() == 0
        assert db.query(SlotConfiguration).count() == 0


class TestRegenerateSlots:

    def test_booked_slots_are_frozen(self, db, admin, make_schedule, make_config):
        make_config()
        schedule = make_schedule()
        slots = generate_slots_for_schedule(db, schedule.id, admin)
        booked_id = slots[1].id
        book_slot(db, booked_id, admin)

        # new layout: hourly slots would overlap the booked 09:30-10:00 slot
        make_config(slot_duration_minutes=60)
        regenerated = regenerate_slots_for_schedule(db, schedule.id, admin)

        assert _times(regenerated) == [("10:00", "11:00"), ("11:00", "12:00")]
        remaining = db.query(Slot).filter(Slot.schedule_id == schedule.id).order_by(Slot.start_time).all()
        assert [s.id for s in remaining][0] == booked_id
        assert remaining[0].current_bookings == 1
        assert len(remaining) == 3
        db.refresh(schedule)
        assert schedule.slots_generated is True

    def test_regenerate_without_prior_generation(self, db, admin, make_schedule):
        schedule = make_schedule()

        slots = regenerate_slots_for_schedule(db, schedule.id, admin)

        assert len(slots) == 6
