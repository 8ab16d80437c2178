"""
Tests for the leave workflow and its effect on schedules, slots and appointments.
"""

from datetime import time, timedelta

import pytest

from clinic_slots.db.models.block import Block
from clinic_slots.db.models.slot import Slot
from clinic_slots.scheduling.appointments import create_appointment, get_appointment
from clinic_slots.scheduling.blocks import create_block
from clinic_slots.scheduling.errors import InvalidState, NotFound, PermissionDenied
from clinic_slots.scheduling.generator import generate_slots_for_schedule
from clinic_slots.scheduling.leaves import (
    approve_leave,
    cancel_leave,
    create_leave_request,
    list_leaves,
    reject_leave,
    return_leave_to_pending,
)
from clinic_slots.scheduling.schedules import get_schedule

from conftest import WORKDAY


@pytest.fixture
def request_leave(db, staff):
    def _request(start=WORKDAY, end=WORKDAY + timedelta(days=1), leave_type="Vacation", **extra):
        data = {"staff_id": 1, "leave_type": leave_type, "start_date": start, "end_date": end}
        data.update(extra)
        return create_leave_request(db, data, staff)
    return _request


@pytest.fixture
def booked_day(db, admin, patient, make_schedule, make_config):
    """A generated schedule on WORKDAY with one appointment in the first slot."""
    make_config()
    schedule = make_schedule()
    slots = generate_slots_for_schedule(db, schedule.id, admin)
    appointment = create_appointment(db, {"slot_id": slots[0].id, "patient_name": "Ada Lovelace"}, patient)
    return schedule.id, appointment.id


def _statuses(db):
    return [s.status for s in db.query(Slot).filter(Slot.staff_id == 1).order_by(Slot.date, Slot.start_time)]


class TestLeaveRequest:

    def test_new_request_is_pending(self, db, request_leave):
        leave = request_leave(leave_type="Sick", reason="flu")

        assert leave.status == "Pending"
        assert leave.leave_type == "Sick"

    def test_overlapping_open_request_is_refused(self, db, request_leave):
        request_leave()

        with pytest.raises(InvalidState):
            request_leave(start=WORKDAY + timedelta(days=1), end=WORKDAY + timedelta(days=3))

    def test_rejected_request_does_not_block_a_new_one(self, db, admin, request_leave):
        first = request_leave()
        reject_leave(db, first.id, "understaffed", admin)

        second = request_leave()

        assert second.id != first.id
        assert [l.status for l in list_leaves(db, staff_id=1)] == ["Pending", "Rejected"]

    def test_past_dates_are_refused(self, db, staff):
        with pytest.raises(InvalidState):
            create_leave_request(db, {
                "staff_id": 1, "leave_type": "Vacation",
                "start_date": WORKDAY - timedelta(days=1), "end_date": WORKDAY,
            }, staff, today=WORKDAY)

    def test_reversed_range_is_refused(self, db, request_leave):
        with pytest.raises(InvalidState):
            request_leave(start=WORKDAY + timedelta(days=2), end=WORKDAY)

    def test_unknown_leave_type_is_refused(self, db, request_leave):
        with pytest.raises(InvalidState):
            request_leave(leave_type="Sabbatical")

    def test_patient_cannot_request_leave(self, db, patient):
        with pytest.raises(PermissionDenied):
            create_leave_request(db, {
                "staff_id": 1, "leave_type": "Vacation", "start_date": WORKDAY, "end_date": WORKDAY,
            }, patient)


class TestApproveLeave:

    def test_approval_blocks_days_and_cancels_appointments(self, db, admin, booked_day, request_leave):
        schedule_id, appointment_id = booked_day
        leave = request_leave()

        approved = approve_leave(db, leave.id, admin, notes="enjoy")

        assert approved.status == "Approved"
        assert approved.approved_by == "admin-1"
        assert approved.approval_notes == "enjoy"

        blocks = db.query(Block).filter(Block.leave_id == leave.id).order_by(Block.date).all()
        assert [b.date for b in blocks] == [WORKDAY, WORKDAY + timedelta(days=1)]
        assert all(b.reason == "Leave" and b.is_active for b in blocks)

        schedule = get_schedule(db, schedule_id)
        assert schedule.status == "On-Leave"
        assert "[LEAVE] Vacation" in schedule.notes

        appointment = get_appointment(db, appointment_id)
        assert appointment.status == "Cancelled"
        assert "[SYSTEM] Staff on Vacation leave" in appointment.notes

        # the freed slot is still under the leave block
        assert _statuses(db) == ["Blocked"] * 6
        assert db.query(Slot).filter(Slot.current_bookings > 0).count() == 0

    def test_only_pending_leave_can_be_approved(self, db, admin, request_leave):
        leave = request_leave()
        approve_leave(db, leave.id, admin)

        with pytest.raises(InvalidState):
            approve_leave(db, leave.id, admin)

    def test_staff_cannot_approve(self, db, staff, request_leave):
        leave = request_leave()

        with pytest.raises(PermissionDenied):
            approve_leave(db, leave.id, staff)

    def test_unknown_leave(self, db, admin):
        with pytest.raises(NotFound):
            approve_leave(db, 77, admin)


class TestUndoLeave:

    def test_cancelling_approved_leave_reopens_slots(self, db, admin, staff, booked_day, request_leave):
        schedule_id, appointment_id = booked_day
        leave = request_leave()
        approve_leave(db, leave.id, admin)

        cancelled = cancel_leave(db, leave.id, admin)

        assert cancelled.status == "Cancelled"
        assert cancelled.cancelled_at is not None
        assert db.query(Block).filter(Block.leave_id == leave.id, Block.is_active == True).count() == 0  # noqa: E712
        schedule = get_schedule(db, schedule_id)
        assert schedule.status == "Scheduled"
        assert schedule.notes is None
        assert _statuses(db) == ["Available"] * 6
        # cancelled appointments are not reinstated
        assert get_appointment(db, appointment_id).status == "Cancelled"

    def test_other_blocks_survive_leave_cancellation(self, db, admin, staff, booked_day, request_leave):
        create_block(db, {
            "staff_id": 1, "date": WORKDAY,
            "start_time": time(11), "end_time": time(12), "reason": "Meeting",
        }, admin)
        leave = request_leave()
        approve_leave(db, leave.id, admin)

        cancel_leave(db, leave.id, admin)

        assert _statuses(db) == ["Available"] * 4 + ["Blocked"] * 2

    def test_return_to_pending_undoes_approval(self, db, admin, booked_day, request_leave):
        schedule_id, _ = booked_day
        leave = request_leave()
        approve_leave(db, leave.id, admin)

        reopened = return_leave_to_pending(db, leave.id, admin)

        assert reopened.status == "Pending"
        assert reopened.approved_by is None
        assert get_schedule(db, schedule_id).status == "Scheduled"
        assert _statuses(db) == ["Available"] * 6

        approve_leave(db, leave.id, admin)
        assert _statuses(db) == ["Blocked"] * 6

    def test_staff_cannot_cancel_approved_leave(self, db, admin, staff, request_leave):
        leave = request_leave()
        approve_leave(db, leave.id, admin)

        with pytest.raises(PermissionDenied):
            cancel_leave(db, leave.id, staff)

        db.expire_all()
        assert list_leaves(db, staff_id=1)[0].status == "Approved"
        assert db.query(Block).filter(Block.leave_id == leave.id, Block.is_active == True).count() == 2  # noqa: E712

    def test_cancelled_leave_is_final(self, db, admin, staff, request_leave):
        leave = request_leave()
        cancel_leave(db, leave.id, staff)

        with pytest.raises(InvalidState):
            cancel_leave(db, leave.id, staff)
        with pytest.raises(InvalidState):
            return_leave_to_pending(db, leave.id, admin)

    def test_rejection_records_reason(self, db, admin, request_leave):
        leave = request_leave()

        rejected = reject_leave(db, leave.id, "peak season", admin)

        assert (rejected.status, rejected.rejection_reason) == ("Rejected", "peak season")
        with pytest.raises(InvalidState):
            reject_leave(db, leave.id, "again", admin)
