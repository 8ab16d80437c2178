# clinic_slots/scheduling/leaves.py
"""
Leave workflow as it touches scheduling.

Approving a leave blocks every day of its range (one whole-day block per
date, linked through leave_id), marks the staff member's schedules in the
range On-Leave and cancels their open appointments, releasing the slot
bookings. Cancelling or re-opening an approved leave undoes the blocks and
the schedule status; cancelled appointments stay cancelled.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from clinic_slots.db.models.appointment import Appointment
from clinic_slots.db.models.block import Block
from clinic_slots.db.models.leave import Leave
from clinic_slots.db.models.schedule import Schedule
from clinic_slots.scheduling.blocks import apply_block, retract_block
from clinic_slots.scheduling.booking import release_booking
from clinic_slots.scheduling.errors import InvalidState, NotFound
from clinic_slots.scheduling.permissions import Actor, Permission
from clinic_slots.scheduling.status import (
    FINAL_APPOINTMENT_STATUSES,
    AppointmentStatus,
    BlockReason,
    LeaveStatus,
    LeaveType,
    ScheduleStatus,
)
from clinic_slots.scheduling.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def _leave_marker(leave: Leave) -> str:
    return f"[LEAVE] {leave.leave_type}"


def _days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def get_leave(db: Session, leave_id: int) -> Leave:
    leave = db.get(Leave, leave_id)
    if leave is None:
        raise NotFound(f"Leave {leave_id} not found")
    return leave


def list_leaves(db: Session, staff_id: Optional[int] = None, status: Optional[LeaveStatus] = None) -> List[Leave]:
    q = db.query(Leave)
    if staff_id is not None:
        q = q.filter(Leave.staff_id == staff_id)
    if status is not None:
        q = q.filter(Leave.status == LeaveStatus(status).value)
    return q.order_by(Leave.start_date.desc(), Leave.id.desc()).all()


def create_leave_request(db: Session, data: dict, actor: Actor, today: Optional[date] = None) -> Leave:
    actor.require(Permission.REQUEST_LEAVE, "create leave requests")
    today = today or date.today()

    if data["start_date"] < today:
        raise InvalidState("Cannot request leave for past dates")
    if data["end_date"] < data["start_date"]:
        raise InvalidState("End date must be on or after start date")
    try:
        data = {**data, "leave_type": LeaveType(data["leave_type"]).value}
    except ValueError:
        raise InvalidState(f"Unknown leave type '{data['leave_type']}'") from None

    def _create():
        overlapping = db.query(Leave).filter(
            Leave.staff_id == data["staff_id"],
            Leave.status.in_([LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value]),
            Leave.start_date <= data["end_date"],
            Leave.end_date >= data["start_date"],
        ).first()
        if overlapping:
            raise InvalidState(f"Staff member already has an overlapping leave request (id={overlapping.id})")
        leave = Leave(**data, status=LeaveStatus.PENDING.value)
        db.add(leave)
        db.flush()
        return leave

    leave = run_in_transaction(db, _create, "create leave request")
    logger.info("Leave %s requested for staff %s (%s..%s)", leave.id, leave.staff_id, leave.start_date, leave.end_date)
    return leave


def _schedules_in_range(db: Session, leave: Leave) -> List[Schedule]:
    return db.query(Schedule).filter(
        Schedule.staff_id == leave.staff_id,
        Schedule.date >= leave.start_date,
        Schedule.date <= leave.end_date,
    ).all()


def _cancel_appointments(db: Session, leave: Leave) -> int:
    ids = [row.id for row in db.query(Appointment.id).filter(
        Appointment.staff_id == leave.staff_id,
        Appointment.appointment_date >= leave.start_date,
        Appointment.appointment_date <= leave.end_date,
        Appointment.status.notin_(FINAL_APPOINTMENT_STATUSES),
    ).all()]

    note = f"[SYSTEM] Staff on {leave.leave_type} leave"
    cancelled = 0
    for appointment_id in ids:
        def _cancel(appointment_id=appointment_id):
            appointment = db.get(Appointment, appointment_id)
            # cancelled or completed since the id list was read
            if appointment is None or appointment.status in FINAL_APPOINTMENT_STATUSES:
                return False
            appointment.status = AppointmentStatus.CANCELLED.value
            appointment.notes = f"{appointment.notes}\n{note}" if appointment.notes else note
            if appointment.slot_id is not None:
                release_booking(db, appointment.slot_id)
            db.flush()
            return True

        if run_in_transaction(db, _cancel, f"leave cancellation of appointment {appointment_id}"):
            cancelled += 1
    return cancelled


def approve_leave(db: Session, leave_id: int, actor: Actor, notes: Optional[str] = None) -> Leave:
    actor.require(Permission.REVIEW_LEAVE, "approve leave")

    def _approve():
        leave = get_leave(db, leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise InvalidState(f"Leave is already {leave.status}")
        leave.status = LeaveStatus.APPROVED.value
        leave.approved_by = actor.label
        leave.approved_at = datetime.now(timezone.utc)
        leave.approval_notes = notes

        blocks = [
            Block(
                staff_id=leave.staff_id,
                date=day,
                start_time=time.min,
                end_time=time.max,
                reason=BlockReason.LEAVE.value,
                notes=f"{leave.leave_type} leave",
                is_active=True,
                created_by=actor.label,
                leave_id=leave.id,
            )
            for day in _days(leave.start_date, leave.end_date)
        ]
        db.add_all(blocks)

        marker = _leave_marker(leave)
        for schedule in _schedules_in_range(db, leave):
            schedule.status = ScheduleStatus.ON_LEAVE.value
            schedule.notes = f"{schedule.notes} {marker}".strip() if schedule.notes else marker
        db.flush()
        return leave, blocks

    leave, blocks = run_in_transaction(db, _approve, f"approval of leave {leave_id}")
    for block in blocks:
        apply_block(db, block)
    cancelled = _cancel_appointments(db, leave)
    logger.info(
        "Leave %s approved: %d day block(s), %d appointment(s) cancelled",
        leave_id, len(blocks), cancelled,
    )
    return leave


def _rollback_effects(db: Session, leave: Leave) -> List[Block]:
    """Deactivate the leave's blocks and lift On-Leave from its schedules. Caller commits."""
    blocks = db.query(Block).filter(Block.leave_id == leave.id, Block.is_active == True).all()  # noqa: E712
    for block in blocks:
        block.is_active = False

    marker = _leave_marker(leave)
    for schedule in _schedules_in_range(db, leave):
        if schedule.status == ScheduleStatus.ON_LEAVE:
            schedule.status = ScheduleStatus.SCHEDULED.value
        if schedule.notes:
            schedule.notes = schedule.notes.replace(marker, "").strip() or None
    return blocks


def reject_leave(db: Session, leave_id: int, reason: str, actor: Actor) -> Leave:
    actor.require(Permission.REVIEW_LEAVE, "reject leave")

    def _reject():
        leave = get_leave(db, leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise InvalidState(f"Leave is already {leave.status}")
        leave.status = LeaveStatus.REJECTED.value
        leave.approved_by = actor.label
        leave.approved_at = datetime.now(timezone.utc)
        leave.rejection_reason = reason
        return leave

    leave = run_in_transaction(db, _reject, f"rejection of leave {leave_id}")
    logger.info("Leave %s rejected", leave_id)
    return leave


def cancel_leave(db: Session, leave_id: int, actor: Actor) -> Leave:
    actor.require(Permission.REQUEST_LEAVE, "cancel leave")

    def _cancel():
        leave = get_leave(db, leave_id)
        if leave.status == LeaveStatus.CANCELLED:
            raise InvalidState("Leave is already Cancelled")
        if leave.status == LeaveStatus.APPROVED:
            actor.require(Permission.REVIEW_LEAVE, "cancel approved leave")
        blocks = _rollback_effects(db, leave) if leave.status == LeaveStatus.APPROVED else []
        leave.status = LeaveStatus.CANCELLED.value
        leave.cancelled_at = datetime.now(timezone.utc)
        db.flush()
        return leave, blocks

    leave, blocks = run_in_transaction(db, _cancel, f"cancellation of leave {leave_id}")
    for block in blocks:
        retract_block(db, block)
    logger.info("Leave %s cancelled (%d block(s) retracted)", leave_id, len(blocks))
    return leave


def return_leave_to_pending(db: Session, leave_id: int, actor: Actor) -> Leave:
    actor.require(Permission.REVIEW_LEAVE, "return leave to pending")

    def _reopen():
        leave = get_leave(db, leave_id)
        if leave.status == LeaveStatus.PENDING:
            raise InvalidState("Leave is already pending")
        if leave.status == LeaveStatus.CANCELLED:
            raise InvalidState("Cannot return cancelled leave to pending")
        blocks = _rollback_effects(db, leave) if leave.status == LeaveStatus.APPROVED else []
        leave.status = LeaveStatus.PENDING.value
        leave.approved_by = None
        leave.approved_at = None
        leave.approval_notes = None
        leave.rejection_reason = None
        db.flush()
        return leave, blocks

    leave, blocks = run_in_transaction(db, _reopen, f"reopening of leave {leave_id}")
    for block in blocks:
        retract_block(db, block)
    logger.info("Leave %s returned to pending", leave_id)
    return leave
