# clinic_slots/scheduling/booking.py
"""
Booking Coordinator

Every booking-count change is a versioned read-modify-write of one slot row:
a concurrent writer makes the flush fail, the transaction is re-run from a
fresh read, and the capacity/status checks are applied again.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from clinic_slots.db.models.slot import Slot
from clinic_slots.scheduling.coverage import refresh_status
from clinic_slots.scheduling.errors import CapacityExceeded, InvalidState, NotFound
from clinic_slots.scheduling.permissions import Actor, Permission
from clinic_slots.scheduling.status import SlotStatus
from clinic_slots.scheduling.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def get_slot(db: Session, slot_id: int) -> Slot:
    slot = db.get(Slot, slot_id)
    if slot is None:
        raise NotFound(f"Appointment slot {slot_id} not found")
    return slot


def book_slot(db: Session, slot_id: int, actor: Actor) -> Slot:
    """Take one place in the slot."""
    actor.require(Permission.BOOK_SLOTS, "book appointment slots")

    def _book():
        slot = get_slot(db, slot_id)
        if slot.status != SlotStatus.AVAILABLE:
            raise InvalidState(f"Appointment slot {slot_id} is not available for booking ({slot.status})")
        if slot.current_bookings >= slot.max_capacity:
            raise CapacityExceeded(f"Appointment slot {slot_id} is fully booked")
        slot.current_bookings += 1
        refresh_status(db, slot)
        db.flush()
        return slot

    slot = run_in_transaction(db, _book, f"booking of slot {slot_id}")
    logger.info("Slot %s booked (%s/%s)", slot_id, slot.current_bookings, slot.max_capacity)
    return slot


def release_booking(db: Session, slot_id: int) -> bool:
    """Give back one place inside the caller's transaction; False when there is nothing to release."""
    slot = db.get(Slot, slot_id)
    if slot is None or slot.current_bookings == 0:
        return False
    slot.current_bookings -= 1
    refresh_status(db, slot)
    db.flush()
    return True


def cancel_slot_booking(db: Session, slot_id: int, actor: Actor) -> bool:
    """
    Release one place. Returns False when the slot is missing or holds no bookings.
    A freed slot still under an active block becomes Blocked, not Available.
    """
    actor.require(Permission.BOOK_SLOTS, "cancel appointment slot bookings")
    released = run_in_transaction(
        db, lambda: release_booking(db, slot_id), f"booking cancellation on slot {slot_id}"
    )
    if released:
        logger.info("Booking released on slot %s", slot_id)
    return released


def cancel_slot(db: Session, slot_id: int, actor: Actor, notes: Optional[str] = None) -> Slot:
    """Withdraw a slot permanently. Only slots without bookings can be cancelled."""
    actor.require(Permission.MANAGE_SLOTS, "cancel appointment slots")

    def _cancel():
        slot = get_slot(db, slot_id)
        if slot.current_bookings > 0:
            raise InvalidState(f"Cannot cancel appointment slot {slot_id} with existing bookings")
        slot.status = SlotStatus.CANCELLED.value
        if notes:
            slot.notes = notes
        db.flush()
        return slot

    return run_in_transaction(db, _cancel, f"cancellation of slot {slot_id}")


def delete_slot(db: Session, slot_id: int, actor: Actor) -> None:
    actor.require(Permission.DELETE_SLOTS, "delete appointment slots")

    def _delete():
        slot = get_slot(db, slot_id)
        if slot.current_bookings > 0:
            raise InvalidState(f"Cannot delete appointment slot {slot_id} with existing bookings")
        db.delete(slot)

    run_in_transaction(db, _delete, f"deletion of slot {slot_id}")
    logger.info("Slot %s deleted", slot_id)


def list_slots(
    db: Session,
    staff_id: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    status: Optional[SlotStatus] = None,
) -> List[Slot]:
    q = db.query(Slot)
    if staff_id is not None:
        q = q.filter(Slot.staff_id == staff_id)
    if from_date is not None:
        q = q.filter(Slot.date >= from_date)
    if to_date is not None:
        q = q.filter(Slot.date <= to_date)
    if status is not None:
        q = q.filter(Slot.status == SlotStatus(status).value)
    return q.order_by(Slot.date, Slot.start_time).all()


def list_available_slots(
    db: Session,
    staff_id: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[Slot]:
    q = db.query(Slot).filter(
        Slot.status == SlotStatus.AVAILABLE.value,
        Slot.current_bookings < Slot.max_capacity,
    )
    if staff_id is not None:
        q = q.filter(Slot.staff_id == staff_id)
    if from_date is not None:
        q = q.filter(Slot.date >= from_date)
    if to_date is not None:
        q = q.filter(Slot.date <= to_date)
    return q.order_by(Slot.date, Slot.start_time).all()
