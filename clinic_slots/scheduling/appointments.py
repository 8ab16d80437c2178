# clinic_slots/scheduling/appointments.py
"""Appointment records tied to slots: persisted only once the slot booking succeeded."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from clinic_slots.db.models.appointment import Appointment
from clinic_slots.scheduling.booking import book_slot, cancel_slot_booking, release_booking
from clinic_slots.scheduling.errors import InvalidState, NotFound
from clinic_slots.scheduling.permissions import Actor, Permission
from clinic_slots.scheduling.status import AppointmentStatus
from clinic_slots.scheduling.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound(f"Appointment {appointment_id} not found")
    return appointment


def list_appointments(
    db: Session,
    staff_id: Optional[int] = None,
    slot_id: Optional[int] = None,
) -> List[Appointment]:
    q = db.query(Appointment)
    if staff_id is not None:
        q = q.filter(Appointment.staff_id == staff_id)
    if slot_id is not None:
        q = q.filter(Appointment.slot_id == slot_id)
    return q.order_by(Appointment.appointment_date, Appointment.start_time).all()


def create_appointment(db: Session, data: dict, actor: Actor) -> Appointment:
    actor.require(Permission.MANAGE_APPOINTMENTS, "create appointments")

    slot = book_slot(db, data["slot_id"], actor)
    start = datetime.combine(slot.date, slot.start_time)
    duration = int((datetime.combine(slot.date, slot.end_time) - start).total_seconds() // 60)

    def _create():
        appointment = Appointment(
            staff_id=slot.staff_id,
            slot_id=slot.id,
            patient_name=data["patient_name"],
            appointment_date=slot.date,
            start_time=slot.start_time,
            duration_minutes=duration,
            status=AppointmentStatus.SCHEDULED.value,
            reason=data.get("reason"),
            notes=data.get("notes"),
        )
        db.add(appointment)
        db.flush()
        return appointment

    try:
        appointment = run_in_transaction(db, _create, f"appointment on slot {slot.id}")
    except Exception:
        logger.warning("Appointment on slot %s not saved, releasing the booking", data["slot_id"])
        cancel_slot_booking(db, data["slot_id"], actor)
        raise

    logger.info("Appointment %s created on slot %s", appointment.id, appointment.slot_id)
    return appointment


def cancel_appointment(db: Session, appointment_id: int, actor: Actor, reason: Optional[str] = None) -> Appointment:
    actor.require(Permission.MANAGE_APPOINTMENTS, "cancel appointments")

    def _cancel():
        appointment = get_appointment(db, appointment_id)
        if appointment.status == AppointmentStatus.CANCELLED:
            raise InvalidState(f"Appointment {appointment_id} is already cancelled")
        if appointment.status == AppointmentStatus.COMPLETED:
            raise InvalidState(f"Appointment {appointment_id} is already completed")
        appointment.status = AppointmentStatus.CANCELLED.value
        if reason:
            appointment.notes = f"{appointment.notes}\n{reason}" if appointment.notes else reason
        # status change and release commit together
        if appointment.slot_id is not None:
            release_booking(db, appointment.slot_id)
        db.flush()
        return appointment

    appointment = run_in_transaction(db, _cancel, f"cancellation of appointment {appointment_id}")
    logger.info("Appointment %s cancelled", appointment_id)
    return appointment
