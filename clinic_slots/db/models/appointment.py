# clinic_slots/db/models/appointment.py
from sqlalchemy import Column, Integer, Time, Date, ForeignKey, DateTime, String
from sqlalchemy.sql import func

from clinic_slots.db.base import Base
from clinic_slots.scheduling.status import AppointmentStatus


class Appointment(Base):
    """Minimal appointment record; only the fields the slot engine reads or writes."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, nullable=False, index=True)
    patient_name = Column(String, nullable=False)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="SET NULL"), nullable=True, index=True)

    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)

    status = Column(String, nullable=False, default=AppointmentStatus.SCHEDULED.value)
    reason = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # optimistic lock: cancellation releases the slot booking exactly once
    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}
