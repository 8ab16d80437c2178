# clinic_slots/db/models/slot_configuration.py
from sqlalchemy import Column, Integer, Boolean, DateTime, CheckConstraint
from sqlalchemy.sql import func

from clinic_slots.db.base import Base


class SlotConfiguration(Base):
    """
    Per-staff parameters for decomposing a schedule into slots.
    Read only at generation time; editing it does not touch existing slots.
    """
    __tablename__ = "slot_configurations"
    __table_args__ = (
        CheckConstraint("slot_duration_minutes >= 1", name="ck_config_duration"),
        CheckConstraint("buffer_time_minutes >= 0", name="ck_config_buffer"),
        CheckConstraint("max_patients_per_slot >= 1", name="ck_config_capacity"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, nullable=False, index=True)

    slot_duration_minutes = Column(Integer, nullable=False, default=30)
    buffer_time_minutes = Column(Integer, nullable=False, default=0)
    max_patients_per_slot = Column(Integer, nullable=False, default=1)
    advance_booking_days = Column(Integer, nullable=False, default=30)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
