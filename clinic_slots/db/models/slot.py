# clinic_slots/db/models/slot.py
from sqlalchemy import Column, Integer, Time, Date, ForeignKey, DateTime, String, CheckConstraint, Index
from sqlalchemy.sql import func

from clinic_slots.db.base import Base
from clinic_slots.scheduling.status import SlotStatus


class Slot(Base):
    """
    A bookable unit of time derived from a Schedule.
    status is a stored projection of (current_bookings, max_capacity, active blocks).
    """
    __tablename__ = "slots"
    __table_args__ = (
        CheckConstraint("current_bookings >= 0", name="ck_slot_bookings_floor"),
        CheckConstraint("current_bookings <= max_capacity", name="ck_slot_bookings_capacity"),
        CheckConstraint("start_time < end_time", name="ck_slot_window"),
        Index("ix_slots_staff_date", "staff_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    staff_id = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    status = Column(String, nullable=False, default=SlotStatus.AVAILABLE.value)
    max_capacity = Column(Integer, nullable=False, default=1)
    current_bookings = Column(Integer, nullable=False, default=0)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # optimistic lock: the slot row is the unit of mutual exclusion
    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return (
            f"<Slot {self.id} {self.date} {self.start_time}-{self.end_time} "
            f"{self.status} {self.current_bookings}/{self.max_capacity}>"
        )
