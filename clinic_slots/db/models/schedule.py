# clinic_slots/db/models/schedule.py
from sqlalchemy import Column, Integer, Time, Date, Boolean, DateTime, String, CheckConstraint, UniqueConstraint
from sqlalchemy.sql import func

from clinic_slots.db.base import Base
from clinic_slots.scheduling.status import ScheduleStatus, ShiftType


class Schedule(Base):
    """
    A staff member's working interval for one date, with an optional break.
    Owns the slots generated from it (slots reference schedule_id).
    """
    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_schedule_window"),
        UniqueConstraint("staff_id", "date", "start_time", "end_time", name="uq_schedule_window"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)

    shift_type = Column(String, nullable=False, default=ShiftType.FULL_DAY.value)
    status = Column(String, nullable=False, default=ScheduleStatus.SCHEDULED.value)
    slots_generated = Column(Boolean, nullable=False, default=False)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # optimistic lock: slots_generated check-and-set
    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<Schedule {self.id} staff={self.staff_id} {self.date} {self.start_time}-{self.end_time}>"
