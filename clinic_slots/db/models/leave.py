# clinic_slots/db/models/leave.py
from sqlalchemy import Column, Integer, Date, DateTime, String, CheckConstraint
from sqlalchemy.sql import func

from clinic_slots.db.base import Base
from clinic_slots.scheduling.status import LeaveStatus


class Leave(Base):
    __tablename__ = "leaves"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_leave_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, nullable=False, index=True)
    leave_type = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String, nullable=True)

    status = Column(String, nullable=False, default=LeaveStatus.PENDING.value)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approval_notes = Column(String, nullable=True)
    rejection_reason = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # optimistic lock: one review decision per pending request
    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}
