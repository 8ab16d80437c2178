# clinic_slots/db/models/block.py
from sqlalchemy import Column, Integer, Time, Date, ForeignKey, Boolean, DateTime, String, CheckConstraint, Index
from sqlalchemy.sql import func

from clinic_slots.db.base import Base


class Block(Base):
    """
    Ad-hoc exclusion window (meeting, emergency, leave...) for a staff member on a date.
    Soft-deleted through is_active. Blocks created by leave approval carry leave_id.
    """
    __tablename__ = "blocks"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_block_window"),
        Index("ix_blocks_staff_date", "staff_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    reason = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String, nullable=True)
    leave_id = Column(Integer, ForeignKey("leaves.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}
