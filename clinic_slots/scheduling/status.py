# clinic_slots/scheduling/status.py
"""
Status vocabularies and the slot status projection.

A slot's stored status is a cache of `derive_status`; every code path that
changes bookings or block coverage recomputes it through that one function.
"""
from datetime import time
from enum import Enum


class SlotStatus(str, Enum):
    AVAILABLE = "Available"
    BOOKED = "Booked"
    BLOCKED = "Blocked"
    CANCELLED = "Cancelled"


class ScheduleStatus(str, Enum):
    SCHEDULED = "Scheduled"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    ON_LEAVE = "On-Leave"


class ShiftType(str, Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"
    NIGHT = "Night"
    FULL_DAY = "Full Day"
    ON_CALL = "On-Call"


class BlockReason(str, Enum):
    MEETING = "Meeting"
    EMERGENCY = "Emergency"
    LEAVE = "Leave"
    PERSONAL = "Personal"
    OTHER = "Other"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


class LeaveType(str, Enum):
    VACATION = "Vacation"
    SICK = "Sick"
    VAB = "VAB"
    PARENTAL = "Parental"
    OTHER = "Other"


class AppointmentStatus(str, Enum):
    SCHEDULED = "Scheduled"
    CONFIRMED = "Confirmed"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"


# appointments in these states are left alone by leave approval
FINAL_APPOINTMENT_STATUSES = (
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.NO_SHOW.value,
)


def overlaps(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Open-interval overlap: touching endpoints do not overlap."""
    return start1 < end2 and end1 > start2


def derive_status(current_bookings: int, max_capacity: int, blocked: bool) -> SlotStatus:
    """
    Project a slot's status from its booking count and block coverage.

    A full slot stays Booked even under a block (its bookings predate or
    survive the block); otherwise any active overlapping block wins.
    Cancelled is terminal and never derived; callers skip cancelled slots.
    """
    if current_bookings >= max_capacity:
        return SlotStatus.BOOKED
    if blocked:
        return SlotStatus.BLOCKED
    return SlotStatus.AVAILABLE
