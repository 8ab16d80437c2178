# clinic_slots/scheduling/errors.py
"""Typed failures raised by the scheduling engine; the HTTP layer maps them to responses."""


class SchedulingError(Exception):
    status_code = 400
    code = "scheduling_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(SchedulingError):
    status_code = 404
    code = "not_found"


class InvalidState(SchedulingError):
    status_code = 400
    code = "invalid_state"


class CapacityExceeded(SchedulingError):
    status_code = 409
    code = "capacity_exceeded"


class ConcurrencyConflict(SchedulingError):
    status_code = 409
    code = "concurrency_conflict"


class PermissionDenied(SchedulingError):
    status_code = 403
    code = "permission_denied"
