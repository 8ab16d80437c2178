# clinic_slots/scheduling/permissions.py
"""
Explicit caller capabilities.

Every engine operation takes an Actor and checks the permission it needs,
so the engine never reaches for an ambient request/user context.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from clinic_slots.scheduling.errors import PermissionDenied


class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    PATIENT = "patient"
    SYSTEM = "system"


class Permission(str, Enum):
    VIEW_SLOTS = "view_slots"
    BOOK_SLOTS = "book_slots"
    MANAGE_SCHEDULES = "manage_schedules"
    GENERATE_SLOTS = "generate_slots"
    MANAGE_SLOTS = "manage_slots"
    DELETE_SLOTS = "delete_slots"
    MANAGE_CONFIGURATIONS = "manage_configurations"
    DELETE_CONFIGURATIONS = "delete_configurations"
    MANAGE_BLOCKS = "manage_blocks"
    REQUEST_LEAVE = "request_leave"
    REVIEW_LEAVE = "review_leave"
    MANAGE_APPOINTMENTS = "manage_appointments"


_STAFF_PERMISSIONS = frozenset({
    Permission.VIEW_SLOTS,
    Permission.BOOK_SLOTS,
    Permission.MANAGE_SCHEDULES,
    Permission.GENERATE_SLOTS,
    Permission.MANAGE_SLOTS,
    Permission.MANAGE_CONFIGURATIONS,
    Permission.MANAGE_BLOCKS,
    Permission.REQUEST_LEAVE,
    Permission.MANAGE_APPOINTMENTS,
})

ROLE_PERMISSIONS = {
    Role.ADMIN: frozenset(Permission),
    Role.SYSTEM: frozenset(Permission),
    Role.STAFF: _STAFF_PERMISSIONS,
    Role.PATIENT: frozenset({
        Permission.VIEW_SLOTS,
        Permission.BOOK_SLOTS,
        Permission.MANAGE_APPOINTMENTS,
    }),
}


@dataclass(frozen=True)
class Actor:
    role: Role
    user_id: Optional[str] = None

    def can(self, permission: Permission) -> bool:
        return permission in ROLE_PERMISSIONS.get(self.role, frozenset())

    def require(self, permission: Permission, action: str) -> None:
        if not self.can(permission):
            raise PermissionDenied(f"Role '{self.role.value}' is not allowed to {action}")

    @property
    def label(self) -> str:
        return self.user_id or self.role.value


SYSTEM_ACTOR = Actor(role=Role.SYSTEM, user_id="system")
