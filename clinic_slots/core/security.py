# clinic_slots/core/security.py
from typing import Optional

from fastapi import Header, HTTPException

from clinic_slots.scheduling.permissions import Actor, Role


def get_current_actor(
    x_actor_role: str = Header("patient", description="admin / staff / patient / system"),
    x_actor_id: Optional[str] = Header(None),
) -> Actor:
    """
    Build the explicit Actor passed into every scheduling operation.
    Authentication happens upstream; this only carries the verified role along.
    """
    try:
        role = Role(x_actor_role.lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown actor role '{x_actor_role}'") from None
    return Actor(role=role, user_id=x_actor_id)
