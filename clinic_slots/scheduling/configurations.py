# clinic_slots/scheduling/configurations.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from clinic_slots.core.config import (
    DEFAULT_ADVANCE_BOOKING_DAYS,
    DEFAULT_BUFFER_TIME_MINUTES,
    DEFAULT_MAX_PATIENTS_PER_SLOT,
    DEFAULT_SLOT_DURATION_MINUTES,
)
from clinic_slots.db.models.slot_configuration import SlotConfiguration
from clinic_slots.scheduling.errors import InvalidState, NotFound
from clinic_slots.scheduling.permissions import Actor, Permission
from clinic_slots.scheduling.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def get_active_configuration(db: Session, staff_id: int) -> Optional[SlotConfiguration]:
    """Latest active configuration for the staff member, or None."""
    return (
        db.query(SlotConfiguration)
        .filter(SlotConfiguration.staff_id == staff_id, SlotConfiguration.is_active == True)  # noqa: E712
        .order_by(SlotConfiguration.created_at.desc(), SlotConfiguration.id.desc())
        .first()
    )


def get_or_create_default_configuration(db: Session, staff_id: int) -> SlotConfiguration:
    """
    Resolve the active configuration, adding the default one when none exists.
    Runs inside the caller's transaction; nothing is committed here.
    """
    config = get_active_configuration(db, staff_id)
    if config is not None:
        return config

    config = SlotConfiguration(
        staff_id=staff_id,
        slot_duration_minutes=DEFAULT_SLOT_DURATION_MINUTES,
        buffer_time_minutes=DEFAULT_BUFFER_TIME_MINUTES,
        max_patients_per_slot=DEFAULT_MAX_PATIENTS_PER_SLOT,
        advance_booking_days=DEFAULT_ADVANCE_BOOKING_DAYS,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(config)
    db.flush()
    logger.info("No slot configuration for staff %s, using default (id=%s)", staff_id, config.id)
    return config


_MINIMUMS = {
    "slot_duration_minutes": 1,
    "buffer_time_minutes": 0,
    "max_patients_per_slot": 1,
    "advance_booking_days": 0,
}


def _check_bounds(values: dict):
    for field, minimum in _MINIMUMS.items():
        value = values.get(field)
        if value is not None and value < minimum:
            raise InvalidState(f"{field} must be at least {minimum}, got {value}")


def _deactivate_others(db: Session, staff_id: int, keep_id: Optional[int] = None):
    q = db.query(SlotConfiguration).filter(
        SlotConfiguration.staff_id == staff_id,
        SlotConfiguration.is_active == True,  # noqa: E712
    )
    if keep_id is not None:
        q = q.filter(SlotConfiguration.id != keep_id)
    for other in q.all():
        other.is_active = False


def create_configuration(db: Session, data: dict, actor: Actor) -> SlotConfiguration:
    """Create a configuration; an active one supersedes the staff member's other active ones."""
    actor.require(Permission.MANAGE_CONFIGURATIONS, "create slot configurations")
    _check_bounds(data)

    def _create():
        config = SlotConfiguration(**data, created_at=datetime.now(timezone.utc))
        if config.is_active is None:
            config.is_active = True
        if config.is_active:
            _deactivate_others(db, config.staff_id)
        db.add(config)
        db.flush()
        return config

    config = run_in_transaction(db, _create, "create slot configuration")
    logger.info("Slot configuration %s created for staff %s", config.id, config.staff_id)
    return config


def get_configuration(db: Session, config_id: int) -> SlotConfiguration:
    config = db.get(SlotConfiguration, config_id)
    if config is None:
        raise NotFound(f"Slot configuration {config_id} not found")
    return config


def list_configurations(db: Session, staff_id: Optional[int] = None) -> List[SlotConfiguration]:
    q = db.query(SlotConfiguration)
    if staff_id is not None:
        q = q.filter(SlotConfiguration.staff_id == staff_id)
    return q.order_by(SlotConfiguration.created_at.desc(), SlotConfiguration.id.desc()).all()


def update_configuration(db: Session, config_id: int, changes: dict, actor: Actor) -> SlotConfiguration:
    """Edit a configuration. Existing slots keep the parameters they were generated with."""
    actor.require(Permission.MANAGE_CONFIGURATIONS, "update slot configurations")
    _check_bounds(changes)

    def _update():
        config = get_configuration(db, config_id)
        for field, value in changes.items():
            setattr(config, field, value)
        if changes.get("is_active"):
            _deactivate_others(db, config.staff_id, keep_id=config.id)
        return config

    return run_in_transaction(db, _update, f"update slot configuration {config_id}")


def delete_configuration(db: Session, config_id: int, actor: Actor) -> None:
    actor.require(Permission.DELETE_CONFIGURATIONS, "delete slot configurations")

    def _delete():
        db.delete(get_configuration(db, config_id))

    run_in_transaction(db, _delete, f"delete slot configuration {config_id}")
