# clinic_slots/scheduling/blocks.py
"""
Block Propagation

Reflects a block's effect onto the overlapping slots of the same staff
member and date. Each slot is reconciled in its own short transaction;
a slot stays Blocked while any other active block still covers it.
"""
import logging
from datetime import date, time
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import Session

from clinic_slots.db.models.block import Block
from clinic_slots.db.models.slot import Slot
from clinic_slots.scheduling.coverage import refresh_status
from clinic_slots.scheduling.errors import InvalidState, NotFound
from clinic_slots.scheduling.permissions import Actor, Permission
from clinic_slots.scheduling.status import BlockReason, SlotStatus
from clinic_slots.scheduling.transactions import run_in_transaction

logger = logging.getLogger(__name__)


class Footprint(NamedTuple):
    staff_id: int
    date: date
    start_time: time
    end_time: time


def _footprint(block) -> Footprint:
    return Footprint(block.staff_id, block.date, block.start_time, block.end_time)


def _overlapping_slot_ids(db: Session, area: Footprint, *criteria) -> List[int]:
    rows = db.query(Slot.id).filter(
        Slot.staff_id == area.staff_id,
        Slot.date == area.date,
        Slot.start_time < area.end_time,
        Slot.end_time > area.start_time,
        *criteria,
    ).order_by(Slot.start_time).all()
    return [row.id for row in rows]


def _reconcile_slot(db: Session, slot_id: int) -> bool:
    def _reconcile():
        slot = db.get(Slot, slot_id)
        if slot is None:
            return False
        changed = refresh_status(db, slot)
        db.flush()
        return changed

    return run_in_transaction(db, _reconcile, f"status refresh of slot {slot_id}")


def apply_block(db: Session, block) -> int:
    """Mark Available slots overlapping the block as Blocked. Returns how many changed."""
    ids = _overlapping_slot_ids(db, _footprint(block), Slot.status == SlotStatus.AVAILABLE.value)
    changed = sum(1 for slot_id in ids if _reconcile_slot(db, slot_id))
    logger.info("Block on %s for staff %s applied to %d slot(s)", block.date, block.staff_id, changed)
    return changed


def retract_block(db: Session, block) -> int:
    """
    Re-evaluate Blocked, under-capacity slots overlapping a retracted block.
    The block must already be inactive (or moved); slots still covered by
    another active block stay Blocked.
    """
    ids = _overlapping_slot_ids(
        db,
        _footprint(block),
        Slot.status == SlotStatus.BLOCKED.value,
        Slot.current_bookings < Slot.max_capacity,
    )
    changed = sum(1 for slot_id in ids if _reconcile_slot(db, slot_id))
    logger.info("Block on %s for staff %s retracted from %d slot(s)", block.date, block.staff_id, changed)
    return changed


def _validate(start_time: time, end_time: time, reason: Optional[str]) -> Optional[str]:
    if start_time >= end_time:
        raise InvalidState("Block start_time must be before end_time")
    if reason is None:
        return None
    try:
        return BlockReason(reason).value
    except ValueError:
        raise InvalidState(f"Unknown block reason '{reason}'") from None


def get_block(db: Session, block_id: int) -> Block:
    block = db.get(Block, block_id)
    if block is None:
        raise NotFound(f"Appointment block {block_id} not found")
    return block


def list_blocks(
    db: Session,
    staff_id: Optional[int] = None,
    on_date: Optional[date] = None,
    include_inactive: bool = False,
) -> List[Block]:
    q = db.query(Block)
    if not include_inactive:
        q = q.filter(Block.is_active == True)  # noqa: E712
    if staff_id is not None:
        q = q.filter(Block.staff_id == staff_id)
    if on_date is not None:
        q = q.filter(Block.date == on_date)
    return q.order_by(Block.date, Block.start_time).all()


def create_block(db: Session, data: dict, actor: Actor) -> Block:
    actor.require(Permission.MANAGE_BLOCKS, "create appointment blocks")
    data = {**data, "reason": _validate(data["start_time"], data["end_time"], data.get("reason")) or BlockReason.OTHER.value}
    created_by = data.pop("created_by", None) or actor.label

    def _create():
        block = Block(**data, is_active=True, created_by=created_by)
        db.add(block)
        db.flush()
        return block

    block = run_in_transaction(db, _create, "create appointment block")
    logger.info(
        "Block %s created for staff %s on %s %s-%s (%s)",
        block.id, block.staff_id, block.date, block.start_time, block.end_time, block.reason,
    )
    apply_block(db, block)
    return block


def update_block(db: Session, block_id: int, changes: dict, actor: Actor) -> Block:
    """Edit a block; the old footprint is retracted and the new one applied."""
    actor.require(Permission.MANAGE_BLOCKS, "update appointment blocks")

    def _update():
        block = get_block(db, block_id)
        before = _footprint(block)
        for field, value in changes.items():
            setattr(block, field, value)
        block.reason = _validate(block.start_time, block.end_time, block.reason) or BlockReason.OTHER.value
        db.flush()
        return block, before

    block, before = run_in_transaction(db, _update, f"update of block {block_id}")
    retract_block(db, before)
    if block.is_active:
        apply_block(db, block)
    return block


def deactivate_block(db: Session, block_id: int, actor: Actor) -> Block:
    """Soft-delete a block and release the slots it alone was holding."""
    actor.require(Permission.MANAGE_BLOCKS, "delete appointment blocks")

    def _deactivate():
        block = get_block(db, block_id)
        was_active = block.is_active
        block.is_active = False
        db.flush()
        return block, was_active

    block, was_active = run_in_transaction(db, _deactivate, f"deactivation of block {block_id}")
    if was_active:
        logger.info("Block %s deactivated", block_id)
        retract_block(db, block)
    return block
