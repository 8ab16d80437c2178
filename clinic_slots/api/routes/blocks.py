# clinic_slots/api/routes/blocks.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from clinic_slots.db.base import get_db
from clinic_slots.core.security import get_current_actor
from clinic_slots.scheduling import blocks
from clinic_slots.scheduling.permissions import Actor
from clinic_slots.schemas.block import BlockCreate, BlockResponse, BlockUpdate

router = APIRouter(prefix="/blocks", tags=["blocks"])


@router.post("", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
def create_block(payload: BlockCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return blocks.create_block(db, payload.model_dump(), actor)


@router.get("", response_model=List[BlockResponse])
def list_blocks(
    staff_id: Optional[int] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
):
    return blocks.list_blocks(db, staff_id, on_date, include_inactive)


@router.get("/{block_id}", response_model=BlockResponse)
def get_block(block_id: int, db: Session = Depends(get_db)):
    return blocks.get_block(db, block_id)


@router.put("/{block_id}", response_model=BlockResponse)
def update_block(
    block_id: int,
    payload: BlockUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return blocks.update_block(db, block_id, payload.model_dump(exclude_unset=True), actor)


# Soft delete: the block is deactivated and its slots re-evaluated
@router.delete("/{block_id}", response_model=BlockResponse)
def delete_block(block_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return blocks.deactivate_block(db, block_id, actor)
