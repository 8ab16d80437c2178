# clinic_slots/api/routes/leaves.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from clinic_slots.db.base import get_db
from clinic_slots.core.security import get_current_actor
from clinic_slots.scheduling import leaves
from clinic_slots.scheduling.permissions import Actor
from clinic_slots.scheduling.status import LeaveStatus
from clinic_slots.schemas.leave import LeaveApprove, LeaveCreate, LeaveReject, LeaveResponse

router = APIRouter(prefix="/leaves", tags=["leaves"])


@router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
def create_leave(payload: LeaveCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return leaves.create_leave_request(db, payload.model_dump(), actor)


@router.get("", response_model=List[LeaveResponse])
def list_leaves(
    staff_id: Optional[int] = Query(None),
    leave_status: Optional[LeaveStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return leaves.list_leaves(db, staff_id, leave_status)


@router.post("/{leave_id}/approve", response_model=LeaveResponse)
def approve_leave(
    leave_id: int,
    payload: Optional[LeaveApprove] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return leaves.approve_leave(db, leave_id, actor, notes=payload.notes if payload else None)


@router.post("/{leave_id}/reject", response_model=LeaveResponse)
def reject_leave(
    leave_id: int,
    payload: LeaveReject,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return leaves.reject_leave(db, leave_id, payload.reason, actor)


@router.post("/{leave_id}/cancel", response_model=LeaveResponse)
def cancel_leave(leave_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return leaves.cancel_leave(db, leave_id, actor)


@router.post("/{leave_id}/return-to-pending", response_model=LeaveResponse)
def return_leave_to_pending(leave_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return leaves.return_leave_to_pending(db, leave_id, actor)
