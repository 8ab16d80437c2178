# clinic_slots/api/routes/slot_configurations.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from clinic_slots.db.base import get_db
from clinic_slots.core.security import get_current_actor
from clinic_slots.scheduling import configurations
from clinic_slots.scheduling.permissions import Actor
from clinic_slots.schemas.slot_configuration import (
    SlotConfigurationCreate,
    SlotConfigurationResponse,
    SlotConfigurationUpdate,
)

router = APIRouter(prefix="/slot-configurations", tags=["slot-configurations"])


@router.post("", response_model=SlotConfigurationResponse, status_code=status.HTTP_201_CREATED)
def create_configuration(
    payload: SlotConfigurationCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return configurations.create_configuration(db, payload.model_dump(), actor)


@router.get("", response_model=List[SlotConfigurationResponse])
def list_configurations(staff_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return configurations.list_configurations(db, staff_id)


@router.get("/staff/{staff_id}", response_model=SlotConfigurationResponse)
def get_active_configuration(staff_id: int, db: Session = Depends(get_db)):
    config = configurations.get_active_configuration(db, staff_id)
    if not config:
        raise HTTPException(status_code=404, detail="No active slot configuration for this staff member")
    return config


@router.put("/{config_id}", response_model=SlotConfigurationResponse)
def update_configuration(
    config_id: int,
    payload: SlotConfigurationUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return configurations.update_configuration(db, config_id, payload.model_dump(exclude_unset=True), actor)


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_configuration(config_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    configurations.delete_configuration(db, config_id, actor)
