# Maintenance request endpoints: CRUD plus the assign/complete/cancel workflow.
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import lifecycle, models, schemas
from ..access import Operation, fetch_authorized
from ..enums import MaintenancePriority, MaintenanceStatus
from ..identity import Actor
from ..scoping import apply_scope
from .auth import get_actor

router = APIRouter()


@router.get("/maintenance", response_model=List[schemas.MaintenanceRead])
def list_maintenance(
    status_: Optional[MaintenanceStatus] = Query(None, alias="status"),
    priority: Optional[MaintenancePriority] = Query(None),
    property_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    q = db.query(models.Maintenance)
    if status_ is not None:
        q = q.filter(models.Maintenance.status == status_)
    if priority is not None:
        q = q.filter(models.Maintenance.priority == priority)
    if property_id is not None:
        q = q.filter(models.Maintenance.property_id == property_id)
    q = apply_scope(q, actor, models.Maintenance)
    return q.order_by(models.Maintenance.reported_date.desc(), models.Maintenance.id.desc()).all()


@router.post("/maintenance", response_model=schemas.MaintenanceRead, status_code=status.HTTP_201_CREATED)
def create_maintenance(
    payload: schemas.MaintenanceCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return lifecycle.create_maintenance(db, actor, payload)


@router.get("/maintenance/{maintenance_id}", response_model=schemas.MaintenanceRead)
def get_maintenance(maintenance_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return fetch_authorized(db, models.Maintenance, maintenance_id, actor, Operation.READ)


@router.put("/maintenance/{maintenance_id}", response_model=schemas.MaintenanceRead)
def update_maintenance(
    maintenance_id: int,
    payload: schemas.MaintenanceUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return lifecycle.update_maintenance(db, actor, maintenance_id, payload)


@router.delete("/maintenance/{maintenance_id}", response_model=schemas.MessageResponse)
def delete_maintenance(maintenance_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    lifecycle.delete_maintenance(db, actor, maintenance_id)
    return schemas.MessageResponse(message="Maintenance request deleted successfully")


@router.put("/maintenance/{maintenance_id}/assign", response_model=schemas.MaintenanceRead)
def assign_maintenance(
    maintenance_id: int,
    payload: schemas.MaintenanceAssign,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return lifecycle.assign_maintenance(db, actor, maintenance_id, payload.assigned_to)


@router.put("/maintenance/{maintenance_id}/complete", response_model=schemas.MaintenanceRead)
def complete_maintenance(
    maintenance_id: int,
    payload: schemas.MaintenanceComplete,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return lifecycle.complete_maintenance(db, actor, maintenance_id, payload.cost_cents, payload.notes)


@router.put("/maintenance/{maintenance_id}/cancel", response_model=schemas.MaintenanceRead)
def cancel_maintenance(
    maintenance_id: int,
    payload: schemas.MaintenanceCancel,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return lifecycle.cancel_maintenance(db, actor, maintenance_id, payload.notes)
