# Property endpoints.
# Owners manage and see only their own properties; admins see every property.
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import lifecycle, models, schemas
from ..access import Operation, fetch_authorized
from ..enums import PropertyStatus, PropertyType
from ..identity import Actor
from ..scoping import apply_scope
from .auth import get_actor

# Router namespace for property APIs
router = APIRouter()


@router.get("/properties", response_model=List[schemas.PropertyRead])
def list_properties(
    status_: Optional[PropertyStatus] = Query(None, alias="status"),
    type_: Optional[PropertyType] = Query(None, alias="type"),
    city: Optional[str] = Query(None),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """
    List properties visible to the caller.

    Filters (all optional): status, type, city, min_price/max_price on rent_cents.
    Ownership scoping is applied after the filters, so filters can only narrow the result.
    Ordered by newest first.
    """
    q = db.query(models.Property)
    if status_ is not None:
        q = q.filter(models.Property.status == status_)
    if type_ is not None:
        q = q.filter(models.Property.type == type_)
    if city:
        q = q.filter(models.Property.city == city)
    if min_price is not None:
        q = q.filter(models.Property.rent_cents >= min_price)
    if max_price is not None:
        q = q.filter(models.Property.rent_cents <= max_price)
    q = apply_scope(q, actor, models.Property)
    return q.order_by(models.Property.id.desc()).all()


@router.post("/properties", response_model=schemas.PropertyRead, status_code=status.HTTP_201_CREATED)
def create_property(
    payload: schemas.PropertyCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Create a property owned by the caller; it starts out 'available'."""
    return lifecycle.create_property(db, actor, payload)


@router.get("/properties/{property_id}", response_model=schemas.PropertyRead)
def get_property(property_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return fetch_authorized(db, models.Property, property_id, actor, Operation.READ)


@router.put("/properties/{property_id}", response_model=schemas.PropertyRead)
def update_property(
    property_id: int,
    payload: schemas.PropertyUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return lifecycle.update_property(db, actor, property_id, payload)


@router.delete("/properties/{property_id}", response_model=schemas.MessageResponse)
def delete_property(property_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    lifecycle.delete_property(db, actor, property_id)
    return schemas.MessageResponse(message="Property deleted successfully")


@router.get("/properties/{property_id}/maintenance", response_model=List[schemas.MaintenanceRead])
def property_maintenance_history(
    property_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)
):
    prop = fetch_authorized(db, models.Property, property_id, actor, Operation.READ)
    return (
        db.query(models.Maintenance)
        .filter(models.Maintenance.property_id == prop.id)
        .order_by(models.Maintenance.reported_date.desc(), models.Maintenance.id.desc())
        .all()
    )


@router.get("/properties/{property_id}/leases", response_model=List[schemas.LeaseRead])
def property_lease_history(property_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    prop = fetch_authorized(db, models.Property, property_id, actor, Operation.READ)
    return (
        db.query(models.Lease)
        .filter(models.Lease.property_id == prop.id)
        .order_by(models.Lease.start_date.desc(), models.Lease.id.desc())
        .all()
    )
