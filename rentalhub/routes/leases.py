# Lease and payment endpoints.
# Creating a lease reserves the property; deleting it releases the property. Both are atomic.
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import lifecycle, models, schemas
from ..access import Operation, fetch_authorized
from ..enums import LeaseStatus
from ..identity import Actor
from ..locks import property_lease_lock
from ..scoping import apply_scope
from .auth import get_actor

router = APIRouter()


@router.get("/leases", response_model=List[schemas.LeaseRead])
def list_leases(
    status_: Optional[LeaseStatus] = Query(None, alias="status"),
    property_id: Optional[int] = Query(None, ge=1),
    tenant_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> List[models.Lease]:
    q = db.query(models.Lease)
    if status_ is not None:
        q = q.filter(models.Lease.status == status_)
    if property_id is not None:
        q = q.filter(models.Lease.property_id == property_id)
    if tenant_id is not None:
        q = q.filter(models.Lease.tenant_id == tenant_id)
    q = apply_scope(q, actor, models.Lease)
    return q.order_by(models.Lease.start_date.desc(), models.Lease.id.desc()).all()


@router.post("/leases", response_model=schemas.LeaseRead, status_code=status.HTTP_201_CREATED)
def create_lease(
    payload: schemas.LeaseCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> models.Lease:
    # Coarse per-property lock to limit cross-process races; the conditional update still decides the winner
    with property_lease_lock(payload.property_id) as locked:
        if not locked:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"error": "busy", "retry_after": 1},
            )
        return lifecycle.create_lease(db, actor, payload)


@router.get("/leases/{lease_id}", response_model=schemas.LeaseRead)
def get_lease(lease_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)) -> models.Lease:
    return fetch_authorized(db, models.Lease, lease_id, actor, Operation.READ)


@router.put("/leases/{lease_id}", response_model=schemas.LeaseRead)
def update_lease(
    lease_id: int,
    payload: schemas.LeaseUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> models.Lease:
    return lifecycle.update_lease(db, actor, lease_id, payload)


@router.delete("/leases/{lease_id}", response_model=schemas.MessageResponse)
def delete_lease(lease_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    lifecycle.delete_lease(db, actor, lease_id)
    return schemas.MessageResponse(message="Lease deleted successfully")


@router.get("/leases/{lease_id}/payments", response_model=List[schemas.PaymentRead])
def list_lease_payments(
    lease_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)
) -> List[models.Payment]:
    lease = fetch_authorized(db, models.Lease, lease_id, actor, Operation.READ)
    return (
        db.query(models.Payment)
        .filter(models.Payment.lease_id == lease.id)
        .order_by(models.Payment.payment_date.desc(), models.Payment.id.desc())
        .all()
    )


@router.post(
    "/leases/{lease_id}/payments",
    response_model=schemas.PaymentRead,
    status_code=status.HTTP_201_CREATED,
)
def record_payment(
    lease_id: int,
    payload: schemas.PaymentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
) -> models.Payment:
    return lifecycle.record_payment(db, actor, lease_id, payload)
