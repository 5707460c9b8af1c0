# Tenant endpoints.
# Tenants carry no owner: a caller sees a tenant once it holds a lease on one of the caller's properties.
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import lifecycle, models, schemas
from ..access import Operation, fetch_authorized, get_or_404
from ..affordability import affordability
from ..enums import TenantStatus
from ..identity import Actor
from ..scoping import apply_scope, scope
from .auth import get_actor

router = APIRouter()


@router.get("/tenants", response_model=List[schemas.TenantRead])
def list_tenants(
    status_: Optional[TenantStatus] = Query(None, alias="status"),
    min_income: Optional[int] = Query(None, ge=0),
    max_income: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    q = db.query(models.Tenant)
    if status_ is not None:
        q = q.filter(models.Tenant.status == status_)
    if min_income is not None:
        q = q.filter(models.Tenant.monthly_income_cents >= min_income)
    if max_income is not None:
        q = q.filter(models.Tenant.monthly_income_cents <= max_income)
    q = apply_scope(q, actor, models.Tenant)
    return q.order_by(models.Tenant.id.desc()).all()


@router.post("/tenants", response_model=schemas.TenantRead, status_code=status.HTTP_201_CREATED)
def create_tenant(payload: schemas.TenantCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return lifecycle.create_tenant(db, actor, payload)


@router.get("/tenants/{tenant_id}", response_model=schemas.TenantRead)
def get_tenant(tenant_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return fetch_authorized(db, models.Tenant, tenant_id, actor, Operation.READ)


@router.put("/tenants/{tenant_id}", response_model=schemas.TenantRead)
def update_tenant(
    tenant_id: int,
    payload: schemas.TenantUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return lifecycle.update_tenant(db, actor, tenant_id, payload)


@router.delete("/tenants/{tenant_id}", response_model=schemas.MessageResponse)
def delete_tenant(tenant_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    lifecycle.delete_tenant(db, actor, tenant_id)
    return schemas.MessageResponse(message="Tenant deleted successfully")


@router.get("/tenants/{tenant_id}/leases", response_model=List[schemas.LeaseRead])
def tenant_lease_history(tenant_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    """
    Lease history for a tenant.

    Only the leases on the caller's own properties are returned; a tenant visible through
    one landlord does not expose its leases with other landlords.
    """
    tenant = fetch_authorized(db, models.Tenant, tenant_id, actor, Operation.READ)
    leases = sorted(tenant.leases, key=lambda lease: (lease.start_date, lease.id), reverse=True)
    return scope(actor, leases)


@router.post("/tenants/{tenant_id}/check-affordability", response_model=schemas.AffordabilityResponse)
def check_affordability(
    tenant_id: int,
    payload: schemas.AffordabilityRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """
    Rent-to-income check of a tenant against one of the caller's properties.

    Requires read access to the property only, so prospective tenants without a lease can be screened.
    """
    tenant = get_or_404(db, models.Tenant, tenant_id)
    prop = fetch_authorized(db, models.Property, payload.property_id, actor, Operation.READ)
    return affordability(tenant, prop)
