# Resource lifecycle: every write to properties, tenants, leases, maintenance requests and payments.
# Each operation checks access before mutating and commits its writes as one unit.
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .access import Operation, authorize, authorize_create, fetch_authorized, get_or_404
from .db import transaction
from .enums import (
    EXTERNAL_PROPERTY_STATUSES,
    LEASE_TRANSITIONS,
    MAINTENANCE_TERMINAL,
    LeaseStatus,
    MaintenanceStatus,
    PropertyStatus,
)
from .errors import Conflict, DomainError, InternalError, ValidationError
from .identity import Actor

logger = logging.getLogger("rentalhub.lifecycle")

_OPEN_MAINTENANCE = (MaintenanceStatus.PENDING, MaintenanceStatus.IN_PROGRESS)


@contextmanager
def _unit_of_work(db: Session, action: str) -> Iterator[Session]:
    """Run writes in one transaction; storage failures surface as InternalError, never as a business outcome."""
    try:
        with transaction(db):
            yield db
    except DomainError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("lifecycle.storage_failure", extra={"action": action})
        raise InternalError() from exc


def _apply(obj, data: dict) -> None:
    for field, value in data.items():
        setattr(obj, field, value)


def _changes(payload) -> dict:
    # Only fields the caller actually sent; explicit nulls never clear required columns
    return payload.model_dump(exclude_unset=True, exclude_none=True)


def _validate_dates(start_date: date, end_date: date) -> None:
    if start_date >= end_date:
        raise ValidationError("start_date must be before end_date")


# ----------------
# Properties
# ----------------
def create_property(db: Session, actor: Actor, payload: schemas.PropertyCreate) -> models.Property:
    authorize_create(actor, models.Property)
    if payload.rent_cents is None or payload.deposit_cents is None:
        raise ValidationError("rent_cents and deposit_cents are required")

    with _unit_of_work(db, "create property"):
        obj = models.Property(
            **payload.model_dump(),
            owner_id=actor.id,
            status=PropertyStatus.AVAILABLE,
        )
        db.add(obj)
    db.refresh(obj)
    logger.info("property.created", extra={"property_id": obj.id, "user_id": actor.id})
    return obj


def _check_releasable(db: Session, obj: models.Property) -> None:
    if obj.status not in EXTERNAL_PROPERTY_STATUSES:
        raise Conflict("Property availability follows its leases and cannot be set directly")
    has_lease = db.query(models.Lease.id).filter(models.Lease.property_id == obj.id).first()
    if has_lease is not None:
        raise Conflict("Property has a lease; delete the lease to make it available")


def update_property(db: Session, actor: Actor, property_id: int, payload: schemas.PropertyUpdate) -> models.Property:
    """
    Field updates on a property.

    Status may be moved to rented or maintenance (managed outside this service), and back to
    available from those two when the property has no lease. Reserved is owned by the lease
    lifecycle and is never written directly.
    """
    obj = fetch_authorized(db, models.Property, property_id, actor, Operation.UPDATE)
    data = _changes(payload)
    new_status = data.get("status")
    if new_status is not None and new_status != obj.status:
        if new_status == PropertyStatus.AVAILABLE:
            _check_releasable(db, obj)
        elif new_status not in EXTERNAL_PROPERTY_STATUSES:
            raise Conflict("Property availability follows its leases and cannot be set directly")

    with _unit_of_work(db, "update property"):
        _apply(obj, data)
    db.refresh(obj)
    return obj


def delete_property(db: Session, actor: Actor, property_id: int) -> None:
    obj = fetch_authorized(db, models.Property, property_id, actor, Operation.DELETE)
    with _unit_of_work(db, "delete property"):
        # Leases (with their payments) and maintenance requests go with it
        db.delete(obj)
    logger.info("property.deleted", extra={"property_id": property_id, "user_id": actor.id})


# ----------------
# Tenants
# ----------------
def create_tenant(db: Session, actor: Actor, payload: schemas.TenantCreate) -> models.Tenant:
    authorize_create(actor, models.Tenant)
    existing = db.query(models.Tenant.id).filter(models.Tenant.email == payload.email).first()
    if existing:
        raise Conflict("Tenant email already registered")

    with _unit_of_work(db, "create tenant"):
        obj = models.Tenant(**payload.model_dump())
        db.add(obj)
    db.refresh(obj)
    return obj


def update_tenant(db: Session, actor: Actor, tenant_id: int, payload: schemas.TenantUpdate) -> models.Tenant:
    obj = fetch_authorized(db, models.Tenant, tenant_id, actor, Operation.UPDATE)
    with _unit_of_work(db, "update tenant"):
        _apply(obj, _changes(payload))
    db.refresh(obj)
    return obj


def delete_tenant(db: Session, actor: Actor, tenant_id: int) -> None:
    """
    Delete a tenant together with its leases.

    Every lease that goes with it must be deletable by the actor, so a tenant shared with
    another owner can only be removed by an admin.
    """
    obj = fetch_authorized(db, models.Tenant, tenant_id, actor, Operation.DELETE)
    for lease in obj.leases:
        authorize(actor, lease, Operation.DELETE)
    with _unit_of_work(db, "delete tenant"):
        # Cascaded lease deletes release their properties in the same flush
        db.delete(obj)
    logger.info("tenant.deleted", extra={"tenant_id": tenant_id, "user_id": actor.id})


# ----------------
# Leases
# ----------------
def create_lease(db: Session, actor: Actor, payload: schemas.LeaseCreate) -> models.Lease:
    """
    Create a pending lease and reserve its property in the same transaction.

    Checks, in order: property exists, tenant exists, actor may lease the property,
    dates are sane, property is available. The reservation is a conditional update
    (status must still be 'available' at write time), so of two concurrent requests
    for the same property exactly one wins and the other gets Conflict.
    """
    prop = get_or_404(db, models.Property, payload.property_id)
    get_or_404(db, models.Tenant, payload.tenant_id)
    authorize_create(actor, models.Lease, parent=prop)
    _validate_dates(payload.start_date, payload.end_date)
    if prop.status != PropertyStatus.AVAILABLE:
        raise Conflict("Property is not available for lease")

    with _unit_of_work(db, "create lease"):
        reserved = (
            db.query(models.Property)
            .filter(
                models.Property.id == prop.id,
                models.Property.status == PropertyStatus.AVAILABLE,
            )
            .update({models.Property.status: PropertyStatus.RESERVED}, synchronize_session=False)
        )
        if reserved == 0:
            raise Conflict("Property is not available for lease")
        lease = models.Lease(**payload.model_dump(), status=LeaseStatus.PENDING)
        db.add(lease)
        db.flush()
    db.refresh(lease)
    logger.info(
        "lease.created",
        extra={"lease_id": lease.id, "property_id": prop.id, "tenant_id": lease.tenant_id, "user_id": actor.id},
    )
    return lease


def update_lease(db: Session, actor: Actor, lease_id: int, payload: schemas.LeaseUpdate) -> models.Lease:
    lease = fetch_authorized(db, models.Lease, lease_id, actor, Operation.UPDATE)
    data = _changes(payload)

    new_status = data.get("status")
    if new_status is not None and new_status != lease.status:
        if new_status not in LEASE_TRANSITIONS.get(lease.status, frozenset()):
            raise Conflict(f"Lease cannot move from {lease.status.value} to {new_status.value}")

    _validate_dates(data.get("start_date", lease.start_date), data.get("end_date", lease.end_date))

    with _unit_of_work(db, "update lease"):
        _apply(lease, data)
    db.refresh(lease)
    return lease


def delete_lease(db: Session, actor: Actor, lease_id: int) -> None:
    """Delete a lease; its property returns to 'available' in the same flush (see models.release_property)."""
    lease = fetch_authorized(db, models.Lease, lease_id, actor, Operation.DELETE)
    property_id = lease.property_id
    with _unit_of_work(db, "delete lease"):
        db.delete(lease)
    logger.info("lease.deleted", extra={"lease_id": lease_id, "property_id": property_id, "user_id": actor.id})


# ----------------
# Payments
# ----------------
def record_payment(db: Session, actor: Actor, lease_id: int, payload: schemas.PaymentCreate) -> models.Payment:
    lease = get_or_404(db, models.Lease, lease_id)
    authorize_create(actor, models.Payment, parent=lease)
    with _unit_of_work(db, "record payment"):
        obj = models.Payment(**payload.model_dump(exclude_none=True), lease_id=lease.id)
        db.add(obj)
    db.refresh(obj)
    logger.info("payment.recorded", extra={"payment_id": obj.id, "lease_id": lease_id, "user_id": actor.id})
    return obj


# ----------------
# Maintenance
# ----------------
def create_maintenance(db: Session, actor: Actor, payload: schemas.MaintenanceCreate) -> models.Maintenance:
    prop = get_or_404(db, models.Property, payload.property_id)
    authorize_create(actor, models.Maintenance, parent=prop)
    with _unit_of_work(db, "create maintenance request"):
        obj = models.Maintenance(
            **payload.model_dump(exclude_none=True),
            reported_by=actor.id,
            status=MaintenanceStatus.PENDING,
        )
        db.add(obj)
    db.refresh(obj)
    return obj


def update_maintenance(
    db: Session, actor: Actor, maintenance_id: int, payload: schemas.MaintenanceUpdate
) -> models.Maintenance:
    obj = fetch_authorized(db, models.Maintenance, maintenance_id, actor, Operation.UPDATE)
    with _unit_of_work(db, "update maintenance request"):
        _apply(obj, _changes(payload))
    db.refresh(obj)
    return obj


def delete_maintenance(db: Session, actor: Actor, maintenance_id: int) -> None:
    obj = fetch_authorized(db, models.Maintenance, maintenance_id, actor, Operation.DELETE)
    with _unit_of_work(db, "delete maintenance request"):
        db.delete(obj)


def _transition_maintenance(db: Session, obj: models.Maintenance, values: dict, verb: str) -> models.Maintenance:
    """
    Move an open request (pending/in_progress) to a new state.

    The open-state check is repeated in the UPDATE itself so a request completed or
    cancelled concurrently is never moved again.
    """
    if obj.status in MAINTENANCE_TERMINAL:
        raise Conflict(f"Maintenance request is {obj.status.value} and cannot be {verb}")

    with _unit_of_work(db, f"{verb} maintenance request"):
        rows = (
            db.query(models.Maintenance)
            .filter(
                models.Maintenance.id == obj.id,
                models.Maintenance.status.in_(_OPEN_MAINTENANCE),
            )
            .update(values, synchronize_session=False)
        )
        if rows == 0:
            raise Conflict(f"Maintenance request can no longer be {verb}")
    db.refresh(obj)
    logger.info("maintenance.transition", extra={"maintenance_id": obj.id, "status": obj.status.value})
    return obj


def assign_maintenance(db: Session, actor: Actor, maintenance_id: int, assignee_id: int) -> models.Maintenance:
    obj = fetch_authorized(db, models.Maintenance, maintenance_id, actor, Operation.ASSIGN)
    get_or_404(db, models.User, assignee_id)
    return _transition_maintenance(
        db,
        obj,
        {
            models.Maintenance.assigned_to: assignee_id,
            models.Maintenance.status: MaintenanceStatus.IN_PROGRESS,
        },
        "assigned",
    )


def complete_maintenance(
    db: Session,
    actor: Actor,
    maintenance_id: int,
    cost_cents: Optional[int] = None,
    notes: Optional[str] = None,
) -> models.Maintenance:
    obj = fetch_authorized(db, models.Maintenance, maintenance_id, actor, Operation.UPDATE)
    return _transition_maintenance(
        db,
        obj,
        {
            models.Maintenance.status: MaintenanceStatus.COMPLETED,
            models.Maintenance.completed_date: datetime.now(timezone.utc),
            models.Maintenance.cost_cents: cost_cents if cost_cents is not None else obj.cost_cents,
            models.Maintenance.notes: notes or obj.notes,
        },
        "completed",
    )


def cancel_maintenance(
    db: Session, actor: Actor, maintenance_id: int, notes: Optional[str] = None
) -> models.Maintenance:
    obj = fetch_authorized(db, models.Maintenance, maintenance_id, actor, Operation.UPDATE)
    return _transition_maintenance(
        db,
        obj,
        {
            models.Maintenance.status: MaintenanceStatus.CANCELLED,
            models.Maintenance.notes: notes or obj.notes,
        },
        "cancelled",
    )
