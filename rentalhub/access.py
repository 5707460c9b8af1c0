# Access control: decides whether an actor may act on a resource.
# Ownership is always resolved up to the owning property; admins bypass every check.
from __future__ import annotations

import logging
from enum import Enum
from typing import Set, Type, TypeVar

from sqlalchemy.orm import Session

from . import models
from .enums import ASSIGNER_ROLES, CREATOR_ROLES
from .errors import Forbidden, NotFound
from .identity import Actor

logger = logging.getLogger("rentalhub.access")

T = TypeVar("T")


class Operation(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ASSIGN = "assign"


# Record kinds whose creation requires a creator role (staff cannot create them)
ROLE_GATED_CREATES = (models.Property, models.Tenant, models.Lease, models.Maintenance)

_LABELS = {
    models.User: "User",
    models.Property: "Property",
    models.Tenant: "Tenant",
    models.Lease: "Lease",
    models.Maintenance: "Maintenance request",
    models.Payment: "Payment",
}


def owner_ids(resource) -> Set[int]:
    """
    Resolve the owner(s) of a resource through the ownership chain.

    - Property: its owner
    - Lease / Maintenance: the owner of their property
    - Payment: the owner of its lease's property
    - Tenant: the owners of every property it holds a lease on (possibly empty)

    Resolution is attribute-based so plain objects with the same shape work as fakes.
    """
    if resource is None:
        return set()
    if hasattr(resource, "owner_id"):
        return {resource.owner_id}
    if hasattr(resource, "property"):
        return owner_ids(resource.property)
    if hasattr(resource, "lease"):
        return owner_ids(resource.lease)
    if hasattr(resource, "leases"):
        found: Set[int] = set()
        for lease in resource.leases:
            found |= owner_ids(lease)
        return found
    return set()


def can_access(actor: Actor, resource, operation: Operation) -> bool:
    if actor.is_admin:
        return True
    if operation is Operation.ASSIGN and actor.role not in ASSIGNER_ROLES:
        return False
    return actor.id in owner_ids(resource)


def can_create(actor: Actor, model: type, parent=None) -> bool:
    """
    Creation rule: role gate for top-level kinds, then ownership of the parent record
    (property for leases and maintenance requests, lease for payments) when there is one.
    """
    if actor.is_admin:
        return True
    if model in ROLE_GATED_CREATES and actor.role not in CREATOR_ROLES:
        return False
    if parent is None:
        return True
    return actor.id in owner_ids(parent)


def _deny(actor: Actor, action: str, resource_type: str, resource_id=None) -> None:
    logger.info(
        "access.denied",
        extra={
            "user_id": actor.id,
            "role": actor.role.value,
            "action": action,
            "resource": resource_type,
            "resource_id": resource_id,
        },
    )
    raise Forbidden()


def authorize(actor: Actor, resource, operation: Operation) -> None:
    if not can_access(actor, resource, operation):
        _deny(actor, operation.value, type(resource).__name__, getattr(resource, "id", None))


def authorize_create(actor: Actor, model: type, parent=None) -> None:
    if not can_create(actor, model, parent):
        _deny(actor, "create", model.__name__, getattr(parent, "id", None))


def label(model: type) -> str:
    return _LABELS.get(model, model.__name__)


def get_or_404(db: Session, model: Type[T], obj_id: int) -> T:
    obj = db.get(model, obj_id)
    if obj is None:
        raise NotFound(f"{label(model)} not found")
    return obj


def fetch_authorized(
    db: Session,
    model: Type[T],
    obj_id: int,
    actor: Actor,
    operation: Operation = Operation.READ,
) -> T:
    """
    Load a single resource for an actor.

    Existence is checked first (NotFound), then access (Forbidden), so a missing id and a
    foreign id are always distinguishable only by existence, never by ownership details.
    """
    obj = get_or_404(db, model, obj_id)
    authorize(actor, obj, operation)
    return obj

