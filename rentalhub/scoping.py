# Query scoping: narrows collections to what an actor may see.
# Routes apply caller filters first and scoping last; scoping only ever removes rows.
from __future__ import annotations

from typing import Iterable, List, TypeVar

from sqlalchemy.orm import Query

from . import models
from .access import owner_ids
from .identity import Actor

T = TypeVar("T")


def scope(actor: Actor, items: Iterable[T]) -> List[T]:
    """
    Filter already-fetched records to the actor's visibility set.

    Admins see everything; everyone else keeps records whose owning property they own
    (tenants: at least one lease on an owned property).
    """
    if actor.is_admin:
        return list(items)
    return [item for item in items if actor.id in owner_ids(item)]


def _owned_property(actor: Actor):
    return models.Property.owner_id == actor.id


def apply_scope(query: Query, actor: Actor, model: type) -> Query:
    """
    Same boundary as scope(), expressed as SQL so filtering happens in the database.

    Uses EXISTS predicates rather than joins so rows are never duplicated
    (a tenant with several owned leases appears once).
    """
    if actor.is_admin:
        return query
    if model is models.Property:
        return query.filter(_owned_property(actor))
    if model in (models.Lease, models.Maintenance):
        return query.filter(model.property.has(_owned_property(actor)))
    if model is models.Payment:
        return query.filter(models.Payment.lease.has(models.Lease.property.has(_owned_property(actor))))
    if model is models.Tenant:
        return query.filter(models.Tenant.leases.any(models.Lease.property.has(_owned_property(actor))))
    raise TypeError(f"No visibility rule for {model.__name__}")
