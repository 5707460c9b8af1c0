# Lease API test suite: reservation atomicity, no double reservation, transitions, deletes, payments, and locking.
from __future__ import annotations

from typing import Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from rentalhub import lifecycle, models, schemas
from rentalhub.create_admin import create_admin
from rentalhub.db import SessionLocal
from rentalhub.enums import PropertyStatus
from rentalhub.errors import Conflict, InternalError
from rentalhub.identity import Actor
from rentalhub.redis_client import reset_redis


def signup(client: TestClient, email: str, role: str | None = None) -> Tuple[str, dict]:
    payload = {"email": email, "password": "changeme123", "first_name": "Test", "last_name": "User"}
    if role:
        payload["role"] = role
    r = client.post("/auth/signup", json=payload)
    assert r.status_code == 201, r.text
    data = r.json()
    return data["access_token"], data["user"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def create_property(client: TestClient, token: str, name: str = "Maple Court", rent_cents: int = 150000) -> dict:
    r = client.post(
        "/api/v1/properties",
        headers=auth_headers(token),
        json={
            "name": name,
            "type": "apartment",
            "address": "12 Maple St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "rent_cents": rent_cents,
            "deposit_cents": rent_cents,
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


def create_tenant(client: TestClient, token: str, email: str = "tom@example.com", income_cents: int = 600000) -> dict:
    r = client.post(
        "/api/v1/tenants",
        headers=auth_headers(token),
        json={
            "first_name": "Tom",
            "last_name": "Renter",
            "email": email,
            "phone": "555-0101",
            "date_of_birth": "1990-01-01",
            "employment_status": "employed",
            "monthly_income_cents": income_cents,
            "emergency_contact": "Ann",
            "emergency_contact_phone": "555-0102",
            "emergency_contact_relation": "sister",
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


def lease_payload(property_id: int, tenant_id: int, **overrides) -> dict:
    payload = {
        "property_id": property_id,
        "tenant_id": tenant_id,
        "start_date": "2026-01-01",
        "end_date": "2026-12-31",
        "rent_cents": 150000,
        "deposit_cents": 150000,
        "payment_due_day": 1,
    }
    payload.update(overrides)
    return payload


def property_status(client: TestClient, token: str, property_id: int) -> str:
    r = client.get(f"/api/v1/properties/{property_id}", headers=auth_headers(token))
    assert r.status_code == 200, r.text
    return r.json()["status"]


# Creating a lease reserves the property; the lease starts pending
def test_create_lease_reserves_property(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)

    r = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"]))
    assert r.status_code == 201, r.text
    lease = r.json()
    assert lease["status"] == "pending"
    assert lease["late_fee_percentage"] == 5.0
    assert lease["late_fee_grace_period"] == 5
    assert property_status(client, token, prop["id"]) == "reserved"


def test_second_lease_on_reserved_property_conflicts(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    t1 = create_tenant(client, token, "t1@example.com")
    t2 = create_tenant(client, token, "t2@example.com")

    assert client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], t1["id"])).status_code == 201
    r = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], t2["id"]))
    assert r.status_code == 409
    assert len(client.get("/api/v1/leases", headers=auth_headers(token)).json()) == 1


def test_lease_create_checks_order(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    other_token, _ = signup(client, "l2@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)

    # Missing property, then missing tenant, then foreign property
    r = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(9999, tenant["id"]))
    assert r.status_code == 404
    r = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], 9999))
    assert r.status_code == 404
    r = client.post("/api/v1/leases", headers=auth_headers(other_token), json=lease_payload(prop["id"], tenant["id"]))
    assert r.status_code == 403

    # Dates out of order
    r = client.post(
        "/api/v1/leases",
        headers=auth_headers(token),
        json=lease_payload(prop["id"], tenant["id"], start_date="2026-12-31", end_date="2026-01-01"),
    )
    assert r.status_code == 400
    assert property_status(client, token, prop["id"]) == "available"


def test_staff_cannot_create_lease(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    staff_token, _ = signup(client, "staff@example.com", "staff")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    r = client.post("/api/v1/leases", headers=auth_headers(staff_token), json=lease_payload(prop["id"], tenant["id"]))
    assert r.status_code == 403


# A failed lease insert leaves the property available
def test_failed_lease_insert_rolls_back_reservation(client: TestClient, db, monkeypatch):
    token, user = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    actor = Actor.from_user(db.get(models.User, user["id"]))

    def boom(obj):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(db, "add", boom)
    payload = schemas.LeaseCreate(**lease_payload(prop["id"], tenant["id"]))
    with pytest.raises(InternalError):
        lifecycle.create_lease(db, actor, payload)
    monkeypatch.undo()

    db.expire_all()
    assert db.get(models.Property, prop["id"]).status is PropertyStatus.AVAILABLE
    assert db.query(models.Lease).count() == 0
    assert property_status(client, token, prop["id"]) == "available"


def test_core_create_lease_conflict_when_reserved_underneath(client: TestClient, db):
    token, user = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    actor = Actor.from_user(db.get(models.User, user["id"]))

    # Load the property as available, then reserve it behind the session's back
    db.get(models.Property, prop["id"])
    other = SessionLocal()
    try:
        other.query(models.Property).filter(models.Property.id == prop["id"]).update(
            {models.Property.status: PropertyStatus.RESERVED}, synchronize_session=False
        )
        other.commit()
    finally:
        other.close()

    payload = schemas.LeaseCreate(**lease_payload(prop["id"], tenant["id"]))
    with pytest.raises(Conflict):
        lifecycle.create_lease(db, actor, payload)
    assert db.query(models.Lease).count() == 0


def test_delete_lease_restores_availability(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    lease = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"])).json()

    r = client.delete(f"/api/v1/leases/{lease['id']}", headers=auth_headers(token))
    assert r.status_code == 200, r.text
    assert property_status(client, token, prop["id"]) == "available"
    assert client.get(f"/api/v1/leases/{lease['id']}", headers=auth_headers(token)).status_code == 404

    # Re-leasable once released
    r = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"]))
    assert r.status_code == 201


def test_deleting_tenant_releases_leased_property(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"]))

    r = client.delete(f"/api/v1/tenants/{tenant['id']}", headers=auth_headers(token))
    assert r.status_code == 200, r.text
    assert property_status(client, token, prop["id"]) == "available"


def test_lease_status_transitions(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    lease = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"])).json()
    url = f"/api/v1/leases/{lease['id']}"

    assert client.put(url, headers=auth_headers(token), json={"status": "expired"}).status_code == 409
    r = client.put(url, headers=auth_headers(token), json={"status": "active", "notes": "keys handed over"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "active"
    assert r.json()["notes"] == "keys handed over"
    assert client.put(url, headers=auth_headers(token), json={"status": "pending"}).status_code == 409
    assert client.put(url, headers=auth_headers(token), json={"status": "terminated"}).status_code == 200
    # Terminal
    assert client.put(url, headers=auth_headers(token), json={"status": "active"}).status_code == 409

    assert client.put(url, headers=auth_headers(token), json={"end_date": "2025-06-01"}).status_code == 400


def test_lease_listing_scope_and_filters(client: TestClient, db):
    a_token, _ = signup(client, "a@example.com")
    b_token, _ = signup(client, "b@example.com")
    pa = create_property(client, a_token, "A")
    pb = create_property(client, b_token, "B")
    ta = create_tenant(client, a_token, "ta@example.com")
    tb = create_tenant(client, b_token, "tb@example.com")
    la = client.post("/api/v1/leases", headers=auth_headers(a_token), json=lease_payload(pa["id"], ta["id"])).json()
    lb = client.post("/api/v1/leases", headers=auth_headers(b_token), json=lease_payload(pb["id"], tb["id"])).json()

    assert [x["id"] for x in client.get("/api/v1/leases", headers=auth_headers(a_token)).json()] == [la["id"]]
    # A filter naming a foreign property yields nothing rather than leaking it
    r = client.get("/api/v1/leases", headers=auth_headers(a_token), params={"property_id": pb["id"]})
    assert r.json() == []
    assert client.get(f"/api/v1/leases/{lb['id']}", headers=auth_headers(a_token)).status_code == 403

    create_admin(db, "admin@rentalhub.com", "adminpass1")
    admin = client.post("/auth/login", json={"email": "admin@rentalhub.com", "password": "adminpass1"}).json()["access_token"]
    r = client.get("/api/v1/leases", headers=auth_headers(admin), params={"status": "pending"})
    assert {x["id"] for x in r.json()} == {la["id"], lb["id"]}


def test_payments_record_and_list(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    other_token, _ = signup(client, "l2@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    lease = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"])).json()
    url = f"/api/v1/leases/{lease['id']}/payments"

    r = client.post(
        url,
        headers=auth_headers(token),
        json={"amount_cents": 150000, "payment_method": "bank_transfer", "payment_type": "rent"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["status"] == "pending"
    assert r.json()["lease_id"] == lease["id"]

    r = client.post(
        url,
        headers=auth_headers(other_token),
        json={"amount_cents": 100, "payment_method": "cash", "payment_type": "late_fee"},
    )
    assert r.status_code == 403
    assert client.post(
        "/api/v1/leases/9999/payments",
        headers=auth_headers(token),
        json={"amount_cents": 100, "payment_method": "cash", "payment_type": "rent"},
    ).status_code == 404

    assert len(client.get(url, headers=auth_headers(token)).json()) == 1
    assert client.get(url, headers=auth_headers(other_token)).status_code == 403

    # Recording a payment never touches lease or property status
    assert client.get(f"/api/v1/leases/{lease['id']}", headers=auth_headers(token)).json()["status"] == "pending"
    assert property_status(client, token, prop["id"]) == "reserved"


class _BusyRedis:
    """Redis double whose lock is always held by someone else."""

    def set(self, *args, **kwargs):
        return None

    def eval(self, *args, **kwargs):
        return 0


class _FreeRedis:
    def __init__(self) -> None:
        self.released = []

    def set(self, *args, **kwargs):
        return True

    def eval(self, script, numkeys, key, token):
        self.released.append(key)
        return 1


def test_lease_create_answers_busy_when_lock_is_held(client: TestClient, monkeypatch):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)

    monkeypatch.setenv("REDIS_ENABLED", "true")
    reset_redis(_BusyRedis())
    r = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"]))
    assert r.status_code == 429
    assert r.json()["detail"] == {"error": "busy", "retry_after": 1}
    assert property_status(client, token, prop["id"]) == "available"


def test_lease_create_releases_lock(client: TestClient, monkeypatch):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)

    monkeypatch.setenv("REDIS_ENABLED", "true")
    fake = _FreeRedis()
    reset_redis(fake)
    r = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"]))
    assert r.status_code == 201, r.text
    assert fake.released == [f"lock:lease:property:{prop['id']}"]


def test_lease_statuses_are_closed(client: TestClient):
    token, _ = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    lease = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"])).json()
    r = client.put(f"/api/v1/leases/{lease['id']}", headers=auth_headers(token), json={"status": "signed"})
    assert r.status_code == 422


# A failure after the delete has been flushed leaves the lease and the reservation in place
def test_failed_lease_delete_rolls_back_release(client: TestClient, db, monkeypatch):
    token, user = signup(client, "l1@example.com")
    prop = create_property(client, token)
    tenant = create_tenant(client, token)
    lease = client.post("/api/v1/leases", headers=auth_headers(token), json=lease_payload(prop["id"], tenant["id"])).json()
    actor = Actor.from_user(db.get(models.User, user["id"]))

    def flush_then_fail():
        # The lease DELETE and the property UPDATE both reach the database before the failure
        db.flush()
        assert db.execute(
            models.Property.__table__.select().where(models.Property.__table__.c.id == prop["id"])
        ).one().status == PropertyStatus.AVAILABLE
        raise SQLAlchemyError("commit failed")

    monkeypatch.setattr(db, "commit", flush_then_fail)
    with pytest.raises(InternalError):
        lifecycle.delete_lease(db, actor, lease["id"])
    monkeypatch.undo()

    db.expire_all()
    assert db.get(models.Lease, lease["id"]) is not None
    assert db.get(models.Property, prop["id"]).status is PropertyStatus.RESERVED
    assert client.get(f"/api/v1/leases/{lease['id']}", headers=auth_headers(token)).status_code == 200
    assert property_status(client, token, prop["id"]) == "reserved"
