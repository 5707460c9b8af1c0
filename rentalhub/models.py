# SQLAlchemy ORM models for the rental domain (users, properties, tenants, leases, maintenance, payments).
# Keep business logic out of models; transitions and authorization live in lifecycle.py and access.py.
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
    func,
)
from sqlalchemy.orm import declarative_mixin, relationship

from .db import Base
from .enums import (
    EmploymentStatus,
    LeaseStatus,
    MaintenancePriority,
    MaintenanceStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
    PropertyStatus,
    PropertyType,
    Role,
    TenantStatus,
)


def _enum(enum_cls):
    # Persist enum values ("in_progress"), not member names ("IN_PROGRESS")
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=20,
        validate_strings=True,
        values_callable=lambda cls: [m.value for m in cls],
    )


@declarative_mixin
class TimestampMixin:
    """Common UTC-aware timestamps automatically managed by the database.

    - created_at: set on insert
    - updated_at: set on insert and updated on each modification
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class User(Base, TimestampMixin):
    """Authenticated account acting on the API.

    Roles:
    - admin: unrestricted
    - property_company / landlord: own properties and everything hanging off them
    - staff: reads/updates within literal ownership only; cannot create records

    parent_id links staff to a company account. It is stored but not consulted by access checks.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(_enum(Role), nullable=False, index=True)
    company_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    parent = relationship("User", remote_side=[id], backref="children")


class Property(Base, TimestampMixin):
    """Rental unit owned by exactly one user; the root of every ownership check."""
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(_enum(PropertyType), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Float, nullable=True)
    square_footage = Column(Integer, nullable=True)
    rent_cents = Column(Integer, nullable=False)
    deposit_cents = Column(Integer, nullable=False)
    status = Column(_enum(PropertyStatus), nullable=False, default=PropertyStatus.AVAILABLE)
    description = Column(Text, nullable=True)
    amenities = Column(JSON, nullable=True)

    owner = relationship("User")
    leases = relationship("Lease", back_populates="property", cascade="all, delete-orphan")
    maintenance_requests = relationship("Maintenance", back_populates="property", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_properties_status", "status"),
    )


class Tenant(Base, TimestampMixin):
    """Applicant/occupant profile. Has no owner; visibility is derived from its leases."""
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    employment_status = Column(_enum(EmploymentStatus), nullable=False)
    employer_name = Column(String(255), nullable=True)
    employment_start_date = Column(Date, nullable=True)
    monthly_income_cents = Column(Integer, nullable=False)
    credit_score = Column(Integer, nullable=True)
    previous_address = Column(Text, nullable=True)
    previous_landlord = Column(String(255), nullable=True)
    previous_landlord_phone = Column(String(50), nullable=True)
    emergency_contact = Column(String(255), nullable=False)
    emergency_contact_phone = Column(String(50), nullable=False)
    emergency_contact_relation = Column(String(100), nullable=False)
    status = Column(_enum(TenantStatus), nullable=False, default=TenantStatus.PENDING)
    notes = Column(Text, nullable=True)

    leases = relationship("Lease", back_populates="tenant", cascade="all, delete-orphan")


class Lease(Base, TimestampMixin):
    """Agreement between a property and a tenant.

    Status transitions:
    draft -> pending -> active -> expired
               └── terminated ──┘

    Creating a lease reserves its property; deleting it makes the property available again.
    """
    __tablename__ = "leases"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    rent_cents = Column(Integer, nullable=False)
    deposit_cents = Column(Integer, nullable=False)
    payment_due_day = Column(Integer, nullable=False)
    late_fee_percentage = Column(Float, nullable=False, default=5.0)
    late_fee_grace_period = Column(Integer, nullable=False, default=5)
    status = Column(_enum(LeaseStatus), nullable=False, default=LeaseStatus.DRAFT)
    terms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    property = relationship("Property", back_populates="leases")
    tenant = relationship("Tenant", back_populates="leases")
    payments = relationship("Payment", back_populates="lease", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_leases_status", "status"),
    )


class Maintenance(Base, TimestampMixin):
    """Maintenance request against a property.

    Status transitions:
    pending -> in_progress -> completed
       └──────────┴────────-> cancelled
    completed and cancelled are terminal.
    """
    __tablename__ = "maintenance_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    reported_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(_enum(MaintenancePriority), nullable=False, default=MaintenancePriority.MEDIUM)
    status = Column(_enum(MaintenanceStatus), nullable=False, default=MaintenanceStatus.PENDING)
    reported_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    scheduled_date = Column(DateTime(timezone=True), nullable=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)
    cost_cents = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    property = relationship("Property", back_populates="maintenance_requests")
    reporter = relationship("User", foreign_keys=[reported_by])
    assignee = relationship("User", foreign_keys=[assigned_to])

    __table_args__ = (
        Index("ix_maintenance_requests_status", "status"),
    )


class Payment(Base, TimestampMixin):
    """Money received against a lease. A leaf record: recording it changes no other status."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    lease_id = Column(Integer, ForeignKey("leases.id"), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    payment_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    payment_method = Column(_enum(PaymentMethod), nullable=False)
    payment_type = Column(_enum(PaymentType), nullable=False)
    status = Column(_enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    transaction_id = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    lease = relationship("Lease", back_populates="payments")


@event.listens_for(Lease, "after_delete")
def release_property(mapper, connection, target: Lease) -> None:
    # Runs inside the deleting flush, so the property update commits or rolls back with the delete
    properties = Property.__table__
    connection.execute(
        properties.update()
        .where(properties.c.id == target.property_id)
        .values(status=PropertyStatus.AVAILABLE)
    )
