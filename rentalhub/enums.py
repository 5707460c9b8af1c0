# Closed vocabularies for roles and entity statuses.
# Stored by value in the database; unknown strings are rejected at the ORM and schema layers.
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    PROPERTY_COMPANY = "property_company"
    LANDLORD = "landlord"
    STAFF = "staff"


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    COMMERCIAL = "commercial"
    LAND = "land"


class PropertyStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


class EmploymentStatus(str, Enum):
    EMPLOYED = "employed"
    SELF_EMPLOYED = "self-employed"
    UNEMPLOYED = "unemployed"
    RETIRED = "retired"


class TenantStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    INACTIVE = "inactive"


class LeaseStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class MaintenancePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MaintenanceStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CASH = "cash"


class PaymentType(str, Enum):
    RENT = "rent"
    DEPOSIT = "deposit"
    LATE_FEE = "late_fee"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# Roles allowed to create top-level records (properties, tenants, leases, maintenance requests)
CREATOR_ROLES = frozenset({Role.ADMIN, Role.PROPERTY_COMPANY, Role.LANDLORD})

# Roles allowed to hand a maintenance request to a worker
ASSIGNER_ROLES = frozenset({Role.ADMIN, Role.PROPERTY_COMPANY})

MAINTENANCE_TERMINAL = frozenset({MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED})

# Legal lease status edges; statuses without an entry are terminal
LEASE_TRANSITIONS = {
    LeaseStatus.DRAFT: frozenset({LeaseStatus.PENDING}),
    LeaseStatus.PENDING: frozenset({LeaseStatus.ACTIVE, LeaseStatus.TERMINATED}),
    LeaseStatus.ACTIVE: frozenset({LeaseStatus.EXPIRED, LeaseStatus.TERMINATED}),
}

# Property statuses reachable through a plain update; available/reserved follow lease events only
EXTERNAL_PROPERTY_STATUSES = frozenset({PropertyStatus.RENTED, PropertyStatus.MAINTENANCE})
