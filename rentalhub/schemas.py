# Pydantic models (request/response DTOs) used by the API layer.
# Keep models minimal and serializable; transitions and authorization live in lifecycle/access.
from pydantic import BaseModel, Field, ConfigDict, field_validator, EmailStr
from typing import List, Optional
from datetime import date, datetime

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


def _strip(v):
    if isinstance(v, str):
        v = v.strip()
    return v


def _normalize_email(v):
    if isinstance(v, str):
        v = v.strip().lower()
    return v


# Authentication and user models

# Common user fields shared by create/read
class UserBase(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v: str) -> str:
        return _strip(v)


# Request payload for user registration
class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    role: Role = Role.LANDLORD
    parent_id: Optional[int] = Field(None, ge=1)

    # Admin accounts are provisioned out of band (see create_admin.py)
    @field_validator("role")
    @classmethod
    def reject_admin(cls, v: Role) -> Role:
        if v is Role.ADMIN:
            raise ValueError("admin accounts cannot be self-registered")
        return v


# API response for a user record
class UserRead(UserBase):
    id: int
    role: Role
    is_active: bool
    parent_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# Request payload for logging in
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


# OAuth2-style token response bundled with the current user profile
class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


# Profile fields a user may change about themselves (role and email are fixed)
class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


# Properties
# Descriptive attributes for a property listing (shared by create/read)
class PropertyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: PropertyType
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    square_footage: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    amenities: Optional[List[str]] = None

    @field_validator("name", "city", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        # Trim surrounding whitespace before validation
        return _strip(v)


# Payload for creating a new property.
# Pricing is optional here so a missing price surfaces as a domain validation error.
class PropertyCreate(PropertyBase):
    rent_cents: Optional[int] = Field(None, ge=0)
    deposit_cents: Optional[int] = Field(None, ge=0)


# Partial update; status accepts only the externally managed states (rented, maintenance)
class PropertyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[PropertyType] = None
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    square_footage: Optional[int] = Field(None, ge=0)
    rent_cents: Optional[int] = Field(None, ge=0)
    deposit_cents: Optional[int] = Field(None, ge=0)
    status: Optional[PropertyStatus] = None
    description: Optional[str] = None
    amenities: Optional[List[str]] = None


# Response shape when reading a property from the API
class PropertyRead(PropertyBase):
    id: int
    owner_id: int
    rent_cents: int
    deposit_cents: int
    status: PropertyStatus

    model_config = ConfigDict(from_attributes=True)


# Tenants
class TenantBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    employment_status: EmploymentStatus
    employer_name: Optional[str] = Field(None, max_length=255)
    employment_start_date: Optional[date] = None
    monthly_income_cents: int = Field(..., ge=0)
    credit_score: Optional[int] = Field(None, ge=300, le=850)
    previous_address: Optional[str] = None
    previous_landlord: Optional[str] = Field(None, max_length=255)
    previous_landlord_phone: Optional[str] = Field(None, max_length=50)
    emergency_contact: str = Field(..., min_length=1, max_length=255)
    emergency_contact_phone: str = Field(..., min_length=1, max_length=50)
    emergency_contact_relation: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class TenantCreate(TenantBase):
    status: TenantStatus = TenantStatus.PENDING


class TenantUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=50)
    employment_status: Optional[EmploymentStatus] = None
    employer_name: Optional[str] = Field(None, max_length=255)
    employment_start_date: Optional[date] = None
    monthly_income_cents: Optional[int] = Field(None, ge=0)
    credit_score: Optional[int] = Field(None, ge=300, le=850)
    previous_address: Optional[str] = None
    previous_landlord: Optional[str] = Field(None, max_length=255)
    previous_landlord_phone: Optional[str] = Field(None, max_length=50)
    emergency_contact: Optional[str] = Field(None, min_length=1, max_length=255)
    emergency_contact_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    emergency_contact_relation: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[TenantStatus] = None
    notes: Optional[str] = None


class TenantRead(TenantBase):
    id: int
    status: TenantStatus

    model_config = ConfigDict(from_attributes=True)


# Request payload for the affordability check
class AffordabilityRequest(BaseModel):
    property_id: int = Field(..., ge=1)


class AffordabilityResponse(BaseModel):
    is_affordable: bool
    percentage_of_income: float
    monthly_income_cents: int
    monthly_rent_cents: int

    model_config = ConfigDict(from_attributes=True)


# Leases
# Financial terms shared by create/read
class LeaseTerms(BaseModel):
    start_date: date
    end_date: date
    rent_cents: int = Field(..., ge=0)
    deposit_cents: int = Field(..., ge=0)
    payment_due_day: int = Field(..., ge=1, le=31)
    late_fee_percentage: float = Field(5.0, ge=0, le=100)
    late_fee_grace_period: int = Field(5, ge=0)
    terms: Optional[str] = None
    notes: Optional[str] = None


# Request payload for creating a lease; status is always set by the server
class LeaseCreate(LeaseTerms):
    property_id: int = Field(..., ge=1)
    tenant_id: int = Field(..., ge=1)


class LeaseUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rent_cents: Optional[int] = Field(None, ge=0)
    deposit_cents: Optional[int] = Field(None, ge=0)
    payment_due_day: Optional[int] = Field(None, ge=1, le=31)
    late_fee_percentage: Optional[float] = Field(None, ge=0, le=100)
    late_fee_grace_period: Optional[int] = Field(None, ge=0)
    status: Optional[LeaseStatus] = None
    terms: Optional[str] = None
    notes: Optional[str] = None


# API response for a lease record
class LeaseRead(LeaseTerms):
    id: int
    property_id: int
    tenant_id: int
    status: LeaseStatus

    model_config = ConfigDict(from_attributes=True)


# Maintenance
class MaintenanceCreate(BaseModel):
    property_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    scheduled_date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _strip(v)


# Descriptive edits only; status and assignee move through assign/complete/cancel
class MaintenanceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    priority: Optional[MaintenancePriority] = None
    scheduled_date: Optional[datetime] = None
    notes: Optional[str] = None


class MaintenanceAssign(BaseModel):
    assigned_to: int = Field(..., ge=1)


class MaintenanceComplete(BaseModel):
    cost_cents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class MaintenanceCancel(BaseModel):
    notes: Optional[str] = None


class MaintenanceRead(BaseModel):
    id: int
    property_id: int
    reported_by: int
    assigned_to: Optional[int] = None
    title: str
    description: str
    priority: MaintenancePriority
    status: MaintenanceStatus
    reported_date: datetime
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    cost_cents: Optional[int] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Payments
class PaymentCreate(BaseModel):
    amount_cents: int = Field(..., gt=0)
    payment_method: PaymentMethod
    payment_type: PaymentType
    status: PaymentStatus = PaymentStatus.PENDING
    payment_date: Optional[datetime] = None
    transaction_id: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class PaymentRead(BaseModel):
    id: int
    lease_id: int
    amount_cents: int
    payment_method: PaymentMethod
    payment_type: PaymentType
    status: PaymentStatus
    payment_date: datetime
    transaction_id: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Generic acknowledgement for deletes
class MessageResponse(BaseModel):
    message: str
