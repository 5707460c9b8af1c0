# Rent affordability: the 30%-of-income rule used when screening tenants for a property.
from __future__ import annotations

from dataclasses import dataclass

from .errors import ValidationError

# Rent may take at most 3/10 of monthly income
_MAX_RENT_SHARE_NUM = 3
_MAX_RENT_SHARE_DEN = 10


@dataclass(frozen=True)
class Affordability:
    is_affordable: bool
    percentage_of_income: float
    monthly_income_cents: int
    monthly_rent_cents: int


def affordability(tenant, property) -> Affordability:
    """
    Compare a property's rent with a tenant's monthly income.

    Pure: reads tenant.monthly_income_cents and property.rent_cents only.
    The threshold comparison is done in integers so 30% exactly is affordable.
    Raises ValidationError when income is missing or zero.
    """
    income = tenant.monthly_income_cents
    rent = property.rent_cents
    if not income or income <= 0:
        raise ValidationError("Tenant monthly income must be greater than zero")
    if rent is None or rent < 0:
        raise ValidationError("Property rent is not set")

    return Affordability(
        is_affordable=rent * _MAX_RENT_SHARE_DEN <= income * _MAX_RENT_SHARE_NUM,
        percentage_of_income=round(rent / income * 100, 2),
        monthly_income_cents=income,
        monthly_rent_cents=rent,
    )
