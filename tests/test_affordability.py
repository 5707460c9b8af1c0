from types import SimpleNamespace

import pytest

from rentalhub.affordability import affordability
from rentalhub.errors import ValidationError


def check(income_cents, rent_cents):
    return affordability(SimpleNamespace(monthly_income_cents=income_cents), SimpleNamespace(rent_cents=rent_cents))


def test_within_thirty_percent():
    result = check(600000, 150000)
    assert result.is_affordable is True
    assert result.percentage_of_income == 25.0
    assert result.monthly_income_cents == 600000
    assert result.monthly_rent_cents == 150000


def test_over_thirty_percent():
    result = check(600000, 250000)
    assert result.is_affordable is False
    assert result.percentage_of_income == 41.67


def test_exactly_thirty_percent_is_affordable():
    assert check(1000000, 300000).is_affordable is True
    assert check(1000000, 300001).is_affordable is False


def test_same_inputs_same_answer():
    assert check(432100, 123400) == check(432100, 123400)


@pytest.mark.parametrize("income", [0, None, -100])
def test_missing_income_is_rejected(income):
    with pytest.raises(ValidationError):
        check(income, 100000)
