import pytest

from src.hr_portal.hr_portal.common.validators import require_positive_amount, to_amount
from src.hr_portal.hr_portal.core.exceptions import ValidationError


@pytest.mark.parametrize("raw", [None, "", "abc", "nan", "inf", "-inf"])
def test_to_amount_falls_back_to_default(raw):
    assert to_amount(raw) == 0.0
    assert to_amount(raw, default=12.5) == 12.5


def test_to_amount_parses_numbers():
    assert to_amount(" 1500.50 ") == 1500.5
    assert to_amount(200) == 200.0


@pytest.mark.parametrize("raw", ["nan", "inf", "abc"])
def test_positive_amount_requires_a_real_number(raw):
    with pytest.raises(ValidationError, match="must be a number"):
        require_positive_amount(raw, "Amount")
