from decimal import Decimal

import pytest

from gstcore.core.exceptions import ValidationError
from gstcore.services.currency_service import (
    SUPPORTED_CURRENCIES,
    convert,
    normalize_payment_amount,
    validate_currency_code,
)


def test_base_currency_payment():
    normalized = normalize_payment_amount(amount="364000", base_currency="INR")
    assert normalized.amount == Decimal("364000.00")
    assert normalized.original_amount == Decimal("364000.00")
    assert normalized.currency_code == "INR"
    assert normalized.exchange_rate == Decimal("1")


def test_foreign_currency_payment_is_converted():
    normalized = normalize_payment_amount(
        original_amount="1000", currency_code="usd", exchange_rate="83.125", base_currency="INR",
    )
    assert normalized.currency_code == "USD"
    assert normalized.amount == Decimal("83125.00")
    assert normalized.original_amount == Decimal("1000")
    assert normalized.exchange_rate == Decimal("83.125")


def test_conversion_rounds_half_up():
    normalized = normalize_payment_amount(
        original_amount="10.01", currency_code="EUR", exchange_rate="90.005", base_currency="INR",
    )
    # 10.01 * 90.005 = 900.95005
    assert normalized.amount == Decimal("900.95")


def test_foreign_payment_needs_original_amount():
    with pytest.raises(ValidationError) as exc:
        normalize_payment_amount(amount="100", currency_code="USD", exchange_rate="83", base_currency="INR")
    assert exc.value.details["field"] == "original_amount"


@pytest.mark.parametrize("rate", ["0", "-1", None])
def test_foreign_payment_needs_positive_rate(rate):
    with pytest.raises(ValidationError):
        normalize_payment_amount(original_amount="100", currency_code="USD", exchange_rate=rate, base_currency="INR")


@pytest.mark.parametrize("amount", ["0", "-10", None])
def test_non_positive_amount_rejected(amount):
    with pytest.raises(ValidationError):
        normalize_payment_amount(amount=amount, base_currency="INR")


def test_unknown_currency_rejected():
    with pytest.raises(ValidationError):
        validate_currency_code("XYZ")
    assert validate_currency_code(" gbp ") == "GBP"
    assert SUPPORTED_CURRENCIES["JPY"] == 0


def test_convert_between_quoted_currencies():
    # 100 USD at 83 -> EUR at 90
    assert convert(Decimal("100"), Decimal("83"), Decimal("90")).quantize(Decimal("0.01")) == Decimal("92.22")
    assert convert(Decimal("5"), Decimal("1"), Decimal("1")) == Decimal("5")
