"""
Currency normalization for payments.

Payments may arrive in a foreign currency. The engine stores the amount
in the company's base currency and keeps what the caller supplied
(original_amount, exchange_rate) alongside it. Exchange rates always come
from the caller; nothing here looks them up.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from gstcore.config import settings
from gstcore.core.exceptions import ValidationError
from gstcore.core.money import round_money, to_decimal


logger = logging.getLogger(__name__)


# Supported currencies and their minor-unit decimal places
SUPPORTED_CURRENCIES = {
    "INR": 2, "USD": 2, "EUR": 2, "GBP": 2, "AED": 2,
    "SAR": 2, "JPY": 0, "CNY": 2, "AUD": 2, "CAD": 2,
    "SGD": 2, "CHF": 2, "HKD": 2, "NZD": 2, "THB": 2,
    "MYR": 2, "IDR": 0, "BDT": 2, "PKR": 2, "LKR": 2,
}


@dataclass
class NormalizedAmount:
    amount: Decimal
    original_amount: Decimal
    currency_code: str
    exchange_rate: Decimal


def validate_currency_code(code: Optional[str]) -> str:
    code = (code or settings.BASE_CURRENCY).strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise ValidationError(
            f"Unsupported currency '{code}'",
            details={"field": "currency_code", "supported": sorted(SUPPORTED_CURRENCIES)},
        )
    return code


def convert(amount: Decimal, from_rate: Decimal, to_rate: Decimal) -> Decimal:
    """
    Convert between two currencies quoted against the base currency.

    Formula: (amount * from_rate) / to_rate
    """
    if from_rate == to_rate:
        return amount
    if to_rate == 0:
        return Decimal("0")
    return amount * from_rate / to_rate


def normalize_payment_amount(
    amount: Any = None,
    original_amount: Any = None,
    currency_code: Optional[str] = None,
    exchange_rate: Any = None,
    base_currency: Optional[str] = None,
) -> NormalizedAmount:
    """
    Fix the base-currency amount of a payment.

    Base currency:    original_amount = amount, exchange_rate = 1
    Foreign currency: amount = round(original_amount * exchange_rate, 2)
    """
    base = validate_currency_code(base_currency)
    currency = validate_currency_code(currency_code or base)

    if currency == base:
        value = round_money(to_decimal(amount, field="amount"))
        if value <= 0:
            raise ValidationError("Payment amount must be greater than zero", details={"field": "amount"})
        return NormalizedAmount(
            amount=value,
            original_amount=value,
            currency_code=base,
            exchange_rate=Decimal("1"),
        )

    if original_amount is None:
        raise ValidationError(
            f"original_amount is required for {currency} payments",
            details={"field": "original_amount"},
        )
    original = to_decimal(original_amount, field="original_amount")
    rate = to_decimal(exchange_rate, field="exchange_rate")
    if original <= 0:
        raise ValidationError("Payment amount must be greater than zero", details={"field": "original_amount"})
    if rate <= 0:
        raise ValidationError("exchange_rate must be greater than zero", details={"field": "exchange_rate"})

    converted = round_money(original * rate)
    logger.debug(f"Converted {original} {currency} at {rate} to {converted} {base}")

    return NormalizedAmount(
        amount=converted,
        original_amount=original,
        currency_code=currency,
        exchange_rate=rate,
    )
