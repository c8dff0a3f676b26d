"""Fixed-point money helpers.

Every monetary value in the engine is a Decimal quantized to paise.
Rounding is ROUND_HALF_UP, which is what invoices printed by hand use.
"""
from decimal import Decimal, ROUND_HALF_UP, ROUND_CEILING, InvalidOperation
from typing import Any

from num2words import num2words

from gstcore.core.exceptions import ValidationError


CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Totals may drift by at most one paisa when summed from rounded lines
ROUNDING_TOLERANCE = CENT


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Convert user input (str, int, Decimal, None) to Decimal."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"'{value}' is not a valid number for {field}", details={"field": field})
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    return result


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def ceil_to_cent(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_CEILING)


def amounts_match(a: Decimal, b: Decimal, tolerance: Decimal = ROUNDING_TOLERANCE) -> bool:
    return abs(a - b) <= tolerance


def amount_to_words(amount: Decimal) -> str:
    """Convert amount to words (Indian numbering system)."""
    amount = round_money(amount)
    rupees = int(amount)
    paise = int((amount - rupees) * 100)

    words = num2words(rupees, lang='en_IN').replace(",", "")
    if paise > 0:
        paise_words = num2words(paise, lang='en_IN').replace(",", "")
        return f"Rupees {words.title()} and {paise_words.title()} Paise Only"

    return f"Rupees {words.title()} Only"
