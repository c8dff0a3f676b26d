"""
Line item and document totals calculation.

Every figure is rounded to the paisa where it is computed, not only at the
end, so that the stored line amounts always add up to the stored subtotal.

    line_total      = quantity * rate
    discount_amount = line_total * discount_percent / 100
    amount          = line_total - discount_amount          (taxable value)
    tax             = amount * gst_rate / 100               (split IGST or CGST+SGST)

    total_amount    = subtotal - discount + igst + cgst + sgst + shipping
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Sequence

from gstcore.core.exceptions import ValidationError
from gstcore.core.money import ZERO, round_money, to_decimal
from gstcore.services.gst_service import is_inter_state, split_amount


HUNDRED = Decimal("100")

# Inputs are held at the scale of the columns that store them, so a line
# rebuilt from its stored row computes to the same amounts
INPUT_SCALES = {
    "quantity": Decimal("0.001"),
    "rate": Decimal("0.01"),
    "discount_percent": Decimal("0.001"),
    "gst_rate": Decimal("0.001"),
}

# Passed through to the stored item untouched
DESCRIPTIVE_FIELDS = ("item_name", "description", "hsn_code", "unit")


@dataclass
class CalculatedLineItem:
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    gst_rate: Decimal
    discount_amount: Decimal
    amount: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    sort_order: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def tax_amount(self) -> Decimal:
        return self.igst_amount + self.cgst_amount + self.sgst_amount

    def to_row(self) -> Dict[str, Any]:
        """Column values for a DocumentItem row."""
        return {
            **self.details,
            "sort_order": self.sort_order,
            "quantity": self.quantity,
            "rate": self.rate,
            "discount_percent": self.discount_percent,
            "gst_rate": self.gst_rate,
            "discount_amount": self.discount_amount,
            "amount": self.amount,
            "igst_amount": self.igst_amount,
            "cgst_amount": self.cgst_amount,
            "sgst_amount": self.sgst_amount,
        }


@dataclass
class DocumentTotals:
    items: List[CalculatedLineItem]
    is_inter_state: bool
    subtotal: Decimal
    discount_amount: Decimal
    shipping_charge: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    total_amount: Decimal

    @property
    def total_tax(self) -> Decimal:
        return self.igst_amount + self.cgst_amount + self.sgst_amount


def _non_negative(item: Mapping[str, Any], name: str, index: int) -> Decimal:
    value = to_decimal(item.get(name), field=f"items[{index}].{name}")
    if value < 0:
        raise ValidationError(
            f"{name} cannot be negative",
            details={"field": f"items[{index}].{name}", "value": str(value)},
        )
    return value.quantize(INPUT_SCALES[name], rounding=ROUND_HALF_UP)


def compute_line_item(item: Mapping[str, Any], inter_state: bool, index: int = 0) -> CalculatedLineItem:
    """Compute one line once the jurisdiction is already known."""
    quantity = _non_negative(item, "quantity", index)
    rate = _non_negative(item, "rate", index)
    discount_percent = _non_negative(item, "discount_percent", index)
    gst_rate = _non_negative(item, "gst_rate", index)

    line_total = quantity * rate
    discount_amount = line_total * discount_percent / HUNDRED
    if discount_amount > line_total:
        raise ValidationError(
            f"Discount on line {index + 1} exceeds the line total",
            details={
                "field": f"items[{index}].discount_percent",
                "line_total": str(round_money(line_total)),
                "discount_amount": str(round_money(discount_amount)),
            },
        )

    discount_amount = round_money(discount_amount)
    amount = round_money(line_total) - discount_amount
    tax_total = round_money(amount * gst_rate / HUNDRED)
    split = split_amount(tax_total, inter_state)

    return CalculatedLineItem(
        quantity=quantity,
        rate=rate,
        discount_percent=discount_percent,
        gst_rate=gst_rate,
        discount_amount=discount_amount,
        amount=amount,
        igst_amount=split.igst,
        cgst_amount=split.cgst,
        sgst_amount=split.sgst,
        sort_order=index,
        details={k: item.get(k) for k in DESCRIPTIVE_FIELDS if k in item},
    )


def calculate_line_item(
    item: Mapping[str, Any],
    company_state: Optional[str],
    party_state: Optional[str],
    company_gstin: Optional[str] = None,
    party_gstin: Optional[str] = None,
    index: int = 0,
) -> CalculatedLineItem:
    """Compute a single line's taxable amount and GST split."""
    inter_state = is_inter_state(company_state, party_state, company_gstin, party_gstin)
    return compute_line_item(item, inter_state, index)


def calculate_document_totals(
    items: Sequence[Mapping[str, Any]],
    company_state: Optional[str],
    party_state: Optional[str],
    company_gstin: Optional[str] = None,
    party_gstin: Optional[str] = None,
    discount_amount: Any = None,
    shipping_charge: Any = None,
) -> DocumentTotals:
    """
    Compute every line and roll them up into document totals.

    Jurisdiction is resolved once per document, so all lines share the same
    IGST vs CGST + SGST treatment.
    """
    discount = to_decimal(discount_amount, field="discount_amount")
    shipping = to_decimal(shipping_charge, field="shipping_charge")
    if discount < 0:
        raise ValidationError("discount_amount cannot be negative", details={"field": "discount_amount"})
    if shipping < 0:
        raise ValidationError("shipping_charge cannot be negative", details={"field": "shipping_charge"})
    discount = round_money(discount)
    shipping = round_money(shipping)

    inter_state = is_inter_state(company_state, party_state, company_gstin, party_gstin)
    calculated = [compute_line_item(item, inter_state, idx) for idx, item in enumerate(items)]

    subtotal = sum((c.amount for c in calculated), ZERO)
    igst = sum((c.igst_amount for c in calculated), ZERO)
    cgst = sum((c.cgst_amount for c in calculated), ZERO)
    sgst = sum((c.sgst_amount for c in calculated), ZERO)

    gross = subtotal + igst + cgst + sgst + shipping
    if discount > gross:
        raise ValidationError(
            "Document discount exceeds the document value",
            details={"discount_amount": str(discount), "document_value": str(gross)},
        )

    total_amount = round_money(subtotal - discount + igst + cgst + sgst + shipping)

    return DocumentTotals(
        items=calculated,
        is_inter_state=inter_state,
        subtotal=subtotal,
        discount_amount=discount,
        shipping_charge=shipping,
        igst_amount=igst,
        cgst_amount=cgst,
        sgst_amount=sgst,
        total_amount=total_amount,
    )
