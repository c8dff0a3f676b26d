"""
Post-condition checks on documents and payments.

Services call these right before returning; a failure raises
InvariantViolationError so the surrounding transaction is rolled back
instead of committing inconsistent totals.
"""
import logging
from decimal import Decimal
from typing import Iterable

from gstcore.core.exceptions import InvariantViolationError
from gstcore.core.money import ZERO, amounts_match


logger = logging.getLogger(__name__)


def _fail(message: str, **details) -> None:
    logger.error(f"Invariant violated: {message} {details}")
    raise InvariantViolationError(message, details={k: str(v) for k, v in details.items()})


def check_document_totals(document, items: Iterable = None) -> None:
    """Line amounts sum to subtotal; header fields sum to total_amount."""
    items = list(document.items if items is None else items)
    line_sum = sum((Decimal(i.amount) for i in items), ZERO)
    if not amounts_match(line_sum, document.subtotal):
        _fail(
            "line amounts do not add up to subtotal",
            document=document.document_number, line_sum=line_sum, subtotal=document.subtotal,
        )

    expected_total = (
        document.subtotal
        - document.discount_amount
        + document.igst_amount
        + document.cgst_amount
        + document.sgst_amount
        + document.shipping_charge
    )
    if not amounts_match(expected_total, document.total_amount):
        _fail(
            "document components do not add up to total_amount",
            document=document.document_number, expected=expected_total, total_amount=document.total_amount,
        )


def check_document_balance(document) -> None:
    """balance_due == max(total_amount - amount_paid, 0) and amount_paid >= 0."""
    if document.amount_paid < 0:
        _fail("amount_paid is negative", document=document.document_number, amount_paid=document.amount_paid)

    expected = max(document.total_amount - document.amount_paid, ZERO)
    if document.balance_due != expected:
        _fail(
            "balance_due does not match total_amount - amount_paid",
            document=document.document_number, balance_due=document.balance_due, expected=expected,
        )


def check_payment_allocations(payment, allocated_total: Decimal) -> None:
    """Allocations never exceed the payment; the rest is excess_amount."""
    if allocated_total > payment.amount:
        _fail(
            "allocations exceed payment amount",
            payment=payment.payment_number, allocated=allocated_total, amount=payment.amount,
        )
    if payment.excess_amount != payment.amount - allocated_total:
        _fail(
            "excess_amount does not match unallocated remainder",
            payment=payment.payment_number, excess=payment.excess_amount,
            expected=payment.amount - allocated_total,
        )


def check_document_invariants(document, items: Iterable = None) -> None:
    check_document_totals(document, items)
    check_document_balance(document)


def check_payment_invariants(payment, allocations: Iterable = None) -> None:
    allocations = list(payment.allocations if allocations is None else allocations)
    allocated_total = sum((Decimal(a.allocated_amount) for a in allocations), ZERO)
    if any(a.allocated_amount <= 0 for a in allocations):
        _fail("allocation amount must be positive", payment=payment.payment_number)
    check_payment_allocations(payment, allocated_total)


def check_document_allocations(document, allocated_total: Decimal) -> None:
    """amount_paid equals the sum of the document's allocations."""
    if allocated_total != document.amount_paid:
        _fail(
            "amount_paid does not match allocations",
            document=document.document_number, amount_paid=document.amount_paid, allocated=allocated_total,
        )
