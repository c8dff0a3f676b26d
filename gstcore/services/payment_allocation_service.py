"""
Payment Allocation Engine

Applies a payment against one or more outstanding documents and reverses
it again when the payment is deleted.

For every document touched:

    amount_paid  == sum(allocated_amount of its allocations)
    balance_due  == max(total_amount - amount_paid, 0)
    status       == Paid     if balance_due <= 0
                    Partial  if 0 < amount_paid < total_amount
                    open_status (the status it held before the first payment) otherwise

and for the payment:

    sum(allocated_amount) <= amount,   excess_amount = amount - sum(allocated_amount)

Every entry is validated before the first write, so a rejected request leaves
no allocation behind even before the caller rolls back.
Target documents are locked in id order, whatever order the entries come in.
"""
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from gstcore.core.exceptions import (
    ConflictError, InvariantViolationError, NotFoundError, StateTransitionError, ValidationError,
)
from gstcore.core.invariants import (
    check_document_allocations, check_document_balance, check_payment_invariants,
)
from gstcore.core.money import ZERO, round_money, to_decimal
from gstcore.models.document import (
    Document, DocumentStatus, DocumentType, DOCUMENT_STATUS_RULES, SETTLEMENT_STATUSES,
)
from gstcore.models.payment import Payment, PaymentAllocation, PaymentDirection
from gstcore.services.document_service import settlement_status


logger = logging.getLogger(__name__)


# Document type a payment of each direction may settle
ALLOCATABLE_TYPES = {
    PaymentDirection.RECEIVED.value: DocumentType.INVOICE.value,
    PaymentDirection.MADE.value: DocumentType.BILL.value,
}


@dataclass
class AllocationResult:
    payment_id: uuid.UUID
    total_allocated: Decimal
    excess_amount: Decimal
    documents: List[Document] = field(default_factory=list)


def _open_status(document: Document) -> str:
    if document.open_status:
        return document.open_status
    return DOCUMENT_STATUS_RULES[DocumentType(document.document_type)]["open"].value


def _document_id(value: Any, index: int) -> Optional[uuid.UUID]:
    if not value:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(
            f"'{value}' is not a valid document id",
            details={"field": f"allocations[{index}].document_id"},
        )


class PaymentAllocationService:
    """Keeps documents' paid amount, balance and status in step with payment allocations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _lock_document(self, document_id: uuid.UUID) -> Document:
        result = await self.db.execute(
            select(Document)
            .where(Document.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _lock_documents(self, document_ids) -> Dict[uuid.UUID, Document]:
        """Lock documents FOR UPDATE in id order; ids that match no row are left out."""
        locked: Dict[uuid.UUID, Document] = {}
        for document_id in sorted(set(document_ids), key=str):
            document = await self._lock_document(document_id)
            if document is not None:
                locked[document_id] = document
        return locked

    async def _check_paid_matches_allocations(self, document: Document) -> None:
        result = await self.db.execute(
            select(func.coalesce(func.sum(PaymentAllocation.allocated_amount), 0))
            .where(PaymentAllocation.document_id == document.id)
        )
        check_document_allocations(document, round_money(Decimal(str(result.scalar()))))

    async def _validate(
        self,
        payment: Payment,
        allocations: Sequence[Mapping[str, Any]],
    ) -> List[Tuple[Document, Decimal]]:
        """
        Check every entry and lock the target documents.

        Returns (document, amount) per entry in the order given.
        """
        expected_type = ALLOCATABLE_TYPES.get(payment.direction)
        if expected_type is None:
            raise ValidationError(
                f"Unknown payment direction '{payment.direction}'",
                details={"field": "direction"},
            )

        parsed: List[Tuple[Optional[uuid.UUID], Decimal]] = []
        for idx, entry in enumerate(allocations):
            amount = round_money(to_decimal(entry.get("allocated_amount"), field=f"allocations[{idx}].allocated_amount"))
            if amount <= 0:
                raise ValidationError(
                    "Allocated amount must be greater than zero",
                    details={"field": f"allocations[{idx}].allocated_amount", "value": str(amount)},
                )
            parsed.append((_document_id(entry.get("document_id"), idx), amount))

        locked = await self._lock_documents(document_id for document_id, _ in parsed if document_id)

        entries: List[Tuple[Document, Decimal]] = []
        requested: Dict[uuid.UUID, Decimal] = OrderedDict()
        running_total = ZERO

        for idx, (document_id, amount) in enumerate(parsed):
            document = locked.get(document_id)
            if not document:
                raise NotFoundError(
                    f"Document {document_id} not found",
                    details={"field": f"allocations[{idx}].document_id", "document_id": str(document_id)},
                )
            if document.document_type != expected_type:
                raise ValidationError(
                    f"A {payment.direction.lower()} payment cannot be allocated to a "
                    f"{document.document_type.lower()}",
                    details={"document_number": document.document_number, "expected_type": expected_type},
                )
            if document.status == DocumentStatus.CANCELLED.value:
                raise StateTransitionError(
                    f"Cannot allocate a payment to cancelled {document.document_number}",
                    details={"document_number": document.document_number},
                )
            entries.append((document, amount))
            requested[document.id] = requested.get(document.id, ZERO) + amount

            running_total += amount
            if running_total > payment.amount:
                raise ConflictError(
                    "Allocated amounts exceed the payment amount",
                    details={"payment_amount": str(payment.amount), "allocated": str(running_total)},
                )

        for document_id, total in requested.items():
            document = locked[document_id]
            if total > document.balance_due:
                raise ConflictError(
                    f"Allocation of {total} exceeds balance due on {document.document_number}",
                    details={
                        "document_number": document.document_number,
                        "balance_due": str(document.balance_due),
                        "allocated": str(total),
                    },
                )

        return entries

    async def apply_allocations(
        self,
        payment: Payment,
        allocations: Sequence[Mapping[str, Any]],
    ) -> AllocationResult:
        """
        Allocate a payment to documents, in the order given.

        Args:
            payment: a flushed Payment with amount in base currency
            allocations: [{"document_id": UUID, "allocated_amount": Decimal}, ...]

        Raises:
            ValidationError: non-positive amount or wrong document type
            NotFoundError: unknown document
            ConflictError: allocations exceed the payment or a document's balance
        """
        entries = await self._validate(payment, allocations)

        total_allocated = ZERO
        for document, amount in entries:
            allocation = PaymentAllocation(
                payment_id=payment.id,
                document_id=document.id,
                allocated_amount=amount,
            )
            payment.allocations.append(allocation)

            if document.status not in SETTLEMENT_STATUSES:
                document.open_status = document.status

            document.amount_paid = document.amount_paid + amount
            document.balance_due = max(document.total_amount - document.amount_paid, ZERO)
            document.status = settlement_status(document) or document.status

            total_allocated += amount
            logger.info(
                f"Allocated {amount} of {payment.payment_number} to {document.document_number}: "
                f"paid={document.amount_paid} balance={document.balance_due} status={document.status}"
            )

        payment.excess_amount = max(payment.amount - total_allocated, ZERO)
        await self.db.flush()

        documents = list({document.id: document for document, _ in entries}.values())
        for document in documents:
            check_document_balance(document)
            await self._check_paid_matches_allocations(document)
        check_payment_invariants(payment)

        if payment.excess_amount > 0:
            logger.info(f"Payment {payment.payment_number} has {payment.excess_amount} unallocated")

        return AllocationResult(
            payment_id=payment.id,
            total_allocated=total_allocated,
            excess_amount=payment.excess_amount,
            documents=documents,
        )

    async def reverse_allocations(self, payment: Payment) -> List[Document]:
        """
        Undo every allocation of a payment, then delete the payment.

        A document that ends up with nothing paid returns to the status it
        held before its first payment.
        """
        allocations = list(payment.allocations)
        locked = await self._lock_documents(a.document_id for a in allocations)
        touched: Dict[uuid.UUID, Document] = OrderedDict()

        for allocation in allocations:
            document = locked.get(allocation.document_id)
            if document is None:
                raise InvariantViolationError(
                    f"Allocation {allocation.id} points at a missing document",
                    details={"document_id": str(allocation.document_id)},
                )
            touched[document.id] = document

            document.amount_paid = max(document.amount_paid - allocation.allocated_amount, ZERO)
            document.balance_due = max(document.total_amount - document.amount_paid, ZERO)
            document.status = settlement_status(document) or _open_status(document)

            logger.info(
                f"Reversed {allocation.allocated_amount} of {payment.payment_number} from "
                f"{document.document_number}: paid={document.amount_paid} status={document.status}"
            )

        # Allocation rows are deleted ahead of the payment row by the cascade
        await self.db.delete(payment)
        await self.db.flush()

        for document in touched.values():
            check_document_balance(document)
            await self._check_paid_matches_allocations(document)

        return list(touched.values())
