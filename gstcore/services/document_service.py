"""
Document persistence for every financial document type.

Creating or updating a document always recomputes its items and totals from
the submitted lines; amount_paid is never taken from the caller and is only
changed by the payment allocation engine.
"""
import logging
import uuid
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gstcore.core.exceptions import (
    ConflictError, NotFoundError, StateTransitionError, ValidationError,
)
from gstcore.core.invariants import check_document_invariants
from gstcore.core.money import ZERO, amount_to_words
from gstcore.models.company import Company
from gstcore.models.document import (
    Document, DocumentItem, DocumentStatus, DocumentType,
    DOCUMENT_STATUS_RULES, SETTLEMENT_STATUSES,
)
from gstcore.models.party import Party
from gstcore.services.document_sequence_service import DocumentSequenceService
from gstcore.services.gst_service import resolve_state_name
from gstcore.services.totals_service import DocumentTotals, calculate_document_totals


logger = logging.getLogger(__name__)


# Documents in these states can no longer be edited
LOCKED_STATUSES = {DocumentStatus.PAID.value, DocumentStatus.CANCELLED.value}

ITEM_INPUT_FIELDS = (
    "item_name", "description", "hsn_code", "unit",
    "quantity", "rate", "discount_percent", "gst_rate",
)


def parse_document_type(value: Any) -> DocumentType:
    if isinstance(value, str):
        value = value.upper()
    try:
        return DocumentType(value)
    except ValueError:
        valid = ", ".join(t.value for t in DocumentType)
        raise ValidationError(
            f"Invalid document type '{value}'. Valid types: {valid}",
            details={"field": "document_type"},
        )


def settlement_status(document: Document) -> Optional[str]:
    """
    Status implied by the amounts paid so far.

    Paid once nothing is left to pay, Partial while something has been paid,
    None when nothing has been paid yet.
    """
    if document.amount_paid > 0 and document.balance_due <= 0:
        return DocumentStatus.PAID.value
    if document.amount_paid > 0:
        return DocumentStatus.PARTIAL.value
    return None


def is_overdue(due_date: Optional[date], status: Optional[str], today: Optional[date] = None) -> bool:
    """A document is overdue once its due date has passed and it is still unpaid."""
    if not due_date:
        return False
    if status in LOCKED_STATUSES:
        return False
    return due_date < (today or date.today())


def days_until_due(due_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Days left until the due date; negative once overdue."""
    if not due_date:
        return None
    return (due_date - (today or date.today())).days


def display_status(document: Document, today: Optional[date] = None) -> str:
    if is_overdue(document.due_date, document.status, today) and document.status != DocumentStatus.DRAFT.value:
        return DocumentStatus.OVERDUE.value
    return document.status


class DocumentService:
    """Create, update and load documents with server-computed totals."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.sequences = DocumentSequenceService(db)

    async def get_company(self) -> Optional[Company]:
        """Primary company, or the first one when none is flagged primary."""
        result = await self.db.execute(
            select(Company).order_by(Company.is_primary.desc(), Company.created_at).limit(1)
        )
        return result.scalar_one_or_none()

    async def _get_party(self, party_id: Optional[uuid.UUID]) -> Party:
        if not party_id:
            raise ValidationError("party_id is required", details={"field": "party_id"})
        party = await self.db.get(Party, party_id)
        if not party:
            raise NotFoundError(f"Party {party_id} not found", details={"party_id": str(party_id)})
        return party

    async def _compute(self, data: Mapping[str, Any], party: Party, items: List[Mapping[str, Any]]) -> DocumentTotals:
        if not items:
            raise ValidationError("A document needs at least one line item", details={"field": "items"})
        for idx, item in enumerate(items):
            if not item.get("item_name"):
                raise ValidationError("item_name is required", details={"field": f"items[{idx}].item_name"})

        company = await self.get_company()
        if company is None:
            logger.warning("No company profile found, tax jurisdiction resolves from the party only")

        return calculate_document_totals(
            items,
            company_state=company.state if company else None,
            party_state=data.get("place_of_supply") or party.tax_state,
            company_gstin=company.gstin if company else None,
            party_gstin=party.gstin,
            discount_amount=data.get("discount_amount"),
            shipping_charge=data.get("shipping_charge"),
        )

    @staticmethod
    def _check_status(document_type: DocumentType, status: Any) -> str:
        status = status.value if isinstance(status, Enum) else str(status)
        if status in SETTLEMENT_STATUSES:
            raise StateTransitionError(
                f"Status '{status}' is set by payments and cannot be assigned directly",
                details={"status": status},
            )
        allowed = {s.value for s in DOCUMENT_STATUS_RULES[document_type]["allowed"]}
        if status not in allowed:
            raise ValidationError(
                f"Status '{status}' is not valid for {document_type.value}",
                details={"field": "status", "allowed": sorted(allowed)},
            )
        return status

    @staticmethod
    def _apply_totals(document: Document, totals: DocumentTotals, party: Party, data: Mapping[str, Any]) -> None:
        document.items = [DocumentItem(**calculated.to_row()) for calculated in totals.items]
        document.place_of_supply = resolve_state_name(
            data.get("place_of_supply") or party.tax_state, party.gstin
        ) or None
        document.is_inter_state = totals.is_inter_state
        document.subtotal = totals.subtotal
        document.discount_amount = totals.discount_amount
        document.shipping_charge = totals.shipping_charge
        document.igst_amount = totals.igst_amount
        document.cgst_amount = totals.cgst_amount
        document.sgst_amount = totals.sgst_amount
        document.total_tax = totals.total_tax
        document.total_amount = totals.total_amount
        document.amount_in_words = amount_to_words(totals.total_amount)

    async def _flush(self, document: Document) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.error(f"Could not save {document.document_type} {document.document_number}: {e.orig}")
            raise ConflictError(
                f"Document number {document.document_number} already exists",
                details={"document_type": document.document_type, "document_number": document.document_number},
            )

    async def create_document(self, data: Mapping[str, Any]) -> Document:
        """
        Create a document with computed items and totals.

        The document number is issued from the sequence counter unless the
        caller supplies one. amount_paid starts at zero, so balance_due equals
        total_amount.
        """
        document_type = parse_document_type(data.get("document_type"))
        if not data.get("document_date"):
            raise ValidationError("document_date is required", details={"field": "document_date"})

        party = await self._get_party(data.get("party_id"))
        items = list(data.get("items") or [])
        totals = await self._compute(data, party, items)

        status = data.get("status") or DOCUMENT_STATUS_RULES[document_type]["initial"].value
        status = self._check_status(document_type, status)

        document_number = data.get("document_number")
        if document_number:
            existing = await self.db.execute(
                select(Document.id).where(
                    Document.document_type == document_type.value,
                    Document.document_number == document_number,
                )
            )
            if existing.scalar_one_or_none():
                raise ConflictError(
                    f"Document number {document_number} already exists",
                    details={"document_type": document_type.value, "document_number": document_number},
                )
        else:
            document_number = await self.sequences.get_next_number(document_type.value)

        document = Document(
            document_type=document_type.value,
            document_number=document_number,
            status=status,
            party_id=party.id,
            party=party,
            document_date=data["document_date"],
            due_date=data.get("due_date"),
            notes=data.get("notes"),
            amount_paid=ZERO,
        )
        self._apply_totals(document, totals, party, data)
        document.balance_due = document.total_amount

        self.db.add(document)
        await self._flush(document)
        check_document_invariants(document, document.items)

        logger.info(
            f"Created {document.document_type} {document.document_number} "
            f"total={document.total_amount} inter_state={document.is_inter_state}"
        )
        return document

    async def _lock_document(self, document_id: uuid.UUID) -> Document:
        result = await self.db.execute(
            select(Document)
            .where(Document.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        document = result.scalar_one_or_none()
        if not document:
            raise NotFoundError(f"Document {document_id} not found", details={"document_id": str(document_id)})
        return document

    async def update_document(self, document_id: uuid.UUID, data: Mapping[str, Any]) -> Document:
        """
        Replace a document's items and recompute its totals.

        The old item set is deleted and the new one inserted in the caller's
        transaction while the document row is locked. amount_paid is kept;
        balance_due and the settlement status are derived again from it. A new
        total below amount_paid is a ConflictError.
        """
        document = await self._lock_document(document_id)
        document_type = DocumentType(document.document_type)

        if document.status in LOCKED_STATUSES:
            raise StateTransitionError(
                f"Cannot update a {document.status} {document_type.value.lower()}",
                details={"document_number": document.document_number, "status": document.status},
            )

        party = document.party
        place_of_supply = document.place_of_supply
        if data.get("party_id") and data["party_id"] != document.party_id:
            party = await self._get_party(data["party_id"])
            document.party_id = party.id
            document.party = party
            # Stored place of supply belonged to the previous party
            place_of_supply = None

        items = data.get("items")
        if items is None:
            items = [{f: getattr(i, f) for f in ITEM_INPUT_FIELDS} for i in document.items]
        merged: Dict[str, Any] = {
            "place_of_supply": data.get("place_of_supply") or place_of_supply,
            "discount_amount": data.get("discount_amount", document.discount_amount),
            "shipping_charge": data.get("shipping_charge", document.shipping_charge),
        }
        totals = await self._compute(merged, party, list(items))
        if totals.total_amount < document.amount_paid:
            raise ConflictError(
                f"New total of {document.document_number} is below the amount already paid",
                details={
                    "document_number": document.document_number,
                    "total_amount": str(totals.total_amount),
                    "amount_paid": str(document.amount_paid),
                },
            )

        if data.get("document_date"):
            document.document_date = data["document_date"]
        for field in ("due_date", "notes"):
            if field in data:
                setattr(document, field, data[field])

        self._apply_totals(document, totals, party, merged)
        document.balance_due = max(document.total_amount - document.amount_paid, ZERO)

        settled = settlement_status(document)
        if settled:
            document.status = settled
        elif data.get("status"):
            document.status = self._check_status(document_type, data["status"])

        await self._flush(document)
        check_document_invariants(document, document.items)

        logger.info(
            f"Updated {document.document_type} {document.document_number} "
            f"total={document.total_amount} balance={document.balance_due}"
        )
        return document

    async def get_document(self, document_id: uuid.UUID) -> Document:
        document = await self.db.get(Document, document_id)
        if not document:
            raise NotFoundError(f"Document {document_id} not found", details={"document_id": str(document_id)})
        return document
