"""Financial document models shared by every document type.

Supports:
- Quotation, Invoice (sales)
- Purchase Order, Bill (purchase)
- Credit Note / Debit Note

All types share one table; the per-type status vocabulary is listed in
DOCUMENT_STATUS_RULES.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Integer, Text, Date
from sqlalchemy import UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gstcore.database import Base
from gstcore.db_types import UUIDType, MoneyType, PercentType, QuantityType

if TYPE_CHECKING:
    from gstcore.models.party import Party
    from gstcore.models.payment import PaymentAllocation


class DocumentType(str, Enum):
    """Document type enumeration."""
    QUOTATION = "QUOTATION"
    INVOICE = "INVOICE"
    PURCHASE_ORDER = "PURCHASE_ORDER"
    BILL = "BILL"
    CREDIT_NOTE = "CREDIT_NOTE"
    DEBIT_NOTE = "DEBIT_NOTE"


class DocumentStatus(str, Enum):
    """Document status enumeration (union over all document types)."""
    DRAFT = "Draft"
    SENT = "Sent"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"
    FINAL = "Final"
    ISSUED = "Issued"
    RECEIVED = "Received"
    PENDING = "Pending"
    OPEN = "Open"
    PARTIAL = "Partial"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CLOSED = "Closed"
    CANCELLED = "Cancelled"
    VOID = "Void"


# initial: status a new document starts in
# open:    status a document returns to once every payment against it is reversed
DOCUMENT_STATUS_RULES = {
    DocumentType.QUOTATION: {
        "initial": DocumentStatus.DRAFT,
        "open": DocumentStatus.SENT,
        "allowed": {
            DocumentStatus.DRAFT, DocumentStatus.SENT, DocumentStatus.ACCEPTED,
            DocumentStatus.DECLINED, DocumentStatus.CANCELLED,
        },
    },
    DocumentType.INVOICE: {
        "initial": DocumentStatus.DRAFT,
        "open": DocumentStatus.FINAL,
        "allowed": {
            DocumentStatus.DRAFT, DocumentStatus.FINAL, DocumentStatus.PARTIAL,
            DocumentStatus.PAID, DocumentStatus.OVERDUE, DocumentStatus.CANCELLED,
        },
    },
    DocumentType.PURCHASE_ORDER: {
        "initial": DocumentStatus.DRAFT,
        "open": DocumentStatus.ISSUED,
        "allowed": {
            DocumentStatus.DRAFT, DocumentStatus.ISSUED, DocumentStatus.PARTIAL,
            DocumentStatus.RECEIVED, DocumentStatus.CANCELLED,
        },
    },
    DocumentType.BILL: {
        "initial": DocumentStatus.PENDING,
        "open": DocumentStatus.PENDING,
        "allowed": {
            DocumentStatus.PENDING, DocumentStatus.PARTIAL, DocumentStatus.PAID,
            DocumentStatus.OVERDUE, DocumentStatus.CANCELLED,
        },
    },
    DocumentType.CREDIT_NOTE: {
        "initial": DocumentStatus.DRAFT,
        "open": DocumentStatus.OPEN,
        "allowed": {
            DocumentStatus.DRAFT, DocumentStatus.OPEN, DocumentStatus.CLOSED, DocumentStatus.VOID,
        },
    },
    DocumentType.DEBIT_NOTE: {
        "initial": DocumentStatus.DRAFT,
        "open": DocumentStatus.OPEN,
        "allowed": {
            DocumentStatus.DRAFT, DocumentStatus.OPEN, DocumentStatus.CLOSED, DocumentStatus.VOID,
        },
    },
}

# Statuses set by the payment engine rather than by the user
SETTLEMENT_STATUSES = {DocumentStatus.PARTIAL.value, DocumentStatus.PAID.value}


class Document(Base):
    """
    Financial document header with GST totals and settlement state.

    Totals are always recomputed from the item set; amount_paid and
    balance_due are only touched by the payment allocation engine.
    """
    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("document_type", "document_number", name="uq_document_type_number"),
        Index("ix_documents_party_status", "party_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    # Identification
    document_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="QUOTATION, INVOICE, PURCHASE_ORDER, BILL, CREDIT_NOTE, DEBIT_NOTE"
    )
    document_number: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    open_status: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Status held before the first payment was allocated"
    )

    # Party
    party_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("parties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Dates
    document_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Place of Supply
    place_of_supply: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_inter_state: Mapped[bool] = mapped_column(Boolean, default=False)

    # Totals
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    shipping_charge: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    igst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    cgst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    sgst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    total_tax: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    amount_in_words: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Settlement
    amount_paid: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    balance_due: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    party: Mapped["Party"] = relationship("Party", lazy="selectin")
    items: Mapped[List["DocumentItem"]] = relationship(
        "DocumentItem",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentItem.sort_order",
        lazy="selectin",
    )
    allocations: Mapped[List["PaymentAllocation"]] = relationship(
        "PaymentAllocation",
        back_populates="document",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Document(number='{self.document_number}', total={self.total_amount}, status='{self.status}')>"


class DocumentItem(Base):
    """Line item of a document. Replaced wholesale whenever the document is updated."""
    __tablename__ = "document_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Item Details
    item_name: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hsn_code: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    # Inputs
    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    rate: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(PercentType, default=Decimal("0"), nullable=False)
    gst_rate: Mapped[Decimal] = mapped_column(PercentType, default=Decimal("0"), nullable=False)

    # Derived
    discount_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    igst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    cgst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    sgst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Taxable value after line discount"
    )

    document: Mapped["Document"] = relationship("Document", back_populates="items")

    def __repr__(self) -> str:
        return f"<DocumentItem(name='{self.item_name}', amount={self.amount})>"
