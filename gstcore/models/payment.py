"""Payment and allocation models.

A payment (received from a customer or made to a vendor) is split across
one or more outstanding documents through allocation rows. Whatever is not
allocated stays on the payment as excess_amount.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import String, DateTime, ForeignKey, Text, Date
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gstcore.database import Base
from gstcore.db_types import UUIDType, MoneyType, RateType

if TYPE_CHECKING:
    from gstcore.models.document import Document
    from gstcore.models.party import Party


class PaymentDirection(str, Enum):
    """Which side of the business the money moves on."""
    RECEIVED = "RECEIVED"  # customer -> company, settles invoices
    MADE = "MADE"          # company -> vendor, settles bills


class PaymentMode(str, Enum):
    """Payment mode enumeration."""
    CASH = "CASH"
    CHEQUE = "CHEQUE"
    BANK_TRANSFER = "BANK_TRANSFER"
    UPI = "UPI"
    CREDIT_CARD = "CREDIT_CARD"
    OTHER = "OTHER"


class Payment(Base):
    """
    Payment received or made.

    amount is always in the company's base currency; original_amount and
    exchange_rate record what the caller actually supplied.
    """
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    direction: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        index=True,
        comment="RECEIVED, MADE"
    )
    payment_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True
    )
    party_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("parties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Payment Details
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_mode: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    reference_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="UTR/Transaction ID"
    )

    # Currency
    amount: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        comment="Amount in base currency"
    )
    original_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(RateType, default=Decimal("1"), nullable=False)

    # Unallocated remainder
    excess_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    party: Mapped["Party"] = relationship("Party", lazy="selectin")
    allocations: Mapped[List["PaymentAllocation"]] = relationship(
        "PaymentAllocation",
        back_populates="payment",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Payment(number='{self.payment_number}', amount={self.amount})>"


class PaymentAllocation(Base):
    """Portion of a payment earmarked against one document."""
    __tablename__ = "payment_allocations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    payment_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("documents.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    allocated_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    payment: Mapped["Payment"] = relationship("Payment", back_populates="allocations")
    document: Mapped["Document"] = relationship("Document", back_populates="allocations")

    def __repr__(self) -> str:
        return f"<PaymentAllocation(document={self.document_id}, amount={self.allocated_amount})>"
