"""
Document Number Settings for Atomic Number Generation

FORMAT:
━━━━━━━
    {PREFIX}{SEPARATOR}{ZERO-PADDED NUMBER}

    INV-0001   (Invoice)
    BILL-0001  (Bill)
    PMT-R-0001 (Payment Received)

One counter row per document type. next_number is the number the next
issuance will hand out; it is incremented in the same UPDATE that reads it.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from gstcore.database import Base
from gstcore.db_types import UUIDType


class DocumentSequenceAudit(Base):
    """
    Audit log for document number issuance.

    One row per issued number, whether it came from the counter row or
    from the count-based fallback.
    """
    __tablename__ = "document_sequence_audit"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    document_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True
    )
    operation: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="GET_NEXT, INITIALIZE"
    )
    issued_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    document_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    source: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="COUNTER, FALLBACK, MANUAL"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )


class DocumentNumberSetting(Base):
    """
    Per-document-type numbering counter.

    Example:
        document_type = "INVOICE"
        prefix = "INV", separator = "-", padding_digits = 4
        next_number = 7
        → Next invoice number: INV-0007
    """
    __tablename__ = "document_number_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    document_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        comment="INVOICE, QUOTATION, BILL, PAYMENT_RECEIVED, ..."
    )

    # Formatting
    prefix: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    separator: Mapped[str] = mapped_column(String(5), nullable=False, default="-")
    padding_digits: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=4,
        comment="Zero padding for sequence (4 = 0001)"
    )

    # Sequence Counter
    next_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Number the next issuance returns"
    )

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

    def format_number(self, number: int) -> str:
        """Format a sequence number, e.g. INV-0007."""
        return format_document_number(self.prefix, self.separator, number, self.padding_digits)

    def preview_next_number(self) -> str:
        """Preview next number without incrementing."""
        return self.format_number(self.next_number)

    def __repr__(self) -> str:
        return f"<DocumentNumberSetting({self.document_type}: next={self.next_number})>"


def format_document_number(prefix: str, separator: str, number: int, padding_digits: int) -> str:
    return f"{prefix}{separator}{str(number).zfill(padding_digits)}"
