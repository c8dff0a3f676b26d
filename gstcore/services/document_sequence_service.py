"""
Document Sequence Service for Atomic Number Generation

- One counter row per document type (document_number_settings)
- Read and increment happen in ONE statement:
      UPDATE document_number_settings
         SET next_number = next_number + 1
       WHERE document_type = :type
   RETURNING next_number, prefix, separator, padding_digits
  The row lock taken by the UPDATE serializes concurrent callers, so two
  requests can never be handed the same number.
- Format: {PREFIX}{SEPARATOR}{SEQUENCE}, e.g. INV-0007

USAGE:
    from gstcore.services.document_sequence_service import DocumentSequenceService

    async def create_invoice(db: AsyncSession):
        service = DocumentSequenceService(db)
        invoice_number = await service.get_next_number("INVOICE")
        # Returns: INV-0001

When a type has no counter row the service falls back to
count(existing records) + 1 with the type's default prefix. The fallback
does NOT create a counter row, so mixing it with a counter initialized
later for the same type can produce numbers that collide with earlier
fallback numbers; the unique constraint on the document rejects those.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from gstcore.config import settings
from gstcore.core.exceptions import ConflictError, ValidationError
from gstcore.models.document import Document
from gstcore.models.document_sequence import (
    DocumentNumberSetting, DocumentSequenceAudit, format_document_number,
)
from gstcore.models.payment import Payment


logger = logging.getLogger(__name__)


# Sequence type metadata
SEQUENCE_METADATA = {
    "QUOTATION": {"name": "Quotation", "prefix": "QTN"},
    "INVOICE": {"name": "Invoice", "prefix": "INV"},
    "PURCHASE_ORDER": {"name": "Purchase Order", "prefix": "PO"},
    "BILL": {"name": "Bill", "prefix": "BILL"},
    "CREDIT_NOTE": {"name": "Credit Note", "prefix": "CN"},
    "DEBIT_NOTE": {"name": "Debit Note", "prefix": "DN"},
    "PAYMENT_RECEIVED": {"name": "Payment Received", "prefix": "PMT-R", "direction": "RECEIVED"},
    "PAYMENT_MADE": {"name": "Payment Made", "prefix": "PMT-M", "direction": "MADE"},
}


class DocumentSequenceService:
    """
    Service for generating gap-free document numbers.

    Does not commit: the issued number belongs to the caller's transaction,
    so a rolled-back document creation also rolls back its number.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _validate_type(document_type: str) -> str:
        seq_type = (document_type or "").upper()
        if seq_type not in SEQUENCE_METADATA:
            valid_types = ", ".join(SEQUENCE_METADATA.keys())
            raise ValidationError(
                f"Invalid document type '{document_type}'. Valid types: {valid_types}",
                details={"field": "document_type"},
            )
        return seq_type

    def _log_audit(
        self,
        document_type: str,
        operation: str,
        source: str,
        issued_number: Optional[int] = None,
        document_number: Optional[str] = None,
    ) -> None:
        self.db.add(DocumentSequenceAudit(
            document_type=document_type,
            operation=operation,
            issued_number=issued_number,
            document_number=document_number,
            source=source,
        ))

    async def get_next_number(self, document_type: str) -> str:
        """
        Issue the next document number with an atomic increment.

        Args:
            document_type: INVOICE, BILL, PAYMENT_RECEIVED, ...

        Returns:
            Formatted document number, e.g. INV-0007

        Raises:
            ValidationError: If document_type is invalid
        """
        seq_type = self._validate_type(document_type)

        result = await self.db.execute(
            update(DocumentNumberSetting)
            .where(DocumentNumberSetting.document_type == seq_type)
            .values(
                next_number=DocumentNumberSetting.next_number + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(
                DocumentNumberSetting.next_number,
                DocumentNumberSetting.prefix,
                DocumentNumberSetting.separator,
                DocumentNumberSetting.padding_digits,
            )
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()

        if row is None:
            return await self._fallback_number(seq_type)

        issued = row.next_number - 1
        doc_number = format_document_number(row.prefix, row.separator, issued, row.padding_digits)

        self._log_audit(seq_type, "GET_NEXT", "COUNTER", issued_number=issued, document_number=doc_number)
        await self.db.flush()

        logger.info(f"Issued {seq_type} number {doc_number}")
        return doc_number

    async def _fallback_number(self, seq_type: str) -> str:
        """count(existing records of the type) + 1, without creating a counter row."""
        next_number = await self._count_existing(seq_type) + 1
        doc_number = format_document_number(
            SEQUENCE_METADATA[seq_type]["prefix"],
            settings.DEFAULT_SEQUENCE_SEPARATOR,
            next_number,
            settings.DEFAULT_SEQUENCE_PADDING,
        )

        self._log_audit(seq_type, "GET_NEXT", "FALLBACK", issued_number=next_number, document_number=doc_number)
        await self.db.flush()

        logger.warning(f"No number settings for {seq_type}, issued {doc_number} from record count")
        return doc_number

    async def _count_existing(self, seq_type: str) -> int:
        direction = SEQUENCE_METADATA[seq_type].get("direction")
        if direction:
            query = select(func.count(Payment.id)).where(Payment.direction == direction)
        else:
            query = select(func.count(Document.id)).where(Document.document_type == seq_type)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def _highest_issued(self, seq_type: str, prefix: str, separator: str) -> int:
        """
        Highest sequence number already handed out in the given format.

        Looks at both the issuance audit trail and the numbers stored on
        existing records, so caller-supplied numbers count too.
        """
        head = f"{prefix}{separator}"
        direction = SEQUENCE_METADATA[seq_type].get("direction")
        if direction:
            records = select(Payment.payment_number).where(
                Payment.direction == direction,
                Payment.payment_number.startswith(head, autoescape=True),
            )
        else:
            records = select(Document.document_number).where(
                Document.document_type == seq_type,
                Document.document_number.startswith(head, autoescape=True),
            )
        issued = select(DocumentSequenceAudit.document_number).where(
            DocumentSequenceAudit.document_type == seq_type,
            DocumentSequenceAudit.operation == "GET_NEXT",
            DocumentSequenceAudit.document_number.startswith(head, autoescape=True),
        )

        highest = 0
        for query in (records, issued):
            for number in (await self.db.execute(query)).scalars():
                tail = number[len(head):]
                if tail.isdigit():
                    highest = max(highest, int(tail))
        return highest

    async def preview_next_number(self, document_type: str) -> str:
        """
        Preview what the next number would be without incrementing.

        Two callers previewing at the same time see the same number; only
        get_next_number() reserves it.
        """
        seq_type = self._validate_type(document_type)

        result = await self.db.execute(
            select(DocumentNumberSetting)
            .where(DocumentNumberSetting.document_type == seq_type)
            .execution_options(populate_existing=True)
        )
        setting = result.scalar_one_or_none()
        if setting:
            return setting.preview_next_number()

        next_number = await self._count_existing(seq_type) + 1
        return format_document_number(
            SEQUENCE_METADATA[seq_type]["prefix"],
            settings.DEFAULT_SEQUENCE_SEPARATOR,
            next_number,
            settings.DEFAULT_SEQUENCE_PADDING,
        )

    async def initialize_sequence(
        self,
        document_type: str,
        next_number: int = 1,
        prefix: Optional[str] = None,
        separator: Optional[str] = None,
        padding_digits: Optional[int] = None,
    ) -> DocumentNumberSetting:
        """
        Create or reset the counter row for a document type.

        Use this to migrate existing data or correct sequences. Omitted
        formatting fields keep their current value (or the type default).
        next_number must be above every number already issued in the
        resulting format, so a reset can never hand out a number twice.
        """
        seq_type = self._validate_type(document_type)
        if next_number < 1:
            raise ValidationError("next_number must be at least 1", details={"field": "next_number"})
        if padding_digits is not None and not 1 <= padding_digits <= 12:
            raise ValidationError("padding_digits must be between 1 and 12", details={"field": "padding_digits"})

        result = await self.db.execute(
            select(DocumentNumberSetting)
            .where(DocumentNumberSetting.document_type == seq_type)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        setting = result.scalar_one_or_none()

        effective_prefix = prefix if prefix is not None else (
            setting.prefix if setting else SEQUENCE_METADATA[seq_type]["prefix"]
        )
        effective_separator = separator if separator is not None else (
            setting.separator if setting else settings.DEFAULT_SEQUENCE_SEPARATOR
        )
        highest = await self._highest_issued(seq_type, effective_prefix, effective_separator)
        if next_number <= highest:
            raise ConflictError(
                f"next_number {next_number} would reissue {seq_type} numbers up to {highest}",
                details={"document_type": seq_type, "next_number": next_number, "highest_issued": highest},
            )

        if setting:
            setting.next_number = next_number
            if prefix is not None:
                setting.prefix = prefix
            if separator is not None:
                setting.separator = separator
            if padding_digits is not None:
                setting.padding_digits = padding_digits
        else:
            setting = DocumentNumberSetting(
                document_type=seq_type,
                prefix=SEQUENCE_METADATA[seq_type]["prefix"] if prefix is None else prefix,
                separator=settings.DEFAULT_SEQUENCE_SEPARATOR if separator is None else separator,
                padding_digits=settings.DEFAULT_SEQUENCE_PADDING if padding_digits is None else padding_digits,
                next_number=next_number,
            )
            self.db.add(setting)

        self._log_audit(seq_type, "INITIALIZE", "MANUAL", issued_number=next_number)
        await self.db.flush()
        return setting


# Convenience function for quick access
async def get_next_document_number(db: AsyncSession, document_type: str) -> str:
    """
    Quick function to get next document number.

    Usage:
        invoice_number = await get_next_document_number(db, "INVOICE")
    """
    return await DocumentSequenceService(db).get_next_number(document_type)
