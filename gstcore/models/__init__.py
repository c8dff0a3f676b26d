# Import all models so Base.metadata knows every table
from gstcore.models.company import Company
from gstcore.models.party import Party, PartyType
from gstcore.models.document import (
    Document, DocumentItem, DocumentType, DocumentStatus,
    DOCUMENT_STATUS_RULES, SETTLEMENT_STATUSES,
)
from gstcore.models.payment import Payment, PaymentAllocation, PaymentDirection, PaymentMode
from gstcore.models.document_sequence import DocumentNumberSetting, DocumentSequenceAudit

__all__ = [
    "Company",
    "Party",
    "PartyType",
    "Document",
    "DocumentItem",
    "DocumentType",
    "DocumentStatus",
    "DOCUMENT_STATUS_RULES",
    "SETTLEMENT_STATUSES",
    "Payment",
    "PaymentAllocation",
    "PaymentDirection",
    "PaymentMode",
    "DocumentNumberSetting",
    "DocumentSequenceAudit",
]
