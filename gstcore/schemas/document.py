"""Document schemas for API requests/responses."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import Field

from gstcore.models.document import DocumentType
from gstcore.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


# ==================== Item Schemas ====================

class DocumentItemCreate(BaseCreateSchema):
    """Line item as submitted; all amounts are computed server-side."""
    item_name: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    hsn_code: Optional[str] = Field(None, max_length=8)
    unit: Optional[str] = Field(None, max_length=10)
    quantity: Decimal = Field(..., ge=0, decimal_places=3)
    rate: Decimal = Field(..., ge=0, decimal_places=2)
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=3)
    gst_rate: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=3)


class DocumentItemResponse(BaseResponseSchema):
    id: UUID
    sort_order: int
    item_name: str
    description: Optional[str] = None
    hsn_code: Optional[str] = None
    unit: Optional[str] = None
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    gst_rate: Decimal
    discount_amount: Decimal
    amount: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal


# ==================== Document Schemas ====================

class DocumentCreate(BaseCreateSchema):
    document_type: DocumentType
    party_id: UUID
    document_date: date
    due_date: Optional[date] = None
    document_number: Optional[str] = Field(None, max_length=50, description="Issued from the sequence when omitted")
    status: Optional[str] = Field(None, max_length=20)
    place_of_supply: Optional[str] = Field(None, max_length=100)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    shipping_charge: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    items: List[DocumentItemCreate] = Field(..., min_length=1)


class DocumentUpdate(BaseUpdateSchema):
    """Items, when sent, replace the document's whole item set."""
    party_id: Optional[UUID] = None
    document_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[str] = Field(None, max_length=20)
    place_of_supply: Optional[str] = Field(None, max_length=100)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    shipping_charge: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    items: Optional[List[DocumentItemCreate]] = Field(None, min_length=1)


class DocumentResponse(BaseResponseSchema):
    id: UUID
    document_type: str
    document_number: str
    status: str
    party_id: UUID
    document_date: date
    due_date: Optional[date] = None
    place_of_supply: Optional[str] = None
    is_inter_state: bool

    subtotal: Decimal
    discount_amount: Decimal
    shipping_charge: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    total_tax: Decimal
    total_amount: Decimal
    amount_in_words: Optional[str] = None

    amount_paid: Decimal
    balance_due: Decimal

    notes: Optional[str] = None
    items: List[DocumentItemResponse] = []
    created_at: datetime
    updated_at: datetime


class DocumentSummary(BaseResponseSchema):
    """Settlement state of a document touched by a payment."""
    id: UUID
    document_type: str
    document_number: str
    status: str
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
