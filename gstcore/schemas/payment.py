"""Payment schemas for API requests/responses."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import Field

from gstcore.models.payment import PaymentDirection, PaymentMode
from gstcore.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema
from gstcore.schemas.document import DocumentSummary


# ==================== Allocation Schemas ====================

class AllocationCreate(BaseCreateSchema):
    document_id: UUID
    allocated_amount: Decimal = Field(..., gt=0)


class AllocationResponse(BaseResponseSchema):
    id: UUID
    document_id: UUID
    allocated_amount: Decimal


# ==================== Payment Schemas ====================

class PaymentCreate(BaseCreateSchema):
    """
    Payment in base currency (amount) or in a foreign currency
    (original_amount + currency_code + exchange_rate).
    """
    direction: PaymentDirection
    party_id: UUID
    payment_date: date
    payment_number: Optional[str] = Field(None, max_length=50)
    payment_mode: Optional[PaymentMode] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0)
    original_amount: Optional[Decimal] = Field(None, gt=0)
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    notes: Optional[str] = None
    allocations: List[AllocationCreate] = []


class PaymentUpdate(BaseUpdateSchema):
    """Details and amount only; allocations change by deleting and recording again."""
    payment_date: Optional[date] = None
    payment_mode: Optional[PaymentMode] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0)
    original_amount: Optional[Decimal] = Field(None, gt=0)
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    notes: Optional[str] = None


class PaymentResponse(BaseResponseSchema):
    id: UUID
    direction: str
    payment_number: str
    party_id: UUID
    payment_date: date
    payment_mode: Optional[str] = None
    reference_number: Optional[str] = None
    amount: Decimal
    original_amount: Decimal
    currency_code: str
    exchange_rate: Decimal
    excess_amount: Decimal
    notes: Optional[str] = None
    allocations: List[AllocationResponse] = []
    created_at: datetime


class PaymentDeleteResponse(BaseResponseSchema):
    success: bool = True
    message: str
    documents: List[DocumentSummary] = []
