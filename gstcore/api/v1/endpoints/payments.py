"""Payments API endpoints: record, inspect, edit and delete payments."""
from uuid import UUID

from fastapi import APIRouter, status

from gstcore.api.deps import DB
from gstcore.schemas.document import DocumentSummary
from gstcore.schemas.payment import PaymentCreate, PaymentUpdate, PaymentResponse, PaymentDeleteResponse
from gstcore.services.payment_service import PaymentService

router = APIRouter()


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_in: PaymentCreate,
    db: DB,
):
    """
    Record a payment and allocate it to outstanding documents.

    RECEIVED payments settle invoices, MADE payments settle bills. Whatever
    is not allocated is kept on the payment as excess_amount.
    """
    service = PaymentService(db)
    return await service.create_payment(payment_in.model_dump())


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    db: DB,
):
    service = PaymentService(db)
    return await service.get_payment(payment_id)


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: UUID,
    payment_in: PaymentUpdate,
    db: DB,
):
    """Edit a payment. The amount may not drop below what is already allocated."""
    service = PaymentService(db)
    return await service.update_payment(payment_id, payment_in.model_dump(exclude_unset=True))


@router.delete("/{payment_id}", response_model=PaymentDeleteResponse)
async def delete_payment(
    payment_id: UUID,
    db: DB,
):
    """Delete a payment, reversing its allocations on every document it settled."""
    service = PaymentService(db)
    documents = await service.delete_payment(payment_id)
    return PaymentDeleteResponse(
        message=f"Payment deleted, {len(documents)} document(s) updated",
        documents=[DocumentSummary.model_validate(d) for d in documents],
    )
