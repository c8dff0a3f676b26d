"""
Payments received from customers and made to vendors.

Creating a payment normalizes its amount to the base currency, issues a
payment number and hands the allocations to PaymentAllocationService.
Updating one re-normalizes its amount and keeps excess_amount in step with
the allocations. Deleting one reverses every allocation first.
"""
import logging
import uuid
from typing import Any, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gstcore.config import settings
from gstcore.core.exceptions import ConflictError, NotFoundError, ValidationError
from gstcore.core.invariants import check_payment_invariants
from gstcore.core.money import ZERO
from gstcore.models.company import Company
from gstcore.models.document import Document
from gstcore.models.party import Party
from gstcore.models.payment import Payment, PaymentDirection
from gstcore.services.currency_service import normalize_payment_amount
from gstcore.services.document_sequence_service import DocumentSequenceService
from gstcore.services.payment_allocation_service import AllocationResult, PaymentAllocationService


logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.sequences = DocumentSequenceService(db)
        self.allocator = PaymentAllocationService(db)
        self.last_result: Optional[AllocationResult] = None

    async def _base_currency(self) -> str:
        result = await self.db.execute(
            select(Company.base_currency).order_by(Company.is_primary.desc(), Company.created_at).limit(1)
        )
        return result.scalar_one_or_none() or settings.BASE_CURRENCY

    async def create_payment(self, data: Mapping[str, Any]) -> Payment:
        """
        Record a payment and allocate it.

        Args:
            data: direction, party_id, payment_date, amount or
                  (original_amount, currency_code, exchange_rate),
                  payment_mode, reference_number, notes,
                  allocations=[{"document_id", "allocated_amount"}]
        """
        direction = data.get("direction")
        if isinstance(direction, str):
            direction = direction.upper()
        try:
            direction = PaymentDirection(direction)
        except ValueError:
            raise ValidationError(
                f"Invalid payment direction '{data.get('direction')}'. Valid directions: RECEIVED, MADE",
                details={"field": "direction"},
            )
        if not data.get("payment_date"):
            raise ValidationError("payment_date is required", details={"field": "payment_date"})

        party_id = data.get("party_id")
        party = await self.db.get(Party, party_id) if party_id else None
        if not party:
            raise NotFoundError(f"Party {party_id} not found", details={"party_id": str(party_id)})

        normalized = normalize_payment_amount(
            amount=data.get("amount"),
            original_amount=data.get("original_amount"),
            currency_code=data.get("currency_code"),
            exchange_rate=data.get("exchange_rate"),
            base_currency=await self._base_currency(),
        )

        payment_number = data.get("payment_number") or await self.sequences.get_next_number(
            f"PAYMENT_{direction.value}"
        )

        payment = Payment(
            direction=direction.value,
            payment_number=payment_number,
            party_id=party.id,
            party=party,
            payment_date=data["payment_date"],
            payment_mode=data.get("payment_mode"),
            reference_number=data.get("reference_number"),
            amount=normalized.amount,
            original_amount=normalized.original_amount,
            currency_code=normalized.currency_code,
            exchange_rate=normalized.exchange_rate,
            excess_amount=normalized.amount,
            notes=data.get("notes"),
            allocations=[],
        )
        self.db.add(payment)
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.error(f"Could not save payment {payment_number}: {e.orig}")
            raise ConflictError(
                f"Payment number {payment_number} already exists",
                details={"payment_number": payment_number},
            )

        self.last_result = await self.allocator.apply_allocations(payment, list(data.get("allocations") or []))

        logger.info(
            f"Recorded payment {payment.payment_number} ({direction.value}) of {payment.amount} "
            f"allocated={self.last_result.total_allocated} excess={payment.excess_amount}"
        )
        return payment

    async def get_payment(self, payment_id: uuid.UUID) -> Payment:
        payment = await self.db.get(Payment, payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found", details={"payment_id": str(payment_id)})
        return payment

    async def update_payment(self, payment_id: uuid.UUID, data: Mapping[str, Any]) -> Payment:
        """
        Edit a payment's details and amount.

        Amount fields left out keep their stored values while the currency
        stays the same. The base-currency amount is normalized again and may
        not drop below what is already allocated; excess_amount follows it.
        Direction, party and allocations are not editable here.
        """
        result = await self.db.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found", details={"payment_id": str(payment_id)})

        currency_code = (data.get("currency_code") or payment.currency_code).upper()
        same_currency = currency_code == payment.currency_code

        def amount_field(name: str) -> Any:
            if data.get(name) is not None:
                return data[name]
            return getattr(payment, name) if same_currency else None

        normalized = normalize_payment_amount(
            amount=amount_field("amount"),
            original_amount=amount_field("original_amount"),
            currency_code=currency_code,
            exchange_rate=amount_field("exchange_rate"),
            base_currency=await self._base_currency(),
        )

        allocated = sum((a.allocated_amount for a in payment.allocations), ZERO)
        if normalized.amount < allocated:
            raise ConflictError(
                f"Payment {payment.payment_number} cannot be reduced below the amount already allocated",
                details={
                    "payment_number": payment.payment_number,
                    "amount": str(normalized.amount),
                    "allocated": str(allocated),
                },
            )

        if data.get("payment_date"):
            payment.payment_date = data["payment_date"]
        for field in ("payment_mode", "reference_number", "notes"):
            if field in data:
                setattr(payment, field, data[field])

        payment.amount = normalized.amount
        payment.original_amount = normalized.original_amount
        payment.currency_code = normalized.currency_code
        payment.exchange_rate = normalized.exchange_rate
        payment.excess_amount = normalized.amount - allocated

        await self.db.flush()
        check_payment_invariants(payment)

        logger.info(
            f"Updated payment {payment.payment_number}: amount={payment.amount} "
            f"allocated={allocated} excess={payment.excess_amount}"
        )
        return payment

    async def delete_payment(self, payment_id: uuid.UUID) -> List[Document]:
        """Reverse a payment's allocations and delete it. Returns the documents touched."""
        result = await self.db.execute(
            select(Payment).where(Payment.id == payment_id).with_for_update()
        )
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found", details={"payment_id": str(payment_id)})

        payment_number = payment.payment_number
        documents = await self.allocator.reverse_allocations(payment)

        logger.info(f"Deleted payment {payment_number}, reversed allocations on {len(documents)} document(s)")
        return documents
