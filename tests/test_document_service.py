import uuid
from datetime import date
from decimal import Decimal

import pytest

from gstcore.core.exceptions import ConflictError, NotFoundError, StateTransitionError, ValidationError
from gstcore.database import get_db_session
from gstcore.models import Document
from gstcore.services.document_sequence_service import DocumentSequenceService
from gstcore.services.document_service import (
    DocumentService,
    days_until_due,
    display_status,
    is_overdue,
)

from conftest import line


def invoice_data(party_id, items, **extra):
    return {
        "document_type": "INVOICE",
        "party_id": party_id,
        "document_date": date(2026, 4, 1),
        "due_date": date(2026, 5, 1),
        "items": items,
        **extra,
    }


async def test_inter_state_invoice(db, seed):
    await DocumentSequenceService(db).initialize_sequence("INVOICE", next_number=7)

    document = await DocumentService(db).create_document(
        invoice_data(seed.customer_other_state, [line(500, 650, 12)])
    )

    assert document.document_number == "INV-0007"
    assert document.status == "Draft"
    assert document.is_inter_state is True
    assert document.place_of_supply == "Maharashtra"
    assert document.subtotal == Decimal("325000.00")
    assert document.igst_amount == Decimal("39000.00")
    assert document.cgst_amount == document.sgst_amount == Decimal("0")
    assert document.total_tax == Decimal("39000.00")
    assert document.total_amount == Decimal("364000.00")
    assert document.amount_paid == Decimal("0")
    assert document.balance_due == Decimal("364000.00")
    assert document.amount_in_words.startswith("Rupees Three Lakh")
    assert [item.amount for item in document.items] == [Decimal("325000.00")]


async def test_intra_state_invoice(db, seed):
    document = await DocumentService(db).create_document(
        invoice_data(seed.customer_same_state, [line(500, 650, 12)])
    )
    assert document.is_inter_state is False
    assert document.cgst_amount == document.sgst_amount == Decimal("19500.00")
    assert document.igst_amount == Decimal("0")
    assert document.total_amount == Decimal("364000.00")


async def test_place_of_supply_overrides_party_state(db, seed):
    document = await DocumentService(db).create_document(
        invoice_data(seed.customer_other_state, [line(1, 1000, 18)], place_of_supply="Haryana")
    )
    assert document.is_inter_state is False
    assert document.cgst_amount == Decimal("90.00")


async def test_bill_starts_pending(db, seed):
    document = await DocumentService(db).create_document({
        "document_type": "BILL",
        "party_id": seed.vendor_other_state,
        "document_date": date(2026, 4, 1),
        "items": [line(10, 120, 18)],
    })
    assert document.status == "Pending"
    assert document.document_number == "BILL-0001"


async def test_unknown_party(db, seed):
    with pytest.raises(NotFoundError):
        await DocumentService(db).create_document(invoice_data(uuid.uuid4(), [line(1, 1, 0)]))


@pytest.mark.parametrize("data", [
    {"document_type": "RECEIPT"},
    {"items": []},
    {"document_date": None},
    {"status": "Accepted"},
])
async def test_invalid_input_rejected(db, seed, data):
    payload = {**invoice_data(seed.customer_other_state, [line(1, 100, 18)]), **data}
    with pytest.raises(ValidationError):
        await DocumentService(db).create_document(payload)


async def test_settlement_status_cannot_be_assigned(db, seed):
    with pytest.raises(StateTransitionError):
        await DocumentService(db).create_document(
            invoice_data(seed.customer_other_state, [line(1, 100, 18)], status="Paid")
        )


async def test_duplicate_number_conflict(db, seed):
    service = DocumentService(db)
    await service.create_document(invoice_data(seed.customer_other_state, [line(1, 1, 0)], document_number="INV-X"))
    with pytest.raises(ConflictError):
        await service.create_document(
            invoice_data(seed.customer_other_state, [line(1, 1, 0)], document_number="INV-X")
        )


async def test_update_replaces_items_and_recomputes(session_factory, seed, make_document):
    document_id = await make_document(
        seed.customer_same_state, [line(1, 1000, 18), line(2, 50, 5, name="Cartridge")],
    )

    async with get_db_session(session_factory) as session:
        document = await DocumentService(session).update_document(document_id, {
            "items": [line(500, 650, 12)],
            "status": "Final",
        })
        assert len(document.items) == 1
        assert document.total_amount == Decimal("364000.00")
        assert document.balance_due == Decimal("364000.00")
        assert document.status == "Final"

    async with session_factory() as session:
        reloaded = await DocumentService(session).get_document(document_id)
        assert [i.item_name for i in reloaded.items] == ["Water Purifier"]
        assert reloaded.subtotal == Decimal("325000.00")


async def test_update_without_items_recomputes_from_stored_items(session_factory, seed, make_document):
    document_id = await make_document(seed.customer_other_state, [line(2, 100, 18)])

    async with get_db_session(session_factory) as session:
        document = await DocumentService(session).update_document(document_id, {"shipping_charge": Decimal("50")})
        assert document.total_amount == Decimal("286.00")


async def test_update_without_items_keeps_totals(session_factory, seed, make_document):
    document_id = await make_document(
        seed.customer_other_state,
        [line(1000, "0.125", 18, discount_percent="12.3456"), line("2.5", "19.99", 5, discount_percent="7.5")],
    )
    async with session_factory() as session:
        before = await session.get(Document, document_id)
        totals_before = (before.subtotal, before.total_tax, before.total_amount)

    async with get_db_session(session_factory) as session:
        document = await DocumentService(session).update_document(document_id, {"notes": "just a note"})
        assert (document.subtotal, document.total_tax, document.total_amount) == totals_before
        assert document.notes == "just a note"


async def test_update_switching_party_rederives_jurisdiction(session_factory, seed, make_document):
    document_id = await make_document(seed.customer_other_state, [line(1, 1000, 18)])

    async with get_db_session(session_factory) as session:
        document = await DocumentService(session).update_document(
            document_id, {"party_id": seed.customer_same_state}
        )
        assert document.is_inter_state is False
        assert document.cgst_amount == Decimal("90.00")


async def test_cancelled_document_is_read_only(session_factory, seed, make_document):
    document_id = await make_document(seed.customer_other_state, [line(1, 100, 18)], status="Cancelled")

    async with session_factory() as session:
        with pytest.raises(StateTransitionError):
            await DocumentService(session).update_document(document_id, {"items": [line(1, 200, 18)]})


async def test_failed_update_leaves_document_untouched(session_factory, seed, make_document):
    document_id = await make_document(seed.customer_other_state, [line(1, 100, 18)])

    with pytest.raises(ValidationError):
        async with get_db_session(session_factory) as session:
            await DocumentService(session).update_document(document_id, {
                "items": [line(1, 100, 18, discount_percent=150)],
            })

    async with session_factory() as session:
        document = await session.get(Document, document_id)
        assert document.total_amount == Decimal("118.00")
        assert len(document.items) == 1


async def test_get_missing_document(db):
    with pytest.raises(NotFoundError):
        await DocumentService(db).get_document(uuid.uuid4())


def test_overdue_helpers():
    today = date(2026, 6, 1)
    assert is_overdue(date(2026, 5, 31), "Final", today) is True
    assert is_overdue(date(2026, 5, 31), "Paid", today) is False
    assert is_overdue(date(2026, 6, 1), "Final", today) is False
    assert is_overdue(None, "Final", today) is False
    assert days_until_due(date(2026, 6, 11), today) == 10
    assert days_until_due(date(2026, 5, 30), today) == -2
    assert days_until_due(None, today) is None


def test_display_status_marks_overdue():
    document = Document(status="Partial", due_date=date(2026, 1, 1))
    assert display_status(document, date(2026, 2, 1)) == "Overdue"
    document.status = "Paid"
    assert display_status(document, date(2026, 2, 1)) == "Paid"
