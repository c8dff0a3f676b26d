"""HTTP-level tests through the FastAPI app."""
import uuid
from decimal import Decimal


def invoice_body(party_id, items, **extra):
    return {
        "document_type": "INVOICE",
        "party_id": str(party_id),
        "document_date": "2026-04-01",
        "due_date": "2026-05-01",
        "items": items,
        **extra,
    }


ITEM = {"item_name": "Water Purifier", "hsn_code": "84212110", "quantity": "500", "rate": "650", "gst_rate": "12"}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "connected"


async def test_create_and_get_document(client, seed):
    response = await client.post("/api/v1/documents", json=invoice_body(seed.customer_other_state, [ITEM]))
    assert response.status_code == 201
    body = response.json()
    assert body["document_number"] == "INV-0001"
    assert body["is_inter_state"] is True
    assert Decimal(body["igst_amount"]) == Decimal("39000")
    assert Decimal(body["total_amount"]) == Decimal("364000")
    assert Decimal(body["balance_due"]) == Decimal("364000")
    assert len(body["items"]) == 1

    response = await client.get(f"/api/v1/documents/{body['id']}")
    assert response.status_code == 200
    assert response.json()["document_number"] == "INV-0001"


async def test_update_document(client, seed):
    created = (await client.post(
        "/api/v1/documents", json=invoice_body(seed.customer_same_state, [ITEM])
    )).json()
    assert Decimal(created["cgst_amount"]) == Decimal("19500")

    response = await client.put(f"/api/v1/documents/{created['id']}", json={
        "items": [{"item_name": "Filter", "quantity": "2", "rate": "100", "gst_rate": "18"}],
        "status": "Final",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Final"
    assert [i["item_name"] for i in body["items"]] == ["Filter"]
    assert Decimal(body["total_amount"]) == Decimal("236")


async def test_schema_rejects_negative_quantity(client, seed):
    item = {**ITEM, "quantity": "-1"}
    response = await client.post("/api/v1/documents", json=invoice_body(seed.customer_other_state, [item]))
    assert response.status_code == 422


async def test_engine_errors_map_to_json(client, seed):
    response = await client.post("/api/v1/documents", json=invoice_body(uuid.uuid4(), [ITEM]))
    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"

    item = {**ITEM, "discount_percent": "0"}
    response = await client.post(
        "/api/v1/documents", json=invoice_body(seed.customer_other_state, [item], status="Paid")
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_STATE"


async def test_payment_lifecycle(client, seed):
    item = {"item_name": "Chimney", "quantity": "450", "rate": "1000", "gst_rate": "12"}
    invoice = (await client.post(
        "/api/v1/documents", json=invoice_body(seed.customer_other_state, [item], status="Final")
    )).json()
    assert Decimal(invoice["total_amount"]) == Decimal("504000")

    response = await client.post("/api/v1/payments", json={
        "direction": "RECEIVED",
        "party_id": str(seed.customer_other_state),
        "payment_date": "2026-04-15",
        "payment_mode": "UPI",
        "amount": "250000",
        "allocations": [{"document_id": invoice["id"], "allocated_amount": "250000"}],
    })
    assert response.status_code == 201
    payment = response.json()
    assert payment["payment_number"] == "PMT-R-0001"
    assert Decimal(payment["excess_amount"]) == Decimal("0")
    assert len(payment["allocations"]) == 1

    document = (await client.get(f"/api/v1/documents/{invoice['id']}")).json()
    assert Decimal(document["balance_due"]) == Decimal("254000")
    assert document["status"] == "Partial"

    response = await client.delete(f"/api/v1/payments/{payment['id']}")
    assert response.status_code == 200
    assert response.json()["documents"][0]["status"] == "Final"

    document = (await client.get(f"/api/v1/documents/{invoice['id']}")).json()
    assert Decimal(document["balance_due"]) == Decimal("504000")
    assert document["status"] == "Final"

    response = await client.get(f"/api/v1/payments/{payment['id']}")
    assert response.status_code == 404


async def test_over_allocation_is_conflict(client, seed):
    invoice = (await client.post(
        "/api/v1/documents", json=invoice_body(seed.customer_other_state, [ITEM], status="Final")
    )).json()

    response = await client.post("/api/v1/payments", json={
        "direction": "RECEIVED",
        "party_id": str(seed.customer_other_state),
        "payment_date": "2026-04-15",
        "amount": "100",
        "allocations": [{"document_id": invoice["id"], "allocated_amount": "150"}],
    })
    assert response.status_code == 409
    assert response.json()["error_code"] == "CONFLICT"

    document = (await client.get(f"/api/v1/documents/{invoice['id']}")).json()
    assert Decimal(document["amount_paid"]) == Decimal("0")


async def test_sequence_endpoints(client):
    response = await client.put("/api/v1/sequences/quotation", json={"next_number": 12, "prefix": "Q"})
    assert response.status_code == 200
    assert response.json()["next_number"] == 12

    assert (await client.get("/api/v1/sequences/QUOTATION/preview")).json()["document_number"] == "Q-0012"
    assert (await client.post("/api/v1/sequences/QUOTATION/next")).json()["document_number"] == "Q-0012"
    assert (await client.post("/api/v1/sequences/QUOTATION/next")).json()["document_number"] == "Q-0013"

    response = await client.post("/api/v1/sequences/RECEIPT/next")
    assert response.status_code == 400


async def test_schema_rejects_rate_finer_than_paise(client, seed):
    item = {**ITEM, "rate": "0.125"}
    response = await client.post("/api/v1/documents", json=invoice_body(seed.customer_other_state, [item]))
    assert response.status_code == 422


async def test_update_payment(client, seed):
    item = {"item_name": "Chimney", "quantity": "1", "rate": "1000", "gst_rate": "0"}
    invoice = (await client.post(
        "/api/v1/documents", json=invoice_body(seed.customer_other_state, [item], status="Final")
    )).json()
    payment = (await client.post("/api/v1/payments", json={
        "direction": "RECEIVED",
        "party_id": str(seed.customer_other_state),
        "payment_date": "2026-04-15",
        "amount": "1500",
        "allocations": [{"document_id": invoice["id"], "allocated_amount": "1000"}],
    })).json()

    response = await client.put(
        f"/api/v1/payments/{payment['id']}", json={"amount": "1100", "payment_mode": "BANK_TRANSFER"}
    )
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["amount"]) == Decimal("1100")
    assert Decimal(body["excess_amount"]) == Decimal("100")
    assert body["payment_mode"] == "BANK_TRANSFER"

    response = await client.put(f"/api/v1/payments/{payment['id']}", json={"amount": "900"})
    assert response.status_code == 409
    assert response.json()["error_code"] == "CONFLICT"


async def test_sequence_reset_below_issued_is_conflict(client):
    assert (await client.post("/api/v1/sequences/INVOICE/next")).json()["document_number"] == "INV-0001"

    response = await client.put("/api/v1/sequences/INVOICE", json={"next_number": 1})
    assert response.status_code == 409
    assert response.json()["details"]["highest_issued"] == 1
