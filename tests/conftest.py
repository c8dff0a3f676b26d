"""
Pytest fixtures for the gstcore test suite.

Provides:
- A fresh SQLite database file per test (aiosqlite), tables created by init_db
- Seeded company (Haryana) and parties on both sides of the state line
- An httpx AsyncClient bound to the FastAPI app with get_db pointed at the test database
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./gstcore_test.db")

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient

from gstcore.database import build_engine, build_session_factory, get_db, get_db_session, init_db
from gstcore.models import Company, Party, PartyType
from gstcore.services.document_service import DocumentService


@dataclass
class Seed:
    company_id: UUID
    customer_other_state: UUID   # Maharashtra
    customer_same_state: UUID    # Haryana
    vendor_other_state: UUID     # Karnataka


@pytest.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'gstcore.db'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def seed(session_factory) -> Seed:
    async with get_db_session(session_factory) as session:
        company = Company(name="Acme Appliances", state="Haryana", gstin="06AABCA1234A1Z5", is_primary=True)
        mh_customer = Party(
            party_type=PartyType.CUSTOMER.value, name="Pune Traders",
            state="Maharashtra", gstin="27AAACP1234B1Z2",
        )
        hr_customer = Party(
            party_type=PartyType.CUSTOMER.value, name="Gurgaon Retail",
            state="haryana ", gstin="06AAACG1234C1Z9",
        )
        ka_vendor = Party(
            party_type=PartyType.VENDOR.value, name="Bengaluru Components",
            state="Karnataka", gstin="29AAACB1234D1Z1",
        )
        session.add_all([company, mh_customer, hr_customer, ka_vendor])
        await session.flush()
        return Seed(
            company_id=company.id,
            customer_other_state=mh_customer.id,
            customer_same_state=hr_customer.id,
            vendor_other_state=ka_vendor.id,
        )


@pytest.fixture
async def db(session_factory, seed):
    async with session_factory() as session:
        yield session
        await session.rollback()


def line(quantity, rate, gst_rate, discount_percent="0", name="Water Purifier"):
    return {
        "item_name": name,
        "hsn_code": "84212110",
        "quantity": Decimal(str(quantity)),
        "rate": Decimal(str(rate)),
        "gst_rate": Decimal(str(gst_rate)),
        "discount_percent": Decimal(str(discount_percent)),
    }


@pytest.fixture
def make_document(session_factory):
    """Create and commit a document, returning its id."""
    async def _make(party_id, items, document_type="INVOICE", **extra):
        async with get_db_session(session_factory) as session:
            document = await DocumentService(session).create_document({
                "document_type": document_type,
                "party_id": party_id,
                "document_date": date(2026, 4, 1),
                "items": items,
                **extra,
            })
            return document.id
    return _make


@pytest.fixture
async def client(session_factory, seed):
    from gstcore.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
