"""Company (seller / buyer of record) model.

The engine only reads the company's state, GSTIN and base currency; the
full company profile lives with the surrounding ERP.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from gstcore.database import Base
from gstcore.db_types import UUIDType


class Company(Base):
    """Company whose state and GSTIN form the 'from' side of tax resolution."""
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    state: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="State name, e.g. Haryana"
    )
    gstin: Mapped[Optional[str]] = mapped_column(
        String(15),
        nullable=True,
        comment="First two characters are the GST state code"
    )
    base_currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Company(name='{self.name}', state='{self.state}')>"
