"""Party model: customers (sales side) and vendors (purchase side)."""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from gstcore.database import Base
from gstcore.db_types import UUIDType


class PartyType(str, Enum):
    """Party type enumeration."""
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"


class Party(Base):
    """
    Counterparty of a financial document.

    Read-only input to the engine: its place of supply (or state) and GSTIN
    decide the 'to' side of inter-state resolution.
    """
    __tablename__ = "parties"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    party_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="CUSTOMER, VENDOR"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    place_of_supply: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Overrides state for tax jurisdiction when set"
    )
    gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    currency_code: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    @property
    def tax_state(self) -> Optional[str]:
        """State used for jurisdiction comparison."""
        return self.place_of_supply or self.state

    def __repr__(self) -> str:
        return f"<Party(type='{self.party_type}', name='{self.name}')>"
