"""
Listing models: statuses, properties and viewings.

Read-only collaborator data. A property with a finalized status and a
closed_date is a sale.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base
from commission_engine.models.types import MoneyType


if TYPE_CHECKING:
    from commission_engine.models.lead import Lead


class Status(Base):
    """Property status (active, sold, rented, closed, ...)."""

    __tablename__ = "statuses"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Status(id={self.id}, code={self.code!r})>"


class Property(Base):
    """Property listing owned by an agent."""

    __tablename__ = "properties"
    __table_args__ = (
        Index("idx_properties_agent_closed", "agent_id", "closed_date"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    reference_number: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    agent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Lead that owns the property (seller / landlord)
    owner_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("leads.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("statuses.id"),
        nullable=True,
    )
    price: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    closed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    status: Mapped["Status | None"] = relationship("Status")
    owner: Mapped["Lead | None"] = relationship("Lead")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Property(id={self.id}, agent_id={self.agent_id}, "
            f"price={self.price}, closed_date={self.closed_date})>"
        )


class Viewing(Base):
    """Property viewing conducted by an agent."""

    __tablename__ = "viewings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    property_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
    )
    viewing_date: Mapped[date] = mapped_column(Date, nullable=False)
