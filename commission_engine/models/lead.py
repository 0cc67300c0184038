"""
Lead models.

Leads and the reference sources they came from. Read-only for the engine.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base


class ReferenceSource(Base):
    """Marketing source a lead came from (website, walk-in, ...)."""

    __tablename__ = "reference_sources"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    source_name: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True
    )


class Lead(Base):
    """Prospective client attributed to an agent."""

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    customer_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    agent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    reference_source_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("reference_sources.id", ondelete="SET NULL"),
        nullable=True,
    )
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    reference_source: Mapped["ReferenceSource | None"] = relationship(
        "ReferenceSource"
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Lead(id={self.id}, agent_id={self.agent_id})>"
