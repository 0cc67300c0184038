"""
User model.

Agents and other employees. Owned by the surrounding application; the
engine only reads names for hand-offs and report listings.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base


class User(Base):
    """Employee record (agent, team leader, operations, ...)."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_code: Mapped[str | None] = mapped_column(
        String(32), nullable=True, unique=True
    )
    role: Mapped[str] = mapped_column(
        String(50), nullable=False, default="agent"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, name={self.name!r}, role={self.role})>"
