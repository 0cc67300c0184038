"""
SystemSetting model.

Key/value configuration owned by administrators (commission percentages).
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base


class SystemSetting(Base):
    """Single configuration entry stored as text."""

    __tablename__ = "system_settings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    setting_key: Mapped[str] = mapped_column(
        String(100), unique=True, index=True, nullable=False
    )
    setting_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<SystemSetting({self.setting_key}={self.setting_value!r})>"
