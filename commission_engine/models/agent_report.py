"""
AgentReport model.

Persisted per-agent report for an inclusive date range. Columns fall into
two groups: computed metrics, rewritten on every recalculation, and manual
overrides (boosts), which only people edit.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.config.business_constants import MIN_REPORT_YEAR
from commission_engine.models.base import Base
from commission_engine.models.types import JSONType, MoneyType


if TYPE_CHECKING:
    from commission_engine.models.user import User


class AgentReport(Base):
    """
    AgentReport entity.

    Attributes:
        id: Primary key
        agent_id: Agent the report is about
        month, year: Legacy period columns derived from start_date
        start_date, end_date: Inclusive report range (NULL on legacy rows)
        listings_count .. total_commission: Computed metrics
        boosts: Manual override
        created_by: User who created the report
    """

    __tablename__ = "monthly_agent_reports"
    __table_args__ = (
        UniqueConstraint(
            "agent_id",
            "start_date",
            "end_date",
            name="uq_monthly_agent_reports_agent_range",
        ),
        CheckConstraint(
            f"year >= {MIN_REPORT_YEAR}",
            name="monthly_agent_reports_year_check",
        ),
        CheckConstraint(
            "month BETWEEN 1 AND 12",
            name="monthly_agent_reports_month_check",
        ),
        Index("idx_monthly_agent_reports_range", "start_date", "end_date"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Computed metrics
    listings_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    lead_sources: Mapped[dict[str, int]] = mapped_column(
        JSONType, default=dict, nullable=False
    )
    viewings_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    sales_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    sales_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    agent_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    finders_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    referral_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    team_leader_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    administration_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    referral_received_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    referral_received_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    referrals_on_properties_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    referrals_on_properties_commission: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Manual overrides
    boosts: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Audit
    created_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    agent: Mapped["User"] = relationship("User", foreign_keys=[agent_id])

    def apply(self, fields: dict[str, Any]) -> None:
        """Copy a mapping of column values onto the report."""
        for key, value in fields.items():
            setattr(self, key, value)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<AgentReport(id={self.id}, agent_id={self.agent_id}, "
            f"range={self.start_date}..{self.end_date}, "
            f"total={self.total_commission})>"
        )
