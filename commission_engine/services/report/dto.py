"""
Report DTOs.

A persisted report is two logical records sharing one row:
- ComputedMetrics: rewritten by every (re)calculation
- ManualOverrides: edited by people only
ReportView merges both with the agent's name for reading.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from commission_engine.config.business_constants import MANUAL_REPORT_FIELDS
from commission_engine.models.agent_report import AgentReport
from commission_engine.services.commission.calculator import round_money
from commission_engine.utils.exceptions import ValidationError


ZERO_MONEY = Decimal("0.00")

# Components that make up total_commission
COMMISSION_COMPONENTS = (
    "agent_commission",
    "finders_commission",
    "referral_commission",
    "team_leader_commission",
    "administration_commission",
)


@dataclass(frozen=True)
class ComputedMetrics:
    """All computed fields of one report."""
    listings_count: int = 0
    lead_sources: dict[str, int] = field(default_factory=dict)
    viewings_count: int = 0
    sales_count: int = 0
    sales_amount: Decimal = ZERO_MONEY

    # Commissions
    agent_commission: Decimal = ZERO_MONEY
    finders_commission: Decimal = ZERO_MONEY
    referral_commission: Decimal = ZERO_MONEY
    team_leader_commission: Decimal = ZERO_MONEY
    administration_commission: Decimal = ZERO_MONEY
    total_commission: Decimal = ZERO_MONEY

    # Referral pipelines
    referral_received_count: int = 0
    referral_received_commission: Decimal = ZERO_MONEY
    referrals_on_properties_count: int = 0
    referrals_on_properties_commission: Decimal = ZERO_MONEY

    def component_sum(self) -> Decimal:
        """Rounded sum of the five commission components."""
        return round_money(
            sum((getattr(self, name) for name in COMMISSION_COMPONENTS),
                ZERO_MONEY)
        )

    def as_fields(self) -> dict[str, Any]:
        """Column values to write onto an AgentReport."""
        values = asdict(self)
        values["lead_sources"] = dict(self.lead_sources)
        return values

    @classmethod
    def from_report(cls, report: AgentReport) -> ComputedMetrics:
        return cls(**{f.name: getattr(report, f.name) for f in fields(cls)})


@dataclass(frozen=True)
class ManualOverrides:
    """Fields an admin edits by hand; recalculation never touches them."""
    boosts: Decimal = ZERO_MONEY

    @staticmethod
    def parse(updates: Mapping[str, Any] | None) -> dict[str, Any]:
        """
        Keep only editable fields and validate their values.

        Unknown keys are dropped without error.

        Args:
            updates: Raw partial update

        Returns:
            Validated column values (possibly empty)

        Raises:
            ValidationError: A known field has an invalid value
        """
        accepted: dict[str, Any] = {}
        for key, value in (updates or {}).items():
            if key not in MANUAL_REPORT_FIELDS:
                continue
            if key == "boosts":
                accepted[key] = _parse_boosts(value)
        return accepted

    def as_fields(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_report(cls, report: AgentReport) -> ManualOverrides:
        return cls(boosts=report.boosts)


def _parse_boosts(value: Any) -> Decimal:
    if value is None or value == "":
        return ZERO_MONEY
    try:
        boosts = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid boosts value: {value!r}") from exc
    if not boosts.is_finite() or boosts < 0:
        raise ValidationError("boosts must be a non-negative number")
    return round_money(boosts)


@dataclass(frozen=True)
class ReportView:
    """Persisted report merged with its agent for reading."""
    id: int
    agent_id: int
    agent_name: str | None
    agent_code: str | None
    start_date: date | None
    end_date: date | None
    month: int
    year: int
    computed: ComputedMetrics
    manual: ManualOverrides
    created_by: int | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_row(
        cls,
        report: AgentReport,
        agent_name: str | None = None,
        agent_code: str | None = None,
    ) -> ReportView:
        return cls(
            id=report.id,
            agent_id=report.agent_id,
            agent_name=agent_name,
            agent_code=agent_code,
            start_date=report.start_date,
            end_date=report.end_date,
            month=report.month,
            year=report.year,
            computed=ComputedMetrics.from_report(report),
            manual=ManualOverrides.from_report(report),
            created_by=report.created_by,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Flat mapping with computed and manual fields side by side."""
        data: dict[str, Any] = {
            "id": self.id,
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "agent_code": self.agent_code,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "month": self.month,
            "year": self.year,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        data.update(self.computed.as_fields())
        data.update(self.manual.as_fields())
        return data
