"""
Report data queries.

Read-only queries over listings, leads, viewings, sales and the referral
ledger for one agent and one inclusive date range. The given-by-agent and
received-on-own-sales referral pipelines are separate queries.
"""

from datetime import date, datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import (
    FINALIZED_SALE_STATUSES,
    UNKNOWN_LEAD_SOURCE,
)
from commission_engine.models.enums import ReferralStatus, SubjectType
from commission_engine.models.lead import Lead, ReferenceSource
from commission_engine.models.listing import Property, Status, Viewing
from commission_engine.models.referral import Referral
from commission_engine.services.commission.calculator import ReferralLine
from commission_engine.services.report.capabilities import StoreCapabilities


class ReportDataQueries:
    """Queries feeding the report aggregator."""

    def __init__(
        self,
        session: AsyncSession,
        capabilities: StoreCapabilities | None = None,
    ) -> None:
        self.session = session
        self.capabilities = capabilities or StoreCapabilities()

    # Shared filters

    @staticmethod
    def _finalized():
        return or_(
            func.lower(Status.code).in_(FINALIZED_SALE_STATUSES),
            func.lower(Status.name).in_(FINALIZED_SALE_STATUSES),
        )

    @classmethod
    def _sold_in_range(cls, start: date, end: date):
        return and_(
            Property.closed_date.is_not(None),
            Property.closed_date >= start,
            Property.closed_date <= end,
            cls._finalized(),
        )

    @staticmethod
    def _earns_commission():
        return Referral.status != ReferralStatus.REJECTED.value

    @staticmethod
    def _line_columns() -> Select:
        return select(
            Referral.id,
            Referral.subject_type,
            Referral.subject_id,
            Property.price,
            Referral.external,
        )

    async def _lines(self, stmt: Select) -> list[ReferralLine]:
        result = await self.session.execute(stmt.order_by(Referral.id))
        return [
            ReferralLine(
                referral_id=row.id,
                subject_type=row.subject_type,
                subject_id=row.subject_id,
                price=row.price,
                external=bool(row.external),
            )
            for row in result.all()
        ]

    # Operational metrics

    async def count_listings(
        self, agent_id: int, start: datetime, end: datetime
    ) -> int:
        """Properties created by the agent between two instants."""
        stmt = select(func.count(Property.id)).where(
            Property.agent_id == agent_id,
            Property.created_at >= start,
            Property.created_at <= end,
        )
        return (await self.session.execute(stmt)).scalar() or 0

    async def lead_sources(
        self, agent_id: int, start: datetime, end: datetime
    ) -> dict[str, int]:
        """Lead count per source name for the agent's leads."""
        stmt = (
            select(ReferenceSource.source_name, func.count(Lead.id))
            .select_from(Lead)
            .outerjoin(
                ReferenceSource,
                Lead.reference_source_id == ReferenceSource.id,
            )
            .where(
                Lead.agent_id == agent_id,
                Lead.date >= start,
                Lead.date <= end,
            )
            .group_by(ReferenceSource.source_name)
        )
        result = await self.session.execute(stmt)

        sources: dict[str, int] = {}
        for source_name, count in result.all():
            name = source_name or UNKNOWN_LEAD_SOURCE
            sources[name] = sources.get(name, 0) + int(count)
        return sources

    async def count_viewings(
        self, agent_id: int, start: date, end: date
    ) -> int:
        stmt = select(func.count(Viewing.id)).where(
            Viewing.agent_id == agent_id,
            Viewing.viewing_date >= start,
            Viewing.viewing_date <= end,
        )
        return (await self.session.execute(stmt)).scalar() or 0

    async def sales_totals(
        self, agent_id: int, start: date, end: date
    ) -> tuple[int, Decimal]:
        """
        Count and summed price of the agent's closed sales.

        Returns:
            (sales_count, sales_amount)
        """
        stmt = (
            select(
                func.count(Property.id),
                func.coalesce(func.sum(Property.price), 0),
            )
            .join(Status, Property.status_id == Status.id)
            .where(
                Property.agent_id == agent_id,
                self._sold_in_range(start, end),
            )
        )
        count, amount = (await self.session.execute(stmt)).one()
        return int(count or 0), Decimal(str(amount or 0))

    async def lead_source_names(self) -> list[str]:
        stmt = select(ReferenceSource.source_name).order_by(
            ReferenceSource.source_name
        )
        result = await self.session.execute(stmt)
        return [name for name in result.scalars().all() if name]

    # Referral pipelines

    def _given_property_stmt(
        self, agent_id: int, start: date, end: date
    ) -> Select:
        return (
            self._line_columns()
            .select_from(Referral)
            .join(
                Property,
                and_(
                    Referral.subject_type == SubjectType.PROPERTY.value,
                    Referral.subject_id == Property.id,
                ),
            )
            .join(Status, Property.status_id == Status.id)
            .where(
                Referral.referrer_id == agent_id,
                self._sold_in_range(start, end),
            )
        )

    def _given_lead_stmt(
        self, agent_id: int, start: date, end: date
    ) -> Select:
        return (
            self._line_columns()
            .select_from(Referral)
            .join(
                Lead,
                and_(
                    Referral.subject_type == SubjectType.LEAD.value,
                    Referral.subject_id == Lead.id,
                ),
            )
            .join(Property, Property.owner_id == Lead.id)
            .join(Status, Property.status_id == Status.id)
            .where(
                Referral.referrer_id == agent_id,
                self._sold_in_range(start, end),
            )
        )

    def _own_sales_stmt(
        self, agent_id: int, start: date, end: date
    ) -> Select:
        return (
            self._line_columns()
            .select_from(Referral)
            .join(
                Property,
                and_(
                    Referral.subject_type == SubjectType.PROPERTY.value,
                    Referral.subject_id == Property.id,
                ),
            )
            .join(Status, Property.status_id == Status.id)
            .where(
                Property.agent_id == agent_id,
                self._sold_in_range(start, end),
            )
        )

    async def given_property_referrals(
        self, agent_id: int, start: date, end: date
    ) -> list[ReferralLine]:
        """Referrals the agent gave on properties sold in range."""
        stmt = self._given_property_stmt(agent_id, start, end).where(
            self._earns_commission()
        )
        return await self._lines(stmt)

    async def given_lead_referrals(
        self, agent_id: int, start: date, end: date
    ) -> list[ReferralLine]:
        """
        Referrals the agent gave on leads owning a property sold in range.

        One line per (referral, sale): a lead owning two sold properties
        earns on both. Empty when the store has no lead ownership column.
        """
        if not self.capabilities.lead_ownership:
            return []
        stmt = self._given_lead_stmt(agent_id, start, end).where(
            self._earns_commission()
        )
        return await self._lines(stmt)

    async def referrals_on_own_sales(
        self, agent_id: int, start: date, end: date
    ) -> list[ReferralLine]:
        """Referrals by anyone on the agent's own sales closed in range."""
        stmt = self._own_sales_stmt(agent_id, start, end).where(
            self._earns_commission()
        )
        return await self._lines(stmt)

    async def subjects_to_classify(
        self, agent_id: int, start: date, end: date
    ) -> list[tuple[str, int]]:
        """
        Subjects whose flags feed this report's referral commissions.

        Includes rejected referrals: they still take part in the recency
        rule of their subject.

        Returns:
            Sorted distinct (subject_type, subject_id) pairs
        """
        statements = [
            self._given_property_stmt(agent_id, start, end),
            self._own_sales_stmt(agent_id, start, end),
        ]
        if self.capabilities.lead_ownership:
            statements.append(self._given_lead_stmt(agent_id, start, end))

        subjects: set[tuple[str, int]] = set()
        for stmt in statements:
            subquery = stmt.subquery()
            result = await self.session.execute(
                select(subquery.c.subject_type, subquery.c.subject_id)
                .distinct()
            )
            subjects.update((row[0], row[1]) for row in result.all())

        logger.debug(
            f"Agent {agent_id} {start}..{end}: "
            f"{len(subjects)} subject(s) to classify"
        )
        return sorted(subjects)
