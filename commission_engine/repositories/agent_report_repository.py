"""
Agent report repository.

Report store: CRUD and filtered listing over persisted agent reports.
"""

from dataclasses import dataclass
from datetime import date

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.agent_report import AgentReport
from commission_engine.models.user import User
from commission_engine.repositories.base import BaseRepository


@dataclass(frozen=True)
class ReportFilters:
    """Conjunctive filters for listing reports."""

    agent_id: int | None = None
    agent_ids: tuple[int, ...] | None = None
    start_date: date | None = None
    end_date: date | None = None


class AgentReportRepository(BaseRepository[AgentReport]):
    """Agent report repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize agent report repository."""
        super().__init__(AgentReport, session)

    def _with_agent(self) -> Select:
        return select(AgentReport, User.name, User.user_code).outerjoin(
            User, AgentReport.agent_id == User.id
        )

    async def find_by_range(
        self, agent_id: int, start_date: date, end_date: date
    ) -> AgentReport | None:
        """
        Get the report for an exact agent and range.

        Args:
            agent_id: Agent ID
            start_date: Range start
            end_date: Range end

        Returns:
            Report or None
        """
        return await self.get_by(
            agent_id=agent_id, start_date=start_date, end_date=end_date
        )

    async def get_with_agent(
        self, report_id: int
    ) -> tuple[AgentReport, str | None, str | None] | None:
        """
        Get a report with its agent's name and code.

        Args:
            report_id: Report ID

        Returns:
            (report, agent_name, agent_code) or None
        """
        stmt = self._with_agent().where(AgentReport.id == report_id)
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        return row[0], row[1], row[2]

    async def get_all(
        self, filters: ReportFilters | None = None
    ) -> list[tuple[AgentReport, str | None, str | None]]:
        """
        List reports matching all given filters.

        Ordered by range start descending, range end descending, then
        agent name ascending.

        Args:
            filters: Optional agent / agent list / date bounds

        Returns:
            List of (report, agent_name, agent_code)
        """
        filters = filters or ReportFilters()
        stmt = self._with_agent()

        if filters.agent_id is not None:
            stmt = stmt.where(AgentReport.agent_id == filters.agent_id)
        if filters.agent_ids is not None:
            stmt = stmt.where(AgentReport.agent_id.in_(filters.agent_ids))
        if filters.start_date is not None:
            stmt = stmt.where(AgentReport.start_date >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(AgentReport.end_date <= filters.end_date)

        stmt = stmt.order_by(
            AgentReport.start_date.desc(),
            AgentReport.end_date.desc(),
            User.name.asc(),
            AgentReport.id.asc(),
        )

        result = await self.session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]
