"""
Report service.

Lifecycle of agent reports: create, recalculate, update, delete and the
read side. Computed fields are always produced by the aggregator and written
together with any manual fields in one commit.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.database import create_session_factory
from commission_engine.config.settings import settings
from commission_engine.models.agent_report import AgentReport
from commission_engine.repositories.agent_report_repository import (
    AgentReportRepository,
    ReportFilters,
)
from commission_engine.repositories.user_repository import UserRepository
from commission_engine.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from commission_engine.services.commission.rates import (
    RateProvider,
    build_rate_provider,
)
from commission_engine.services.referral.classifier import ReferralClassifier
from commission_engine.services.report.aggregator import ReportAggregator
from commission_engine.services.report.capabilities import StoreCapabilities
from commission_engine.services.report.dto import (
    ManualOverrides,
    ReportView,
)
from commission_engine.utils.datetime_utils import month_range, parse_date
from commission_engine.utils.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


class ReportService(BaseService):
    """
    Agent report service.

    Handles:
    - Report creation with range validation and uniqueness
    - Recalculation in place, keeping manual fields
    - Whitelisted manual updates
    - Deletion and filtered listing
    """

    def __init__(
        self,
        session: AsyncSession,
        aggregator: ReportAggregator | None = None,
        rate_provider: RateProvider | None = None,
        capabilities: StoreCapabilities | None = None,
    ) -> None:
        """
        Initialize report service.

        Args:
            session: Async database session
            aggregator: Report aggregator (built from the session's engine
                when omitted)
            rate_provider: Commission rate source for the default aggregator
            capabilities: Probed store capabilities
        """
        super().__init__(session)
        self.report_repo = AgentReportRepository(session)
        self.user_repo = UserRepository(session)
        self.capabilities = capabilities or StoreCapabilities()

        if aggregator is None:
            session_factory = create_session_factory(session.bind)
            aggregator = ReportAggregator(
                session,
                classifier=ReferralClassifier(
                    session_factory,
                    row_locking=self.capabilities.row_locking,
                ),
                rate_provider=rate_provider
                or build_rate_provider(session_factory),
                capabilities=self.capabilities,
            )
        self.aggregator = aggregator

    def _validate_range(
        self, start_date: Any, end_date: Any
    ) -> tuple[date, date]:
        start = parse_date(start_date, "start_date")
        end = parse_date(end_date, "end_date")
        if end < start:
            raise ValidationError("end_date must be on or after start_date")
        if start.year < settings.min_report_year:
            raise ValidationError(
                f"Reports cannot start before {settings.min_report_year} "
                f"(got {start.isoformat()})"
            )
        return start, end

    async def _view(self, report_id: int) -> ReportView:
        row = await self.report_repo.get_with_agent(report_id)
        if row is None:
            raise NotFoundError(f"Report {report_id} not found")
        return ReportView.from_row(*row)

    async def _get_or_raise(
        self, report_id: int, for_update: bool = False
    ) -> AgentReport:
        report = await self.report_repo.get_by_id(
            report_id, for_update=for_update
        )
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        return report

    @log_operation
    @transaction
    async def create_report(
        self,
        agent_id: int,
        start_date: date | str,
        end_date: date | str,
        boosts: Any = 0,
        created_by: int | None = None,
    ) -> ReportView:
        """
        Create and calculate a report for an agent and inclusive range.

        Args:
            agent_id: Agent ID
            start_date: First day (date or ISO string)
            end_date: Last day (date or ISO string)
            boosts: Initial manual boosts
            created_by: User creating the report

        Returns:
            The persisted report

        Raises:
            ValidationError: Missing agent, bad dates, end < start,
                year before the minimum, negative boosts
            NotFoundError: Agent does not exist
            ConflictError: A report for this agent and range exists
        """
        if not agent_id:
            raise ValidationError("agent_id is required")
        start, end = self._validate_range(start_date, end_date)
        manual = ManualOverrides.parse({"boosts": boosts})

        if not await self.user_repo.exists(id=agent_id):
            raise NotFoundError(f"Agent {agent_id} not found")
        if await self.report_repo.find_by_range(agent_id, start, end):
            raise ConflictError(
                f"Report already exists for agent {agent_id} "
                f"from {start.isoformat()} to {end.isoformat()}"
            )

        metrics = await self.aggregator.calculate(agent_id, start, end)

        try:
            report = await self.report_repo.create(
                agent_id=agent_id,
                month=start.month,
                year=start.year,
                start_date=start,
                end_date=end,
                created_by=created_by,
                **metrics.as_fields(),
                **manual,
            )
        except IntegrityError as e:
            await self.rollback()
            if await self.report_repo.find_by_range(agent_id, start, end):
                raise ConflictError(
                    f"Report already exists for agent {agent_id} "
                    f"from {start.isoformat()} to {end.isoformat()}"
                ) from e
            raise

        self.logger.info(
            f"Created report {report.id} for agent {agent_id} "
            f"{start.isoformat()}..{end.isoformat()}: "
            f"total_commission={report.total_commission}"
        )
        return await self._view(report.id)

    @log_operation
    @transaction
    async def recalculate_report(
        self,
        report_id: int,
        overrides: Mapping[str, Any] | None = None,
    ) -> ReportView:
        """
        Recompute every computed field of a report in place.

        Manual fields keep their values unless `overrides` supplies them.
        Legacy reports without a stored range use their calendar month and
        get the range filled in.

        Args:
            report_id: Report ID
            overrides: Manual field values to write in the same commit

        Raises:
            NotFoundError: Report does not exist
            ValidationError: An override has an invalid value
        """
        manual = ManualOverrides.parse(overrides)
        report = await self._get_or_raise(
            report_id, for_update=self.capabilities.row_locking
        )

        if report.start_date is None or report.end_date is None:
            start, end = month_range(report.year, report.month)
            self.logger.info(
                f"Report {report_id} has no stored range, using "
                f"{start.isoformat()}..{end.isoformat()}"
            )
        else:
            start, end = report.start_date, report.end_date

        metrics = await self.aggregator.calculate(report.agent_id, start, end)

        report.apply(metrics.as_fields())
        report.apply(manual)
        report.start_date = start
        report.end_date = end
        report.month = start.month
        report.year = start.year
        await self.session.flush()

        self.logger.info(
            f"Recalculated report {report_id}: "
            f"total_commission={metrics.total_commission}"
        )
        return await self._view(report_id)

    @transaction
    async def update_report(
        self, report_id: int, updates: Mapping[str, Any]
    ) -> ReportView:
        """
        Apply a partial manual update.

        Only manual fields (boosts) are accepted; any other key is dropped
        without error.

        Raises:
            NotFoundError: Report does not exist
            ValidationError: A manual field has an invalid value
        """
        accepted = ManualOverrides.parse(updates)
        ignored = sorted(set(updates or {}) - set(accepted))
        if ignored:
            self.logger.debug(
                f"Report {report_id}: ignoring non-editable fields "
                f"{', '.join(ignored)}"
            )

        report = await self._get_or_raise(report_id)
        if accepted:
            report.apply(accepted)
            await self.session.flush()
            self.logger.info(
                f"Updated report {report_id}: {', '.join(accepted)}"
            )
        return await self._view(report_id)

    @transaction
    async def delete_report(self, report_id: int) -> ReportView:
        """
        Delete a report.

        Returns:
            The report as it was before deletion

        Raises:
            NotFoundError: Report does not exist
        """
        view = await self._view(report_id)
        await self.report_repo.delete(report_id)
        self.logger.info(
            f"Deleted report {report_id} (agent {view.agent_id})"
        )
        return view

    async def get_report(self, report_id: int) -> ReportView:
        """
        Get one report with its agent's name.

        Raises:
            NotFoundError: Report does not exist
        """
        return await self._view(report_id)

    async def get_all_reports(
        self, filters: ReportFilters | Mapping[str, Any] | None = None
    ) -> list[ReportView]:
        """
        List reports matching all given filters.

        Args:
            filters: ReportFilters or a mapping with agent_id, agent_ids,
                start_date, end_date

        Returns:
            Reports ordered by start date (newest first), then agent name
        """
        if not isinstance(filters, ReportFilters):
            filters = _coerce_filters(filters or {})
        rows = await self.report_repo.get_all(filters)
        return [ReportView.from_row(*row) for row in rows]

    async def get_available_lead_sources(self) -> list[str]:
        """Names of all lead sources, alphabetically."""
        return await self.aggregator.queries.lead_source_names()


def _coerce_ids(values: Iterable[Any]) -> tuple[int, ...]:
    try:
        return tuple(int(value) for value in values)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid agent_ids: {values!r}") from exc


def _coerce_filters(raw: Mapping[str, Any]) -> ReportFilters:
    agent_id = raw.get("agent_id")
    agent_ids = raw.get("agent_ids")
    start_date = raw.get("start_date")
    end_date = raw.get("end_date")

    if isinstance(agent_ids, str):
        agent_ids = [part for part in agent_ids.split(",") if part.strip()]

    try:
        agent_id = int(agent_id) if agent_id not in (None, "") else None
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid agent_id: {agent_id!r}") from exc

    return ReportFilters(
        agent_id=agent_id,
        agent_ids=_coerce_ids(agent_ids) if agent_ids is not None else None,
        start_date=(
            parse_date(start_date, "start_date") if start_date else None
        ),
        end_date=parse_date(end_date, "end_date") if end_date else None,
    )
