"""
Report aggregator.

Computes every derived field of one report. Nothing is written here: the
result is a ComputedMetrics value that the report service persists in one
write.
"""

import asyncio
from dataclasses import replace
from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import (
    TOTAL_COMMISSION_TOLERANCE,
)
from commission_engine.config.settings import settings
from commission_engine.services.commission.calculator import (
    CommissionCalculator,
    round_money,
)
from commission_engine.services.commission.rates import RateProvider
from commission_engine.services.referral.classifier import (
    ClassificationResult,
    ReferralClassifier,
)
from commission_engine.services.report.capabilities import StoreCapabilities
from commission_engine.services.report.dto import ComputedMetrics
from commission_engine.services.report.queries import ReportDataQueries
from commission_engine.utils.datetime_utils import day_bounds
from commission_engine.utils.exceptions import ClassificationFailure


class ReportAggregator:
    """
    Report aggregator.

    Steps for one (agent, start, end):
    1. Reclassify the referral subjects feeding the report (best-effort)
    2. Read rates once from the provider
    3. Count listings, leads, viewings and sales
    4. Sum the two referral pipelines independently
    5. Check total_commission against its components
    """

    def __init__(
        self,
        session: AsyncSession,
        classifier: ReferralClassifier,
        rate_provider: RateProvider,
        capabilities: StoreCapabilities | None = None,
        concurrency: int | None = None,
    ) -> None:
        """
        Initialize aggregator.

        Args:
            session: Session used for the read queries
            classifier: Recency classifier (own transaction per subject)
            rate_provider: Source of commission rates
            capabilities: Probed store capabilities
            concurrency: Subjects classified in parallel
        """
        self.session = session
        self.classifier = classifier
        self.rate_provider = rate_provider
        self.capabilities = capabilities or StoreCapabilities()
        self.queries = ReportDataQueries(session, self.capabilities)
        self.concurrency = concurrency or settings.classification_concurrency
        self.logger = logger.bind(service=self.__class__.__name__)

    async def classify_subjects(
        self, agent_id: int, start_date: date, end_date: date
    ) -> list[ClassificationResult]:
        """
        Reclassify every subject feeding the report.

        A subject that fails is logged and skipped; the others still run.

        Returns:
            Results of the subjects that were classified
        """
        subjects = await self.queries.subjects_to_classify(
            agent_id, start_date, end_date
        )
        if not subjects:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(
            subject_type: str, subject_id: int
        ) -> ClassificationResult | None:
            async with semaphore:
                try:
                    return await self.classifier.classify(
                        subject_type, subject_id
                    )
                except Exception as e:
                    failure = ClassificationFailure(
                        subject_type, subject_id, e
                    )
                    self.logger.opt(exception=e).error(
                        f"Skipping subject: {failure}"
                    )
                    return None

        results = await asyncio.gather(
            *(run(subject_type, subject_id)
              for subject_type, subject_id in subjects)
        )
        classified = [r for r in results if r is not None]

        changed = sum(1 for r in classified if r.changed)
        self.logger.info(
            f"Agent {agent_id}: classified {len(classified)}/"
            f"{len(subjects)} subject(s), {changed} changed"
        )
        return classified

    async def calculate(
        self, agent_id: int, start_date: date, end_date: date
    ) -> ComputedMetrics:
        """
        Compute all report metrics for an inclusive date range.

        Args:
            agent_id: Agent ID
            start_date: First day of the range
            end_date: Last day of the range

        Returns:
            Computed metrics, every money field rounded to cents
        """
        await self.classify_subjects(agent_id, start_date, end_date)

        rates = await self.rate_provider.get_rates()
        calculator = CommissionCalculator(rates)
        start_at, end_at = day_bounds(start_date, end_date)

        listings_count = await self.queries.count_listings(
            agent_id, start_at, end_at
        )
        lead_sources = await self.queries.lead_sources(
            agent_id, start_at, end_at
        )
        viewings_count = await self.queries.count_viewings(
            agent_id, start_date, end_date
        )
        sales_count, sales_amount = await self.queries.sales_totals(
            agent_id, start_date, end_date
        )
        self.logger.debug(
            f"Agent {agent_id}: listings={listings_count}, "
            f"viewings={viewings_count}, sales={sales_count} "
            f"amount={sales_amount}"
        )

        sales = calculator.sales_commissions(sales_amount)

        given = calculator.sum_referral_commissions(
            await self.queries.given_property_referrals(
                agent_id, start_date, end_date
            )
            + await self.queries.given_lead_referrals(
                agent_id, start_date, end_date
            )
        )
        on_own_sales = calculator.sum_referral_commissions(
            await self.queries.referrals_on_own_sales(
                agent_id, start_date, end_date
            )
        )
        self.logger.debug(
            f"Agent {agent_id}: referrals given={given.count} "
            f"({given.commission}), on own sales={on_own_sales.count} "
            f"({on_own_sales.commission})"
        )

        total = calculator.total(
            (
                sales.agent,
                sales.finders,
                on_own_sales.commission,
                sales.team_leader,
                sales.administration,
            )
        )

        metrics = ComputedMetrics(
            listings_count=listings_count,
            lead_sources=lead_sources,
            viewings_count=viewings_count,
            sales_count=sales_count,
            sales_amount=round_money(sales_amount),
            agent_commission=sales.agent,
            finders_commission=sales.finders,
            referral_commission=on_own_sales.commission,
            team_leader_commission=sales.team_leader,
            administration_commission=sales.administration,
            total_commission=total,
            referral_received_count=given.count,
            referral_received_commission=given.commission,
            referrals_on_properties_count=on_own_sales.count,
            referrals_on_properties_commission=on_own_sales.commission,
        )
        return self.check_total(agent_id, metrics)

    def check_total(
        self, agent_id: int, metrics: ComputedMetrics
    ) -> ComputedMetrics:
        """Replace total_commission by the component sum when they drift."""
        expected = metrics.component_sum()
        difference: Decimal = abs(metrics.total_commission - expected)
        if difference <= TOTAL_COMMISSION_TOLERANCE:
            return metrics

        self.logger.warning(
            f"Agent {agent_id}: total_commission {metrics.total_commission} "
            f"differs from component sum {expected} by {difference}, "
            f"using component sum"
        )
        return replace(metrics, total_commission=expected)
