#!/usr/bin/env python3
"""
Batch recalculation of agent reports.

Intended for cron or other batch triggers. Each report is recalculated in
its own session. Validation and store failures are logged and the run
continues; anything else aborts the run.

Usage:
    python scripts/recalculate_reports.py                      # all reports
    python scripts/recalculate_reports.py --agent-id 7         # one agent
    python scripts/recalculate_reports.py --since 2025-01-01   # recent ranges
"""

import argparse
import asyncio
import sys
from datetime import date

from loguru import logger

from commission_engine.config.database import async_session_maker, engine
from commission_engine.initialization import setup_logging
from commission_engine.repositories.agent_report_repository import (
    ReportFilters,
)
from commission_engine.services.commission.rates import build_rate_provider
from commission_engine.services.report import (
    ReportService,
    probe_capabilities,
)
from commission_engine.utils.exceptions import must_log, must_raise


async def recalculate_reports(
    agent_id: int | None = None, since: date | None = None
) -> tuple[int, int]:
    """
    Recalculate every matching report.

    Returns:
        (recalculated, failed)
    """
    capabilities = await probe_capabilities(engine)
    rate_provider = build_rate_provider(async_session_maker)
    filters = ReportFilters(agent_id=agent_id, start_date=since)

    async with async_session_maker() as session:
        service = ReportService(
            session, rate_provider=rate_provider, capabilities=capabilities
        )
        report_ids = [view.id for view in await service.get_all_reports(filters)]

    logger.info(f"Recalculating {len(report_ids)} report(s)...")

    recalculated = failed = 0
    for report_id in report_ids:
        async with async_session_maker() as session:
            service = ReportService(
                session, rate_provider=rate_provider, capabilities=capabilities
            )
            try:
                view = await service.recalculate_report(report_id)
            except Exception as e:
                if must_raise(e):
                    logger.error(f"Report {report_id}: {e}")
                elif must_log(e):
                    logger.opt(exception=e).error(
                        f"Report {report_id}: store failure"
                    )
                else:
                    raise
                failed += 1
                continue
        logger.info(
            f"  report {report_id} ({view.agent_name or view.agent_id}, "
            f"{view.start_date}..{view.end_date}): "
            f"total={view.computed.total_commission}"
        )
        recalculated += 1

    return recalculated, failed


async def run(agent_id: int | None, since: date | None) -> int:
    try:
        recalculated, failed = await recalculate_reports(agent_id, since)
    finally:
        await engine.dispose()

    if failed:
        logger.warning(f"Done: {recalculated} recalculated, {failed} failed")
        return 1
    logger.success(f"Done: {recalculated} report(s) recalculated")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Recalculate agent commission reports"
    )
    parser.add_argument(
        "--agent-id",
        type=int,
        help="Only reports of this agent"
    )
    parser.add_argument(
        "--since",
        type=date.fromisoformat,
        help="Only reports starting on or after this date (YYYY-MM-DD)"
    )
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(run(args.agent_id, args.since)))


if __name__ == "__main__":
    main()
