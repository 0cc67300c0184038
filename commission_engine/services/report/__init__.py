"""
Report services package.

- aggregator: computes a report's metrics (ComputedMetrics)
- service: report lifecycle (create / recalculate / update / delete / list)
- capabilities: one-time store capability probe
"""

from commission_engine.services.report.aggregator import ReportAggregator
from commission_engine.services.report.capabilities import (
    StoreCapabilities,
    probe_capabilities,
)
from commission_engine.services.report.dto import (
    ComputedMetrics,
    ManualOverrides,
    ReportView,
)
from commission_engine.services.report.queries import ReportDataQueries
from commission_engine.services.report.service import ReportService


__all__ = [
    "ComputedMetrics",
    "ManualOverrides",
    "ReportAggregator",
    "ReportDataQueries",
    "ReportService",
    "ReportView",
    "StoreCapabilities",
    "probe_capabilities",
]
