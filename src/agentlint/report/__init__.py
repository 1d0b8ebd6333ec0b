"""Deduplication, aggregation and markdown rendering of findings."""

from agentlint.report.aggregate import (
    AggregatedResults,
    CertaintyCounts,
    aggregate_results,
    deduplicate_findings,
)
from agentlint.report.render import generate_fix_report, generate_report

__all__ = [
    "AggregatedResults",
    "CertaintyCounts",
    "aggregate_results",
    "deduplicate_findings",
    "generate_fix_report",
    "generate_report",
]
