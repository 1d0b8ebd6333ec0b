"""Merge duplicate findings and count them per certainty and analyzer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from agentlint.analysis.schemas import Finding
from agentlint.constants import Certainty


class CertaintyCounts(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0

    def add(self, certainty: Certainty) -> None:
        field = certainty.lower()
        setattr(self, field, getattr(self, field) + 1)

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low


class AggregatedResults(BaseModel):
    """Deduplicated findings with per-certainty and per-analyzer counts."""

    findings: list[Finding] = Field(default_factory=lambda: list[Finding]())
    summary: CertaintyCounts = Field(default_factory=CertaintyCounts)
    by_enhancer: dict[str, CertaintyCounts] = Field(
        default_factory=lambda: dict[str, CertaintyCounts](),
        serialization_alias="byEnhancer",
    )

    def to_dict(self) -> dict[str, Any]:
        """Machine-readable shape: ``{findings, summary, byEnhancer}``."""
        return self.model_dump(mode="json", by_alias=True)


def _dedup_key(finding: Finding) -> tuple[str, int, str]:
    issue = " ".join(finding.issue.split()).casefold()
    return finding.file or "", finding.line or 0, issue


def deduplicate_findings(findings: object) -> list[Finding]:
    """Collapse findings with the same file, line and issue text.

    Sources of merged findings are unioned into ``sources``; the
    auto-fixable variant wins when only one of them is.
    """
    if not isinstance(findings, list):
        return []
    kept: dict[tuple[str, int, str], Finding] = {}
    for finding in findings:
        key = _dedup_key(finding)
        existing = kept.get(key)
        if existing is None:
            kept[key] = finding
            continue
        sources = tuple(dict.fromkeys(existing.all_sources + finding.all_sources))
        winner = finding if finding.auto_fixable and not existing.auto_fixable else existing
        kept[key] = winner.model_copy(update={"sources": sources})
    return list(kept.values())


def aggregate_results(findings: object) -> AggregatedResults:
    deduped = deduplicate_findings(findings)
    summary = CertaintyCounts()
    by_enhancer: dict[str, CertaintyCounts] = {}
    for finding in deduped:
        summary.add(finding.certainty)
        by_enhancer.setdefault(finding.source, CertaintyCounts()).add(finding.certainty)
    return AggregatedResults(
        findings=deduped, summary=summary, by_enhancer=by_enhancer
    )
