"""Corpus-level analysis across every loaded artifact."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Collection, Iterable

from agentlint.analysis.analyzer import make_finding
from agentlint.analysis.capabilities import KNOWN_TOOLS
from agentlint.analysis.corpus import ArtifactView, build_corpus_view
from agentlint.analysis.patterns.base import PatternRegistry
from agentlint.analysis.patterns.registry import REGISTRY
from agentlint.analysis.schemas import (
    CrossFileResult,
    CrossFileSummary,
    Finding,
)
from agentlint.constants import PatternInput
from agentlint.ingestion.schemas import Artifact

logger = logging.getLogger(__name__)

__all__ = ["ArtifactView", "analyze_corpus", "build_corpus_view"]


def analyze_corpus(
    artifacts: Iterable[Artifact],
    categories: Collection[str] | None = None,
    known_tools: Iterable[str] = KNOWN_TOOLS,
    registry: PatternRegistry = REGISTRY,
) -> CrossFileResult:
    """Run the corpus patterns, optionally limited to ``categories``."""
    artifacts = list(artifacts)
    views = build_corpus_view(artifacts, known_tools)

    findings: list[Finding] = []
    for pattern in registry.by_input(PatternInput.CORPUS):
        if categories and pattern.category not in categories:
            continue
        for hit in pattern.check(views):
            findings.append(make_finding(pattern, hit.artifact, hit.result))

    by_type = Counter(str(a.type) for a in artifacts)
    by_category = Counter(f.category for f in findings)
    logger.info(
        "Cross-file analysis: %d artifact(s), %d finding(s)",
        len(artifacts),
        len(findings),
    )
    return CrossFileResult(
        findings=findings,
        summary=CrossFileSummary(
            artifacts=len(artifacts),
            by_type=dict(by_type),
            by_category=dict(by_category),
        ),
    )
