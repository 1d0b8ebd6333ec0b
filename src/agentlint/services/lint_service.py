"""Pipeline orchestration: discover, analyze, suppress, learn, aggregate."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from agentlint.analysis.analyzer import analyze_artifacts
from agentlint.analysis.capabilities import KNOWN_TOOLS
from agentlint.analysis.cross_file import analyze_corpus
from agentlint.analysis.schemas import CrossFileResult, Finding
from agentlint.config import Settings
from agentlint.constants import SuppressionReason
from agentlint.ingestion.discovery import discover_artifacts
from agentlint.ingestion.schemas import Artifact
from agentlint.report.aggregate import AggregatedResults, aggregate_results
from agentlint.suppression.learning import (
    CONFIDENCE_THRESHOLD,
    analyze_for_auto_suppression,
    get_project_id,
    load_auto_suppressions,
    merge_suppressions,
    relative_path,
    save_auto_suppressions,
)
from agentlint.suppression.rules import filter_findings, load_suppression_config
from agentlint.suppression.schemas import (
    FilterResult,
    LearnedCandidate,
    SuppressedFinding,
    SuppressionDecision,
)

logger = logging.getLogger(__name__)

RUN_ID_LENGTH = 12


@dataclass
class StageStatus:
    """Status of a pipeline stage."""

    name: str
    ok: bool
    duration_ms: float = 0.0
    error: str | None = None


@dataclass
class LintRun:
    """Full result of one analysis run."""

    run_id: str
    target: Path
    project_root: Path
    stages: list[StageStatus] = field(
        default_factory=lambda: list[StageStatus]()
    )
    artifacts: list[Artifact] = field(
        default_factory=lambda: list[Artifact]()
    )
    filtered: FilterResult = field(default_factory=FilterResult)
    learned: list[LearnedCandidate] = field(
        default_factory=lambda: list[LearnedCandidate]()
    )
    results: AggregatedResults = field(default_factory=AggregatedResults)
    total_duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.stages)


def project_root_for(target: Path) -> Path:
    return target if target.is_dir() else target.parent


def run_lint(
    target: str | Path,
    settings: Settings | None = None,
    config_path: str | Path | None = None,
    no_learn: bool = False,
    project_id: str | None = None,
) -> LintRun:
    """Run the full analysis pipeline against a directory or file.

    Phases:
      1. Discovery
      2. Single-document patterns
      3. Cross-file patterns
      4. Suppression (config, inline markers, learned table)
      5. Learning of new false positives (skipped with ``no_learn``)
      6. Deduplication and aggregation
    """
    cfg = settings or Settings()
    t0 = time.monotonic()
    target_path = Path(target).resolve()
    root = project_root_for(target_path)
    run = LintRun(
        run_id=uuid.uuid4().hex[:RUN_ID_LENGTH],
        target=target_path,
        project_root=root,
    )

    artifacts, status = _run_stage_sync(
        "discovery", lambda: discover_artifacts(target_path, cfg)
    )
    run.stages.append(status)
    run.artifacts = artifacts or []
    if not run.artifacts:
        run.total_duration_ms = _elapsed(t0)
        return run

    findings, status = _run_stage_sync(
        "single_document", lambda: analyze_artifacts(run.artifacts)
    )
    run.stages.append(status)

    known_tools = KNOWN_TOOLS | frozenset(cfg.extra_known_tools)
    corpus, status = _run_stage_sync(
        "cross_file",
        lambda: analyze_corpus(run.artifacts, known_tools=known_tools),
    )
    run.stages.append(status)

    all_findings = list(findings or [])
    all_findings.extend((corpus or CrossFileResult()).findings)

    contents = {str(a.path): a.raw_content for a in run.artifacts}
    pid = project_id or get_project_id(root)
    filtered, status = _run_stage_sync(
        "suppression",
        lambda: _suppress(all_findings, contents, root, cfg, config_path, pid),
    )
    run.stages.append(status)
    run.filtered = filtered or FilterResult(active=all_findings)

    if not no_learn:
        learned, status = _run_stage_sync(
            "learning",
            lambda: _learn(run.filtered, contents, root, cfg, pid),
        )
        run.stages.append(status)
        run.learned = learned or []

    run.results = aggregate_results(run.filtered.active)
    run.total_duration_ms = _elapsed(t0)
    logger.info(
        "event=lint_done run_id=%s artifacts=%d active=%d suppressed=%d",
        run.run_id,
        len(run.artifacts),
        len(run.results.findings),
        len(run.filtered.suppressed),
    )
    return run


def _suppress(
    findings: list[Finding],
    contents: dict[str, str],
    root: Path,
    cfg: Settings,
    config_path: str | Path | None,
    pid: str,
) -> FilterResult:
    manual = load_suppression_config(config_path or root / cfg.config_filename)
    learned = load_auto_suppressions(cfg.suppression_path, pid)
    config = merge_suppressions(learned, manual)
    return filter_findings(findings, config, root, contents)


def _learn(
    filtered: FilterResult,
    contents: dict[str, str],
    root: Path,
    cfg: Settings,
    pid: str,
) -> list[LearnedCandidate]:
    """Persist new false positives and move them out of the active stream."""
    candidates = [
        c for c in analyze_for_auto_suppression(filtered.active, contents, root)
        if c.confidence >= CONFIDENCE_THRESHOLD
    ]
    if not candidates:
        return []
    save_auto_suppressions(cfg.suppression_path, pid, candidates)

    learned = {(c.pattern_id, c.file): c for c in candidates}
    still_active: list[Finding] = []
    for finding in filtered.active:
        match = learned.get((finding.pattern_id, relative_path(finding.file, root)))
        if match is None:
            still_active.append(finding)
            continue
        filtered.suppressed.append(SuppressedFinding(
            finding=finding,
            decision=SuppressionDecision(
                reason=SuppressionReason.AUTO_LEARNED,
                confidence=match.confidence,
                detail=match.reason,
            ),
        ))
    filtered.active = still_active
    return candidates


# -- Helpers --


def _elapsed(t0: float) -> float:
    return (time.monotonic() - t0) * 1000


def _run_stage_sync[T](
    name: str,
    fn: Callable[[], T],
) -> tuple[T | None, StageStatus]:
    """Run a sync stage with error capture."""
    t0 = time.monotonic()
    try:
        out = fn()
        return out, StageStatus(
            name=name, ok=True, duration_ms=_elapsed(t0)
        )
    except Exception as exc:
        logger.exception("event=stage_failed stage=%s", name)
        return None, StageStatus(
            name=name,
            ok=False,
            duration_ms=_elapsed(t0),
            error=str(exc),
        )
