"""Learn obvious false positives and remember them per project.

Heuristics look at the file content around a finding. A candidate is
kept only at or above :data:`CONFIDENCE_THRESHOLD`; learned entries
match exact file paths and expire after :data:`SUPPRESSION_EXPIRY`.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from agentlint.analysis.schemas import Finding
from agentlint.suppression.schemas import (
    AutoLearned,
    LearnedCandidate,
    LearnedSuppression,
    LearningStats,
    ProjectSuppressions,
    SuppressionConfig,
    SuppressionExport,
    SuppressionStore,
)

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.90
MAX_SUPPRESSIONS_PER_PROJECT = 100
MAX_FILES_PER_PATTERN = 50
SUPPRESSION_EXPIRY = timedelta(days=180)
GIT_TIMEOUT_SECONDS = 5

DEFAULT_REASON = "Auto-detected false positive"

type Heuristic = Callable[[Finding, str], tuple[str, float] | None]


def relative_path(file: str, project_root: Path | str | None) -> str:
    """``file`` relative to ``project_root`` with forward slashes."""
    if project_root is None:
        return Path(file).as_posix()
    try:
        return Path(os.path.relpath(file, project_root)).as_posix()
    except ValueError:
        return Path(file).as_posix()


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def _window(content: str, line: int, radius: int) -> str:
    lines = content.split("\n")
    return "\n".join(lines[max(0, line - radius): line + radius])


def _vague_instructions(finding: Finding, content: str) -> tuple[str, float] | None:
    if re.search(
        r"pattern.*detect.*usually|example.*vague|fuzzy.*language.*like"
        r"|vague.*terms.*like|\"usually\".*\"sometimes\"",
        content,
        re.IGNORECASE,
    ):
        return "Pattern documentation describing vague language", 0.98
    if re.search(
        r"\|.*vague.*\||\|.*usually.*sometimes.*\|",
        _window(content, finding.line, 5),
        re.IGNORECASE,
    ):
        return "Pattern table documentation", 0.95
    return None


def _aggressive_emphasis(finding: Finding, content: str) -> tuple[str, float] | None:
    nearby = _window(content, finding.line, 20)
    if re.search(
        r"WORKFLOW\s+GATES?|\[CRITICAL\]\s*NO\s+AGENT\s+may"
        r"|MUST\s+NOT\s+DO|NEVER\s+skip|DO\s+NOT\s+proceed"
        r"|SubagentStop\s+hook",
        nearby,
        re.IGNORECASE,
    ):
        return "Workflow gates rely on emphasis", 0.95
    if re.search(r"critical-rules|Critical\s+Rules.*Priority", nearby, re.IGNORECASE):
        return "Critical rules section relies on emphasis", 0.93
    return None


def _missing_examples(finding: Finding, content: str) -> tuple[str, float] | None:
    name = Path(finding.file).name.lower()
    if (
        "orchestrator" in name
        or "coordinator" in name
        or re.search(r"Task\s*\(\s*\{[\s\S]*subagent_type", content, re.IGNORECASE)
    ):
        return "Orchestrator delegates to subagents that carry the examples", 0.92
    if re.search(r"spawn.*agent|invoke.*agent|Task\s*\(\s*\{", content, re.IGNORECASE):
        return "Workflow command invokes agents that carry the examples", 0.90
    return None


def _missing_output_format(finding: Finding, content: str) -> tuple[str, float] | None:
    if re.search(r"subagent_type|spawn.*agent|Task\s*\(\s*\{", content, re.IGNORECASE):
        return "Output format is defined by the delegated subagent", 0.91
    return None


def _missing_constraints(finding: Finding, content: str) -> tuple[str, float] | None:
    if re.search(
        r"##\s*What\s+.*MUST\s+NOT\s+Do|##\s*(?:Critical\s+)?Constraints"
        r"|<constraints>|WORKFLOW\s+GATES",
        content,
        re.IGNORECASE,
    ):
        return "Constraint section present under a different heading", 0.94
    return None


def _redundant_cot(finding: Finding, content: str) -> tuple[str, float] | None:
    if re.search(r"Phase\s+\d+:|Step\s+\d+:|###\s+Phase", content, re.IGNORECASE) and re.search(
        r"Phase\s+[2-9]:|Step\s+[2-9]:", content, re.IGNORECASE
    ):
        return "Multi-phase workflow needs step guidance", 0.91
    return None


PATTERN_HEURISTICS: Mapping[str, Heuristic] = {
    "vague_instructions": _vague_instructions,
    "aggressive_emphasis": _aggressive_emphasis,
    "missing_examples": _missing_examples,
    "missing_output_format": _missing_output_format,
    "missing_constraints": _missing_constraints,
    "redundant_cot": _redundant_cot,
}


def is_pattern_documentation(file: str, content: str, pattern_id: str) -> bool:
    """True when a pattern-docs file lists ``pattern_id`` in a table."""
    name = Path(file).name.lower()
    if not any(marker in name for marker in ("pattern", "enhance", "lint")):
        return False
    for term in (pattern_id, pattern_id.replace("_", " ")):
        if re.search(rf"\|[^|\n]*{re.escape(term)}[^|\n]*\|", content, re.IGNORECASE):
            return True
    return False


def is_likely_false_positive(
    finding: Finding, content: object
) -> tuple[str, float] | None:
    """``(reason, confidence)`` for an obvious false positive, else None."""
    if not isinstance(content, str) or not content:
        return None
    heuristic = PATTERN_HEURISTICS.get(finding.pattern_id.lower())
    if heuristic is not None:
        verdict = heuristic(finding, content)
        if verdict is not None and verdict[1] >= CONFIDENCE_THRESHOLD:
            return verdict
    if finding.file and is_pattern_documentation(finding.file, content, finding.pattern_id):
        return "Pattern self-reference in documentation", 0.96
    return None


def analyze_for_auto_suppression(
    findings: Iterable[Finding],
    file_contents: Mapping[str, str],
    project_root: Path | str | None = None,
    no_learn: bool = False,
) -> list[LearnedCandidate]:
    """Findings the heuristics would learn, with project-relative paths."""
    if no_learn:
        return []
    candidates: list[LearnedCandidate] = []
    for finding in findings:
        verdict = is_likely_false_positive(finding, file_contents.get(finding.file))
        if verdict is None:
            continue
        reason, confidence = verdict
        candidates.append(LearnedCandidate(
            pattern_id=finding.pattern_id,
            file=relative_path(finding.file, project_root),
            reason=reason,
            confidence=confidence,
        ))
    return candidates


def get_project_id(project_root: Path | str = ".") -> str:
    """Normalized ``origin`` remote, else ``local:<dirname>``."""
    root = Path(project_root).resolve()
    try:
        completed = subprocess.run(
            ["git", "config", "--get", "remote.origin.url"],
            cwd=root,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("git remote lookup failed in %s: %s", root, exc)
        completed = None
    remote = completed.stdout.strip() if completed and completed.returncode == 0 else ""
    if remote:
        remote = re.sub(r"^https?://", "", remote)
        remote = re.sub(r"^git@", "", remote)
        remote = re.sub(r"\.git$", "", remote)
        return remote.replace(":", "/", 1)
    return f"local:{root.name}"


# ── Storage ──────────────────────────────────────────────


def _read_store(path: Path) -> SuppressionStore:
    if not path.is_file():
        return SuppressionStore()
    try:
        return SuppressionStore.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, ValidationError) as exc:
        logger.warning("Ignoring unreadable suppression store %s: %s", path, exc)
        return SuppressionStore()


def _write_store(path: Path, store: SuppressionStore) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(store.model_dump_json(indent=2), encoding="utf-8")


def load_auto_suppressions(
    suppression_path: Path | str, project_id: str, now: datetime | None = None
) -> AutoLearned:
    """Learned suppressions for a project, expired entries dropped."""
    store = _read_store(Path(suppression_path))
    project = store.projects.get(project_id)
    if project is None:
        return AutoLearned()
    current = now or datetime.now(UTC)
    kept = {
        pattern_id: learned
        for pattern_id, learned in project.auto_learned.patterns.items()
        if learned.learned_at is None or current - _aware(learned.learned_at) < SUPPRESSION_EXPIRY
    }
    return AutoLearned(patterns=kept, stats=project.auto_learned.stats)


def save_auto_suppressions(
    suppression_path: Path | str,
    project_id: str,
    candidates: Iterable[LearnedCandidate],
    now: datetime | None = None,
) -> None:
    """Merge candidates into the store and enforce the size caps."""
    candidates = list(candidates)
    if not candidates:
        return
    path = Path(suppression_path)
    current = now or datetime.now(UTC)
    store = _read_store(path)
    learned = store.projects.setdefault(
        project_id, ProjectSuppressions()
    ).auto_learned

    grouped: dict[str, LearnedSuppression] = {}
    for candidate in candidates:
        pattern_id = candidate.pattern_id.lower()
        entry = grouped.setdefault(pattern_id, LearnedSuppression(
            confidence=candidate.confidence,
            reason=candidate.reason or DEFAULT_REASON,
            learned_at=current,
        ))
        if candidate.file and candidate.file not in entry.files:
            entry.files.append(candidate.file)
        entry.occurrences += 1
        if candidate.confidence > entry.confidence:
            entry.confidence = candidate.confidence
            entry.reason = candidate.reason

    for pattern_id, fresh in grouped.items():
        existing = learned.patterns.get(pattern_id)
        if existing is None:
            fresh.files = fresh.files[:MAX_FILES_PER_PATTERN]
            learned.patterns[pattern_id] = fresh
            continue
        merged = list(dict.fromkeys([*existing.files, *fresh.files]))
        existing.files = merged[:MAX_FILES_PER_PATTERN]
        existing.occurrences += fresh.occurrences
        existing.last_seen = current
        if fresh.confidence > existing.confidence:
            existing.confidence = fresh.confidence
            existing.reason = fresh.reason

    if len(learned.patterns) > MAX_SUPPRESSIONS_PER_PROJECT:
        oldest_first = sorted(
            learned.patterns,
            key=lambda pid: _aware(learned.patterns[pid].learned_at or datetime.min),
        )
        for pattern_id in oldest_first[: len(learned.patterns) - MAX_SUPPRESSIONS_PER_PROJECT]:
            del learned.patterns[pattern_id]

    learned.stats = LearningStats(
        total_suppressed=len(learned.patterns), last_analysis=current
    )
    _write_store(path, store)
    logger.info(
        "Saved %d learned suppression pattern(s) for %s", len(grouped), project_id
    )


def clear_auto_suppressions(suppression_path: Path | str, project_id: str) -> None:
    path = Path(suppression_path)
    store = _read_store(path)
    if project_id not in store.projects:
        return
    store.projects[project_id].auto_learned = AutoLearned(
        stats=LearningStats(last_analysis=datetime.now(UTC))
    )
    _write_store(path, store)


def merge_suppressions(
    auto_learned: AutoLearned, manual: SuppressionConfig
) -> SuppressionConfig:
    """Manual ignore/severity settings combined with learned entries."""
    return SuppressionConfig(
        ignore=manual.ignore.model_copy(deep=True),
        severity=dict(manual.severity),
        auto_learned=auto_learned,
    )


def export_auto_suppressions(
    suppression_path: Path | str, project_id: str
) -> SuppressionExport:
    learned = load_auto_suppressions(suppression_path, project_id)
    return SuppressionExport(
        exported_at=datetime.now(UTC),
        project_id=project_id,
        suppressions=learned.patterns,
        stats=learned.stats,
    )


def import_auto_suppressions(
    suppression_path: Path | str,
    project_id: str,
    data: SuppressionExport,
) -> None:
    candidates = [
        LearnedCandidate(
            pattern_id=pattern_id,
            file=file,
            reason=learned.reason,
            confidence=learned.confidence,
        )
        for pattern_id, learned in data.suppressions.items()
        for file in learned.files
    ]
    save_auto_suppressions(suppression_path, project_id, candidates)
