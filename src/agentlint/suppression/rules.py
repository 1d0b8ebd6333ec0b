"""Decide which findings leave the active stream.

Suppression never edits a finding: suppressed ones move, unchanged,
into :attr:`FilterResult.suppressed` together with the decision.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Collection, Mapping
from pathlib import Path
from typing import Any

import pathspec
import yaml
from pydantic import BaseModel, ValidationError

from agentlint.analysis.schemas import Finding
from agentlint.constants import SuppressionReason
from agentlint.suppression.learning import CONFIDENCE_THRESHOLD, relative_path
from agentlint.suppression.schemas import (
    SEVERITY_OFF,
    AutoLearned,
    FilterResult,
    IgnoreRules,
    SuppressedFinding,
    SuppressionConfig,
    SuppressionDecision,
    SuppressionSummary,
    severity_level,
)

logger = logging.getLogger(__name__)

INLINE_ALL = "all"

_INLINE_MARKER = re.compile(r"<!--\s*agentlint-disable\s+([^>]*?)\s*-->")


def load_suppression_config(path: Path | str | None) -> SuppressionConfig:
    """Load a YAML or JSON suppression file.

    Never raises: a missing or unreadable file, invalid YAML, or a
    section with the wrong shape falls back to empty defaults with a
    warning.
    """
    if path is None:
        return SuppressionConfig()
    config_path = Path(path)
    if not config_path.is_file():
        logger.debug("No suppression config at %s", config_path)
        return SuppressionConfig()
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable suppression config %s: %s", config_path, exc)
        return SuppressionConfig()
    if raw is None:
        return SuppressionConfig()
    if not isinstance(raw, dict):
        logger.warning("Ignoring suppression config %s: top level is not a mapping", config_path)
        return SuppressionConfig()

    return SuppressionConfig(
        ignore=_section(IgnoreRules, raw.get("ignore"), "ignore", config_path),
        severity=_severity(raw.get("severity"), config_path),
        auto_learned=_section(AutoLearned, raw.get("auto_learned"), "auto_learned", config_path),
    )


def _section[M: BaseModel](model: type[M], value: Any, name: str, source: Path) -> M:
    if value is None:
        return model()
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        logger.warning(
            "Ignoring malformed '%s' section in %s (%d error(s))",
            name,
            source,
            exc.error_count(),
        )
        return model()


def _severity(value: Any, source: Path) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Ignoring malformed 'severity' section in %s", source)
        return {}
    return {str(k): severity_level(v) for k, v in value.items()}


def extract_inline_suppressions(content: object) -> frozenset[str]:
    """Pattern ids disabled by ``<!-- agentlint-disable id, id -->`` markers."""
    if not isinstance(content, str):
        return frozenset()
    disabled: set[str] = set()
    for match in _INLINE_MARKER.finditer(content):
        disabled.update(
            part.strip() for part in re.split(r"[,\s]+", match.group(1)) if part.strip()
        )
    return frozenset(disabled)


def _matches(globs: Collection[str], rel_path: str) -> bool:
    if not globs:
        return False
    spec = pathspec.PathSpec.from_lines("gitwildmatch", globs)
    return spec.match_file(rel_path)


def should_suppress(
    finding: Finding,
    config: SuppressionConfig,
    inline: Collection[str],
    rel_path: str,
) -> SuppressionDecision | None:
    """First matching rule wins: inline, config, then learned."""
    pattern_id = finding.pattern_id

    if INLINE_ALL in inline or pattern_id in inline:
        return SuppressionDecision(
            reason=SuppressionReason.INLINE,
            detail="inline disable marker",
        )
    if pattern_id in config.ignore.patterns:
        return SuppressionDecision(
            reason=SuppressionReason.CONFIG,
            detail="ignore.patterns",
        )
    if config.severity.get(pattern_id) == SEVERITY_OFF:
        return SuppressionDecision(
            reason=SuppressionReason.CONFIG,
            detail="severity off",
        )
    if _matches(config.ignore.files, rel_path):
        return SuppressionDecision(
            reason=SuppressionReason.CONFIG,
            detail="ignore.files",
        )
    rule = config.ignore.rules.get(pattern_id)
    if rule == SEVERITY_OFF or (isinstance(rule, list) and _matches(rule, rel_path)):
        return SuppressionDecision(
            reason=SuppressionReason.CONFIG,
            detail=f"ignore.rules.{pattern_id}",
        )

    learned = config.auto_learned.patterns.get(pattern_id)
    if (
        learned is not None
        and rel_path in learned.files
        and learned.confidence >= CONFIDENCE_THRESHOLD
    ):
        return SuppressionDecision(
            reason=SuppressionReason.AUTO_LEARNED,
            confidence=learned.confidence,
            detail=learned.reason,
        )
    return None


def filter_findings(
    findings: list[Finding],
    config: SuppressionConfig,
    project_root: Path | str | None = None,
    file_contents: Mapping[str, str] | None = None,
) -> FilterResult:
    """Split findings into active and suppressed."""
    result = FilterResult()
    if not isinstance(findings, list):
        return result
    contents = file_contents or {}
    inline_cache: dict[str, frozenset[str]] = {}

    for finding in findings:
        if finding.file not in inline_cache:
            inline_cache[finding.file] = extract_inline_suppressions(
                contents.get(finding.file, "")
            )
        decision = should_suppress(
            finding,
            config,
            inline_cache[finding.file],
            relative_path(finding.file, project_root),
        )
        if decision is None:
            result.active.append(finding)
        else:
            result.suppressed.append(SuppressedFinding(finding=finding, decision=decision))

    if result.suppressed:
        logger.info(
            "Suppressed %d of %d finding(s)",
            len(result.suppressed),
            len(findings),
        )
    return result


def generate_suppression_summary(result: FilterResult) -> SuppressionSummary:
    by_reason = Counter(str(s.decision.reason) for s in result.suppressed)
    by_pattern = Counter(s.finding.pattern_id for s in result.suppressed)
    return SuppressionSummary(
        total=len(result.suppressed),
        by_reason=dict(by_reason),
        by_pattern=dict(by_pattern),
    )
