"""Run the single-document patterns against one artifact."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from agentlint.analysis.markdown import find_line, strip_code_blocks
from agentlint.analysis.patterns.base import (
    CheckResult,
    Pattern,
    PatternContext,
    PatternRegistry,
)
from agentlint.analysis.patterns.registry import REGISTRY
from agentlint.analysis.schemas import Finding
from agentlint.constants import ArtifactType, PatternInput
from agentlint.ingestion.schemas import Artifact

logger = logging.getLogger(__name__)

_BACKTICK_PATH = re.compile(r"`([^`\s]+)`")
_MARKDOWN_LINK = re.compile(r"\[[^\]]*\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")
_UNRESOLVABLE = re.compile(r"[*?{}<>$~]|://|^mailto:|^#|^/")
_SCRIPT_COMMAND = re.compile(r"\b(?:npm|pnpm|yarn)\s+run\s+([\w:.-]+)")

# Bare names are only treated as files when they carry one of these
REFERENCE_EXTENSIONS: frozenset[str] = frozenset({
    ".cfg", ".go", ".ini", ".js", ".json", ".jsx", ".md", ".py", ".rs",
    ".sh", ".toml", ".ts", ".tsx", ".txt", ".yaml", ".yml",
})

# Lines shorter than this are ignored when comparing with README.md
DUPLICATE_LINE_MIN_CHARS = 20


def analyze_artifact(
    artifact: Artifact,
    registry: PatternRegistry = REGISTRY,
    context_extras: dict[str, Any] | None = None,
) -> list[Finding]:
    """Evaluate every single-document pattern that applies to ``artifact``."""
    extras = build_context_extras(artifact)
    if context_extras:
        extras.update(context_extras)
    context = PatternContext(
        path=artifact.path,
        artifact_type=artifact.type,
        frontmatter=artifact.frontmatter,
        extras=extras,
    )

    findings: list[Finding] = []
    for pattern in registry.for_type(artifact.type):
        value = _pattern_input(pattern.input, artifact)
        try:
            result = pattern.check(value, context)
        except Exception:
            logger.exception(
                "Pattern %s failed on %s", pattern.id, artifact.path
            )
            continue
        if result is not None:
            findings.append(make_finding(pattern, artifact, result))

    logger.debug(
        "Analyzed %s (%s): %d finding(s)",
        artifact.path,
        artifact.type,
        len(findings),
    )
    return findings


def analyze_artifacts(
    artifacts: Iterable[Artifact],
    registry: PatternRegistry = REGISTRY,
) -> list[Finding]:
    findings: list[Finding] = []
    for artifact in artifacts:
        findings.extend(analyze_artifact(artifact, registry))
    return findings


def make_finding(
    pattern: Pattern, artifact: Artifact, result: CheckResult
) -> Finding:
    return Finding(
        file=str(artifact.path),
        line=resolve_line(pattern, artifact, result),
        pattern_id=pattern.id,
        issue=result.issue,
        fix=result.fix,
        certainty=pattern.certainty,
        category=pattern.category,
        auto_fixable=pattern.auto_fix,
        source=pattern.source,
        details=result.details,
        auto_fix_fn=result.auto_fix_fn,
        schema_path=result.schema_path,
    )


def resolve_line(
    pattern: Pattern, artifact: Artifact, result: CheckResult
) -> int:
    """Map a result to a 1-based line in the raw content; 0 if unknown."""
    if result.line is not None:
        if pattern.input == PatternInput.BODY and result.line > 0:
            return result.line + artifact.body_offset
        return result.line
    if not result.locate:
        return 0
    line = find_line(artifact.raw_content, result.locate)
    if not line:
        line = find_line(artifact.raw_content.lower(), result.locate.lower())
    return line


def build_context_extras(artifact: Artifact) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    if artifact.type == ArtifactType.PROJECT_MEMORY:
        extras["broken_files"] = find_broken_references(artifact)
        extras["broken_commands"] = find_broken_commands(artifact)
        extras["duplication_ratio"] = readme_duplication_ratio(artifact)
    elif artifact.type == ArtifactType.MANIFEST:
        extras["parse_error"] = artifact.parse_error
        extras["package_version"] = find_package_version(artifact.path)
    return extras


def find_broken_references(artifact: Artifact) -> list[str]:
    """Relative file references that do not resolve from the artifact's dir."""
    content = strip_code_blocks(artifact.raw_content)
    candidates = [
        *(m.group(1) for m in _MARKDOWN_LINK.finditer(content)),
        *(m.group(1) for m in _BACKTICK_PATH.finditer(content)),
    ]
    base = artifact.path.parent
    broken: list[str] = []
    for reference in dict.fromkeys(candidates):
        target = reference.split("#", 1)[0]
        if not target or _UNRESOLVABLE.search(target):
            continue
        if Path(target).suffix not in REFERENCE_EXTENSIONS and not target.endswith("/"):
            continue
        if not (base / target).exists():
            broken.append(reference)
    return broken


def find_broken_commands(artifact: Artifact) -> list[str]:
    """``npm run`` style scripts missing from the sibling ``package.json``."""
    package = _read_package_json(artifact.path.parent / "package.json")
    if package is None:
        return []
    scripts = package.get("scripts")
    known = set(scripts) if isinstance(scripts, dict) else set()
    referenced = dict.fromkeys(
        m.group(1) for m in _SCRIPT_COMMAND.finditer(artifact.raw_content)
    )
    return [name for name in referenced if name not in known]


def readme_duplication_ratio(artifact: Artifact) -> float:
    """Share of the document's substantial lines also found in README.md."""
    readme = artifact.path.parent / "README.md"
    if not readme.is_file():
        return 0.0
    try:
        readme_lines = set(_substantial_lines(readme.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", readme, exc)
        return 0.0
    lines = _substantial_lines(artifact.raw_content)
    if not lines:
        return 0.0
    return sum(1 for line in lines if line in readme_lines) / len(lines)


def find_package_version(manifest_path: Path) -> str | None:
    """Version from a ``package.json`` beside the manifest or one level up."""
    for directory in (manifest_path.parent, manifest_path.parent.parent):
        candidate = directory / "package.json"
        if not candidate.is_file():
            continue
        data = _read_package_json(candidate)
        version = data.get("version") if data is not None else None
        return version if isinstance(version, str) else None
    return None


def _read_package_json(path: Path) -> dict[str, Any] | None:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


def _substantial_lines(text: str) -> list[str]:
    stripped = (line.strip() for line in text.split("\n"))
    return [line for line in stripped if len(line) >= DUPLICATE_LINE_MIN_CHARS]


def _pattern_input(kind: PatternInput, artifact: Artifact) -> Any:
    if kind == PatternInput.BODY:
        return artifact.body
    if kind == PatternInput.CONTENT:
        return artifact.raw_content
    if kind == PatternInput.FRONTMATTER:
        return artifact.frontmatter
    return artifact.data
