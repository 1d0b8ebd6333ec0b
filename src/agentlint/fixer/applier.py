"""Apply auto-fixes for HIGH-certainty findings.

Findings are grouped per file: each file is read once, every eligible
fix is applied in order, and the result is written once (after an
optional backup). A failing fix becomes an error entry and the rest of
the batch continues.
"""

from __future__ import annotations

import copy
import difflib
import json
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from agentlint.analysis.schemas import Finding
from agentlint.constants import BACKUP_SUFFIX, Certainty
from agentlint.errors import SchemaPathError, classify_error
from agentlint.fixer.markdown_fixes import MARKDOWN_FIXES
from agentlint.fixer.schemas import (
    FixEntry,
    FixError,
    FixPreview,
    FixResult,
    SkippedFix,
)

logger = logging.getLogger(__name__)

NOT_HIGH_CERTAINTY = "Not HIGH certainty"
NO_AUTO_FIX = "No auto-fix available for this pattern"
NO_CHANGE = "Fix made no change"

_PATH_PART = re.compile(r"([^\[\]]*)((?:\[\d+\])*)")
_INDEX = re.compile(r"\[(\d+)\]")


# ── Schema paths ─────────────────────────────────────────


def parse_schema_path(path: str) -> list[str | int]:
    """Split ``a.b[0].c`` into ``["a", "b", 0, "c"]``."""
    keys: list[str | int] = []
    for part in path.split("."):
        match = _PATH_PART.fullmatch(part)
        if match is None or not (match.group(1) or match.group(2)):
            msg = f"Malformed schema path: {path!r}"
            raise SchemaPathError(msg)
        if match.group(1):
            keys.append(match.group(1))
        keys.extend(int(i) for i in _INDEX.findall(match.group(2)))
    return keys


def apply_at_path(
    document: Any,
    path: str | None,
    transform: Callable[[Any], Any],
) -> Any:
    """Return a copy of ``document`` with ``transform`` applied at ``path``.

    ``None`` or an empty path transforms the whole document. Raises
    :class:`SchemaPathError` when the path does not address a value.
    """
    if not path:
        return transform(document)
    keys = parse_schema_path(path)
    fixed = copy.deepcopy(document)
    parent = fixed
    for key in keys[:-1]:
        parent = _step(parent, key, path)
    last = keys[-1]
    parent[last] = transform(_step(parent, last, path))
    return fixed


def _step(node: Any, key: str | int, path: str) -> Any:
    if isinstance(key, int) and not isinstance(node, list):
        msg = f"{path!r}: index [{key}] applied to a non-list"
        raise SchemaPathError(msg)
    try:
        return node[key]
    except (KeyError, IndexError, TypeError) as exc:
        msg = f"{path!r} does not resolve at {key!r}"
        raise SchemaPathError(msg) from exc


# ── Planning ─────────────────────────────────────────────


@dataclass
class _FilePlan:
    path: Path
    raw: bytes = b""
    newline: str = "\n"
    original: str = ""
    updated: str = ""
    applied: list[Finding] = field(default_factory=lambda: list[Finding]())
    skipped: list[SkippedFix] = field(default_factory=lambda: list[SkippedFix]())
    errors: list[FixError] = field(default_factory=lambda: list[FixError]())

    @property
    def changed(self) -> bool:
        return self.updated != self.original

    def encoded(self) -> bytes:
        """Updated text in the file's own line endings."""
        return self.updated.replace("\n", self.newline).encode("utf-8")


def skip_reason(finding: Finding) -> str | None:
    """Why a finding cannot be auto-fixed, or ``None`` when it can."""
    if finding.certainty != Certainty.HIGH:
        return NOT_HIGH_CERTAINTY
    if not finding.file:
        return NO_AUTO_FIX
    if finding.file.endswith(".json"):
        return None if finding.auto_fix_fn is not None else NO_AUTO_FIX
    return None if finding.pattern_id in MARKDOWN_FIXES else NO_AUTO_FIX


def _partition(
    findings: Iterable[Finding],
) -> tuple[dict[str, list[Finding]], list[SkippedFix]]:
    by_file: dict[str, list[Finding]] = {}
    skipped: list[SkippedFix] = []
    for finding in findings:
        reason = skip_reason(finding)
        if reason is not None:
            skipped.append(SkippedFix.for_finding(finding, reason=reason))
            continue
        by_file.setdefault(finding.file, []).append(finding)
    return by_file, skipped


def _error(finding: Finding, exc: Exception) -> FixError:
    return FixError.for_finding(
        finding, error=str(exc), error_class=classify_error(exc)
    )


def _plan_file(path: Path, findings: list[Finding]) -> _FilePlan:
    plan = _FilePlan(path=path)
    try:
        plan.raw = path.read_bytes()
        text = plan.raw.decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read fix target %s: %s", path, exc)
        plan.errors = [_error(f, exc) for f in findings]
        return plan
    # Fixes see LF text; a consistently CRLF file is written back as CRLF.
    crlf = text.count("\r\n")
    if crlf and crlf == text.count("\n"):
        plan.newline = "\r\n"
        text = text.replace("\r\n", "\n")
    plan.original = text
    plan.updated = plan.original

    if path.suffix == ".json":
        _plan_structured(plan, findings)
    else:
        _plan_text(plan, findings)
    return plan


def _plan_structured(plan: _FilePlan, findings: list[Finding]) -> None:
    try:
        document = json.loads(plan.original)
    except json.JSONDecodeError as exc:
        logger.warning("Cannot parse fix target %s: %s", plan.path, exc)
        plan.errors = [_error(f, exc) for f in findings]
        return
    current = document
    for finding in findings:
        if finding.auto_fix_fn is None:
            continue
        try:
            current = apply_at_path(current, finding.schema_path, finding.auto_fix_fn)
        except Exception as exc:
            logger.warning(
                "Fix %s failed on %s: %s", finding.pattern_id, plan.path, exc
            )
            plan.errors.append(_error(finding, exc))
            continue
        plan.applied.append(finding)
    if current != document:
        plan.updated = json.dumps(current, indent=2, ensure_ascii=False) + "\n"


def _plan_text(plan: _FilePlan, findings: list[Finding]) -> None:
    text = plan.updated
    done: set[str] = set()
    for finding in findings:
        if finding.pattern_id in done:
            plan.applied.append(finding)
            continue
        try:
            fixed = MARKDOWN_FIXES[finding.pattern_id](text)
        except Exception as exc:
            logger.warning(
                "Fix %s failed on %s: %s", finding.pattern_id, plan.path, exc
            )
            plan.errors.append(_error(finding, exc))
            continue
        if fixed == text:
            plan.skipped.append(SkippedFix.for_finding(finding, reason=NO_CHANGE))
            continue
        text = fixed
        done.add(finding.pattern_id)
        plan.applied.append(finding)
    plan.updated = text


# ── Public API ───────────────────────────────────────────


def apply_fixes(
    findings: Iterable[Finding],
    dry_run: bool = False,
    backup: bool = True,
    backup_suffix: str = BACKUP_SUFFIX,
) -> FixResult:
    """Fix every eligible finding; only HIGH certainty is eligible."""
    result = FixResult(dry_run=dry_run)
    if not isinstance(findings, Iterable) or isinstance(findings, (str, bytes)):
        return result
    by_file, result.skipped = _partition(findings)

    for file, group in by_file.items():
        plan = _plan_file(Path(file), group)
        result.errors.extend(plan.errors)
        result.skipped.extend(plan.skipped)
        if plan.changed and not dry_run:
            backup_path = plan.path.with_name(plan.path.name + backup_suffix)
            try:
                if backup:
                    backup_path.write_bytes(plan.raw)
                plan.path.write_bytes(plan.encoded())
            except OSError as exc:
                logger.error("Cannot write fix target %s: %s", plan.path, exc)
                result.errors.extend(_error(f, exc) for f in plan.applied)
                continue
            if backup:
                result.backups.append(str(backup_path))
        if plan.changed:
            result.files_modified.append(file)
        result.applied.extend(FixEntry.for_finding(f) for f in plan.applied)

    logger.info(
        "Fix batch%s: %d applied, %d skipped, %d error(s)",
        " (dry run)" if dry_run else "",
        len(result.applied),
        len(result.skipped),
        len(result.errors),
    )
    return result


def preview_fixes(findings: Iterable[Finding]) -> list[FixPreview]:
    """Diffs the eligible fixes would produce, without touching disk."""
    if not isinstance(findings, Iterable) or isinstance(findings, (str, bytes)):
        return []
    by_file, _ = _partition(findings)
    previews: list[FixPreview] = []
    for file, group in by_file.items():
        plan = _plan_file(Path(file), group)
        if not plan.changed:
            continue
        diff = difflib.unified_diff(
            plan.original.splitlines(keepends=True),
            plan.updated.splitlines(keepends=True),
            fromfile=file,
            tofile=f"{file} (fixed)",
        )
        previews.append(FixPreview(
            file=file,
            pattern_ids=sorted({f.pattern_id for f in plan.applied}),
            diff="".join(diff),
        ))
    return previews


def restore_from_backup(path: Path | str, backup_suffix: str = BACKUP_SUFFIX) -> bool:
    """Restore ``path`` from its backup and delete the backup."""
    target = Path(path)
    backup_path = target.with_name(target.name + backup_suffix)
    if not backup_path.is_file():
        logger.warning("No backup found for %s", target)
        return False
    target.write_bytes(backup_path.read_bytes())
    backup_path.unlink()
    logger.info("Restored %s from backup", target)
    return True


def cleanup_backups(directory: Path | str, backup_suffix: str = BACKUP_SUFFIX) -> int:
    """Delete every backup file under ``directory``; return the count."""
    root = Path(directory)
    if not root.is_dir():
        return 0
    removed = 0
    for backup_path in root.rglob(f"*{backup_suffix}"):
        if backup_path.is_file():
            backup_path.unlink()
            removed += 1
    logger.info("Removed %d backup file(s) under %s", removed, root)
    return removed
