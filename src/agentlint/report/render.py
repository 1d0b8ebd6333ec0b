"""Render analysis and fix results as markdown."""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime

from agentlint.analysis.schemas import Finding
from agentlint.constants import CERTAINTY_ORDER, Certainty, Source
from agentlint.fixer.schemas import FixResult
from agentlint.report.aggregate import AggregatedResults
from agentlint.suppression.schemas import LearnedCandidate, SuppressionSummary

REPORT_TITLE = "Enhancement Analysis Report"

_SOURCE_TITLES: dict[str, str] = {
    Source.PROJECT_MEMORY: "Project Memory",
    Source.CROSS_FILE: "Cross-File",
}


def _source_title(source: str) -> str:
    return _SOURCE_TITLES.get(source, source.capitalize())


def _cell(value: object) -> str:
    text = str(value) if value not in (None, "", 0) else "-"
    return text.replace("|", "\\|").replace("\n", " ")


def _fixable(findings: list[Finding]) -> list[Finding]:
    return [
        f for f in findings
        if f.auto_fixable and f.certainty == Certainty.HIGH
    ]


def generate_report(
    results: AggregatedResults | None,
    target_path: str | None = None,
    verbose: bool = False,
    show_auto_fixable: bool = True,
    auto_learned: list[LearnedCandidate] | None = None,
    artifacts_found: int | None = None,
    suppression: SuppressionSummary | None = None,
) -> str:
    """Markdown report; LOW certainty appears only when ``verbose``."""
    results = results or AggregatedResults()
    findings = results.findings
    parts: list[str] = [f"# {REPORT_TITLE}", ""]
    if target_path:
        parts.append(f"**Target**: {target_path}")
    parts.append(f"**Generated**: {datetime.now(UTC).isoformat(timespec='seconds')}")
    if artifacts_found is not None:
        parts.append(f"**Artifacts analyzed**: {artifacts_found}")
    parts.append("")

    if artifacts_found == 0:
        parts.append("**Status: No artifacts found** - nothing to analyze at this path.")
        parts.append("")
        return "\n".join(parts)

    parts.extend(_executive_summary(results))

    if not findings:
        parts.append("**Status: Clean** - No issues found.")
        parts.append("")
    else:
        for certainty in CERTAINTY_ORDER:
            if certainty == Certainty.LOW and not verbose:
                continue
            selected = [f for f in findings if f.certainty == certainty]
            if selected:
                parts.extend(_certainty_section(certainty, selected))

    fixable = _fixable(findings)
    if show_auto_fixable and fixable:
        target = target_path or "<path>"
        parts.append("## Auto-Fix Summary")
        parts.append("")
        parts.append(f"**{len(fixable)} issues can be automatically fixed.**")
        parts.append("")
        parts.append(f"Run `agentlint fix {target}` to apply them (backups are written first).")
        parts.append("")

    if suppression and suppression.total:
        parts.extend(_suppression_section(suppression))

    if auto_learned:
        parts.extend(_auto_learned_section(auto_learned))

    return "\n".join(parts)


def _executive_summary(results: AggregatedResults) -> list[str]:
    lines = [
        "## Executive Summary",
        "",
        "| Enhancer | HIGH | MEDIUM | LOW | Auto-Fixable |",
        "|----------|------|--------|-----|--------------|",
    ]
    fixable_by_source = Counter(f.source for f in _fixable(results.findings))
    for source, counts in sorted(results.by_enhancer.items()):
        lines.append(
            f"| {source} | {counts.high} | {counts.medium} | {counts.low} "
            f"| {fixable_by_source[source]} |"
        )
    summary = results.summary
    lines.append(
        f"| **Total** | {summary.high} | {summary.medium} | {summary.low} "
        f"| {sum(fixable_by_source.values())} |"
    )
    lines.append("")
    return lines


def _certainty_section(certainty: Certainty, findings: list[Finding]) -> list[str]:
    lines = [f"## {certainty} Certainty Issues ({len(findings)})", ""]
    by_source: dict[str, list[Finding]] = {}
    for finding in findings:
        by_source.setdefault(finding.source, []).append(finding)
    for source, group in by_source.items():
        lines.append(f"### {_source_title(source)} Issues ({len(group)})")
        lines.append("")
        lines.append("| File | Line | Issue | Fix |")
        lines.append("|------|------|-------|-----|")
        for f in group:
            issue = f.issue
            if len(f.all_sources) > 1:
                issue = f"{issue} (also: {', '.join(f.all_sources[1:])})"
            lines.append(
                f"| {_cell(f.file)} | {_cell(f.line)} | {_cell(issue)} | {_cell(f.fix)} |"
            )
        lines.append("")
    return lines


def _suppression_section(summary: SuppressionSummary) -> list[str]:
    reasons = ", ".join(f"{reason}: {n}" for reason, n in sorted(summary.by_reason.items()))
    return [
        "## Suppressed Findings",
        "",
        f"{summary.total} finding(s) suppressed ({reasons}).",
        "",
    ]


def _auto_learned_section(learned: list[LearnedCandidate]) -> list[str]:
    files_by_pattern: dict[str, set[str]] = {}
    reasons: dict[str, str] = {}
    for candidate in learned:
        files_by_pattern.setdefault(candidate.pattern_id, set()).add(candidate.file)
        reasons.setdefault(candidate.pattern_id, candidate.reason)
    lines = [
        "## Auto-Learned Suppressions",
        "",
        f"Learned {len(learned)} new false positives:",
        "",
    ]
    for pattern_id, files in sorted(files_by_pattern.items()):
        lines.append(f"- `{pattern_id}`: {len(files)} file(s) ({reasons[pattern_id]})")
    lines.append("")
    return lines


def generate_fix_report(fix_result: FixResult) -> str:
    parts: list[str] = ["# Fix Report", ""]
    if fix_result.dry_run:
        parts.append("_Dry run: no files were written._")
        parts.append("")
    parts.append(
        f"**Applied**: {len(fix_result.applied)} | "
        f"**Skipped**: {len(fix_result.skipped)} | "
        f"**Errors**: {len(fix_result.errors)}"
    )
    parts.append("")

    if fix_result.applied:
        parts.append("## Applied")
        parts.append("")
        parts.append("| File | Pattern | Issue |")
        parts.append("|------|---------|-------|")
        for entry in fix_result.applied:
            parts.append(f"| {_cell(entry.file)} | {entry.pattern_id} | {_cell(entry.issue)} |")
        parts.append("")

    if fix_result.skipped:
        parts.append("## Skipped")
        parts.append("")
        parts.append("| File | Pattern | Reason |")
        parts.append("|------|---------|--------|")
        for skipped in fix_result.skipped:
            parts.append(f"| {_cell(skipped.file)} | {skipped.pattern_id} | {_cell(skipped.reason)} |")
        parts.append("")

    if fix_result.errors:
        parts.append("## Errors")
        parts.append("")
        parts.append("| File | Pattern | Error |")
        parts.append("|------|---------|-------|")
        for error in fix_result.errors:
            parts.append(
                f"| {_cell(error.file)} | {error.pattern_id} "
                f"| {_cell(f'{error.error_class.value}: {error.error}')} |"
            )
        parts.append("")

    if fix_result.backups:
        parts.append("## Backups")
        parts.append("")
        parts.extend(f"- {path}" for path in fix_result.backups)
        parts.append("")

    return "\n".join(parts)
