"""Tests for aggregation and markdown rendering."""

from __future__ import annotations

from helpers import make_finding

from agentlint.constants import Certainty
from agentlint.errors import ErrorClass
from agentlint.fixer.schemas import FixEntry, FixError, FixResult, SkippedFix
from agentlint.report.aggregate import aggregate_results, deduplicate_findings
from agentlint.report.render import REPORT_TITLE, generate_fix_report, generate_report
from agentlint.suppression.schemas import LearnedCandidate, SuppressionSummary


class TestDeduplicate:
    def test_same_issue_from_two_analyzers_is_merged(self) -> None:
        agent = make_finding(source="agent", auto_fixable=False)
        prompt = make_finding(source="prompt", issue="No  role\tdefinition")
        merged = deduplicate_findings([agent, prompt])

        assert len(merged) == 1
        assert merged[0].all_sources == ("agent", "prompt")
        assert merged[0].auto_fixable

    def test_first_wins_when_fixability_is_equal(self) -> None:
        first = make_finding(source="agent", fix="first")
        second = make_finding(source="prompt", fix="second")
        merged = deduplicate_findings([first, second, first])
        assert merged[0].fix == "first"
        assert merged[0].all_sources == ("agent", "prompt")

    def test_different_lines_stay_apart(self) -> None:
        findings = [make_finding(line=1), make_finding(line=2)]
        assert len(deduplicate_findings(findings)) == 2

    def test_non_list_input(self) -> None:
        assert deduplicate_findings(None) == []
        assert deduplicate_findings("findings") == []


class TestAggregate:
    def test_counts(self) -> None:
        results = aggregate_results([
            make_finding(line=1),
            make_finding(line=2, certainty=Certainty.MEDIUM),
            make_finding(line=3, source="prompt", certainty=Certainty.LOW),
        ])
        assert (results.summary.high, results.summary.medium, results.summary.low) == (1, 1, 1)
        assert results.summary.total == 3
        assert results.by_enhancer["agent"].medium == 1
        assert results.by_enhancer["prompt"].low == 1

    def test_machine_readable_shape(self) -> None:
        data = aggregate_results([make_finding()]).to_dict()
        assert set(data) == {"findings", "summary", "byEnhancer"}
        assert data["summary"] == {"high": 1, "medium": 0, "low": 0}
        assert "auto_fix_fn" not in data["findings"][0]


class TestGenerateReport:
    def test_no_artifacts(self) -> None:
        report = generate_report(None, target_path="empty/", artifacts_found=0)
        assert report.startswith(f"# {REPORT_TITLE}\n")
        assert "**Status: No artifacts found**" in report
        assert "Executive Summary" not in report

    def test_clean(self) -> None:
        report = generate_report(aggregate_results([]), artifacts_found=3)
        assert "**Artifacts analyzed**: 3" in report
        assert "**Status: Clean** - No issues found." in report

    def test_sections_and_tables(self) -> None:
        results = aggregate_results([
            make_finding(issue="Uses | pipe"),
            make_finding(line=5, certainty=Certainty.MEDIUM, source="cross-file",
                         pattern_id="duplicate_instructions", auto_fixable=False),
            make_finding(line=9, certainty=Certainty.LOW, issue="Style nit"),
        ])
        report = generate_report(results, target_path="plugins/")

        assert "| Enhancer | HIGH | MEDIUM | LOW | Auto-Fixable |" in report
        assert "| agent | 1 | 0 | 1 | 1 |" in report
        assert "| **Total** | 1 | 1 | 1 | 1 |" in report
        assert "## HIGH Certainty Issues (1)" in report
        assert "### Agent Issues (1)" in report
        assert "### Cross-File Issues (1)" in report
        assert "Uses \\| pipe" in report
        assert "Style nit" not in report
        assert "**1 issues can be automatically fixed.**" in report
        assert "Run `agentlint fix plugins/`" in report

    def test_verbose_shows_low(self) -> None:
        results = aggregate_results(
            [make_finding(certainty=Certainty.LOW, issue="Style nit")]
        )
        assert "## LOW Certainty Issues (1)" in generate_report(results, verbose=True)

    def test_merged_sources_listed(self) -> None:
        results = aggregate_results(
            [make_finding(source="agent"), make_finding(source="prompt")]
        )
        assert "(also: prompt)" in generate_report(results)

    def test_suppressed_and_learned(self) -> None:
        report = generate_report(
            aggregate_results([]),
            suppression=SuppressionSummary(total=2, by_reason={"inline": 2}),
            auto_learned=[
                LearnedCandidate(pattern_id="vague_instructions", file="a.md",
                                 reason="Pattern docs", confidence=0.98),
                LearnedCandidate(pattern_id="vague_instructions", file="b.md",
                                 reason="Pattern docs", confidence=0.98),
            ],
        )
        assert "2 finding(s) suppressed (inline: 2)." in report
        assert "Learned 2 new false positives:" in report
        assert "- `vague_instructions`: 2 file(s) (Pattern docs)" in report


class TestFixReport:
    def test_sections(self) -> None:
        result = FixResult(
            dry_run=True,
            applied=[FixEntry(pattern_id="missing_role", file="a.md", issue="No role")],
            skipped=[SkippedFix(pattern_id="missing_examples", file="a.md",
                                issue="x", reason="Not HIGH certainty")],
            errors=[FixError(pattern_id="version_mismatch", file="p.json", issue="y",
                             error="gone", error_class=ErrorClass.NOT_FOUND)],
            backups=["a.md.backup"],
        )
        report = generate_fix_report(result)
        assert "_Dry run: no files were written._" in report
        assert "**Applied**: 1 | **Skipped**: 1 | **Errors**: 1" in report
        assert "| a.md | missing_examples | Not HIGH certainty |" in report
        assert "| p.json | version_mismatch | not_found: gone |" in report
        assert "- a.md.backup" in report

    def test_empty(self) -> None:
        report = generate_fix_report(FixResult())
        assert "**Applied**: 0 | **Skipped**: 0 | **Errors**: 0" in report
        assert "## Applied" not in report
