"""Tests for prompt-quality checks."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentlint.analysis.patterns import prompt_patterns as pp
from agentlint.analysis.patterns.base import PatternContext
from agentlint.analysis.patterns.registry import REGISTRY
from agentlint.constants import ArtifactType, Certainty
from agentlint.fixer.markdown_fixes import MARKDOWN_FIXES


def _ctx(path: str = "commands/task.md", kind: ArtifactType = ArtifactType.COMMAND) -> PatternContext:
    return PatternContext(path=Path(path), artifact_type=kind)


FILLER = "Summarize the repository layout for the new maintainer. " * 20


class TestClarity:
    def test_vague_instructions(self) -> None:
        body = (
            "You should usually run lint. Sometimes run tests.\n"
            "Maybe update docs and try to keep commits small.\n"
        )
        result = pp.check_vague_instructions(body, _ctx())
        assert result is not None
        assert result.issue.startswith("Found 4 vague terms")
        assert result.locate == "usually"

    def test_vague_below_threshold(self) -> None:
        assert pp.check_vague_instructions("Usually run lint.", _ctx()) is None

    def test_vague_term_documentation_skipped(self) -> None:
        body = 'Vague terms: "usually", "sometimes", "maybe", "try to"\n'
        assert pp.check_vague_instructions(body, _ctx()) is None

    def test_negative_only_constraints(self) -> None:
        body = (
            "Don't push. Never merge. Do not delete branches.\n"
            "Avoid breaking builds. Refrain from force pushes.\n"
        )
        result = pp.check_negative_only_constraints(body, _ctx())
        assert result is not None
        assert result.issue.startswith("5 negative constraints")

    def test_negative_with_alternative(self) -> None:
        body = (
            "Don't push. Never merge. Do not delete branches.\n"
            "Avoid breaking builds. Refrain from force pushes; open a PR instead.\n"
        )
        assert pp.check_negative_only_constraints(body, _ctx()) is None

    def test_aggressive_emphasis(self) -> None:
        body = "ABSOLUTELY do this. It is TOTALLY required!!! EXTREMELY so.\n"
        result = pp.check_aggressive_emphasis(body, _ctx())
        assert result is not None
        assert result.issue.startswith("4 instances")

    def test_aggressive_inside_code_ignored(self) -> None:
        body = "```\nABSOLUTELY TOTALLY EXTREMELY!!!\n```\n"
        assert pp.check_aggressive_emphasis(body, _ctx()) is None

    def test_verbose_phrasing(self) -> None:
        body = "In order to build, in order to test, and in order to ship.\n"
        result = pp.check_verbose_phrasing(body, _ctx())
        assert result is not None
        assert result.locate == "in order to"


class TestStructure:
    def test_heading_gap(self) -> None:
        result = pp.check_heading_hierarchy_gaps("# A\n\n### C\n", _ctx())
        assert result is not None
        assert result.line == 3
        assert "H1 to H3" in result.issue

    def test_missing_output_format(self) -> None:
        assert pp.check_missing_output_format(FILLER, _ctx()) is not None
        with_format = FILLER + "\n## Output Format\n\nA table.\n"
        assert pp.check_missing_output_format(with_format, _ctx()) is None

    def test_output_format_skipped_for_orchestrators(self) -> None:
        body = FILLER + "\n## Phase 1\n\nSpawn the agent.\n"
        assert pp.check_missing_output_format(body, _ctx()) is None

    def test_inconsistent_sections(self) -> None:
        body = "## One\n\n## Two\n\n**Three**\n\n**Four**\n"
        assert pp.check_inconsistent_sections(body, _ctx()) is not None

    def test_missing_examples(self) -> None:
        body = FILLER * 2 + "\nReturn the result in JSON format.\n"
        assert pp.check_missing_examples(body, _ctx()) is not None
        assert pp.check_missing_examples(body + "\nFor example, {}.\n", _ctx()) is None

    def test_missing_examples_not_for_agents(self) -> None:
        body = FILLER * 2 + "\nReturn the result in JSON format.\n"
        ctx = _ctx("agents/a.md", ArtifactType.AGENT)
        assert pp.check_missing_examples(body, ctx) is None

    @pytest.mark.parametrize(("count", "fires"), [(0, False), (1, True), (3, False), (8, True)])
    def test_example_count(self, count: int, fires: bool) -> None:
        body = "<example>x</example>\n" * count
        assert (pp.check_suboptimal_example_count(body, _ctx()) is not None) is fires


class TestOutputAndCode:
    def test_json_without_schema(self) -> None:
        assert pp.check_json_without_schema("Respond with JSON.", _ctx()) is not None

    def test_json_with_example(self) -> None:
        body = 'Respond with JSON like:\n\n```json\n{"ok": true}\n```\n'
        assert pp.check_json_without_schema(body, _ctx()) is None

    def test_invalid_json_block(self) -> None:
        body = "Payload:\n\n```json\n{\"a\": }\n```\n"
        result = pp.check_invalid_json_in_code_block(body, _ctx())
        assert result is not None
        assert result.line == 3

    def test_placeholder_json_is_pseudo(self) -> None:
        body = "```json\n{\"a\": ...}\n```\n"
        assert pp.check_invalid_json_in_code_block(body, _ctx()) is None

    def test_code_language_mismatch(self) -> None:
        body = "```json\nconst x = 1;\n```\n"
        result = pp.check_code_language_mismatch(body, _ctx())
        assert result is not None
        assert "JavaScript" in result.issue


class TestAntiPatterns:
    def test_redundant_cot(self) -> None:
        body = "Think step by step. Then think step-by-step again.\n"
        result = pp.check_redundant_cot(body, _ctx())
        assert result is not None
        assert result.issue.startswith("2 explicit")

    def test_overly_prescriptive(self) -> None:
        body = "".join(f"{i}. Step number {i}\n" for i in range(1, 11))
        assert pp.check_overly_prescriptive(body, _ctx()) is not None

    def test_prompt_bloat(self) -> None:
        assert pp.check_prompt_bloat("x" * 10_004, _ctx()) is not None
        assert pp.check_prompt_bloat("x" * 100, _ctx()) is None

    def test_missing_verification_criteria(self) -> None:
        body = "Implement the parser for the config file format. " * 15
        assert pp.check_missing_verification_criteria(body, _ctx()) is not None
        done = body + "Verify the parser handles empty files."
        assert pp.check_missing_verification_criteria(done, _ctx()) is None


class TestScopeAndContext:
    UNSCOPED = "Fix the bug reported by the team yesterday. " * 6

    def test_unscoped_task(self) -> None:
        result = pp.check_unscoped_task(self.UNSCOPED, _ctx())
        assert result is not None
        assert result.issue.startswith("Task lacks specific scope")

    def test_scoped_task(self) -> None:
        scoped = self.UNSCOPED + "The failure is in src/auth/login.py."
        assert pp.check_unscoped_task(scoped, _ctx()) is None

    def test_unscoped_task_ignores_short_and_long_prompts(self) -> None:
        assert pp.check_unscoped_task("Fix the bug.", _ctx()) is None
        assert pp.check_unscoped_task(self.UNSCOPED * 4, _ctx()) is None

    def test_examples_without_contrast(self) -> None:
        body = "## Example\n\nInput: a\n\n" * 3
        assert pp.check_examples_without_contrast(body, _ctx()) is not None
        labeled = body + "The last one is wrong.\n"
        assert pp.check_examples_without_contrast(labeled, _ctx()) is None
        assert pp.check_examples_without_contrast("## Example\n" * 2, _ctx()) is None

    def test_missing_pattern_reference(self) -> None:
        body = "Create a new endpoint for listing invoices."
        assert pp.check_missing_pattern_reference(body, _ctx()) is not None
        guided = body + " Follow the pattern in the orders handler."
        assert pp.check_missing_pattern_reference(guided, _ctx()) is None

    def test_pattern_reference_only_for_new_code(self) -> None:
        body = "Rename the invoice totals column."
        assert pp.check_missing_pattern_reference(body, _ctx()) is None

    def test_missing_source_direction(self) -> None:
        body = "Why does the cache miss on every request?"
        result = pp.check_missing_source_direction(body, _ctx())
        assert result is not None
        assert result.issue == "Investigation task without directing to likely sources"

    def test_source_direction_given(self) -> None:
        body = "Why does the cache miss on every request? Start with the git log."
        assert pp.check_missing_source_direction(body, _ctx()) is None

    def test_long_investigation_not_flagged(self) -> None:
        body = FILLER + "\nWhy does the cache miss on every request?"
        assert pp.check_missing_source_direction(body, _ctx()) is None


class TestRegistration:
    def test_verbose_phrasing_is_high_and_fixable(self) -> None:
        pattern = REGISTRY.patterns["verbose_phrasing"]
        assert pattern.certainty == Certainty.HIGH
        assert pattern.auto_fix
        assert "verbose_phrasing" in MARKDOWN_FIXES

    @pytest.mark.parametrize(
        "pattern_id",
        ["unscoped_task", "missing_pattern_reference", "missing_source_direction"],
    )
    def test_task_checks_skip_agents(self, pattern_id: str) -> None:
        pattern = REGISTRY.patterns[pattern_id]
        assert pattern.applies_to == frozenset({ArtifactType.COMMAND, ArtifactType.PROMPT})
        assert not pattern.auto_fix
