"""Tests for false-positive learning and the learned-suppression store."""

from __future__ import annotations

import json
import subprocess
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

from helpers import make_finding

from agentlint.suppression.learning import (
    CONFIDENCE_THRESHOLD,
    MAX_FILES_PER_PATTERN,
    analyze_for_auto_suppression,
    clear_auto_suppressions,
    export_auto_suppressions,
    get_project_id,
    import_auto_suppressions,
    is_likely_false_positive,
    load_auto_suppressions,
    merge_suppressions,
    relative_path,
    save_auto_suppressions,
)
from agentlint.suppression.schemas import (
    IgnoreRules,
    LearnedCandidate,
    SuppressionConfig,
)

PROJECT = "github.com/acme/agents"
NOW = datetime(2026, 1, 1, tzinfo=UTC)


def _candidate(pattern_id: str = "vague_instructions", file: str = "a.md",
               confidence: float = 0.95) -> LearnedCandidate:
    return LearnedCandidate(
        pattern_id=pattern_id, file=file, reason="docs", confidence=confidence
    )


class TestHeuristics:
    def test_vague_language_documentation(self) -> None:
        finding = make_finding(pattern_id="vague_instructions", line=1)
        content = 'Vague terms like "usually" and "sometimes" are flagged.'
        assert is_likely_false_positive(finding, content) == (
            "Pattern documentation describing vague language",
            0.98,
        )

    def test_workflow_gates(self) -> None:
        finding = make_finding(pattern_id="aggressive_emphasis", line=2)
        content = "## WORKFLOW GATES\n\nABSOLUTELY stop here!!!\n"
        verdict = is_likely_false_positive(finding, content)
        assert verdict is not None
        assert verdict[1] == 0.95

    def test_orchestrator_output_format(self) -> None:
        finding = make_finding(pattern_id="missing_output_format")
        content = 'await Task({ subagent_type: "writer" })'
        verdict = is_likely_false_positive(finding, content)
        assert verdict is not None
        assert verdict[1] >= CONFIDENCE_THRESHOLD

    def test_pattern_table_in_docs(self) -> None:
        finding = make_finding(file="docs/lint-patterns.md", pattern_id="prompt_bloat")
        content = "| prompt_bloat | LOW | too long |\n"
        assert is_likely_false_positive(finding, content) == (
            "Pattern self-reference in documentation",
            0.96,
        )

    def test_ordinary_file_is_not_documentation(self) -> None:
        finding = make_finding(file="agents/a.md", pattern_id="prompt_bloat")
        assert is_likely_false_positive(finding, "| prompt_bloat |") is None

    def test_no_content(self) -> None:
        assert is_likely_false_positive(make_finding(), None) is None
        assert is_likely_false_positive(make_finding(), "") is None

    def test_candidates_use_relative_paths(self, tmp_path: Path) -> None:
        file = str(tmp_path / "commands" / "run.md")
        finding = make_finding(file=file, pattern_id="missing_output_format")
        contents = {file: 'Task({ subagent_type: "writer" })'}

        found = analyze_for_auto_suppression([finding], contents, tmp_path)
        assert [(c.pattern_id, c.file) for c in found] == [
            ("missing_output_format", "commands/run.md")
        ]
        assert analyze_for_auto_suppression([finding], contents, tmp_path, no_learn=True) == []


class TestProjectId:
    def test_normalizes_remote(self, tmp_path: Path) -> None:
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="git@github.com:acme/agents.git\n"
        )
        with patch(
            "agentlint.suppression.learning.subprocess.run", return_value=completed
        ):
            assert get_project_id(tmp_path) == PROJECT

    def test_https_remote(self, tmp_path: Path) -> None:
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="https://github.com/acme/agents.git\n"
        )
        with patch(
            "agentlint.suppression.learning.subprocess.run", return_value=completed
        ):
            assert get_project_id(tmp_path) == PROJECT

    def test_falls_back_to_directory_name(self, tmp_path: Path) -> None:
        with patch(
            "agentlint.suppression.learning.subprocess.run",
            side_effect=FileNotFoundError("git"),
        ):
            assert get_project_id(tmp_path) == f"local:{tmp_path.name}"


class TestStore:
    def test_save_and_load(self, tmp_path: Path) -> None:
        store = tmp_path / "suppressions.json"
        save_auto_suppressions(
            store,
            PROJECT,
            [_candidate(file="a.md"), _candidate(file="b.md", confidence=0.98)],
            now=NOW,
        )
        learned = load_auto_suppressions(store, PROJECT, now=NOW)
        entry = learned.patterns["vague_instructions"]
        assert entry.files == ["a.md", "b.md"]
        assert entry.confidence == 0.98
        assert entry.occurrences == 2
        assert learned.stats.total_suppressed == 1
        assert json.loads(store.read_text(encoding="utf-8"))["version"] == "2.0"

    def test_projects_are_isolated(self, tmp_path: Path) -> None:
        store = tmp_path / "suppressions.json"
        save_auto_suppressions(store, PROJECT, [_candidate()], now=NOW)
        assert load_auto_suppressions(store, "local:other", now=NOW).patterns == {}

    def test_merge_keeps_files_unique_and_capped(self, tmp_path: Path) -> None:
        store = tmp_path / "suppressions.json"
        first = [_candidate(file=f"f{i}.md") for i in range(40)]
        second = [_candidate(file=f"f{i}.md") for i in range(30, 70)]
        save_auto_suppressions(store, PROJECT, first, now=NOW)
        save_auto_suppressions(store, PROJECT, second, now=NOW)
        files = load_auto_suppressions(store, PROJECT, now=NOW).patterns[
            "vague_instructions"
        ].files
        assert len(files) == MAX_FILES_PER_PATTERN
        assert len(set(files)) == len(files)
        assert files[0] == "f0.md"

    def test_entries_expire(self, tmp_path: Path) -> None:
        store = tmp_path / "suppressions.json"
        save_auto_suppressions(store, PROJECT, [_candidate()], now=NOW)
        later = NOW + timedelta(days=181)
        assert load_auto_suppressions(store, PROJECT, now=later).patterns == {}
        soon = NOW + timedelta(days=179)
        assert load_auto_suppressions(store, PROJECT, now=soon).patterns

    def test_corrupt_store_is_ignored(self, tmp_path: Path) -> None:
        store = tmp_path / "suppressions.json"
        store.write_text("{not json", encoding="utf-8")
        assert load_auto_suppressions(store, PROJECT).patterns == {}
        save_auto_suppressions(store, PROJECT, [_candidate()], now=NOW)
        assert load_auto_suppressions(store, PROJECT, now=NOW).patterns

    def test_clear(self, tmp_path: Path) -> None:
        store = tmp_path / "suppressions.json"
        save_auto_suppressions(store, PROJECT, [_candidate()], now=NOW)
        clear_auto_suppressions(store, PROJECT)
        assert load_auto_suppressions(store, PROJECT).patterns == {}

    def test_export_then_import_elsewhere(self, tmp_path: Path) -> None:
        source = tmp_path / "one.json"
        target = tmp_path / "two.json"
        save_auto_suppressions(source, PROJECT, [_candidate(file="x.md")])

        exported = export_auto_suppressions(source, PROJECT)
        assert exported.project_id == PROJECT
        import_auto_suppressions(target, "local:copy", exported)

        learned = load_auto_suppressions(target, "local:copy")
        assert learned.patterns["vague_instructions"].files == ["x.md"]


class TestMerge:
    def test_manual_settings_kept_with_learned(self, tmp_path: Path) -> None:
        store = tmp_path / "suppressions.json"
        save_auto_suppressions(store, PROJECT, [_candidate()], now=NOW)
        manual = SuppressionConfig(
            ignore=IgnoreRules(patterns=["prompt_bloat"]),
            severity={"redundant_cot": "off"},
        )
        merged = merge_suppressions(load_auto_suppressions(store, PROJECT, now=NOW), manual)
        assert merged.ignore.patterns == ["prompt_bloat"]
        assert merged.severity == {"redundant_cot": "off"}
        assert "vague_instructions" in merged.auto_learned.patterns

    def test_relative_path(self, tmp_path: Path) -> None:
        assert relative_path(str(tmp_path / "a" / "b.md"), tmp_path) == "a/b.md"
        assert relative_path("a/b.md", None) == "a/b.md"
