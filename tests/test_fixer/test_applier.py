"""Tests for fix batches, backups and restore."""

from __future__ import annotations

import json
from pathlib import Path

from helpers import AGENT_WITH_BASH, make_finding, write_file

from agentlint.analysis.schemas import Finding
from agentlint.constants import Certainty
from agentlint.errors import ErrorClass
from agentlint.fixer.applier import (
    NO_AUTO_FIX,
    NO_CHANGE,
    NOT_HIGH_CERTAINTY,
    apply_fixes,
    cleanup_backups,
    preview_fixes,
    restore_from_backup,
    skip_reason,
)
from agentlint.fixer.schema_fixes import fix_additional_properties

SCOPED_TOOLS = "tools: Read, Bash(git:*)"


def _bash_finding(path: Path, **overrides: object) -> Finding:
    return make_finding(
        file=str(path), pattern_id="unrestricted_bash", **{"line": 4, **overrides}
    )


class TestSkipReason:
    def test_only_high_certainty_is_eligible(self) -> None:
        finding = make_finding(certainty=Certainty.MEDIUM)
        assert skip_reason(finding) == NOT_HIGH_CERTAINTY

    def test_markdown_needs_a_registered_fix(self) -> None:
        assert skip_reason(make_finding()) is None
        assert skip_reason(make_finding(pattern_id="missing_name")) == NO_AUTO_FIX

    def test_json_needs_a_transform(self) -> None:
        finding = make_finding(file="plugin.json", pattern_id="version_mismatch")
        assert skip_reason(finding) == NO_AUTO_FIX
        fixable = finding.model_copy(update={"auto_fix_fn": fix_additional_properties})
        assert skip_reason(fixable) is None


class TestApplyFixes:
    def test_medium_finding_is_skipped(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "agents/reviewer.md", AGENT_WITH_BASH)
        result = apply_fixes([_bash_finding(path, certainty=Certainty.MEDIUM)])
        assert result.applied == []
        assert [s.reason for s in result.skipped] == [NOT_HIGH_CERTAINTY]
        assert path.read_text(encoding="utf-8") == AGENT_WITH_BASH

    def test_fix_writes_backup_then_file(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "agents/reviewer.md", AGENT_WITH_BASH)
        result = apply_fixes([_bash_finding(path)])

        backup = path.with_name("reviewer.md.backup")
        assert result.backups == [str(backup)]
        assert result.files_modified == [str(path)]
        assert [e.pattern_id for e in result.applied] == ["unrestricted_bash"]
        assert backup.read_text(encoding="utf-8") == AGENT_WITH_BASH
        assert SCOPED_TOOLS in path.read_text(encoding="utf-8")

    def test_restore_round_trip(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "agents/reviewer.md", AGENT_WITH_BASH)
        apply_fixes([_bash_finding(path)])

        assert restore_from_backup(path)
        assert path.read_text(encoding="utf-8") == AGENT_WITH_BASH
        assert not path.with_name("reviewer.md.backup").exists()
        assert not restore_from_backup(path)

    def test_dry_run_leaves_disk_alone(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "agents/reviewer.md", AGENT_WITH_BASH)
        result = apply_fixes([_bash_finding(path)], dry_run=True)

        assert result.dry_run
        assert [e.pattern_id for e in result.applied] == ["unrestricted_bash"]
        assert result.files_modified == [str(path)]
        assert result.backups == []
        assert path.read_text(encoding="utf-8") == AGENT_WITH_BASH
        assert sorted(p.name for p in path.parent.iterdir()) == ["reviewer.md"]

    def test_no_backup(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "agents/reviewer.md", AGENT_WITH_BASH)
        result = apply_fixes([_bash_finding(path)], backup=False)
        assert result.backups == []
        assert not path.with_name("reviewer.md.backup").exists()
        assert SCOPED_TOOLS in path.read_text(encoding="utf-8")

    def test_same_pattern_twice_applies_once(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "agents/reviewer.md", AGENT_WITH_BASH)
        result = apply_fixes([_bash_finding(path), _bash_finding(path, line=9)])
        assert len(result.applied) == 2
        assert path.read_text(encoding="utf-8").count("Bash(git:*)") == 1

    def test_missing_file_is_an_error(self, tmp_path: Path) -> None:
        result = apply_fixes([_bash_finding(tmp_path / "gone.md")])
        assert result.applied == []
        assert result.errors[0].error_class == ErrorClass.NOT_FOUND

    def test_bad_schema_path_does_not_stop_the_batch(self, tmp_path: Path) -> None:
        schema = {"type": "object", "properties": {"q": {"type": "string"}}}
        bad = write_file(tmp_path, "a.schema.json", json.dumps(schema))
        good = write_file(tmp_path, "b.schema.json", json.dumps(schema))
        findings = [
            make_finding(
                file=str(bad),
                pattern_id="missing_additional_properties",
                auto_fix_fn=fix_additional_properties,
                schema_path="properties.nope",
            ),
            make_finding(
                file=str(good),
                pattern_id="missing_additional_properties",
                auto_fix_fn=fix_additional_properties,
            ),
        ]
        result = apply_fixes(findings)

        assert [e.error_class for e in result.errors] == [ErrorClass.SCHEMA_PATH]
        assert result.files_modified == [str(good)]
        assert json.loads(bad.read_text(encoding="utf-8")) == schema
        assert json.loads(good.read_text(encoding="utf-8"))["additionalProperties"] is False

    def test_non_iterable_input(self) -> None:
        result = apply_fixes(None)  # type: ignore[arg-type]
        assert result.applied == [] and result.skipped == []

    def test_string_input_is_not_a_batch(self) -> None:
        result = apply_fixes("agents/reviewer.md")  # type: ignore[arg-type]
        assert result.applied == [] and result.skipped == [] and result.errors == []
        assert preview_fixes("agents/reviewer.md") == []  # type: ignore[arg-type]


class TestLineEndingsAndEncoding:
    CRLF = b"# Title\r\n\r\nThis is ABSOLUTELY required!!!\r\n"

    def _emphasis_finding(self, path: Path) -> Finding:
        return make_finding(
            file=str(path), pattern_id="aggressive_emphasis", line=3, source="prompt"
        )

    def test_crlf_kept_and_backup_is_byte_identical(self, tmp_path: Path) -> None:
        path = tmp_path / "commands" / "run.md"
        path.parent.mkdir()
        path.write_bytes(self.CRLF)

        result = apply_fixes([self._emphasis_finding(path)])

        assert [e.pattern_id for e in result.applied] == ["aggressive_emphasis"]
        assert path.read_bytes() == b"# Title\r\n\r\nThis is Absolutely required!\r\n"
        assert path.with_name("run.md.backup").read_bytes() == self.CRLF
        assert restore_from_backup(path)
        assert path.read_bytes() == self.CRLF

    def test_invalid_utf8_is_a_parse_error(self, tmp_path: Path) -> None:
        path = tmp_path / "run.md"
        path.write_bytes(b"# Title\n\xff\xfe ABSOLUTELY!!!\n")
        result = apply_fixes([self._emphasis_finding(path)])
        assert result.applied == []
        assert [e.error_class for e in result.errors] == [ErrorClass.PARSE]
        assert path.read_bytes() == b"# Title\n\xff\xfe ABSOLUTELY!!!\n"

    def test_unterminated_frontmatter_left_alone(self, tmp_path: Path) -> None:
        content = "---\nname: reviewer\nYou are a reviewer.\n"
        path = write_file(tmp_path, "agents/reviewer.md", content)
        finding = make_finding(file=str(path), pattern_id="missing_frontmatter", line=1)

        result = apply_fixes([finding])

        assert result.applied == [] and result.files_modified == []
        assert [s.reason for s in result.skipped] == [NO_CHANGE]
        assert path.read_text(encoding="utf-8") == content
        assert not path.with_name("reviewer.md.backup").exists()


class TestPreviewAndCleanup:
    def test_preview_has_diff_without_writing(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "agents/reviewer.md", AGENT_WITH_BASH)
        previews = preview_fixes([_bash_finding(path)])
        assert len(previews) == 1
        assert previews[0].pattern_ids == ["unrestricted_bash"]
        assert f"+{SCOPED_TOOLS}" in previews[0].diff
        assert path.read_text(encoding="utf-8") == AGENT_WITH_BASH

    def test_cleanup_backups(self, tmp_path: Path) -> None:
        write_file(tmp_path, "a.md.backup", "x")
        write_file(tmp_path, "nested/b.json.backup", "y")
        write_file(tmp_path, "keep.md", "z")
        assert cleanup_backups(tmp_path) == 2
        assert [p.name for p in tmp_path.rglob("*") if p.is_file()] == ["keep.md"]
        assert cleanup_backups(tmp_path / "missing") == 0
