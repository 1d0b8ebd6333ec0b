"""Tests for artifact classification and directory discovery."""

from __future__ import annotations

from pathlib import Path

from helpers import write_file

from agentlint.config import Settings
from agentlint.constants import ArtifactType
from agentlint.ingestion.discovery import (
    discover_artifacts,
    infer_artifact_type,
    is_manifest_path,
    load_artifact,
)


class TestInferArtifactType:
    def test_path_conventions(self) -> None:
        assert infer_artifact_type(Path("p/agents/a.md")) == ArtifactType.AGENT
        assert infer_artifact_type(Path("p/commands/c.md")) == ArtifactType.COMMAND
        assert infer_artifact_type(Path("skills/s/SKILL.md")) == ArtifactType.SKILL
        assert infer_artifact_type(Path("CLAUDE.md")) == ArtifactType.PROJECT_MEMORY
        assert infer_artifact_type(Path("AGENTS.md")) == ArtifactType.PROJECT_MEMORY
        assert infer_artifact_type(Path("plugin.json")) == ArtifactType.MANIFEST

    def test_nearest_typed_directory_wins(self) -> None:
        path = Path("skills/s/agents/helper.md")
        assert infer_artifact_type(path) == ArtifactType.AGENT

    def test_frontmatter_shape_fallback(self) -> None:
        assert infer_artifact_type(Path("x.md"), {"tools": "Read"}) == ArtifactType.AGENT
        assert (
            infer_artifact_type(Path("x.md"), {"allowed-tools": "Read"})
            == ArtifactType.SKILL
        )
        assert (
            infer_artifact_type(Path("x.md"), {"argument-hint": "[file]"})
            == ArtifactType.COMMAND
        )
        assert infer_artifact_type(Path("x.md")) == ArtifactType.PROMPT

    def test_manifest_paths(self) -> None:
        assert is_manifest_path(Path(".claude-plugin/anything.json"))
        assert is_manifest_path(Path("tool.schema.json"))
        assert not is_manifest_path(Path("package.json"))
        assert not is_manifest_path(Path("notes.md"))


class TestLoadArtifact:
    def test_markdown_with_frontmatter(self, tmp_path: Path) -> None:
        path = write_file(
            tmp_path, "agents/a.md", "---\nname: a\ntools: Read\n---\nbody\n"
        )
        artifact = load_artifact(path)
        assert artifact.type == ArtifactType.AGENT
        assert artifact.frontmatter == {"name": "a", "tools": "Read"}
        assert artifact.body == "body\n"

    def test_invalid_manifest_keeps_parse_error(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "plugin.json", '{"name": ')
        artifact = load_artifact(path)
        assert artifact.type == ArtifactType.MANIFEST
        assert artifact.data is None
        assert artifact.parse_error is not None

    def test_valid_manifest(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "plugin.json", '{"name": "p"}')
        assert load_artifact(path).data == {"name": "p"}


class TestDiscoverArtifacts:
    def test_walks_and_filters(self, tmp_path: Path) -> None:
        write_file(tmp_path, "agents/a.md", "# A\n")
        write_file(tmp_path, "commands/c.md", "# C\n")
        write_file(tmp_path, ".claude-plugin/plugin.json", "{}")
        write_file(tmp_path, "README.md", "# readme\n")
        write_file(tmp_path, "package.json", "{}")
        write_file(tmp_path, "node_modules/pkg/agents/x.md", "# X\n")
        write_file(tmp_path, ".hidden/agents/y.md", "# Y\n")

        found = {
            a.path.relative_to(tmp_path).as_posix()
            for a in discover_artifacts(tmp_path)
        }
        assert found == {
            "agents/a.md",
            "commands/c.md",
            ".claude-plugin/plugin.json",
        }

    def test_respects_gitignore(self, tmp_path: Path) -> None:
        write_file(tmp_path, ".gitignore", "drafts/\n")
        write_file(tmp_path, "drafts/agents/d.md", "# D\n")
        write_file(tmp_path, "agents/a.md", "# A\n")
        names = [a.path.name for a in discover_artifacts(tmp_path)]
        assert names == ["a.md"]

    def test_single_file_target(self, tmp_path: Path) -> None:
        path = write_file(tmp_path, "CLAUDE.md", "# Project\n")
        artifacts = discover_artifacts(path)
        assert len(artifacts) == 1
        assert artifacts[0].type == ArtifactType.PROJECT_MEMORY

    def test_missing_root(self, tmp_path: Path) -> None:
        assert discover_artifacts(tmp_path / "nope") == []

    def test_oversized_files_skipped(self, tmp_path: Path) -> None:
        write_file(tmp_path, "agents/big.md", "x" * 100)
        settings = Settings(max_file_size_bytes=10)
        assert discover_artifacts(tmp_path, settings) == []
