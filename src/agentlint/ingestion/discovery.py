"""Walk a directory tree and load recognized artifacts."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pathspec

from agentlint.config import Settings
from agentlint.constants import (
    MANIFEST_FILENAMES,
    PROJECT_MEMORY_FILENAMES,
    ArtifactType,
)
from agentlint.ingestion.frontmatter import parse_frontmatter
from agentlint.ingestion.schemas import Artifact

logger = logging.getLogger(__name__)

_TYPE_DIRECTORIES: dict[str, ArtifactType] = {
    "agents": ArtifactType.AGENT,
    "commands": ArtifactType.COMMAND,
    "skills": ArtifactType.SKILL,
}

# Markdown files that are documentation, not instructions
_IGNORED_MARKDOWN = frozenset({"README.md", "CHANGELOG.md", "LICENSE.md"})


def infer_artifact_type(
    path: Path,
    frontmatter: dict[str, str] | None = None,
) -> ArtifactType:
    """Classify an artifact by path first, frontmatter shape second."""
    name = path.name
    if path.suffix.lower() == ".json":
        return ArtifactType.MANIFEST
    if name in PROJECT_MEMORY_FILENAMES:
        return ArtifactType.PROJECT_MEMORY
    if name == "SKILL.md":
        return ArtifactType.SKILL

    # Nearest typed directory wins (skills/x/agents/y.md is an agent)
    for part in reversed(path.parts[:-1]):
        kind = _TYPE_DIRECTORIES.get(part)
        if kind is not None:
            return kind

    if frontmatter:
        if "tools" in frontmatter:
            return ArtifactType.AGENT
        if "allowed-tools" in frontmatter:
            return ArtifactType.SKILL
        if "argument-hint" in frontmatter:
            return ArtifactType.COMMAND
    return ArtifactType.PROMPT


def is_manifest_path(path: Path) -> bool:
    if path.suffix.lower() != ".json":
        return False
    return (
        path.name in MANIFEST_FILENAMES
        or path.parent.name == ".claude-plugin"
        or path.name.endswith(".schema.json")
    )


def load_artifact(
    path: Path,
    artifact_type: ArtifactType | None = None,
) -> Artifact:
    """Read one file into an :class:`Artifact`.

    Manifests are JSON-decoded; decode failures are kept as
    ``parse_error`` rather than raised.
    """
    raw = path.read_text(encoding="utf-8", errors="replace")

    if path.suffix.lower() == ".json":
        data = None
        error = None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            error = f"{exc.msg} (line {exc.lineno}, column {exc.colno})"
        return Artifact(
            path=path,
            type=artifact_type or ArtifactType.MANIFEST,
            raw_content=raw,
            data=data,
            parse_error=error,
        )

    parsed = parse_frontmatter(raw)
    kind = artifact_type or infer_artifact_type(path, parsed.frontmatter)
    return Artifact(
        path=path,
        type=kind,
        raw_content=raw,
        frontmatter=parsed.frontmatter,
        body=parsed.body,
    )


def discover_artifacts(
    root: Path,
    settings: Settings | None = None,
) -> list[Artifact]:
    """Collect every recognized artifact under ``root``.

    * A single file target is loaded on its own.
    * Hidden directories and ``settings.skip_directories`` are skipped,
      as are paths matched by the root ``.gitignore``.
    * Unreadable or oversized files are logged and skipped.
    """
    cfg = settings or Settings()
    if not root.exists():
        logger.warning("Target does not exist: %s", root)
        return []

    if root.is_file():
        candidates = [root]
    else:
        spec = _load_gitignore(root)
        candidates = [
            p for p in _walk_files(root, set(cfg.skip_directories), spec)
            if _is_candidate(p)
        ]

    artifacts: list[Artifact] = []
    for path in candidates:
        try:
            if path.stat().st_size > cfg.max_file_size_bytes:
                logger.info("Skipping oversized file: %s", path)
                continue
            artifacts.append(load_artifact(path))
        except OSError as exc:
            logger.warning("Cannot read %s: %s", path, exc)
    logger.debug("Discovered %d artifacts under %s", len(artifacts), root)
    return artifacts


def _is_candidate(path: Path) -> bool:
    if path.suffix.lower() == ".md":
        return path.name not in _IGNORED_MARKDOWN
    return is_manifest_path(path)


def _walk_files(
    root: Path,
    skip_dirs: set[str],
    gitignore_spec: pathspec.PathSpec,
) -> list[Path]:
    """Return all regular files, skipping hidden and excluded directories.

    Symlinks that resolve outside the root are skipped.
    """
    resolved_root = root.resolve()
    return _walk_files_inner(
        root, root, skip_dirs, gitignore_spec, resolved_root
    )


def _walk_files_inner(
    current: Path,
    root: Path,
    skip_dirs: set[str],
    gitignore_spec: pathspec.PathSpec,
    resolved_root: Path,
) -> list[Path]:
    files: list[Path] = []
    try:
        entries = sorted(current.iterdir())
    except OSError as exc:
        logger.warning("Cannot list %s: %s", current, exc)
        return files
    for item in entries:
        if item.is_symlink():
            resolved = item.resolve()
            if not resolved.is_relative_to(resolved_root):
                continue
        rel = item.relative_to(root).as_posix()
        if item.is_dir():
            # .claude-plugin holds manifests, every other dot dir is skipped
            hidden = item.name.startswith(".") and item.name != ".claude-plugin"
            if hidden or item.name in skip_dirs:
                continue
            if gitignore_spec.match_file(rel + "/"):
                continue
            files.extend(
                _walk_files_inner(
                    item, root, skip_dirs, gitignore_spec,
                    resolved_root,
                )
            )
        elif item.is_file():
            if not gitignore_spec.match_file(rel):
                files.append(item)
    return files


def _load_gitignore(root: Path) -> pathspec.PathSpec:
    """Load .gitignore patterns using pathspec."""
    gitignore = root / ".gitignore"
    if not gitignore.exists():
        return pathspec.PathSpec.from_lines("gitwildmatch", [])
    try:
        with open(gitignore, encoding="utf-8") as f:
            return pathspec.PathSpec.from_lines("gitwildmatch", f)
    except OSError:
        return pathspec.PathSpec.from_lines("gitwildmatch", [])
