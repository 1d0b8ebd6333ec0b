"""Shared test fixtures: artifact factories and isolated settings."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from helpers import write_file

from agentlint.ingestion.discovery import load_artifact
from agentlint.ingestion.schemas import Artifact


@pytest.fixture(autouse=True)
def _isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep learned suppressions and logs out of the user's home."""
    monkeypatch.setenv(
        "AGENTLINT_SUPPRESSION_PATH",
        str(tmp_path / "state" / "suppressions.json"),
    )
    monkeypatch.setenv("AGENTLINT_LOG_DIR", str(tmp_path / "state" / "logs"))


@pytest.fixture
def make_artifact(tmp_path: Path) -> Callable[[str, str], Artifact]:
    """Write ``content`` at ``relative`` under tmp_path and load it."""

    def _make(relative: str, content: str) -> Artifact:
        return load_artifact(write_file(tmp_path, relative, content))

    return _make
