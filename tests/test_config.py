"""Tests for Settings defaults and environment parsing."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from agentlint.config import Settings
from agentlint.constants import BACKUP_SUFFIX


class TestDefaults:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AGENTLINT_SUPPRESSION_PATH")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.log_level == "INFO"
        assert s.config_filename == ".agentlint.yaml"
        assert s.backup_suffix == BACKUP_SUFFIX
        assert s.max_file_size_bytes == 1_048_576
        assert "node_modules" in s.skip_directories
        assert s.suppression_path == Path.home() / ".agentlint" / "suppressions.json"
        assert s.extra_known_tools == []

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("AGENTLINT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("AGENTLINT_SUPPRESSION_PATH", str(tmp_path / "s.json"))
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.log_level == "DEBUG"
        assert s.suppression_path == tmp_path / "s.json"


class TestExtraKnownTools:
    def test_comma_separated_string(self) -> None:
        s = Settings(extra_known_tools="Deploy , Notify")  # type: ignore[arg-type]
        assert s.extra_known_tools == ["Deploy", "Notify"]

    def test_json_list_string(self) -> None:
        s = Settings(extra_known_tools='["Deploy", "Notify"]')  # type: ignore[arg-type]
        assert s.extra_known_tools == ["Deploy", "Notify"]

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGENTLINT_EXTRA_KNOWN_TOOLS", "Deploy,Notify")
        assert Settings(_env_file=None).extra_known_tools == [  # type: ignore[call-arg]
            "Deploy",
            "Notify",
        ]

    def test_duplicates_dropped_with_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="agentlint.config"):
            s = Settings(extra_known_tools=["Deploy", "Deploy", "Notify"])
        assert "Duplicate tool in AGENTLINT_EXTRA_KNOWN_TOOLS" in caplog.text
        assert s.extra_known_tools == ["Deploy", "Notify"]
