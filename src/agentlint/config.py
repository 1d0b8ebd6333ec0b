"""Environment-based configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from agentlint.constants import BACKUP_SUFFIX

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and AGENTLINT_* environment variables."""

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path(".agentlint") / "logs"

    # Discovery
    skip_directories: list[str] = [
        "node_modules",
        "vendor",
        ".venv",
        "venv",
        "__pycache__",
        "build",
        "dist",
        "target",
        "coverage",
        ".git",
        ".svn",
        ".hg",
        ".next",
    ]
    max_file_size_bytes: int = 1_048_576  # 1MB

    # Suppression
    suppression_path: Path = (
        Path.home() / ".agentlint" / "suppressions.json"
    )
    config_filename: str = ".agentlint.yaml"

    # Fixer
    backup_suffix: str = BACKUP_SUFFIX

    # Tools the platform exposes beyond the built-in defaults
    extra_known_tools: Annotated[list[str], NoDecode] = []

    @field_validator("extra_known_tools", mode="before")
    @classmethod
    def _parse_tools(cls, v: Any) -> Any:
        """Accept comma-separated string or JSON array."""
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [s.strip() for s in stripped.split(",") if s.strip()]
        return v

    @field_validator("extra_known_tools")
    @classmethod
    def _dedupe_tools(cls, v: list[str]) -> list[str]:
        seen: set[str] = set()
        result: list[str] = []
        for tool in v:
            if tool in seen:
                logger.warning(
                    "Duplicate tool in AGENTLINT_EXTRA_KNOWN_TOOLS: %s",
                    tool,
                )
                continue
            seen.add(tool)
            result.append(tool)
        return result

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "AGENTLINT_",
        "extra": "ignore",
    }
