"""Structured JSON logger for analysis runs and fix batches."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from agentlint.constants import LOG_TRUNCATION_CHARS
from agentlint.logging_config import LOG_DATEFMT, LOG_FORMAT

__all__ = ["AuditLogger", "LOG_FORMAT", "LOG_DATEFMT"]


class AuditLogger:
    """Structured JSON logger with run_id correlation."""

    def __init__(self, log_dir: Path, level: str = "INFO") -> None:
        self._log_dir = log_dir
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger("agentlint.audit")
        self._logger.setLevel(getattr(logging, level.upper()))
        self._logger.propagate = False

        log_file = (log_dir / "agentlint.log").resolve()
        if not any(
            isinstance(h, logging.FileHandler)
            and Path(h.baseFilename) == log_file
            for h in self._logger.handlers
        ):
            handler = logging.FileHandler(log_file)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    @property
    def log_file(self) -> Path:
        return self._log_dir / "agentlint.log"

    def log_run(
        self,
        run_id: str,
        target: str,
        artifacts: int,
        active: int,
        suppressed: int,
        duration_ms: float,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "run",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "target": target,
                "artifacts": artifacts,
                "active": active,
                "suppressed": suppressed,
                "duration_ms": duration_ms,
            })
        )

    def log_fix(
        self,
        run_id: str,
        file: str,
        pattern_id: str,
        status: str,
        dry_run: bool,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "fix",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "file": file,
                "pattern_id": pattern_id,
                "status": status,
                "dry_run": dry_run,
            })
        )

    def log_error(
        self,
        run_id: str,
        component: str,
        error: str,
    ) -> None:
        self._logger.error(
            json.dumps({
                "type": "error",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "component": component,
                "error": error[:LOG_TRUNCATION_CHARS],
            })
        )

    def close(self) -> None:
        for handler in list(self._logger.handlers):
            handler.close()
            self._logger.removeHandler(handler)
