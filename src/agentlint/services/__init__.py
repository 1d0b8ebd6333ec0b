"""Run orchestration used by the command line."""

from agentlint.services.lint_service import LintRun, StageStatus, run_lint

__all__ = ["LintRun", "StageStatus", "run_lint"]
