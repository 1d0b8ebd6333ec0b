"""Builders shared across test modules."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from agentlint.analysis.schemas import Finding
from agentlint.constants import Certainty


def write_file(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def make_finding(**overrides: Any) -> Finding:
    fields: dict[str, Any] = {
        "file": "agents/reviewer.md",
        "line": 3,
        "pattern_id": "missing_role",
        "issue": "No role definition",
        "fix": "Add a role",
        "certainty": Certainty.HIGH,
        "category": "structure",
        "auto_fixable": True,
        "source": "agent",
    }
    fields.update(overrides)
    return Finding(**fields)


AGENT_WITH_BASH = """\
---
name: reviewer
description: Reviews pull requests
tools: Read, Bash
---

# Reviewer

You are an expert code reviewer.
"""

DEPLOY_RULE = "NEVER use git push --force on main branch."
