"""The shared pattern catalog."""

from __future__ import annotations

from agentlint.analysis.patterns import (
    agent_patterns,
    cross_file_patterns,
    manifest_patterns,
    projectmemory_patterns,
    prompt_patterns,
    skill_patterns,
)
from agentlint.analysis.patterns.base import PatternRegistry

REGISTRY = PatternRegistry(
    agent_patterns.PATTERNS
    + prompt_patterns.PATTERNS
    + skill_patterns.PATTERNS
    + projectmemory_patterns.PATTERNS
    + manifest_patterns.PATTERNS
    + cross_file_patterns.PATTERNS
)
