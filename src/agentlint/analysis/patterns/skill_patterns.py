"""Checks for skill definitions (``skills/<name>/SKILL.md``)."""

from __future__ import annotations

import re

from agentlint.analysis.patterns.base import (
    CheckResult,
    Pattern,
    PatternContext,
)
from agentlint.constants import (
    ArtifactType,
    Category,
    Certainty,
    PatternInput,
    Source,
)

# Phrases that tell the router when to load the skill
TRIGGER_PHRASE = re.compile(
    r"\buse\s+(?:this\s+skill\s+)?when\b|\binvoke\s+when\b|\btriggers?\s+(?:on|when)\b",
    re.IGNORECASE,
)

_SKILL = frozenset({ArtifactType.SKILL})


def check_missing_trigger_phrase(
    frontmatter: dict[str, str] | None, context: PatternContext
) -> CheckResult | None:
    if not frontmatter:
        return None
    description = frontmatter.get("description", "")
    if not description or TRIGGER_PHRASE.search(description):
        return None
    return CheckResult(
        issue="Skill description has no trigger phrase",
        fix="Start the description with 'Use when user asks to ...'",
        locate="description:",
    )


def check_skill_missing_description(
    frontmatter: dict[str, str] | None, context: PatternContext
) -> CheckResult | None:
    if frontmatter is not None and frontmatter.get("description"):
        return None
    return CheckResult(
        issue="Skill has no description, so it can never be selected",
        fix="Add a frontmatter description that says when to use the skill",
        line=1,
    )


PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        id="missing_trigger_phrase",
        category=Category.TRIGGERS,
        certainty=Certainty.HIGH,
        source=Source.SKILL,
        applies_to=_SKILL,
        input=PatternInput.FRONTMATTER,
        description="Skill description never says when to use it",
        check=check_missing_trigger_phrase,
        auto_fix=True,
    ),
    Pattern(
        id="skill_missing_description",
        category=Category.TRIGGERS,
        certainty=Certainty.HIGH,
        source=Source.SKILL,
        applies_to=_SKILL,
        input=PatternInput.FRONTMATTER,
        description="Skill has no description",
        check=check_skill_missing_description,
    ),
)
