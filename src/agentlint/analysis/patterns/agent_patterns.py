"""Checks for agent definition files (``agents/*.md``)."""

from __future__ import annotations

import re

from agentlint.analysis.capabilities import parse_declared
from agentlint.analysis.markdown import estimate_tokens
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

MIN_CONSTRAINT_TOKENS = 100

_AGENT = frozenset({ArtifactType.AGENT})

_BARE_BASH = re.compile(r"\bBash\b(?!\s*\()")
ROLE_SECTION = re.compile(
    r"^#{1,3}\s*(?:your\s+)?role\b|<role>|^\s*you\s+are\s+(?:an?|the)\b",
    re.IGNORECASE | re.MULTILINE,
)
CONSTRAINTS_SECTION = re.compile(
    r"^#{1,3}\s*(?:critical\s+)?(?:constraints?|rules|limitations|boundaries)\b"
    r"|^#{1,3}\s*what\s+.*\bmust\s+not\s+do\b"
    r"|<constraints>",
    re.IGNORECASE | re.MULTILINE,
)


def check_missing_frontmatter(
    frontmatter: dict[str, str] | None, context: PatternContext
) -> CheckResult | None:
    if frontmatter is not None:
        return None
    return CheckResult(
        issue="Missing frontmatter block",
        fix="Add a --- block with name, description, tools and model",
        line=1,
    )


def check_missing_name(
    frontmatter: dict[str, str] | None, context: PatternContext
) -> CheckResult | None:
    if frontmatter is None or frontmatter.get("name"):
        return None
    return CheckResult(
        issue="Frontmatter has no name",
        fix="Add 'name: <agent-name>' to frontmatter",
        line=1,
    )


def check_missing_description(
    frontmatter: dict[str, str] | None, context: PatternContext
) -> CheckResult | None:
    if frontmatter is None or frontmatter.get("description"):
        return None
    return CheckResult(
        issue="Frontmatter has no description",
        fix="Add 'description:' stating when this agent should be used",
        line=1,
    )


def check_unrestricted_tools(
    frontmatter: dict[str, str] | None, context: PatternContext
) -> CheckResult | None:
    if frontmatter is None:
        return None
    declared = parse_declared(frontmatter.get("tools"))
    if declared is None:
        return CheckResult(
            issue="No tools declaration: agent inherits every tool",
            fix="Declare only the tools the agent needs, e.g. 'tools: Read, Grep'",
            line=1,
        )
    if declared.wildcard:
        return CheckResult(
            issue="Wildcard tools declaration grants every tool",
            fix="Replace '*' with the specific tools the agent needs",
            locate="tools:",
        )
    return None


def check_unrestricted_bash(
    frontmatter: dict[str, str] | None, context: PatternContext
) -> CheckResult | None:
    if frontmatter is None:
        return None
    tools = frontmatter.get("tools", "")
    if not _BARE_BASH.search(tools):
        return None
    return CheckResult(
        issue="Unrestricted Bash access in tools",
        fix="Scope the grant, e.g. 'Bash(git:*)'",
        locate="tools:",
    )


def check_missing_role(
    body: str, context: PatternContext
) -> CheckResult | None:
    if not body.strip() or ROLE_SECTION.search(body):
        return None
    return CheckResult(
        issue="No role definition",
        fix="Add a '## Your Role' section or open with 'You are ...'",
    )


def check_missing_constraints(
    body: str, context: PatternContext
) -> CheckResult | None:
    if estimate_tokens(body) < MIN_CONSTRAINT_TOKENS:
        return None
    if CONSTRAINTS_SECTION.search(body):
        return None
    return CheckResult(
        issue="No constraints section",
        fix="Add a '## Constraints' section listing what the agent must not do",
    )


PATTERNS: tuple[Pattern, ...] = (
    Pattern(
        id="missing_frontmatter",
        category=Category.STRUCTURE,
        certainty=Certainty.HIGH,
        source=Source.AGENT,
        applies_to=_AGENT,
        input=PatternInput.FRONTMATTER,
        description="Agent file has no frontmatter block",
        check=check_missing_frontmatter,
        auto_fix=True,
    ),
    Pattern(
        id="missing_name",
        category=Category.STRUCTURE,
        certainty=Certainty.HIGH,
        source=Source.AGENT,
        applies_to=_AGENT,
        input=PatternInput.FRONTMATTER,
        description="Frontmatter lacks a name",
        check=check_missing_name,
    ),
    Pattern(
        id="missing_description",
        category=Category.STRUCTURE,
        certainty=Certainty.HIGH,
        source=Source.AGENT,
        applies_to=_AGENT,
        input=PatternInput.FRONTMATTER,
        description="Frontmatter lacks a description",
        check=check_missing_description,
    ),
    Pattern(
        id="unrestricted_tools",
        category=Category.SECURITY,
        certainty=Certainty.HIGH,
        source=Source.AGENT,
        applies_to=_AGENT,
        input=PatternInput.FRONTMATTER,
        description="Agent has no tool restriction or a wildcard grant",
        check=check_unrestricted_tools,
    ),
    Pattern(
        id="unrestricted_bash",
        category=Category.SECURITY,
        certainty=Certainty.HIGH,
        source=Source.AGENT,
        applies_to=_AGENT,
        input=PatternInput.FRONTMATTER,
        description="Bash granted without a command scope",
        check=check_unrestricted_bash,
        auto_fix=True,
    ),
    Pattern(
        id="missing_role",
        category=Category.STRUCTURE,
        certainty=Certainty.HIGH,
        source=Source.AGENT,
        applies_to=_AGENT,
        input=PatternInput.BODY,
        description="Agent body never states its role",
        check=check_missing_role,
        auto_fix=True,
    ),
    Pattern(
        id="missing_constraints",
        category=Category.STRUCTURE,
        certainty=Certainty.HIGH,
        source=Source.AGENT,
        applies_to=_AGENT,
        input=PatternInput.BODY,
        description="Agent body has no constraints section",
        check=check_missing_constraints,
        auto_fix=True,
    ),
)
