"""Checks for project-memory documents (``CLAUDE.md`` / ``AGENTS.md``).

Some checks depend on the filesystem. The analyzer resolves them and
passes the results in the context: ``broken_files`` (missing referenced
files), ``broken_commands`` (scripts absent from ``package.json``) and
``duplication_ratio`` (share of lines repeated from ``README.md``).
"""

from __future__ import annotations

import re
from collections.abc import Callable

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

MAX_MEMORY_TOKENS = 1500
VERBOSE_AVG_LINE_CHARS = 80
VERBOSE_LONG_PARAGRAPHS = 3
WHY_MIN_RULES = 5
WHY_RATIO = 1 / 3
EXAMPLE_OVERLOAD = 10
SELF_EVIDENT_MIN = 4
RULES_IGNORED_LINES = 150
RULES_IGNORED_RULES = 10
BROKEN_REFERENCES_SHOWN = 3
README_DUPLICATION_RATIO = 0.4
CLAUDE_ONLY_MENTIONS = 3
OBVIOUS_INFORMATION_MIN = 3
EMPHASIS_MIN_RULES = 5
EMPHASIS_MIN_MARKERS = 2

_MEMORY = frozenset({ArtifactType.PROJECT_MEMORY})

SELF_EVIDENT: tuple[str, ...] = (
    r"\bwrite tests\b",
    r"\bfollow best practices\b",
    r"\bbe consistent\b",
    r"\buse descriptive names\b",
    r"\bavoid code duplication\b",
    r"\bkeep functions small\b",
    r"\bsingle responsibility\b",
    r"\bDRY principle\b",
)

OBVIOUS_INFORMATION: tuple[str, ...] = (
    r"\bthis is a (?:node|python|rust|go|java)\s+project\b",
    r"\bwe use (?:npm|yarn|pnpm|pip|cargo)\b",
    r"\bthe (?:src|lib|test) folder contains\b",
    r"\bstandard (?:REST|HTTP|JSON) conventions\b",
    r"\bfollow (?:PEP|ESLint|standard) (?:style|conventions)\b",
    r"\bwrite clean code\b",
    r"\buse meaningful variable names\b",
    r"\bcomment your code\b",
    r"\bhandle errors appropriately\b",
)


def _has(pattern: str, text: str) -> bool:
    return re.search(pattern, text, re.IGNORECASE | re.MULTILINE) is not None


def check_missing_critical_rules(
    content: str, context: PatternContext
) -> CheckResult | None:
    if _has(r"##\s+(?:critical|priority)\s+rules|<critical-rules>|##\s+must[- ]know", content):
        return None
    return CheckResult(
        issue="Missing critical rules section",
        fix='Add a "## Critical Rules" section with prioritized project rules',
    )


def check_missing_architecture(
    content: str, context: PatternContext
) -> CheckResult | None:
    if _has(r"##\s+(?:architecture|(?:project\s+)?structure|overview)", content):
        return None
    if "```" in content and re.search(r"├──|└──|lib/|src/", content):
        return None
    return CheckResult(
        issue="Missing architecture/structure section",
        fix='Add a "## Architecture" section with a directory tree or overview',
    )


def check_missing_key_commands(
    content: str, context: PatternContext
) -> CheckResult | None:
    if _has(r"##\s+(?:(?:key\s+)?commands|scripts|usage)", content):
        return None
    if _has(r"```(?:bash|sh|shell)", content) and _has(
        r"\b(?:npm|yarn|pnpm|git|make|pytest|cargo)\b", content
    ):
        return None
    return CheckResult(
        issue="Missing key commands section",
        fix='Add a "## Key Commands" section with common development commands',
    )


def check_broken_file_reference(
    content: str, context: PatternContext
) -> CheckResult | None:
    broken: list[str] = list(context.get("broken_files") or [])
    if not broken:
        return None
    shown = ", ".join(broken[:BROKEN_REFERENCES_SHOWN])
    more = "..." if len(broken) > BROKEN_REFERENCES_SHOWN else ""
    return CheckResult(
        issue=f"Broken file references: {shown}{more}",
        fix="Update or remove references to files that do not exist",
        locate=broken[0],
        details=tuple(broken),
    )


def check_broken_command_reference(
    content: str, context: PatternContext
) -> CheckResult | None:
    broken: list[str] = list(context.get("broken_commands") or [])
    if not broken:
        return None
    return CheckResult(
        issue=f"Broken command references: {', '.join(broken)}",
        fix="Update or remove references to non-existent commands",
        locate=broken[0],
        details=tuple(broken),
    )


def check_readme_duplication(
    content: str, context: PatternContext
) -> CheckResult | None:
    ratio = float(context.get("duplication_ratio") or 0.0)
    if ratio <= README_DUPLICATION_RATIO:
        return None
    return CheckResult(
        issue=f"{round(ratio * 100)}% content duplicated from README.md",
        fix="Reference README.md instead of duplicating content",
    )


def check_excessive_token_count(
    content: str, context: PatternContext
) -> CheckResult | None:
    tokens = estimate_tokens(content)
    if tokens <= MAX_MEMORY_TOKENS:
        return None
    return CheckResult(
        issue=f"Estimated {tokens} tokens (recommended max: {MAX_MEMORY_TOKENS})",
        fix="Condense content or link to detailed docs",
    )


def check_verbose_instructions(
    content: str, context: PatternContext
) -> CheckResult | None:
    lines = content.split("\n")
    avg = sum(len(line) for line in lines) / len(lines)
    long_paragraphs = len(re.findall(r"[^\n]{200,}", content))
    if avg <= VERBOSE_AVG_LINE_CHARS or long_paragraphs <= VERBOSE_LONG_PARAGRAPHS:
        return None
    return CheckResult(
        issue=f"Content is verbose (avg line: {round(avg)} chars)",
        fix="Use bullet points, tables and concise language",
    )


def check_missing_why(
    content: str, context: PatternContext
) -> CheckResult | None:
    rules = len(re.findall(
        r"\b(?:must|never|always|do not|required|important)\b",
        content,
        re.IGNORECASE,
    ))
    why = len(re.findall(
        r"\*WHY:|\bWHY:|\bbecause\b|\breason:|\brationale:",
        content,
        re.IGNORECASE,
    ))
    if rules <= WHY_MIN_RULES or why >= rules * WHY_RATIO:
        return None
    return CheckResult(
        issue=f"Found {rules} rules but only {why} WHY explanations",
        fix="Add a *WHY: line to each rule",
    )


def check_example_overload(
    content: str, context: PatternContext
) -> CheckResult | None:
    total = (
        len(re.findall(r"```.*?```", content, re.DOTALL))
        + len(re.findall(r"##\s+example", content, re.IGNORECASE))
        + len(re.findall(r"<(?:good-)?example>", content, re.IGNORECASE))
    )
    if total <= EXAMPLE_OVERLOAD:
        return None
    return CheckResult(
        issue=f"Found {total} examples/code blocks (may be excessive)",
        fix="Move examples to separate docs and link to them",
    )


def check_deep_nesting(
    content: str, context: PatternContext
) -> CheckResult | None:
    h4 = len(re.findall(r"^####", content, re.MULTILINE))
    h5 = len(re.findall(r"^#####", content, re.MULTILINE))
    deep_lists = len(re.findall(r"^(?: {8,}[-*]|\t{3,}[-*])", content, re.MULTILINE))
    if h5 > 2 or deep_lists > 5 or (h4 > 5 and deep_lists > 3):
        return CheckResult(
            issue="Content has deep nesting structure",
            fix="Flatten the hierarchy for easier scanning",
        )
    return None


def check_hardcoded_state_dir(
    content: str, context: PatternContext
) -> CheckResult | None:
    if ".claude/" not in content:
        return None
    if _has(r"\$\{?STATE_DIR\}?|\.opencode/|\.codex/|platform-aware", content):
        return None
    return CheckResult(
        issue="Hardcoded .claude/ directory path without cross-platform note",
        fix="Use ${STATE_DIR}/ or document the per-platform directories",
        locate=".claude/",
    )


def check_self_evident_practices(
    content: str, context: PatternContext
) -> CheckResult | None:
    count = sum(1 for p in SELF_EVIDENT if _has(p, content))
    if count < SELF_EVIDENT_MIN:
        return None
    return CheckResult(
        issue=f"Contains {count} self-evident practices",
        fix="Remove generic advice; document project-specific rules only",
    )


def check_file_too_long_rules_ignored(
    content: str, context: PatternContext
) -> CheckResult | None:
    lines = content.count("\n") + 1
    rules = len(re.findall(
        r"\b(?:must|never|always|required|important)\b", content, re.IGNORECASE
    ))
    if lines <= RULES_IGNORED_LINES or rules <= RULES_IGNORED_RULES:
        return None
    return CheckResult(
        issue=f"File has {lines} lines and {rules} rules; some rules will likely be ignored",
        fix="Prune the file until every rule is one worth keeping",
    )


def check_claude_only_terminology(
    content: str, context: PatternContext
) -> CheckResult | None:
    mentions = len(re.findall(r"\bClaude Code\b", content))
    if mentions <= CLAUDE_ONLY_MENTIONS:
        return None
    if _has(r"OpenCode|Codex|AI (?:coding )?assistant", content):
        return None
    return CheckResult(
        issue='Uses "Claude Code" frequently without mentioning alternatives',
        fix='Say "AI assistant" or mention OpenCode/Codex where the text is not Claude-specific',
        locate="Claude Code",
    )


def check_missing_agents_md_mention(
    content: str, context: PatternContext
) -> CheckResult | None:
    if context.path.name != "CLAUDE.md" or _has(r"AGENTS\.md", content):
        return None
    return CheckResult(
        issue="CLAUDE.md does not mention AGENTS.md compatibility",
        fix="Note that the file also serves as AGENTS.md for OpenCode/Codex",
    )


def check_includes_obvious_information(
    content: str, context: PatternContext
) -> CheckResult | None:
    found = [p for p in OBVIOUS_INFORMATION if _has(p, content)]
    if len(found) < OBVIOUS_INFORMATION_MIN:
        return None
    return CheckResult(
        issue=f"Contains {len(found)} obvious/inferable items that waste tokens",
        fix="Remove what the assistant can infer from the code; keep what it cannot guess",
        details=tuple(found[:3]),
    )


def check_missing_emphasis_markers(
    content: str, context: PatternContext
) -> CheckResult | None:
    rules = len(re.findall(
        r"\b(?:never|always|required|must not)\b", content, re.IGNORECASE
    ))
    markers = len(re.findall(r"\b(?:IMPORTANT|CRITICAL|MUST|YOU MUST|NEVER)\b", content))
    if rules <= EMPHASIS_MIN_RULES or markers >= EMPHASIS_MIN_MARKERS:
        return None
    return CheckResult(
        issue=f"Found {rules} strong rules but only {markers} emphasis markers",
        fix="Prefix the critical rules with IMPORTANT: or MUST",
    )


def _memory(
    pattern_id: str,
    category: str,
    certainty: Certainty,
    description: str,
    check: Callable[..., CheckResult | None],
) -> Pattern:
    return Pattern(
        id=pattern_id,
        category=category,
        certainty=certainty,
        source=Source.PROJECT_MEMORY,
        applies_to=_MEMORY,
        input=PatternInput.CONTENT,
        description=description,
        check=check,
    )


PATTERNS: tuple[Pattern, ...] = (
    _memory("missing_critical_rules", Category.STRUCTURE, Certainty.HIGH,
            "No critical rules section", check_missing_critical_rules),
    _memory("missing_architecture", Category.STRUCTURE, Certainty.HIGH,
            "No architecture or structure section", check_missing_architecture),
    _memory("missing_key_commands", Category.STRUCTURE, Certainty.HIGH,
            "No commands section", check_missing_key_commands),
    _memory("broken_file_reference", Category.REFERENCE, Certainty.HIGH,
            "References a file that does not exist", check_broken_file_reference),
    _memory("broken_command_reference", Category.REFERENCE, Certainty.HIGH,
            "Documents a script missing from package.json",
            check_broken_command_reference),
    _memory("readme_duplication", Category.EFFICIENCY, Certainty.MEDIUM,
            "Repeats README.md content", check_readme_duplication),
    _memory("excessive_token_count", Category.EFFICIENCY, Certainty.MEDIUM,
            "Exceeds the recommended token count", check_excessive_token_count),
    _memory("verbose_instructions", Category.EFFICIENCY, Certainty.MEDIUM,
            "Long lines and paragraphs", check_verbose_instructions),
    _memory("missing_why", Category.QUALITY, Certainty.MEDIUM,
            "Rules without rationale", check_missing_why),
    _memory("example_overload", Category.EFFICIENCY, Certainty.LOW,
            "Too many inline examples", check_example_overload),
    _memory("deep_nesting", Category.QUALITY, Certainty.LOW,
            "Deeply nested headings or lists", check_deep_nesting),
    _memory("hardcoded_state_dir", Category.CROSS_PLATFORM, Certainty.HIGH,
            "Hardcoded .claude/ state directory", check_hardcoded_state_dir),
    _memory("claude_only_terminology", Category.CROSS_PLATFORM, Certainty.MEDIUM,
            "Names one assistant throughout", check_claude_only_terminology),
    _memory("missing_agents_md_mention", Category.CROSS_PLATFORM, Certainty.MEDIUM,
            "CLAUDE.md silent about AGENTS.md", check_missing_agents_md_mention),
    _memory("self_evident_practices", Category.EFFICIENCY, Certainty.LOW,
            "Generic advice the model already follows",
            check_self_evident_practices),
    _memory("includes_obvious_information", Category.EFFICIENCY, Certainty.MEDIUM,
            "Facts the assistant can infer from the code",
            check_includes_obvious_information),
    _memory("missing_emphasis_markers", Category.QUALITY, Certainty.MEDIUM,
            "Strong rules without IMPORTANT or MUST markers",
            check_missing_emphasis_markers),
    _memory("file_too_long_rules_ignored", Category.EFFICIENCY, Certainty.HIGH,
            "Long file with many rules", check_file_too_long_rules_ignored),
)
