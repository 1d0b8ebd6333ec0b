"""Idempotent rewrites for markdown artifacts.

Every fix takes the full file text and returns the new text. A fix
whose precondition is already met returns its input unchanged, so
applying it twice equals applying it once. Fenced code and the
frontmatter block are never touched by prose rewrites.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from agentlint.analysis.markdown import code_block_lines
from agentlint.analysis.patterns.agent_patterns import (
    CONSTRAINTS_SECTION,
    ROLE_SECTION,
)
from agentlint.analysis.patterns.prompt_patterns import (
    EXAMPLE_INDICATORS,
    OUTPUT_FORMAT_INDICATORS,
    VERBOSE_PHRASES,
    VERIFICATION_INDICATORS,
)
from agentlint.analysis.patterns.skill_patterns import TRIGGER_PHRASE
from agentlint.ingestion.frontmatter import parse_frontmatter

TextFix = Callable[[str], str]

SCOPED_BASH = "Bash(git:*)"
TRIGGER_PREFIX = "Use when user asks to"

# All-caps words left alone by the emphasis fix
KEEP_UPPERCASE: frozenset[str] = frozenset({
    "API", "CLI", "CSS", "EOF", "FIXME", "HIGH", "HTML", "HTTP", "HTTPS",
    "JSON", "JWT", "LOW", "MCP", "MEDIUM", "NOTE", "README", "REST", "SDK",
    "SQL", "TODO", "URL", "UUID", "XML", "YAML",
})

_BARE_BASH = re.compile(r"\bBash\b(?!\s*\()")
_TOOLS_LINE = re.compile(r"^(\s*tools\s*:)(.*)$")
_DESCRIPTION_LINE = re.compile(r"^(\s*description\s*:[ \t]*)(.*)$")
_HEADING_LINE = re.compile(r"^(#{1,6})(\s+.*)$")
_TITLE_LINE = re.compile(r"^#\s+(.+)$")
_SECTION_HEADING = re.compile(r"^(#{1,6})\s")
_ANY_TAG = re.compile(r"<[a-z_][a-z0-9_-]*>", re.IGNORECASE)
_INLINE_CODE = re.compile(r"(`[^`\n]*`)")
_SHOUTED = re.compile(r"\b[A-Z]{3,}\b")
_REPEATED_MARKS = re.compile(r"([!?])\1+")
_ROLE_HEADING = re.compile(r"^#{1,3}\s*(?:your\s+)?role\b", re.IGNORECASE)
_CONSTRAINTS_HEADING = re.compile(
    r"^#{1,3}\s*(?:critical\s+)?(?:constraints?|rules|limitations|boundaries)\b",
    re.IGNORECASE,
)

_VERBOSE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE), concise)
    for phrase, concise in VERBOSE_PHRASES
)


# ── Helpers ──────────────────────────────────────────────


def split_frontmatter(content: str) -> tuple[str, str]:
    """Return ``(head, body)`` where head is the frontmatter block, or ''."""
    parsed = parse_frontmatter(content)
    if parsed.frontmatter is None or not content.endswith(parsed.body):
        return "", content
    cut = len(content) - len(parsed.body)
    return content[:cut], content[cut:]


def _map_prose_lines(content: str, fn: TextFix) -> str:
    head, body = split_frontmatter(content)
    skip = code_block_lines(body)
    lines = body.split("\n")
    mapped = [
        line if number in skip else fn(line)
        for number, line in enumerate(lines, start=1)
    ]
    return head + "\n".join(mapped)


def _outside_inline_code(line: str, fn: TextFix) -> str:
    parts = _INLINE_CODE.split(line)
    return "".join(p if i % 2 else fn(p) for i, p in enumerate(parts))


def _append_section(content: str, section: str) -> str:
    return content.rstrip("\n") + "\n\n" + section.rstrip("\n") + "\n"


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


# ── Frontmatter fixes ────────────────────────────────────


def fix_missing_frontmatter(content: str) -> str:
    """Prepend a minimal metadata block named after the first H1.

    An opening delimiter without a closing one is left alone; where the
    block was meant to end cannot be recovered.
    """
    if parse_frontmatter(content).frontmatter is not None:
        return content
    if content.lstrip("\ufeff").split("\n", 1)[0].strip() == "---":
        return content
    name = "agent"
    for line in content.split("\n"):
        title = _TITLE_LINE.match(line.strip())
        if title and _slug(title.group(1)):
            name = _slug(title.group(1))
            break
    block = (
        "---\n"
        f"name: {name}\n"
        "description: Describe when this agent should be used\n"
        "tools: Read, Grep, Glob\n"
        "---\n\n"
    )
    return block + content.lstrip("\n")


def fix_unrestricted_bash(content: str) -> str:
    head, body = split_frontmatter(content)
    if not head:
        return content
    lines = head.split("\n")
    for i, line in enumerate(lines):
        match = _TOOLS_LINE.match(line)
        if match:
            lines[i] = match.group(1) + _BARE_BASH.sub(SCOPED_BASH, match.group(2))
    return "\n".join(lines) + body


def fix_missing_trigger_phrase(content: str) -> str:
    head, body = split_frontmatter(content)
    if not head:
        return content
    lines = head.split("\n")
    for i, line in enumerate(lines):
        match = _DESCRIPTION_LINE.match(line)
        if not match:
            continue
        value = match.group(2).strip()
        quote = value[0] if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'" else ""
        text = value[1:-1] if quote else value
        if not text or TRIGGER_PHRASE.search(text):
            return content
        text = text.rstrip(".")
        if not text[1:2].isupper():
            text = text[0].lower() + text[1:]
        lines[i] = f"{match.group(1)}{quote}{TRIGGER_PREFIX} {text}{quote}"
        break
    return "\n".join(lines) + body


# ── Section fixes ────────────────────────────────────────


def fix_missing_role(content: str) -> str:
    head, body = split_frontmatter(content)
    if ROLE_SECTION.search(body):
        return content
    description = (parse_frontmatter(content).frontmatter or {}).get("description")
    role = description.rstrip(".") + "." if description else (
        "Describe the expertise and responsibilities of this agent."
    )
    section = f"## Your Role\n\n{role}\n\n"

    lines = body.lstrip("\n").split("\n")
    if lines and _TITLE_LINE.match(lines[0]):
        rest = "\n".join(lines[1:]).lstrip("\n")
        new_body = f"{lines[0]}\n\n{section}{rest}"
    else:
        new_body = section + "\n".join(lines)
    prefix = "\n" if head else ""
    return head + prefix + new_body


def fix_missing_constraints(content: str) -> str:
    _, body = split_frontmatter(content)
    if CONSTRAINTS_SECTION.search(body):
        return content
    return _append_section(
        content,
        "## Constraints\n\n"
        "- Stay within the scope of the assigned task\n"
        "- Ask before making destructive or irreversible changes\n",
    )


def fix_missing_output_format(content: str) -> str:
    _, body = split_frontmatter(content)
    if any(p.search(body) for p in OUTPUT_FORMAT_INDICATORS):
        return content
    return _append_section(
        content,
        "## Output Format\n\n"
        "Describe the structure of the expected response.\n",
    )


def fix_missing_verification_criteria(content: str) -> str:
    _, body = split_frontmatter(content)
    if any(p.search(body) for p in VERIFICATION_INDICATORS):
        return content
    return _append_section(
        content,
        "## Verification\n\n"
        "- Run the tests and confirm they pass before finishing\n",
    )


def fix_missing_examples(content: str) -> str:
    _, body = split_frontmatter(content)
    if any(p.search(body) for p in EXAMPLE_INDICATORS):
        return content
    return _append_section(
        content,
        "## Examples\n\n"
        "<example>\n"
        "Input: a representative request\n"
        "Output: the response it should produce\n"
        "</example>\n",
    )


def fix_missing_xml_structure(content: str) -> str:
    """Wrap the role and constraints sections in tags.

    Without either section the whole body is wrapped in
    ``<instructions>``.
    """
    head, body = split_frontmatter(content)
    if _ANY_TAG.search(body):
        return content
    lines = body.split("\n")
    skip = code_block_lines(body)
    wrapped = False
    for heading, tag in ((_ROLE_HEADING, "role"), (_CONSTRAINTS_HEADING, "constraints")):
        span = _section_span(lines, skip, heading)
        if span is None:
            continue
        start, end = span
        lines = lines[:start] + [f"<{tag}>"] + lines[start:end] + [f"</{tag}>"] + lines[end:]
        skip = code_block_lines("\n".join(lines))
        wrapped = True
    if not wrapped:
        inner = body.strip("\n")
        return head + f"<instructions>\n{inner}\n</instructions>\n"
    return head + "\n".join(lines)


def _section_span(
    lines: list[str], skip: set[int], heading: re.Pattern[str]
) -> tuple[int, int] | None:
    """0-based ``[start, end)`` of the section opened by ``heading``."""
    for i, line in enumerate(lines):
        if i + 1 in skip or not heading.match(line):
            continue
        level = len(line) - len(line.lstrip("#"))
        end = len(lines)
        for j in range(i + 1, len(lines)):
            nxt = _SECTION_HEADING.match(lines[j])
            if j + 1 not in skip and nxt and len(nxt.group(1)) <= level:
                end = j
                break
        while end > i + 1 and not lines[end - 1].strip():
            end -= 1
        return i, end
    return None


# ── Prose fixes ──────────────────────────────────────────


def fix_verbose_explanations(content: str) -> str:
    def concise(text: str) -> str:
        for pattern, replacement in _VERBOSE_PATTERNS:
            text = pattern.sub(lambda m, r=replacement: _match_case(m.group(0), r), text)
        return text

    return _map_prose_lines(content, lambda line: _outside_inline_code(line, concise))


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def fix_inconsistent_headings(content: str) -> str:
    """Clamp each heading to at most one level below the previous one."""
    head, body = split_frontmatter(content)
    skip = code_block_lines(body)
    lines = body.split("\n")
    previous: int | None = None
    for i, line in enumerate(lines):
        if i + 1 in skip:
            continue
        match = _HEADING_LINE.match(line)
        if not match:
            continue
        level = len(match.group(1))
        if previous is not None and level > previous + 1:
            level = previous + 1
            lines[i] = "#" * level + match.group(2)
        previous = level
    return head + "\n".join(lines)


def fix_aggressive_emphasis(content: str) -> str:
    def soften(text: str) -> str:
        text = _SHOUTED.sub(
            lambda m: m.group(0) if m.group(0) in KEEP_UPPERCASE else m.group(0).capitalize(),
            text,
        )
        return _REPEATED_MARKS.sub(r"\1", text)

    return _map_prose_lines(content, lambda line: _outside_inline_code(line, soften))


MARKDOWN_FIXES: dict[str, TextFix] = {
    "missing_frontmatter": fix_missing_frontmatter,
    "unrestricted_bash": fix_unrestricted_bash,
    "missing_role": fix_missing_role,
    "missing_output_format": fix_missing_output_format,
    "missing_constraints": fix_missing_constraints,
    "missing_verification_criteria": fix_missing_verification_criteria,
    "missing_examples": fix_missing_examples,
    "missing_xml_structure": fix_missing_xml_structure,
    "missing_trigger_phrase": fix_missing_trigger_phrase,
    "verbose_phrasing": fix_verbose_explanations,
    "heading_hierarchy_gaps": fix_inconsistent_headings,
    "aggressive_emphasis": fix_aggressive_emphasis,
}
