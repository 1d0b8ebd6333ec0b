"""Split raw markdown into a flat metadata block and a body.

Parsing never raises: a missing or unterminated block yields
``frontmatter=None`` with the whole original text as the body.
"""

from __future__ import annotations

import re

from agentlint.ingestion.schemas import ParsedDocument

_DELIMITER = "---"
_KEY_VALUE = re.compile(r"^([A-Za-z_][\w-]*)[ \t]*:[ \t]*(.*)$")
_LIST_ITEM = re.compile(r"^-[ \t]+(.*)$")
_BLOCK_SCALAR = re.compile(r"^[>|][+-]?$")


def parse_frontmatter(content: object) -> ParsedDocument:
    """Parse a leading ``---`` block as ``key: value`` pairs.

    Values are stripped and lose one layer of matching quotes. YAML list
    items under a key are joined with ``", "`` and indented lines after a
    ``>`` or ``|`` indicator are folded into one value. Any other line
    that is not a pair is skipped, so only a missing or unterminated
    block yields ``frontmatter=None``.
    """
    if not isinstance(content, str):
        return ParsedDocument(frontmatter=None, body="")

    text = content.lstrip("\ufeff")
    lines = text.split("\n")
    if not lines or lines[0].strip() != _DELIMITER:
        return ParsedDocument(frontmatter=None, body=content)

    end = -1
    for i in range(1, len(lines)):
        if lines[i].strip() == _DELIMITER:
            end = i
            break
    if end == -1:
        return ParsedDocument(frontmatter=None, body=content)

    body = "\n".join(lines[end + 1:])
    return ParsedDocument(frontmatter=_parse_block(lines[1:end]), body=body)


def _parse_block(lines: list[str]) -> dict[str, str]:
    frontmatter: dict[str, str] = {}
    items: dict[str, list[str]] = {}
    folded: dict[str, list[str]] = {}
    key: str | None = None
    for raw in lines:
        line = raw.rstrip("\r")
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        indented = line[0] in " \t"
        item = _LIST_ITEM.match(stripped)
        if key is not None and item is not None:
            items.setdefault(key, []).append(_unquote(item.group(1).strip()))
            continue
        if key is not None and indented and key in folded:
            folded[key].append(stripped)
            continue
        match = None if indented else _KEY_VALUE.match(stripped)
        if match is None:
            continue
        key = match.group(1)
        value = match.group(2).strip()
        if _BLOCK_SCALAR.match(value):
            folded[key] = []
            value = ""
        frontmatter[key] = _unquote(value)

    for name, values in items.items():
        if not frontmatter.get(name):
            frontmatter[name] = ", ".join(values)
    for name, parts in folded.items():
        frontmatter[name] = " ".join(parts)
    return frontmatter


def has_frontmatter(content: str) -> bool:
    """Return True if content opens with a well-formed metadata block."""
    return parse_frontmatter(content).frontmatter is not None


def frontmatter_bounds(lines: list[str]) -> tuple[int, int] | None:
    """Index of the opening and closing delimiter lines, if present."""
    if not lines or lines[0].strip() != _DELIMITER:
        return None
    for i in range(1, len(lines)):
        if lines[i].strip() == _DELIMITER:
            return 0, i
    return None


def split_list_value(value: str | None) -> list[str]:
    """Split a comma-separated declaration, keeping ``Bash(a, b)`` intact."""
    if not value:
        return []
    text = value.strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    items: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0:
            items.append("".join(current))
            current = []
        else:
            current.append(ch)
    items.append("".join(current))
    return [_unquote(i.strip()) for i in items if i.strip()]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value
