"""Markdown helpers shared by pattern checks and fixes."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from agentlint.constants import CHARS_PER_TOKEN

_FENCE_START = re.compile(r"^(\s*)```([\w+-]*)\s*$")
_FENCE_END = re.compile(r"^(\s*)```\s*$")
_HEADING = re.compile(r"^(#{1,6})[ \t]+(\S.*)$")
# good and bad example tags; bad examples show errors on purpose
_EXAMPLE_TAG = re.compile(
    r"<(?:good|bad)[_-]?example>.*?</(?:good|bad)[_-]?example>",
    re.IGNORECASE | re.DOTALL,
)
_BAD_EXAMPLE_TAG = re.compile(
    r"<bad[_-]?example>.*?</bad[_-]?example>",
    re.IGNORECASE | re.DOTALL,
)
_FENCED_BLOCK = re.compile(r"```.*?```", re.DOTALL)


@dataclass(frozen=True)
class CodeBlock:
    language: str
    code: str
    start_line: int  # 1-based, fence line
    end_line: int


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    line: int


def estimate_tokens(text: object) -> int:
    """Approximate token count: one token per four characters."""
    if not isinstance(text, str) or not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def extract_code_blocks(content: str) -> list[CodeBlock]:
    """Return fenced code blocks; an unclosed fence runs to end of file."""
    if not content:
        return []
    blocks: list[CodeBlock] = []
    lines = content.split("\n")
    language = ""
    start = 0
    code: list[str] = []
    inside = False
    for i, line in enumerate(lines, start=1):
        if not inside:
            match = _FENCE_START.match(line)
            if match:
                inside = True
                language = match.group(2) or ""
                start = i
                code = []
        elif _FENCE_END.match(line):
            inside = False
            blocks.append(CodeBlock(language, "\n".join(code), start, i))
        else:
            code.append(line)
    if inside:
        blocks.append(CodeBlock(language, "\n".join(code), start, len(lines)))
    return blocks


def code_block_lines(content: str) -> set[int]:
    """1-based line numbers covered by fenced code, fences included."""
    covered: set[int] = set()
    for block in extract_code_blocks(content):
        covered.update(range(block.start_line, block.end_line + 1))
    return covered


def extract_headings(content: str) -> list[Heading]:
    """ATX headings outside fenced code."""
    skip = code_block_lines(content)
    headings: list[Heading] = []
    for i, line in enumerate(content.split("\n"), start=1):
        if i in skip:
            continue
        match = _HEADING.match(line)
        if match:
            headings.append(
                Heading(len(match.group(1)), match.group(2).strip(), i)
            )
    return headings


def example_ranges(content: str) -> list[tuple[int, int]]:
    return [(m.start(), m.end()) for m in _EXAMPLE_TAG.finditer(content)]


def line_offset(content: str, line: int) -> int:
    """Character offset of the start of a 1-based line."""
    if line <= 1:
        return 0
    offset = 0
    for _ in range(line - 1):
        nxt = content.find("\n", offset)
        if nxt == -1:
            return offset
        offset = nxt + 1
    return offset


def inside_example(content: str, line: int) -> bool:
    pos = line_offset(content, line)
    return any(start <= pos <= end for start, end in example_ranges(content))


def strip_bad_examples(content: str) -> str:
    """Blank out bad-example blocks, keeping line numbering intact."""
    return _BAD_EXAMPLE_TAG.sub(
        lambda m: "\n" * m.group(0).count("\n"), content
    )


def strip_code_blocks(content: str) -> str:
    """Blank out fenced blocks, keeping line numbering intact."""
    return _FENCED_BLOCK.sub(
        lambda m: "\n" * m.group(0).count("\n"), content
    )


def find_line(content: str, needle: str) -> int:
    """1-based line of the first occurrence of ``needle``, else 0."""
    if not needle:
        return 0
    idx = content.find(needle)
    if idx == -1:
        return 0
    return content.count("\n", 0, idx) + 1
