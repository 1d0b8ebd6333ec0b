"""Declared versus exercised tool capabilities.

A declaration comes from ``tools`` (agents) or ``allowed-tools``
(skills, commands). ``Bash(git:*)`` grants ``Bash``; ``*`` grants every
tool. Usage is read from call syntax, verb phrases that name a tool, and
shell invocations that imply ``Bash``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from agentlint.analysis.markdown import extract_code_blocks, strip_bad_examples
from agentlint.ingestion.frontmatter import split_list_value

KNOWN_TOOLS: frozenset[str] = frozenset({
    "AskUserQuestion",
    "Bash",
    "Edit",
    "Glob",
    "Grep",
    "LSP",
    "MultiEdit",
    "NotebookEdit",
    "Read",
    "Skill",
    "Task",
    "TodoWrite",
    "WebFetch",
    "WebSearch",
    "Write",
})

# Leading words of a shell line that mean the Bash tool is exercised
SHELL_KEYWORDS: frozenset[str] = frozenset({
    "cargo",
    "git",
    "go",
    "make",
    "npm",
    "npx",
    "pnpm",
    "pytest",
    "yarn",
})

_SHELL_FENCES = frozenset({"bash", "sh", "shell", "console", "zsh"})
_SCOPED = re.compile(r"^([A-Za-z][\w-]*)\s*\((.*)\)$")
_INLINE_CODE = re.compile(r"`([^`\n]+)`")


@dataclass(frozen=True)
class CapabilitySet:
    """Tools an artifact is allowed to exercise."""

    tools: frozenset[str]
    wildcard: bool = False

    def covers(self, tool: str) -> bool:
        return self.wildcard or tool in self.tools

    def missing(self, used: Iterable[str]) -> list[str]:
        return sorted(t for t in set(used) if not self.covers(t))


def parse_declared(value: str | None) -> CapabilitySet | None:
    """Parse a declaration; ``None`` means nothing was declared."""
    if value is None:
        return None
    tools: set[str] = set()
    wildcard = False
    for entry in split_list_value(value):
        if entry == "*":
            wildcard = True
            continue
        scoped = _SCOPED.match(entry)
        name = scoped.group(1) if scoped else entry
        if name:
            tools.add(name)
    return CapabilitySet(frozenset(tools), wildcard)


def declared_capabilities(
    frontmatter: dict[str, str] | None,
) -> CapabilitySet | None:
    if not frontmatter:
        return None
    for key in ("tools", "allowed-tools"):
        if key in frontmatter:
            return parse_declared(frontmatter[key])
    return None


def used_capabilities(
    body: str,
    known_tools: Iterable[str] = KNOWN_TOOLS,
) -> frozenset[str]:
    """Tools the body text exercises. Bad-example blocks are ignored."""
    text = strip_bad_examples(body)
    tools = sorted(set(known_tools))
    if not tools:
        return frozenset()
    names = "|".join(re.escape(t) for t in tools)
    used: set[str] = set()

    call = re.compile(rf"(?<![\w.])({names})\s*\(")
    used.update(call.findall(text))

    phrase = re.compile(
        rf"\b(?:use|using|call|invoke|run)\s+(?:the\s+)?({names})\b"
        rf"|\b({names})\s+tool\b"
    )
    for match in phrase.finditer(text):
        used.add(match.group(1) or match.group(2))

    if _invokes_shell(text):
        used.add("Bash")
    return frozenset(used)


def _invokes_shell(text: str) -> bool:
    for snippet in _INLINE_CODE.findall(text):
        if _starts_with_shell_keyword(snippet):
            return True
    for block in extract_code_blocks(text):
        if block.language.lower() not in _SHELL_FENCES:
            continue
        for line in block.code.split("\n"):
            if _starts_with_shell_keyword(line.lstrip("$ ").strip()):
                return True
    return False


def _starts_with_shell_keyword(snippet: str) -> bool:
    words = snippet.strip().split()
    # A bare keyword is prose ("the `git` history"); a command has arguments
    return len(words) >= 2 and words[0] in SHELL_KEYWORDS
