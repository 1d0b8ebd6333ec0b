"""Per-artifact facts shared by the cross-file detectors.

Views are computed once per run so every detector reads the same
capabilities, references, instructions and phase graph. Line numbers
are 1-based positions in the artifact's raw content.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from agentlint.analysis.capabilities import (
    KNOWN_TOOLS,
    CapabilitySet,
    declared_capabilities,
    used_capabilities,
)
from agentlint.analysis.markdown import code_block_lines
from agentlint.analysis.similarity import polarity, tokenize
from agentlint.constants import MARKDOWN_TYPES, ArtifactType
from agentlint.ingestion.schemas import Artifact

_INSTRUCTION_KEYWORD = re.compile(
    r"\b(?:MUST|NEVER|ALWAYS|REQUIRED|FORBIDDEN|CRITICAL|DO NOT)\b"
    r"|\b[Dd]on['’]t\b"
)
_HEADING = re.compile(r"^\s{0,3}#{1,6}\s")
_LIST_MARKER = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+")
_EMPHASIS = re.compile(r"\*\*|__")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
MIN_INSTRUCTION_TOKENS = 2

_SUBAGENT = re.compile(
    r"subagent_type\s*[:=]\s*[\"']([\w.-]+)(?::([\w.-]+))?[\"']"
)
_SKILL_CALL = re.compile(
    r"\bSkill\(\s*(?:\{\s*)?(?:skill\s*[:=]\s*)?[\"']?([\w.:-]+)"
)
_SKILL_KEY = re.compile(r"\bskill\s*:\s*[\"']([\w.:-]+)[\"']")
_SLASH_COMMAND = re.compile(r"(?<![\w./`-])/([a-z][\w-]*(?::[\w-]+)?)\b")
_AT_MENTION = re.compile(r"(?<![\w.@])@([a-z][\w-]*(?::[\w-]+)?)\b")

_PHASE_HEADING = re.compile(r"^\s{0,3}#{1,6}\s*Phase\s+(\d+)\b", re.IGNORECASE)
_PHASE_EDGE = re.compile(
    r"\bPhase\s+(\d+)\s*(?:→|->)\s*Phase\s+(\d+)", re.IGNORECASE
)
_PHASE_JUMP = re.compile(
    r"(?:\b(?:proceed|continue|move|go|advance|transition|return|jump|skip)"
    r"\s+(?:on\s+|back\s+|ahead\s+)?to\s+|(?:→|->)\s*)Phase\s+(\d+)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Instruction:
    """A critical rule sentence and where it was written."""

    file: str
    line: int
    text: str
    polarity: int
    tokens: frozenset[str] = field(default=frozenset(), compare=False)


@dataclass(frozen=True)
class AgentReference:
    """A ``subagent_type`` target; ``plugin`` is set for ``plugin:name``."""

    name: str
    plugin: str | None
    line: int


@dataclass(frozen=True)
class ArtifactView:
    artifact: Artifact
    declared: CapabilitySet | None
    used: frozenset[str]
    references: frozenset[str]
    agent_refs: tuple[AgentReference, ...]
    skill_refs: frozenset[str]
    instructions: tuple[Instruction, ...]
    phases: tuple[int, ...]
    transitions: frozenset[tuple[int, int]]

    @property
    def name(self) -> str:
        return self.artifact.name

    @property
    def type(self) -> ArtifactType:
        return self.artifact.type

    @property
    def file(self) -> str:
        return str(self.artifact.path)


def build_corpus_view(
    artifacts: Iterable[Artifact],
    known_tools: Iterable[str] = KNOWN_TOOLS,
) -> list[ArtifactView]:
    """Build views for every markdown artifact; manifests are skipped."""
    tools = frozenset(known_tools)
    return [
        _build_view(artifact, tools)
        for artifact in artifacts
        if artifact.type in MARKDOWN_TYPES
    ]


def _build_view(artifact: Artifact, known_tools: frozenset[str]) -> ArtifactView:
    body = artifact.body
    offset = artifact.body_offset
    agent_refs = tuple(_agent_references(body, offset))
    skill_refs = frozenset(_last_segment(m) for m in _SKILL_CALL.findall(body)) | {
        _last_segment(m) for m in _SKILL_KEY.findall(body)
    }
    references = (
        {ref.name for ref in agent_refs}
        | skill_refs
        | {_last_segment(m) for m in _SLASH_COMMAND.findall(body)}
        | {_last_segment(m) for m in _AT_MENTION.findall(body)}
    )
    phases, transitions = _phase_graph(body)
    return ArtifactView(
        artifact=artifact,
        declared=declared_capabilities(artifact.frontmatter),
        used=used_capabilities(body, known_tools),
        references=frozenset(references),
        agent_refs=agent_refs,
        skill_refs=skill_refs,
        instructions=tuple(extract_instructions(artifact)),
        phases=phases,
        transitions=transitions,
    )


def _last_segment(reference: str) -> str:
    return reference.rsplit(":", 1)[-1]


def _agent_references(body: str, offset: int) -> list[AgentReference]:
    refs = []
    for number, line in enumerate(body.split("\n"), start=1):
        for match in _SUBAGENT.finditer(line):
            first, second = match.group(1), match.group(2)
            if second:
                refs.append(AgentReference(second, first, number + offset))
            else:
                refs.append(AgentReference(first, None, number + offset))
    return refs


def extract_instructions(artifact: Artifact) -> list[Instruction]:
    """Critical-rule sentences outside headings and fenced code."""
    body = artifact.body
    offset = artifact.body_offset
    skip = code_block_lines(body)
    found: list[Instruction] = []
    for number, line in enumerate(body.split("\n"), start=1):
        if number in skip or _HEADING.match(line):
            continue
        if not _INSTRUCTION_KEYWORD.search(line):
            continue
        text = _EMPHASIS.sub("", _LIST_MARKER.sub("", line)).strip()
        for sentence in _SENTENCE_END.split(text):
            sentence = sentence.strip()
            if not _INSTRUCTION_KEYWORD.search(sentence):
                continue
            tokens = tokenize(sentence)
            if len(tokens) < MIN_INSTRUCTION_TOKENS:
                continue
            found.append(Instruction(
                file=str(artifact.path),
                line=number + offset,
                text=sentence,
                polarity=polarity(sentence),
                tokens=frozenset(tokens),
            ))
    return found


def _phase_graph(body: str) -> tuple[tuple[int, ...], frozenset[tuple[int, int]]]:
    skip = code_block_lines(body)
    phases: list[int] = []
    edges: set[tuple[int, int]] = set()
    current: int | None = None
    for number, line in enumerate(body.split("\n"), start=1):
        if number in skip:
            continue
        heading = _PHASE_HEADING.match(line)
        if heading:
            current = int(heading.group(1))
            if current not in phases:
                phases.append(current)
            continue
        explicit = set()
        for match in _PHASE_EDGE.finditer(line):
            edge = (int(match.group(1)), int(match.group(2)))
            edges.add(edge)
            explicit.add(match.end())
        if current is None:
            continue
        for match in _PHASE_JUMP.finditer(line):
            if match.end() in explicit:
                continue
            edges.add((current, int(match.group(1))))
    return tuple(sorted(phases)), frozenset(edges)
