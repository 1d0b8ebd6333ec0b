"""Pattern contract and the read-only pattern registry."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from agentlint.constants import (
    ArtifactType,
    Certainty,
    PatternInput,
)


@dataclass(frozen=True)
class CheckResult:
    """What a check returns when it fires."""

    issue: str
    fix: str = ""
    line: int | None = None
    locate: str | None = None  # substring used to find the line
    details: tuple[str, ...] = ()
    auto_fix_fn: Callable[[Any], Any] | None = None
    schema_path: str | None = None


@dataclass(frozen=True)
class PatternContext:
    """Per-artifact facts a check may consult besides its input."""

    path: Path
    artifact_type: ArtifactType
    frontmatter: dict[str, str] | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.extras.get(key, default)


@dataclass(frozen=True)
class Pattern:
    """A named, pure check with a fixed certainty and category.

    ``check`` receives the input named by ``input`` plus a context and
    returns a :class:`CheckResult` or ``None``. Corpus patterns instead
    receive the whole corpus view and return a list of hits.
    """

    id: str
    category: str
    certainty: Certainty
    source: str
    applies_to: frozenset[ArtifactType]
    input: PatternInput
    description: str
    check: Callable[..., Any]
    auto_fix: bool = False


class PatternRegistry:
    """Immutable catalog of patterns keyed by id.

    Built once; consumers share the instance and never copy it.
    """

    def __init__(self, patterns: Iterable[Pattern]) -> None:
        table: dict[str, Pattern] = {}
        for pattern in patterns:
            if pattern.id in table:
                msg = f"Duplicate pattern id: {pattern.id}"
                raise ValueError(msg)
            table[pattern.id] = pattern
        self._patterns = MappingProxyType(table)

    @property
    def patterns(self) -> MappingProxyType[str, Pattern]:
        return self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns.values())

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._patterns

    def get(self, pattern_id: str) -> Pattern | None:
        return self._patterns.get(pattern_id)

    def ids(self) -> list[str]:
        return list(self._patterns)

    def by_category(self, category: str) -> list[Pattern]:
        return [p for p in self if p.category == category]

    def by_certainty(self, certainty: Certainty | str) -> list[Pattern]:
        return [p for p in self if p.certainty == certainty]

    def by_source(self, source: str) -> list[Pattern]:
        return [p for p in self if p.source == source]

    def by_input(self, kind: PatternInput) -> list[Pattern]:
        return [p for p in self if p.input == kind]

    def auto_fixable(self) -> list[Pattern]:
        return [p for p in self if p.auto_fix]

    def for_type(self, artifact_type: ArtifactType) -> list[Pattern]:
        """Single-document patterns that apply to an artifact kind."""
        return [
            p
            for p in self
            if artifact_type in p.applies_to
            and p.input != PatternInput.CORPUS
        ]
