"""Pydantic models for analysis output."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentlint.constants import Certainty


class Finding(BaseModel):
    """One pattern firing against one artifact.

    Frozen: certainty and category are fixed when the pattern runs and
    no later stage may change them.
    """

    model_config = ConfigDict(frozen=True)

    file: str
    line: int = 0
    pattern_id: str
    issue: str
    fix: str = ""
    certainty: Certainty
    category: str
    auto_fixable: bool = False
    source: str
    sources: tuple[str, ...] = ()
    details: tuple[str, ...] = ()

    # Structured-fix plumbing, never serialized
    auto_fix_fn: Callable[[Any], Any] | None = Field(
        default=None, exclude=True, repr=False
    )
    schema_path: str | None = Field(default=None, exclude=True)

    @property
    def all_sources(self) -> tuple[str, ...]:
        return self.sources or (self.source,)


class CrossFileSummary(BaseModel):
    """Counts for one corpus pass."""

    artifacts: int = 0
    by_type: dict[str, int] = Field(default_factory=lambda: dict[str, int]())
    by_category: dict[str, int] = Field(
        default_factory=lambda: dict[str, int]()
    )


class CrossFileResult(BaseModel):
    findings: list[Finding] = Field(
        default_factory=lambda: list[Finding]()
    )
    summary: CrossFileSummary = Field(default_factory=CrossFileSummary)
