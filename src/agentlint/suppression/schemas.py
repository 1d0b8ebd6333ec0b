"""Pydantic models for suppression config, decisions and learned state."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentlint.analysis.schemas import Finding
from agentlint.constants import SuppressionReason

SEVERITY_OFF = "off"


def severity_level(value: object) -> str:
    """Normalize a level; YAML 1.1 loads a bare ``off`` as ``False``."""
    if value is False:
        return SEVERITY_OFF
    return str(value).lower()


class IgnoreRules(BaseModel):
    """``ignore:`` section of the suppression config."""

    model_config = ConfigDict(extra="ignore")

    patterns: list[str] = Field(default_factory=lambda: list[str]())
    files: list[str] = Field(default_factory=lambda: list[str]())
    # pattern id -> path globs, or "off" to disable the pattern everywhere
    rules: dict[str, list[str] | str] = Field(
        default_factory=lambda: dict[str, list[str] | str]()
    )

    @field_validator("rules", mode="before")
    @classmethod
    def _rules_off(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {k: SEVERITY_OFF if v is False else v for k, v in value.items()}


class LearnedSuppression(BaseModel):
    """A false positive learned for one pattern across exact file paths."""

    model_config = ConfigDict(extra="ignore")

    files: list[str] = Field(default_factory=lambda: list[str]())
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reason: str = ""
    learned_at: datetime | None = None
    last_seen: datetime | None = None
    occurrences: int = 0


class LearningStats(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_suppressed: int = 0
    last_analysis: datetime | None = None


class AutoLearned(BaseModel):
    model_config = ConfigDict(extra="ignore")

    patterns: dict[str, LearnedSuppression] = Field(
        default_factory=lambda: dict[str, LearnedSuppression]()
    )
    stats: LearningStats = Field(default_factory=LearningStats)


class SuppressionConfig(BaseModel):
    """Merged manual and learned suppression settings."""

    model_config = ConfigDict(extra="ignore")

    ignore: IgnoreRules = Field(default_factory=IgnoreRules)
    # pattern id -> level; only "off" has an effect
    severity: dict[str, str] = Field(default_factory=lambda: dict[str, str]())
    auto_learned: AutoLearned = Field(default_factory=AutoLearned)


class SuppressionDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: SuppressionReason
    confidence: float = 1.0
    detail: str = ""


class SuppressedFinding(BaseModel):
    """A finding removed from the active stream, kept for auditing."""

    finding: Finding
    decision: SuppressionDecision


class FilterResult(BaseModel):
    active: list[Finding] = Field(default_factory=lambda: list[Finding]())
    suppressed: list[SuppressedFinding] = Field(
        default_factory=lambda: list[SuppressedFinding]()
    )


class SuppressionSummary(BaseModel):
    total: int = 0
    by_reason: dict[str, int] = Field(default_factory=lambda: dict[str, int]())
    by_pattern: dict[str, int] = Field(default_factory=lambda: dict[str, int]())


class LearnedCandidate(BaseModel):
    """A finding the heuristics judged to be a likely false positive."""

    pattern_id: str
    file: str
    reason: str
    confidence: float


# ── Persisted store ──────────────────────────────────────


class ProjectSuppressions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    auto_learned: AutoLearned = Field(default_factory=AutoLearned)


class SuppressionStore(BaseModel):
    """On-disk layout of the learned-suppression file, keyed by project."""

    model_config = ConfigDict(extra="ignore")

    version: str = "2.0"
    projects: dict[str, ProjectSuppressions] = Field(
        default_factory=lambda: dict[str, ProjectSuppressions]()
    )


class SuppressionExport(BaseModel):
    """Shareable snapshot of one project's learned suppressions."""

    exported_at: datetime
    project_id: str
    suppressions: dict[str, LearnedSuppression] = Field(
        default_factory=lambda: dict[str, LearnedSuppression]()
    )
    stats: LearningStats = Field(default_factory=LearningStats)
