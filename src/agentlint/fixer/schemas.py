"""Pydantic models for fix batches."""

from pydantic import BaseModel, Field

from agentlint.analysis.schemas import Finding
from agentlint.errors import ErrorClass


class FixEntry(BaseModel):
    """A fix outcome traced back to the finding that requested it."""

    pattern_id: str
    file: str
    issue: str
    line: int = 0

    @classmethod
    def for_finding(cls, finding: Finding, **fields: object) -> "FixEntry":
        return cls(
            pattern_id=finding.pattern_id,
            file=finding.file,
            issue=finding.issue,
            line=finding.line,
            **fields,
        )


class SkippedFix(FixEntry):
    reason: str


class FixError(FixEntry):
    error: str
    error_class: ErrorClass = ErrorClass.UNKNOWN


class FixResult(BaseModel):
    """Outcome of one fix batch. Dry runs fill it without writing."""

    applied: list[FixEntry] = Field(default_factory=lambda: list[FixEntry]())
    skipped: list[SkippedFix] = Field(default_factory=lambda: list[SkippedFix]())
    errors: list[FixError] = Field(default_factory=lambda: list[FixError]())
    files_modified: list[str] = Field(default_factory=lambda: list[str]())
    backups: list[str] = Field(default_factory=lambda: list[str]())
    dry_run: bool = False


class FixPreview(BaseModel):
    """Unified diff of what a fix batch would change in one file."""

    file: str
    pattern_ids: list[str] = Field(default_factory=lambda: list[str]())
    diff: str = ""
