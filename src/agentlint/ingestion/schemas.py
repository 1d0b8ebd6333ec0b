"""Data shapes for loaded artifacts and their per-kind metadata."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentlint.constants import ArtifactType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedDocument:
    """Output of frontmatter parsing: metadata block plus body."""

    frontmatter: dict[str, str] | None
    body: str


@dataclass(frozen=True)
class Artifact:
    """A loaded document under analysis. Immutable for the whole run."""

    path: Path
    type: ArtifactType
    raw_content: str
    frontmatter: dict[str, str] | None = None
    body: str = ""
    data: Any = None  # decoded JSON for manifests
    parse_error: str | None = None

    @property
    def name(self) -> str:
        if self.frontmatter and self.frontmatter.get("name"):
            return self.frontmatter["name"]
        if self.path.name == "SKILL.md":
            return self.path.parent.name
        return self.path.stem

    @property
    def body_offset(self) -> int:
        """Number of lines preceding the body in ``raw_content``."""
        if self.frontmatter is None or not self.raw_content.endswith(self.body):
            return 0
        head = self.raw_content[: len(self.raw_content) - len(self.body)]
        return head.count("\n")

    @property
    def plugin(self) -> str | None:
        """Owning plugin directory, e.g. ``plugins/<plugin>/agents/x.md``."""
        parts = self.path.parts
        for marker in ("agents", "commands", "skills"):
            if marker in parts:
                idx = parts.index(marker)
                if idx > 0:
                    return parts[idx - 1]
        return None


# ── Per-kind metadata ─────────────────────────────────────


class _Metadata(BaseModel):
    """Base for frontmatter shapes.

    Known keys are typed; unknown keys are preserved in ``model_extra``
    but never interpreted.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    name: str | None = None
    description: str | None = None

    @property
    def unknown_keys(self) -> list[str]:
        return sorted((self.model_extra or {}).keys())


class AgentMetadata(_Metadata):
    tools: str | None = None
    model: str | None = None
    color: str | None = None


class SkillMetadata(_Metadata):
    allowed_tools: str | None = Field(default=None, alias="allowed-tools")
    version: str | None = None
    license: str | None = None


class CommandMetadata(_Metadata):
    argument_hint: str | None = Field(default=None, alias="argument-hint")
    allowed_tools: str | None = Field(default=None, alias="allowed-tools")
    model: str | None = None


_METADATA_KINDS: dict[ArtifactType, type[_Metadata]] = {
    ArtifactType.AGENT: AgentMetadata,
    ArtifactType.SKILL: SkillMetadata,
    ArtifactType.COMMAND: CommandMetadata,
}


def metadata_for(artifact: Artifact) -> _Metadata | None:
    """Validate an artifact's frontmatter against its kind's allowlist."""
    if artifact.frontmatter is None:
        return None
    kind = _METADATA_KINDS.get(artifact.type)
    if kind is None:
        return None
    meta = kind.model_validate(artifact.frontmatter)
    if meta.unknown_keys:
        logger.debug(
            "Unrecognized %s frontmatter keys in %s: %s",
            artifact.type,
            artifact.path,
            ", ".join(meta.unknown_keys),
        )
    return meta
