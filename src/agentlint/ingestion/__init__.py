"""Artifact ingestion: parse metadata, classify, discover."""

from agentlint.ingestion.discovery import (
    discover_artifacts,
    infer_artifact_type,
    load_artifact,
)
from agentlint.ingestion.frontmatter import parse_frontmatter
from agentlint.ingestion.schemas import (
    AgentMetadata,
    Artifact,
    CommandMetadata,
    ParsedDocument,
    SkillMetadata,
    metadata_for,
)

__all__ = [
    "AgentMetadata",
    "Artifact",
    "CommandMetadata",
    "ParsedDocument",
    "SkillMetadata",
    "discover_artifacts",
    "infer_artifact_type",
    "load_artifact",
    "metadata_for",
    "parse_frontmatter",
]
