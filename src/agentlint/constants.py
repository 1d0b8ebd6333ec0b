"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON output,
config files, report tables) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class Certainty(StrEnum):
    """Confidence that a finding is a true defect.

    HIGH findings are objectively verifiable and the only ones the
    fixer is allowed to touch.
    """

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


CERTAINTY_ORDER: tuple[Certainty, ...] = (
    Certainty.HIGH,
    Certainty.MEDIUM,
    Certainty.LOW,
)


class ArtifactType(StrEnum):
    """Kinds of documents the analyzer understands."""

    AGENT = "agent"
    COMMAND = "command"
    SKILL = "skill"
    MANIFEST = "manifest"
    PROJECT_MEMORY = "project-memory"
    PROMPT = "prompt"


# Markdown-bodied artifact kinds (everything except JSON manifests)
MARKDOWN_TYPES: frozenset[ArtifactType] = frozenset({
    ArtifactType.AGENT,
    ArtifactType.COMMAND,
    ArtifactType.SKILL,
    ArtifactType.PROJECT_MEMORY,
    ArtifactType.PROMPT,
})

# Invoked directly by users, so never considered orphaned
ENTRY_POINT_TYPES: frozenset[ArtifactType] = frozenset({
    ArtifactType.COMMAND,
    ArtifactType.PROJECT_MEMORY,
    ArtifactType.PROMPT,
    ArtifactType.MANIFEST,
})


class Category(StrEnum):
    """Pattern categories."""

    STRUCTURE = "structure"
    TOOLS = "tool-consistency"
    SECURITY = "security"
    CLARITY = "clarity"
    EXAMPLES = "examples"
    CONTEXT = "context"
    OUTPUT = "output"
    ANTI_PATTERN = "anti-pattern"
    CODE_VALIDATION = "code-validation"
    EFFICIENCY = "efficiency"
    QUALITY = "quality"
    REFERENCE = "reference"
    CROSS_PLATFORM = "cross-platform"
    SCHEMA = "schema"
    TRIGGERS = "triggers"
    CONSISTENCY = "consistency"
    WORKFLOW = "workflow"


class PatternInput(StrEnum):
    """What a pattern's check function receives as its first argument."""

    BODY = "body"
    CONTENT = "content"
    FRONTMATTER = "frontmatter"
    DATA = "data"
    CORPUS = "corpus"


class SuppressionReason(StrEnum):
    """Why a finding left the active stream."""

    CONFIG = "config"
    INLINE = "inline"
    AUTO_LEARNED = "auto_learned"


class Source(StrEnum):
    """Analyzer (enhancer) names used to group findings in reports."""

    AGENT = "agent"
    PROMPT = "prompt"
    SKILL = "skill"
    PLUGIN = "plugin"
    PROJECT_MEMORY = "projectmemory"
    CROSS_FILE = "cross-file"


# ── Numeric Constants ────────────────────────────────────

CHARS_PER_TOKEN = 4

BACKUP_SUFFIX = ".backup"

# Manifest file names recognized during discovery
MANIFEST_FILENAMES: frozenset[str] = frozenset({
    "plugin.json",
    "marketplace.json",
    "mcp.json",
    ".mcp.json",
})

PROJECT_MEMORY_FILENAMES: frozenset[str] = frozenset({
    "CLAUDE.md",
    "AGENTS.md",
})

# Per-file truncation for log payloads
LOG_TRUNCATION_CHARS = 500
