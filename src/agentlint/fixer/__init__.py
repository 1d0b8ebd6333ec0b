"""Auto-fixes for HIGH-certainty findings, with backup and restore."""

from agentlint.fixer.applier import (
    apply_at_path,
    apply_fixes,
    cleanup_backups,
    preview_fixes,
    restore_from_backup,
)
from agentlint.fixer.markdown_fixes import MARKDOWN_FIXES
from agentlint.fixer.schema_fixes import (
    fix_additional_properties,
    fix_required_fields,
    fix_version_mismatch,
)
from agentlint.fixer.schemas import (
    FixEntry,
    FixError,
    FixPreview,
    FixResult,
    SkippedFix,
)

__all__ = [
    "MARKDOWN_FIXES",
    "FixEntry",
    "FixError",
    "FixPreview",
    "FixResult",
    "SkippedFix",
    "apply_at_path",
    "apply_fixes",
    "cleanup_backups",
    "fix_additional_properties",
    "fix_required_fields",
    "fix_version_mismatch",
    "preview_fixes",
    "restore_from_backup",
]
