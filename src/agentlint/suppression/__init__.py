"""Suppression of findings by config, inline markers and learned state."""

from agentlint.suppression.learning import (
    CONFIDENCE_THRESHOLD,
    analyze_for_auto_suppression,
    clear_auto_suppressions,
    export_auto_suppressions,
    get_project_id,
    import_auto_suppressions,
    is_likely_false_positive,
    load_auto_suppressions,
    merge_suppressions,
    save_auto_suppressions,
)
from agentlint.suppression.rules import (
    extract_inline_suppressions,
    filter_findings,
    generate_suppression_summary,
    load_suppression_config,
    should_suppress,
)
from agentlint.suppression.schemas import (
    FilterResult,
    LearnedSuppression,
    SuppressedFinding,
    SuppressionConfig,
    SuppressionDecision,
)

__all__ = [
    "CONFIDENCE_THRESHOLD",
    "FilterResult",
    "LearnedSuppression",
    "SuppressedFinding",
    "SuppressionConfig",
    "SuppressionDecision",
    "analyze_for_auto_suppression",
    "clear_auto_suppressions",
    "export_auto_suppressions",
    "extract_inline_suppressions",
    "filter_findings",
    "generate_suppression_summary",
    "get_project_id",
    "import_auto_suppressions",
    "is_likely_false_positive",
    "load_auto_suppressions",
    "load_suppression_config",
    "merge_suppressions",
    "save_auto_suppressions",
    "should_suppress",
]
