"""Prompt-quality checks shared by agents, commands, skills and prompts.

Certainty follows how verifiable a check is: HIGH for literal
evidence in the text, MEDIUM for ratio/threshold heuristics, LOW for
style. Every cutoff is a named module constant.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable

from agentlint.analysis.markdown import (
    estimate_tokens,
    extract_code_blocks,
    extract_headings,
    inside_example,
    strip_code_blocks,
)
from agentlint.analysis.patterns.base import (
    CheckResult,
    Pattern,
    PatternContext,
)
from agentlint.constants import (
    ArtifactType,
    Category,
    Certainty,
    PatternInput,
    Source,
)

# ── Thresholds ───────────────────────────────────────────

VAGUE_TERM_MIN = 4
NEGATIVE_CONSTRAINT_MIN = 5
AGGRESSIVE_EMPHASIS_MIN = 3
VERBOSE_PHRASE_MIN = 3
OUTPUT_FORMAT_MIN_TOKENS = 200
XML_STRUCTURE_MIN_TOKENS = 800
XML_STRUCTURE_MIN_SECTIONS = 6
BURIED_MIN_LINES = 20
BURIED_CRITICAL_MIN = 8
EXAMPLES_MIN_TOKENS = 300
EXAMPLE_COUNT_MAX = 7
CONTEXT_WHY_MIN_TOKENS = 400
CONTEXT_WHY_MIN_RULES = 8
CONTEXT_WHY_RATIO = 0.3
PRIORITY_MIN_TOKENS = 600
PRIORITY_MUST_MIN = 10
COT_MIN = 2
PRESCRIPTIVE_STEPS_MIN = 10
PRESCRIPTIVE_DIRECTIVES_MIN = 6
PROMPT_BLOAT_TOKENS = 2500
VERIFICATION_MIN_TOKENS = 150
UNSCOPED_MIN_TOKENS = 50
UNSCOPED_MAX_TOKENS = 200
CONTRAST_MIN_EXAMPLES = 3
SOURCE_DIRECTION_MAX_TOKENS = 100
MAX_JSON_BLOCK_CHARS = 50_000

_PROMPT_TYPES = frozenset({
    ArtifactType.AGENT,
    ArtifactType.COMMAND,
    ArtifactType.PROMPT,
    ArtifactType.SKILL,
})
_TASK_TYPES = frozenset({ArtifactType.COMMAND, ArtifactType.PROMPT})
_OUTPUT_TYPES = frozenset({
    ArtifactType.AGENT,
    ArtifactType.COMMAND,
    ArtifactType.PROMPT,
})

# ── Vocabularies ─────────────────────────────────────────

VAGUE_TERMS: tuple[str, ...] = (
    "usually",
    "sometimes",
    "often",
    "rarely",
    "maybe",
    "might",
    "should probably",
    "try to",
    "as much as possible",
    "if possible",
    "when appropriate",
    "as needed",
)

AGGRESSIVE_TERMS: tuple[str, ...] = (
    "ABSOLUTELY",
    "TOTALLY",
    "COMPLETELY",
    "ENTIRELY",
    "DEFINITELY",
    "EXTREMELY",
    "SUPER IMPORTANT",
    "VERY VERY",
)
_AGGRESSIVE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (term, re.compile(r"\b" + r"\s+".join(term.split()) + r"\b"))
    for term in AGGRESSIVE_TERMS
)

# Stock verbose phrase -> concise replacement
VERBOSE_PHRASES: tuple[tuple[str, str], ...] = (
    ("in order to", "to"),
    ("for the purpose of", "for"),
    ("in the event that", "if"),
    ("at this point in time", "now"),
    ("due to the fact that", "because"),
    ("has the ability to", "can"),
    ("is able to", "can"),
    ("make use of", "use"),
    ("a large number of", "many"),
    ("a small number of", "few"),
    ("the majority of", "most"),
    ("prior to", "before"),
    ("subsequent to", "after"),
)

_ORCHESTRATOR = re.compile(
    r"##\s*Phase\s+\d+|Task\(\{|subagent_type|await Task\(",
    re.IGNORECASE,
)
_REFERENCE_PATH = re.compile(r"[/\\](?:references?|hooks?)[/\\]", re.IGNORECASE)
_REFERENCE_HEADING = re.compile(
    r"^##?\s*(?:reference|knowledge|background)", re.IGNORECASE | re.MULTILINE
)
OUTPUT_FORMAT_INDICATORS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"##\s*output\s*(?:format|templates?|expectations?)",
        r"##\s*response\s*format",
        r"##\s*(?:issue|report)\s*format",
        r"##\s*format",
        r"##\s*example\s*(?:input/)?output",
        r"\brespond\s+(?:with|in)\s+(?:JSON|XML|markdown|YAML)",
        r"\boutput\s+a\s+(?:comprehensive|detailed|structured)",
        r"<output_format>",
        r"<response_format>",
        r"your\s+(?:response|output)\s+should\s+(?:be|follow)",
        r"\breturn(?:s|ing)?\s+(?:JSON|structured|formatted)",
    )
)
EXAMPLE_INDICATORS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE | re.DOTALL)
    for p in (
        r"##\s*example",
        r"<example>",
        r"<good[_-]?example>",
        r"<bad[_-]?example>",
        r"\bfor example\b",
        r"\be\.g\.",
        r"\bsample\s+(?:input|output|response)",
        r"input:\s*\n.{1,500}\noutput:",
    )
)
VERIFICATION_INDICATORS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\btest(?:s|ing)?\b",
        r"\bverif(?:y|ication)\b",
        r"\bvalidate\b",
        r"\bscreenshot\b",
        r"\bexpected\s+(?:output|result|behavior)\b",
        r"\bshould\s+(?:return|output|produce)\b",
        r"\bcheck\s+(?:that|if)\b",
        r"\bassert\b",
        r"\bbaseline\b",
        r"\bbenchmark\b",
        r"\bprofil(?:e|ing)\b",
    )
)

VAGUE_ACTIONS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^(?:fix|add|implement|update|change)\s+(?:the|a|some)?\s*\w+$",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(r"\bfix\s+(?:the\s+)?bug\b", re.IGNORECASE),
    re.compile(r"\badd\s+(?:a\s+)?(?:feature|function|test)\b", re.IGNORECASE),
    re.compile(r"\bupdate\s+(?:the\s+)?(?:code|logic)\b", re.IGNORECASE),
)
# Source paths are matched case-sensitively
SCOPE_INDICATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bin\s+(?:file|folder|directory|module)\s+\S+", re.IGNORECASE),
    re.compile(r"\b(?:src|lib|test)/\S+"),
    re.compile(r"\.(?:js|ts|py|rs|go|java|rb)\b"),
    re.compile(r"\bwhen\s+(?:the|a)\s+\w+", re.IGNORECASE),
    re.compile(r"\bfor\s+(?:the|a)\s+(?:case|scenario)\b", re.IGNORECASE),
    re.compile(r"\bspecifically\b", re.IGNORECASE),
    re.compile(r"\bedge\s+case", re.IGNORECASE),
)
INVESTIGATION_INDICATORS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bwhy\s+does\b",
        r"\bhow\s+does\b",
        r"\bwhere\s+is\b",
        r"\bwhat\s+(?:is|are|does)\b",
        r"\bfind\s+(?:out|the)\b",
        r"\binvestigate\b",
        r"\bunderstand\b",
    )
)
SOURCE_DIRECTIONS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\blook\s+(?:at|in|through)\b",
        r"\bcheck\s+(?:the|in)\b",
        r"\bstart\s+(?:with|from|in)\b",
        r"\bsee\s+\S+\b",
        r"\bin\s+(?:the\s+)?\S+\s+(?:file|folder|directory)\b",
        r"\bgit\s+(?:log|history|blame)\b",
    )
)
_CREATION_TASK = re.compile(
    r"\b(?:create|add|implement|build)\s+(?:a\s+)?(?:new\s+)?"
    r"(?:component|widget|endpoint|handler|service|module)\b",
    re.IGNORECASE,
)


def _is_orchestrator(text: str) -> bool:
    lowered = text.lower()
    return bool(_ORCHESTRATOR.search(text)) or (
        "spawn" in lowered and "agent" in lowered
    )


def _count(pattern: str, text: str, flags: int = 0) -> int:
    return len(re.findall(pattern, text, flags))


# ── Clarity ──────────────────────────────────────────────


def check_vague_instructions(
    body: str, context: PatternContext
) -> CheckResult | None:
    kept: list[str] = []
    for line in body.split("\n"):
        lowered = line.strip().lower()
        # lines documenting vague language are not vague instructions
        if re.search(r"vague\s*(?:instructions?|terms?|language|patterns?)\s*[:\"]", lowered):
            continue
        if "usually" in lowered and "sometimes" in lowered and re.search(r"[\"']", lowered):
            continue
        kept.append(line)
    text = strip_code_blocks("\n".join(kept))

    found: list[tuple[str, int]] = []
    for term in VAGUE_TERMS:
        n = _count(rf"\b{re.escape(term)}\b", text, re.IGNORECASE)
        if n:
            found.append((term, n))
    total = sum(n for _, n in found)
    if total < VAGUE_TERM_MIN:
        return None
    examples = ", ".join(f'"{t}" ({n}x)' for t, n in found[:3])
    return CheckResult(
        issue=f"Found {total} vague terms: {examples}",
        fix="Replace vague language with specific, deterministic instructions",
        locate=found[0][0],
        details=tuple(t for t, _ in found),
    )


def check_negative_only_constraints(
    body: str, context: PatternContext
) -> CheckResult | None:
    kept = [
        line
        for line in body.split("\n")
        if not re.match(
            r"^-?\s*(?:bad:|\*\*bad\*\*:)|^-\s*\"(?:don't|never)",
            line.strip().lower(),
        )
    ]
    text = "\n".join(kept)
    negatives: list[str] = []
    for pattern in (
        r"\bdon['’]t\s+\w+",
        r"\bnever\s+\w+",
        r"\bdo not\s+\w+",
        r"\bavoid\s+\w+ing\b",
        r"\brefrain from\b",
    ):
        negatives.extend(re.findall(pattern, text, re.IGNORECASE)[:2])
    has_alternative = re.search(
        r"\binstead\b|\brather\b|\bonly\s+\w+", text, re.IGNORECASE
    )
    if len(negatives) < NEGATIVE_CONSTRAINT_MIN or has_alternative:
        return None
    return CheckResult(
        issue=f"{len(negatives)} negative constraints without positive alternatives",
        fix="For each \"don't X\", also state what to do instead",
        locate=negatives[0],
        details=tuple(negatives[:5]),
    )


def check_aggressive_emphasis(
    body: str, context: PatternContext
) -> CheckResult | None:
    text = strip_code_blocks(body)
    found: list[tuple[str, int]] = []
    for term, pattern in _AGGRESSIVE_PATTERNS:
        n = len(pattern.findall(text))
        if n:
            found.append((term, n))
    for marks in ("!", "?"):
        n = _count(rf"{re.escape(marks)}{{3,}}", text)
        if n:
            found.append((marks * 3, n))
    total = sum(n for _, n in found)
    if total < AGGRESSIVE_EMPHASIS_MIN:
        return None
    examples = ", ".join(f'"{t}" ({n}x)' for t, n in found[:3])
    return CheckResult(
        issue=f"{total} instances of aggressive emphasis: {examples}",
        fix="Use normal language; clear instructions work without shouting",
        locate=found[0][0],
        details=tuple(t for t, _ in found),
    )


def check_verbose_phrasing(
    body: str, context: PatternContext
) -> CheckResult | None:
    text = strip_code_blocks(body)
    found: list[tuple[str, int]] = []
    for phrase, _ in VERBOSE_PHRASES:
        n = _count(rf"\b{re.escape(phrase)}\b", text, re.IGNORECASE)
        if n:
            found.append((phrase, n))
    total = sum(n for _, n in found)
    if total < VERBOSE_PHRASE_MIN:
        return None
    examples = ", ".join(f'"{p}" ({n}x)' for p, n in found[:3])
    return CheckResult(
        issue=f"{total} stock verbose phrases: {examples}",
        fix="Use the concise form, e.g. 'in order to' -> 'to'",
        locate=found[0][0],
    )


def check_missing_verification_criteria(
    body: str, context: PatternContext
) -> CheckResult | None:
    if estimate_tokens(body) < VERIFICATION_MIN_TOKENS:
        return None
    if re.search(r"Task\s*\(", body) and "subagent_type" in body:
        return None
    if not re.search(
        r"\b(?:implement|create|build|write|add|fix|update|refactor|modify)\b",
        body,
        re.IGNORECASE,
    ):
        return None
    if any(p.search(body) for p in VERIFICATION_INDICATORS):
        return None
    return CheckResult(
        issue="Task lacks verification criteria: no tests, expected output or validation step",
        fix="Add a verification step, e.g. 'run the tests after implementing'",
    )


def check_unscoped_task(
    body: str, context: PatternContext
) -> CheckResult | None:
    tokens = estimate_tokens(body)
    if not UNSCOPED_MIN_TOKENS <= tokens < UNSCOPED_MAX_TOKENS:
        return None
    if not any(p.search(body) for p in VAGUE_ACTIONS):
        return None
    if any(p.search(body) for p in SCOPE_INDICATORS):
        return None
    return CheckResult(
        issue="Task lacks specific scope (which file, what scenario, what constraints)",
        fix='Name the file ("in src/auth/login.py") or the case ("when the user is logged out")',
    )


# ── Structure ────────────────────────────────────────────


def check_missing_output_format(
    body: str, context: PatternContext
) -> CheckResult | None:
    if _is_orchestrator(body):
        return None
    if _REFERENCE_PATH.search(str(context.path)) or _REFERENCE_HEADING.search(body):
        return None
    if any(p.search(body) for p in OUTPUT_FORMAT_INDICATORS):
        return None
    if estimate_tokens(body) <= OUTPUT_FORMAT_MIN_TOKENS:
        return None
    return CheckResult(
        issue="No output format specification found",
        fix="Add an '## Output Format' section describing the expected response",
    )


def check_missing_xml_structure(
    body: str, context: PatternContext
) -> CheckResult | None:
    sections = len(extract_headings(body))
    complex_prompt = estimate_tokens(body) > XML_STRUCTURE_MIN_TOKENS or (
        sections >= XML_STRUCTURE_MIN_SECTIONS and "```" in body
    )
    if not complex_prompt or re.search(r"<[a-z_][a-z0-9_-]*>", body, re.IGNORECASE):
        return None
    return CheckResult(
        issue="Complex prompt without XML structure tags",
        fix="Wrap key sections in tags such as <role> and <constraints>",
    )


def check_inconsistent_sections(
    body: str, context: PatternContext
) -> CheckResult | None:
    h2 = _count(r"^##\s+", body, re.MULTILINE)
    bold = _count(r"^\*\*[^*]+\*\*\s*$", body, re.MULTILINE)
    if h2 < 2 or bold < 2:
        return None
    return CheckResult(
        issue="Mixed heading styles (## and **bold**)",
        fix="Use one heading format throughout",
    )


def check_critical_info_buried(
    body: str, context: PatternContext
) -> CheckResult | None:
    lines = [line for line in body.split("\n") if line.strip()]
    if len(lines) < BURIED_MIN_LINES:
        return None
    if context.path.name == "SKILL.md" and re.search(
        r"##?\s*(?:workflow|phase\s*\d)", body, re.IGNORECASE
    ):
        return None
    head = "\n".join(lines[: int(len(lines) * 0.3)])
    if re.search(r"##?\s*(?:critical|important)\s*rules?\b", head, re.IGNORECASE):
        return None
    middle = "\n".join(lines[int(len(lines) * 0.3): int(len(lines) * 0.7)])
    middle = re.sub(r"```.*?```", "", middle, flags=re.DOTALL)
    hits = (
        _count(r"\b(?:important|critical|essential|mandatory)\b", middle, re.IGNORECASE)
        + _count(r"\b(?:always|never)\s+\w+", middle, re.IGNORECASE)
        + _count(r"\b(?:warning|caution)\s*:", middle, re.IGNORECASE)
    )
    if hits < BURIED_CRITICAL_MIN:
        return None
    return CheckResult(
        issue=f"{hits} critical instructions in the middle 40% of prompt",
        fix="Move critical instructions to the beginning or end",
    )


def check_heading_hierarchy_gaps(
    body: str, context: PatternContext
) -> CheckResult | None:
    headings = extract_headings(body)
    for prev, cur in zip(headings, headings[1:]):
        if cur.level - prev.level > 1:
            return CheckResult(
                issue=(
                    f"Heading jumps from H{prev.level} to H{cur.level} "
                    f"(skipped H{prev.level + 1})"
                ),
                fix=f"Use H{prev.level + 1} or add an intermediate heading",
                line=cur.line,
            )
    return None


# ── Examples ─────────────────────────────────────────────


def check_missing_examples(
    body: str, context: PatternContext
) -> CheckResult | None:
    if estimate_tokens(body) < EXAMPLES_MIN_TOKENS:
        return None
    path = str(context.path)
    if re.search(r"[/\\](?:references?|docs?|agents?)[/\\]", path, re.IGNORECASE):
        return None
    if re.search(r"(?:RESEARCH|SKILL)\.md$", path, re.IGNORECASE):
        return None
    if context.artifact_type == ArtifactType.AGENT or _is_orchestrator(body):
        return None
    if re.search(
        r"^##?\s*(?:reference|research|background|knowledge)",
        body,
        re.IGNORECASE | re.MULTILINE,
    ):
        return None
    if any(p.search(body) for p in EXAMPLE_INDICATORS):
        return None
    if not re.search(r"\bformat\b|\bjson\b|\bxml\b|\bstructured\b", body, re.IGNORECASE):
        return None
    return CheckResult(
        issue="Complex prompt with format requirements but no examples",
        fix="Add 2-5 examples showing the expected input and output",
    )


def check_suboptimal_example_count(
    body: str, context: PatternContext
) -> CheckResult | None:
    total = (
        _count(r"##\s*example", body, re.IGNORECASE)
        + _count(r"<(?:good|bad)[_-]?example>", body, re.IGNORECASE)
        + _count(r"<example>", body, re.IGNORECASE)
    )
    if total == 1:
        return CheckResult(
            issue="Only 1 example (optimal: 2-5)",
            fix="Add at least one more example so the pattern is visible",
        )
    if total > EXAMPLE_COUNT_MAX:
        return CheckResult(
            issue=f"{total} examples (optimal: 2-5)",
            fix="Keep the most representative examples",
        )
    return None


def check_examples_without_contrast(
    body: str, context: PatternContext
) -> CheckResult | None:
    examples = _count(r"<example>|##\s*example", body, re.IGNORECASE)
    if examples < CONTRAST_MIN_EXAMPLES:
        return None
    if re.search(
        r"<(?:good|bad)[_-]?example>|\b(?:good|bad) example\b"
        r"|\b(?:correct|incorrect|wrong)\b",
        body,
        re.IGNORECASE,
    ):
        return None
    return CheckResult(
        issue="Multiple examples without good/bad distinction",
        fix="Label examples as good/bad or correct/incorrect",
    )


# ── Context ──────────────────────────────────────────────


def check_missing_context_why(
    body: str, context: PatternContext
) -> CheckResult | None:
    if estimate_tokens(body) < CONTEXT_WHY_MIN_TOKENS:
        return None
    rules = (
        _count(r"\b(?:must|should|always|never)\s+\w+", body, re.IGNORECASE)
        + _count(r"\bdo not\b", body, re.IGNORECASE)
        + _count(r"\b(?:required|mandatory)\b", body, re.IGNORECASE)
    )
    why = sum(
        _count(p, body, re.IGNORECASE)
        for p in (
            r"\bbecause\b",
            r"\bsince\b",
            r"\bthis (?:is|ensures?|prevents?|helps?)",
            r"\bto (?:ensure|prevent|avoid|maintain)",
            r"\bwhy:\s",
            r"\([^)(){}\[\]]{8,}\)",
            r"##?\s*(?:why|rationale|reason)",
            r"\bfor\s+(?:efficiency|safety|performance|security|clarity"
            r"|consistency|reliability|maintainability)",
        )
    )
    if rules < CONTEXT_WHY_MIN_RULES or why >= rules * CONTEXT_WHY_RATIO:
        return None
    return CheckResult(
        issue=f'{rules} rules but few explanations ({why} "why" phrases)',
        fix="Explain why the important instructions matter",
    )


def check_missing_instruction_priority(
    body: str, context: PatternContext
) -> CheckResult | None:
    if estimate_tokens(body) < PRIORITY_MIN_TOKENS:
        return None
    for pattern in (
        r"##\s*(?:priority|priorities)",
        r"<instruction[_-]?priority>",
        r"\bin case of conflict",
        r"\bpriority\s*(?:order|:\s*\d)",
        r"\b(?:highest|lowest|first|second|third)\s+priority\b",
        r"##[ \t]*(?:critical|important)[ \t]*rules?[ \t]*\n[ \t]*1\.\s",
        r"\btakes?\s+precedence\b",
        r"\boverride[sd]?\b",
        r"##[ \t]*constraints?[ \t]*\n[ \t]*1\.\s",
    ):
        if re.search(pattern, body, re.IGNORECASE):
            return None
    sections = _count(
        r"^##\s+(?:constraints?|rules?|requirements?)\b",
        body,
        re.IGNORECASE | re.MULTILINE,
    )
    musts = _count(r"\bMUST\b", body)
    if sections < 2 and musts < PRIORITY_MUST_MIN:
        return None
    return CheckResult(
        issue="Multiple constraint sections but no instruction priority order",
        fix='State a priority order, e.g. "In case of conflict: 1) safety, 2) system, 3) user"',
    )


def check_missing_pattern_reference(
    body: str, context: PatternContext
) -> CheckResult | None:
    if not _CREATION_TASK.search(body):
        return None
    lowered = body.lower()
    if (
        re.search(r"\blike\s+\S+\b", lowered)
        or "similar to" in lowered
        or "look at" in lowered
        or ("follow" in lowered and "pattern" in lowered)
        or ("see " in lowered and "example" in lowered)
        or (re.search(r"\.(?:js|ts|py)\b", body) and "example" in lowered)
    ):
        return None
    return CheckResult(
        issue="Creating new code without referencing existing patterns in codebase",
        fix='Point at an existing example, e.g. "follow the pattern in existing handlers"',
    )


def check_missing_source_direction(
    body: str, context: PatternContext
) -> CheckResult | None:
    if not any(p.search(body) for p in INVESTIGATION_INDICATORS):
        return None
    if any(p.search(body) for p in SOURCE_DIRECTIONS):
        return None
    # longer prompts usually carry enough context to search from
    if estimate_tokens(body) >= SOURCE_DIRECTION_MAX_TOKENS:
        return None
    return CheckResult(
        issue="Investigation task without directing to likely sources",
        fix='Say where to start, e.g. "look at the git history of auth.py"',
    )


def check_json_without_schema(
    body: str, context: PatternContext
) -> CheckResult | None:
    requests_json = (
        re.search(
            r"\b(?:respond|output|return)[ \t]+(?:(?:with|in|as)[ \t]+)?JSON\b",
            body,
            re.IGNORECASE,
        )
        and not re.search(r"--output\s+json", body, re.IGNORECASE)
        and not re.search(
            r"(?:analyzer|function|method)\s+returns?\s+JSON", body, re.IGNORECASE
        )
    ) or re.search(r"\bJSON\s+(?:object|response|format)\b", body, re.IGNORECASE)
    if not requests_json:
        return None
    has_schema = (
        re.search(r"\bproperties\b.{1,200}\btype\b", body, re.IGNORECASE | re.DOTALL)
        or ("```json" in body and "{" in body)
        or re.search(r"<json[_-]?schema>", body, re.IGNORECASE)
        or re.search(r"\{\s*\"[a-zA-Z_]+\"[ \t]*:", body)
        or re.search(r"\{[ \t]*[a-zA-Z_]+[ \t]*,[ \t]*[a-zA-Z_]+[ \t]*,[ \t]*[a-zA-Z_]+", body)
        or re.search(r"\{\n[ \t]+[a-zA-Z_]+[ \t]*:[ \t]*[\[{\"']", body)
    )
    if has_schema:
        return None
    return CheckResult(
        issue="Requests JSON output but no schema or example provided",
        fix="Add a JSON schema or example structure",
        locate="JSON",
    )


# ── Anti-patterns ────────────────────────────────────────


def check_redundant_cot(
    body: str, context: PatternContext
) -> CheckResult | None:
    # documentation about the anti-pattern, not a use of it
    if re.search(r"step[- ]by[- ]step", body, re.IGNORECASE) and "redundant" in body.lower():
        return None
    matches: list[str] = []
    for pattern in (
        r"\bthink\s+step[- ]by[- ]step\b",
        r"\bstep[- ]by[- ]step\s+(?:reasoning|thinking|approach)\b",
        r"\blet['’]s\s+think\s+(?:through|about)\s+this\b",
        r"\breason\s+through\s+each\s+step\b",
    ):
        matches.extend(re.findall(pattern, body, re.IGNORECASE))
    if len(matches) < COT_MIN:
        return None
    return CheckResult(
        issue=f'{len(matches)} explicit "step-by-step" instructions',
        fix="Remove explicit chain-of-thought prompting; current models reason by default",
        locate=matches[0],
        details=tuple(matches[:3]),
    )


def check_overly_prescriptive(
    body: str, context: PatternContext
) -> CheckResult | None:
    steps = _count(r"^\s*\d+\.\s+\w+", body, re.MULTILINE)
    directives = sum(
        _count(
            rf"\b{word},?\s+(?:you\s+)?(?:must|should|need to)\b",
            body,
            re.IGNORECASE,
        )
        for word in ("first", "then", "next", "finally")
    )
    if steps < PRESCRIPTIVE_STEPS_MIN and directives < PRESCRIPTIVE_DIRECTIVES_MIN:
        return None
    return CheckResult(
        issue=f"{steps} numbered steps, {directives} sequential directives",
        fix="Prefer high-level goals over a rigid step list",
    )


def check_prompt_bloat(
    body: str, context: PatternContext
) -> CheckResult | None:
    tokens = estimate_tokens(body)
    if tokens <= PROMPT_BLOAT_TOKENS:
        return None
    return CheckResult(
        issue=f"Prompt ~{tokens} tokens (recommended max: {PROMPT_BLOAT_TOKENS})",
        fix="Split into smaller prompts or move reference material out",
    )


# ── Code validation ──────────────────────────────────────

_PLACEHOLDER = re.compile(r"\.\.\.")
_LOOKS_LIKE_JSON_START = re.compile(r"^\s*[\[{]")
_NOT_JSON = re.compile(r"\b(?:function|const|let|var|if|for|while|class)\b")
_LOOKS_LIKE_JS = re.compile(
    r"\b(?:function\s*\(|const\s+\w+\s*=|let\s+\w+\s*=|var\s+\w+\s*=|=>\s*[{(]"
    r"|async\s+function|await\s+\w|class\s+\w+\s*\{|import\s+\{"
    r"|export\s+(?:const|function|class|default)|require\s*\()"
)
_LOOKS_LIKE_PYTHON = re.compile(
    r"\b(?:def\s+\w+\s*\(|from\s+\w+\s+import|class\s+\w+:|print\()"
)


def check_invalid_json_in_code_block(
    body: str, context: PatternContext
) -> CheckResult | None:
    for block in extract_code_blocks(body):
        if block.language.lower() != "json":
            continue
        code = block.code
        if not code.strip() or len(code) > MAX_JSON_BLOCK_CHARS:
            continue
        if inside_example(body, block.start_line):
            continue
        # placeholders, comments, templates and unions mark pseudo-JSON
        if _PLACEHOLDER.search(code) or re.search(r"//|/\*|\$\{|\|", code):
            continue
        try:
            json.loads(code)
        except json.JSONDecodeError as exc:
            return CheckResult(
                issue=f"Invalid JSON in code block: {exc.msg} (line {exc.lineno})",
                fix="Fix the JSON syntax error in the code block",
                line=block.start_line,
            )
    return None


def check_code_language_mismatch(
    body: str, context: PatternContext
) -> CheckResult | None:
    for block in extract_code_blocks(body):
        lang = block.language.lower()
        code = block.code.strip()
        if not lang or not code or inside_example(body, block.start_line):
            continue
        is_json = bool(
            _LOOKS_LIKE_JSON_START.search(code)
            and re.search(r"[:,]", code)
            and not _NOT_JSON.search(code)
        )
        is_js = bool(_LOOKS_LIKE_JS.search(code))
        is_py = bool(_LOOKS_LIKE_PYTHON.search(code))
        actual = None
        if lang == "json" and not is_json:
            actual = "JavaScript" if is_js else "Python" if is_py else None
        elif lang in ("js", "javascript") and not is_js:
            actual = "JSON" if is_json else "Python" if is_py else None
        elif lang in ("py", "python") and is_js and not is_py:
            actual = "JavaScript"
        if actual:
            return CheckResult(
                issue=f"Code block tagged as {block.language} but looks like {actual}",
                fix=f"Change the language tag to match {actual}",
                line=block.start_line,
            )
    return None


def _prompt(
    pattern_id: str,
    category: str,
    certainty: Certainty,
    description: str,
    check: Callable[..., CheckResult | None],
    applies_to: frozenset[ArtifactType] = _PROMPT_TYPES,
    auto_fix: bool = False,
) -> Pattern:
    return Pattern(
        id=pattern_id,
        category=category,
        certainty=certainty,
        source=Source.PROMPT,
        applies_to=applies_to,
        input=PatternInput.BODY,
        description=description,
        check=check,
        auto_fix=auto_fix,
    )


PATTERNS: tuple[Pattern, ...] = (
    _prompt("vague_instructions", Category.CLARITY, Certainty.HIGH,
            "Fuzzy qualifiers such as 'usually' or 'try to'",
            check_vague_instructions),
    _prompt("negative_only_constraints", Category.CLARITY, Certainty.HIGH,
            "Prohibitions with no positive alternative",
            check_negative_only_constraints),
    _prompt("aggressive_emphasis", Category.CLARITY, Certainty.HIGH,
            "Shouting intensifiers and repeated punctuation",
            check_aggressive_emphasis, auto_fix=True),
    # literal phrase with a fixed replacement, unlike ratio-based verbosity
    _prompt("verbose_phrasing", Category.EFFICIENCY, Certainty.HIGH,
            "Stock verbose phrases with a shorter equivalent",
            check_verbose_phrasing, auto_fix=True),
    _prompt("missing_verification_criteria", Category.CLARITY, Certainty.MEDIUM,
            "Action task with no way to verify the result",
            check_missing_verification_criteria, applies_to=_TASK_TYPES,
            auto_fix=True),
    _prompt("unscoped_task", Category.CLARITY, Certainty.HIGH,
            "Short task with a generic action and no file or scenario",
            check_unscoped_task, applies_to=_TASK_TYPES),
    _prompt("missing_output_format", Category.OUTPUT, Certainty.HIGH,
            "No output format specification",
            check_missing_output_format, applies_to=_OUTPUT_TYPES,
            auto_fix=True),
    _prompt("missing_xml_structure", Category.STRUCTURE, Certainty.LOW,
            "Complex prompt without XML section tags",
            check_missing_xml_structure, auto_fix=True),
    _prompt("inconsistent_sections", Category.STRUCTURE, Certainty.LOW,
            "Mixed heading styles",
            check_inconsistent_sections),
    _prompt("critical_info_buried", Category.STRUCTURE, Certainty.MEDIUM,
            "Critical instructions concentrated mid-prompt",
            check_critical_info_buried),
    _prompt("heading_hierarchy_gaps", Category.STRUCTURE, Certainty.HIGH,
            "Heading levels skip a level",
            check_heading_hierarchy_gaps, auto_fix=True),
    _prompt("missing_examples", Category.EXAMPLES, Certainty.MEDIUM,
            "Complex prompt with format requirements but no examples",
            check_missing_examples, applies_to=_TASK_TYPES, auto_fix=True),
    _prompt("suboptimal_example_count", Category.EXAMPLES, Certainty.LOW,
            "Example count outside the 2-5 range",
            check_suboptimal_example_count),
    _prompt("examples_without_contrast", Category.EXAMPLES, Certainty.MEDIUM,
            "Several examples with no good/bad labels",
            check_examples_without_contrast),
    _prompt("missing_context_why", Category.CONTEXT, Certainty.MEDIUM,
            "Many rules with few explanations",
            check_missing_context_why),
    _prompt("missing_instruction_priority", Category.CONTEXT, Certainty.MEDIUM,
            "Competing rule sets with no priority order",
            check_missing_instruction_priority),
    _prompt("missing_pattern_reference", Category.CONTEXT, Certainty.MEDIUM,
            "New code requested without pointing at an existing pattern",
            check_missing_pattern_reference, applies_to=_TASK_TYPES),
    _prompt("missing_source_direction", Category.CONTEXT, Certainty.MEDIUM,
            "Investigation with no hint where to look",
            check_missing_source_direction, applies_to=_TASK_TYPES),
    _prompt("json_without_schema", Category.OUTPUT, Certainty.MEDIUM,
            "JSON output requested without a schema or example",
            check_json_without_schema),
    _prompt("redundant_cot", Category.ANTI_PATTERN, Certainty.HIGH,
            "Explicit step-by-step prompting",
            check_redundant_cot),
    _prompt("overly_prescriptive", Category.ANTI_PATTERN, Certainty.LOW,
            "Rigid step-by-step process",
            check_overly_prescriptive),
    _prompt("prompt_bloat", Category.EFFICIENCY, Certainty.LOW,
            "Prompt exceeds the recommended token count",
            check_prompt_bloat),
    _prompt("invalid_json_in_code_block", Category.CODE_VALIDATION, Certainty.HIGH,
            "Fenced JSON example does not parse",
            check_invalid_json_in_code_block),
    _prompt("code_language_mismatch", Category.CODE_VALIDATION, Certainty.MEDIUM,
            "Fence language tag disagrees with the code",
            check_code_language_mismatch),
)
