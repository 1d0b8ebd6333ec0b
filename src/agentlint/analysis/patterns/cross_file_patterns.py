"""Checks that need more than one document.

Each check takes the list of :class:`ArtifactView` for the run and
returns ``(artifact, CheckResult)`` hits. Relational checks stay quiet
on corpora too small to relate.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from agentlint.analysis.corpus import ArtifactView, Instruction
from agentlint.analysis.patterns.base import CheckResult, Pattern
from agentlint.analysis.similarity import (
    CONTRADICTION_SUBJECT_THRESHOLD,
    DUPLICATE_SIMILARITY_THRESHOLD,
    MIN_DUPLICATE_FILES,
    strip_polarity,
    token_similarity,
    tokenize,
)
from agentlint.constants import (
    ENTRY_POINT_TYPES,
    MARKDOWN_TYPES,
    ArtifactType,
    Category,
    Certainty,
    PatternInput,
    Source,
)
from agentlint.ingestion.schemas import Artifact

# Tools a command uses to delegate, never expected in the skill itself
DELEGATION_TOOLS = frozenset({"Skill", "Task"})

# Capability verbs a skill description may claim, keyed by display verb
CLAIM_VERBS: dict[str, str] = {
    "analyze": r"analy[sz]",
    "benchmark": r"benchmark",
    "convert": r"convert",
    "debug": r"debug",
    "deploy": r"deploy",
    "document": r"document",
    "format": r"format",
    "generate": r"generat",
    "lint": r"lint",
    "migrate": r"migrat",
    "optimize": r"optimi[sz]",
    "refactor": r"refactor",
    "review": r"review",
    "scan": r"scan",
    "summarize": r"summar",
    "test": r"test",
    "translate": r"translat",
    "validate": r"validat",
}

_CAPABILITY_TYPES = frozenset({
    ArtifactType.AGENT,
    ArtifactType.COMMAND,
    ArtifactType.SKILL,
})


@dataclass(frozen=True)
class CorpusHit:
    artifact: Artifact
    result: CheckResult


def check_tool_not_in_allowed_list(views: list[ArtifactView]) -> list[CorpusHit]:
    hits = []
    for view in views:
        if view.type not in _CAPABILITY_TYPES or view.declared is None:
            continue
        missing = view.declared.missing(view.used)
        if not missing:
            continue
        key = "tools" if view.type == ArtifactType.AGENT else "allowed-tools"
        hits.append(CorpusHit(view.artifact, CheckResult(
            issue=f"Uses tools not declared in {key}: {', '.join(missing)}",
            fix=f"Add {', '.join(missing)} to {key} or stop using them",
            locate=missing[0],
            details=tuple(missing),
        )))
    return hits


def check_skill_tool_mismatch(views: list[ArtifactView]) -> list[CorpusHit]:
    skills: dict[str, list[ArtifactView]] = {}
    for view in views:
        if view.type == ArtifactType.SKILL:
            skills.setdefault(view.name, []).append(view)
    hits = []
    for command in views:
        if command.type != ArtifactType.COMMAND:
            continue
        needed = command.used - DELEGATION_TOOLS
        for skill_name in sorted(command.skill_refs):
            for skill in skills.get(skill_name, []):
                if skill.declared is None:
                    continue
                for tool in skill.declared.missing(needed):
                    hits.append(CorpusHit(skill.artifact, CheckResult(
                        issue=(
                            f"Skill '{skill.name}' does not allow {tool}, "
                            f"which command '{command.name}' uses"
                        ),
                        fix=f"Add {tool} to the skill's allowed-tools",
                        locate="allowed-tools",
                        details=(command.file, tool),
                    )))
    return hits


def check_missing_workflow_agent(views: list[ArtifactView]) -> list[CorpusHit]:
    agents: dict[str, list[ArtifactView]] = {}
    for view in views:
        if view.type == ArtifactType.AGENT:
            agents.setdefault(view.name, []).append(view)
    # without any agent in scope every reference would be "missing"
    if not agents:
        return []
    hits = []
    for view in views:
        for ref in view.agent_refs:
            candidates = agents.get(ref.name, [])
            if any(
                ref.plugin is None
                or c.artifact.plugin is None
                or c.artifact.plugin == ref.plugin
                for c in candidates
            ):
                continue
            target = f"{ref.plugin}:{ref.name}" if ref.plugin else ref.name
            hits.append(CorpusHit(view.artifact, CheckResult(
                issue=f"References agent '{target}' which does not exist",
                fix=f"Create the '{ref.name}' agent or fix the subagent_type",
                line=ref.line,
            )))
    return hits


def check_duplicate_instructions(views: list[ArtifactView]) -> list[CorpusHit]:
    if len(views) < 2:
        return []
    by_file = {view.file: view.artifact for view in views}
    instructions = [i for view in views for i in view.instructions]
    clusters: list[list[Instruction]] = []
    for instruction in instructions:
        for cluster in clusters:
            score = token_similarity(cluster[0].tokens, instruction.tokens)
            if score > DUPLICATE_SIMILARITY_THRESHOLD:
                cluster.append(instruction)
                break
        else:
            clusters.append([instruction])

    hits = []
    for cluster in clusters:
        files = sorted({i.file for i in cluster})
        if len(files) < MIN_DUPLICATE_FILES:
            continue
        first = cluster[0]
        hits.append(CorpusHit(by_file[first.file], CheckResult(
            issue=f'Instruction repeated across {len(files)} files: "{first.text}"',
            fix="Keep the rule in one shared place and reference it",
            line=first.line,
            details=tuple(files),
        )))
    return hits


def check_contradictory_rules(views: list[ArtifactView]) -> list[CorpusHit]:
    if len(views) < 2:
        return []
    by_file = {view.file: view.artifact for view in views}
    polar = [
        (i, tokenize(strip_polarity(i.text)))
        for view in views
        for i in view.instructions
        if i.polarity != 0
    ]
    hits = []
    for index, (left, left_subject) in enumerate(polar):
        for right, right_subject in polar[index + 1:]:
            if left.file == right.file or left.polarity == right.polarity:
                continue
            if token_similarity(left_subject, right_subject) <= CONTRADICTION_SUBJECT_THRESHOLD:
                continue
            hits.append(CorpusHit(by_file[left.file], CheckResult(
                issue=(
                    f'Rule "{left.text}" contradicts "{right.text}" '
                    f"in {right.file}:{right.line}"
                ),
                fix="Decide which rule holds and remove the other",
                line=left.line,
                details=(right.file, str(right.line)),
            )))
    return hits


def check_orphaned_prompt(views: list[ArtifactView]) -> list[CorpusHit]:
    if len(views) < 2:
        return []
    hits = []
    for view in views:
        if view.type in ENTRY_POINT_TYPES:
            continue
        mention = re.compile(rf"(?<![\w-]){re.escape(view.name)}(?![\w-])")
        referenced = any(
            other is not view
            and (view.name in other.references or mention.search(other.artifact.raw_content))
            for other in views
        )
        if referenced:
            continue
        hits.append(CorpusHit(view.artifact, CheckResult(
            issue=f"{view.type.capitalize()} '{view.name}' is never referenced",
            fix="Reference it from a command or agent, or remove it",
            line=1,
        )))
    return hits


def check_incomplete_phase_transition(views: list[ArtifactView]) -> list[CorpusHit]:
    hits = []
    for view in views:
        if len(view.phases) < 2 or not view.transitions:
            continue
        gaps = [
            (a, b)
            for a, b in zip(view.phases, view.phases[1:])
            if (a, b) not in view.transitions
        ]
        if not gaps:
            continue
        listed = ", ".join(f"Phase {a} -> Phase {b}" for a, b in gaps)
        hits.append(CorpusHit(view.artifact, CheckResult(
            issue=f"Missing phase transitions: {listed}",
            fix="State how each phase hands off to the next",
            locate=f"Phase {gaps[0][0]}",
            details=tuple(f"{a}->{b}" for a, b in gaps),
        )))
    return hits


def check_skill_description_mismatch(views: list[ArtifactView]) -> list[CorpusHit]:
    hits = []
    for view in views:
        if view.type != ArtifactType.SKILL or not view.artifact.frontmatter:
            continue
        description = view.artifact.frontmatter.get("description", "")
        body = view.artifact.body
        unbacked = [
            verb
            for verb, stem in CLAIM_VERBS.items()
            if re.search(rf"\b{stem}", description, re.IGNORECASE)
            and not re.search(rf"\b{stem}", body, re.IGNORECASE)
        ]
        if not unbacked:
            continue
        hits.append(CorpusHit(view.artifact, CheckResult(
            issue=f"Description claims {', '.join(unbacked)} but the body never covers it",
            fix="Describe only what the skill does, or document the claimed steps",
            locate="description:",
            details=tuple(unbacked),
        )))
    return hits


def _cross(
    pattern_id: str,
    category: str,
    certainty: Certainty,
    description: str,
    check: Callable[[list[ArtifactView]], list[CorpusHit]],
) -> Pattern:
    return Pattern(
        id=pattern_id,
        category=category,
        certainty=certainty,
        source=Source.CROSS_FILE,
        applies_to=MARKDOWN_TYPES,
        input=PatternInput.CORPUS,
        description=description,
        check=check,
    )


PATTERNS: tuple[Pattern, ...] = (
    _cross("tool_not_in_allowed_list", Category.TOOLS, Certainty.HIGH,
           "Body uses a tool its declaration does not allow",
           check_tool_not_in_allowed_list),
    _cross("skill_tool_mismatch", Category.TOOLS, Certainty.HIGH,
           "Command uses a tool the skill it delegates to cannot",
           check_skill_tool_mismatch),
    _cross("missing_workflow_agent", Category.WORKFLOW, Certainty.HIGH,
           "subagent_type names an agent that does not exist",
           check_missing_workflow_agent),
    _cross("duplicate_instructions", Category.CONSISTENCY, Certainty.MEDIUM,
           "Same critical rule repeated across files",
           check_duplicate_instructions),
    _cross("contradictory_rules", Category.CONSISTENCY, Certainty.MEDIUM,
           "Rules in different files demand opposite things",
           check_contradictory_rules),
    _cross("orphaned_prompt", Category.REFERENCE, Certainty.MEDIUM,
           "Agent or skill nothing refers to",
           check_orphaned_prompt),
    _cross("incomplete_phase_transition", Category.WORKFLOW, Certainty.MEDIUM,
           "Workflow phases without a hand-off",
           check_incomplete_phase_transition),
    _cross("skill_description_mismatch", Category.TRIGGERS, Certainty.LOW,
           "Skill description promises what the body does not do",
           check_skill_description_mismatch),
)
