"""Checks for plugin manifests and JSON schemas.

Schema findings carry a structured fix: a transform and the schema path
it applies at (dotted keys, ``[n]`` indices, ``None`` for the root).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from functools import partial
from typing import Any

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
from agentlint.fixer.schema_fixes import (
    close_object_schemas,
    fix_additional_properties,
    fix_required_fields,
    fix_version_mismatch,
    is_object_schema,
)

MAX_SCHEMA_DEPTH = 5
REQUIRED_MANIFEST_FIELDS: tuple[str, ...] = ("name", "version", "description")

_MANIFEST = frozenset({ArtifactType.MANIFEST})


def iter_object_schemas(
    value: Any, path: str = ""
) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield ``(path, schema)`` for every object schema in a document.

    Keys that cannot be expressed in a dotted path are skipped.
    """
    if isinstance(value, dict):
        if is_object_schema(value):
            yield path, value
        for key, child in value.items():
            if not isinstance(key, str) or "." in key or "[" in key:
                continue
            yield from iter_object_schemas(child, f"{path}.{key}" if path else key)
    elif isinstance(value, list):
        for i, child in enumerate(value):
            if path:
                yield from iter_object_schemas(child, f"{path}[{i}]")


def _schema_depth(value: Any) -> int:
    if not is_object_schema(value):
        return 0
    return 1 + max(
        (_schema_depth(p) for p in value["properties"].values()), default=0
    )


def check_invalid_manifest_json(
    data: Any, context: PatternContext
) -> CheckResult | None:
    error = context.get("parse_error")
    if not error:
        return None
    return CheckResult(
        issue=f"Invalid JSON: {error}",
        fix="Fix the JSON syntax so the manifest can be loaded",
        line=1,
    )


def check_missing_manifest_fields(
    data: Any, context: PatternContext
) -> CheckResult | None:
    if context.path.name != "plugin.json" or not isinstance(data, dict):
        return None
    missing = [f for f in REQUIRED_MANIFEST_FIELDS if not data.get(f)]
    if not missing:
        return None
    return CheckResult(
        issue=f"Manifest missing required fields: {', '.join(missing)}",
        fix="Add the missing fields to plugin.json",
        line=1,
        details=tuple(missing),
    )


def check_missing_additional_properties(
    data: Any, context: PatternContext
) -> CheckResult | None:
    open_schemas = [
        path
        for path, schema in iter_object_schemas(data)
        if "additionalProperties" not in schema
    ]
    if not open_schemas:
        return None
    target = open_schemas[0]
    where = target or "root"
    # one open schema is fixed in place, several are closed in one pass
    single = len(open_schemas) == 1
    return CheckResult(
        issue=(
            f"Object schema at {where} does not set additionalProperties "
            f"({len(open_schemas)} open schema(s))"
        ),
        fix="Set additionalProperties: false",
        locate='"properties"',
        details=tuple(p or "root" for p in open_schemas),
        auto_fix_fn=fix_additional_properties if single else close_object_schemas,
        schema_path=(target or None) if single else None,
    )


def check_missing_required_fields(
    data: Any, context: PatternContext
) -> CheckResult | None:
    for path, schema in iter_object_schemas(data):
        if "required" not in schema and schema["properties"]:
            return CheckResult(
                issue=f"Object schema at {path or 'root'} declares no required fields",
                fix="Add a required array listing mandatory properties",
                locate='"properties"',
                auto_fix_fn=fix_required_fields,
                schema_path=path or None,
            )
    return None


def check_version_mismatch(
    data: Any, context: PatternContext
) -> CheckResult | None:
    package_version = context.get("package_version")
    if not package_version or not isinstance(data, dict):
        return None
    version = data.get("version")
    if not version or version == package_version:
        return None
    return CheckResult(
        issue=f"Manifest version {version} differs from package.json {package_version}",
        fix=f"Set version to {package_version}",
        locate='"version"',
        auto_fix_fn=partial(fix_version_mismatch, target=package_version),
    )


def check_deep_schema_nesting(
    data: Any, context: PatternContext
) -> CheckResult | None:
    for path, schema in iter_object_schemas(data):
        depth = _schema_depth(schema)
        if depth > MAX_SCHEMA_DEPTH:
            return CheckResult(
                issue=f"Schema at {path or 'root'} nests {depth} levels deep",
                fix="Flatten the schema or split it into referenced definitions",
            )
    return None


def _manifest(
    pattern_id: str,
    category: str,
    certainty: Certainty,
    description: str,
    check: Callable[..., CheckResult | None],
    auto_fix: bool = False,
) -> Pattern:
    return Pattern(
        id=pattern_id,
        category=category,
        certainty=certainty,
        source=Source.PLUGIN,
        applies_to=_MANIFEST,
        input=PatternInput.DATA,
        description=description,
        check=check,
        auto_fix=auto_fix,
    )


PATTERNS: tuple[Pattern, ...] = (
    _manifest("invalid_manifest_json", Category.SCHEMA, Certainty.HIGH,
              "Manifest is not valid JSON", check_invalid_manifest_json),
    _manifest("missing_manifest_fields", Category.SCHEMA, Certainty.HIGH,
              "plugin.json lacks name, version or description",
              check_missing_manifest_fields),
    _manifest("missing_additional_properties", Category.SCHEMA, Certainty.HIGH,
              "Object schema accepts unknown keys",
              check_missing_additional_properties, auto_fix=True),
    _manifest("missing_required_fields", Category.SCHEMA, Certainty.MEDIUM,
              "Object schema has no required list",
              check_missing_required_fields, auto_fix=True),
    _manifest("version_mismatch", Category.CONSISTENCY, Certainty.HIGH,
              "Manifest and package.json versions differ",
              check_version_mismatch, auto_fix=True),
    _manifest("deep_schema_nesting", Category.SCHEMA, Certainty.LOW,
              "Schema nests object types too deeply",
              check_deep_schema_nesting),
)
