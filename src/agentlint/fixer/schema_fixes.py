"""Pure transforms for JSON manifests and embedded JSON schemas.

Each function returns a new value and leaves its input untouched.
"""

from __future__ import annotations

import copy
import re
from typing import Any

_OPTIONAL = re.compile(r"optional", re.IGNORECASE)


def is_object_schema(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and value.get("type") == "object"
        and isinstance(value.get("properties"), dict)
    )


def fix_additional_properties(schema: Any) -> Any:
    """Close an object schema, recursing into its properties."""
    if not isinstance(schema, dict):
        return schema
    fixed = dict(schema)
    if is_object_schema(fixed):
        fixed["additionalProperties"] = False
    properties = schema.get("properties")
    if isinstance(properties, dict):
        fixed["properties"] = {
            key: fix_additional_properties(value)
            for key, value in properties.items()
        }
    return fixed


def fix_required_fields(schema: Any) -> Any:
    """List every property without a default or 'optional' note."""
    if not is_object_schema(schema) or "required" in schema:
        return schema
    fixed = dict(schema)
    fixed["required"] = [
        key
        for key, prop in schema["properties"].items()
        if not (
            isinstance(prop, dict)
            and (
                "default" in prop
                or _OPTIONAL.search(str(prop.get("description", "")))
            )
        )
    ]
    return fixed


def fix_version_mismatch(manifest: Any, target: str) -> Any:
    if not isinstance(manifest, dict):
        return manifest
    fixed = copy.deepcopy(manifest)
    fixed["version"] = target
    return fixed


def close_object_schemas(document: Any) -> Any:
    """Set ``additionalProperties: false`` on every object schema found."""
    if isinstance(document, list):
        return [close_object_schemas(item) for item in document]
    if not isinstance(document, dict):
        return document
    fixed = {key: close_object_schemas(value) for key, value in document.items()}
    if is_object_schema(fixed) and "additionalProperties" not in fixed:
        fixed["additionalProperties"] = False
    return fixed
