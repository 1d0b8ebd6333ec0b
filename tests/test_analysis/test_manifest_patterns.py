"""Tests for manifest and JSON schema checks, including the structured fixes."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from helpers import write_file

from agentlint.analysis.analyzer import analyze_artifact
from agentlint.analysis.patterns import manifest_patterns as mp
from agentlint.analysis.patterns.base import PatternContext
from agentlint.constants import ArtifactType
from agentlint.errors import SchemaPathError
from agentlint.fixer.applier import apply_at_path, apply_fixes, parse_schema_path
from agentlint.fixer.schema_fixes import (
    close_object_schemas,
    fix_additional_properties,
    fix_required_fields,
)
from agentlint.ingestion.discovery import load_artifact

OPEN_SCHEMA = {"type": "object", "properties": {"q": {"type": "string"}}}


def _ctx(name: str = "search.schema.json", **extras: object) -> PatternContext:
    return PatternContext(
        path=Path(name), artifact_type=ArtifactType.MANIFEST, extras=dict(extras)
    )


class TestSchemaChecks:
    def test_open_root_schema(self) -> None:
        result = mp.check_missing_additional_properties(OPEN_SCHEMA, _ctx())
        assert result is not None
        assert result.issue.startswith("Object schema at root")
        assert result.auto_fix_fn is fix_additional_properties
        assert result.schema_path is None

    def test_single_nested_schema_gets_its_path(self) -> None:
        doc = {
            "type": "object",
            "additionalProperties": False,
            "properties": {"opts": OPEN_SCHEMA},
        }
        result = mp.check_missing_additional_properties(doc, _ctx())
        assert result is not None
        assert result.schema_path == "properties.opts"

    def test_several_open_schemas_closed_together(self) -> None:
        doc = {"tools": [OPEN_SCHEMA, OPEN_SCHEMA]}
        result = mp.check_missing_additional_properties(doc, _ctx())
        assert result is not None
        assert result.details == ("tools[0]", "tools[1]")
        assert result.auto_fix_fn is close_object_schemas
        assert result.schema_path is None

    def test_closed_schema_is_clean(self) -> None:
        closed = fix_additional_properties(OPEN_SCHEMA)
        assert closed["additionalProperties"] is False
        assert mp.check_missing_additional_properties(closed, _ctx()) is None
        assert "additionalProperties" not in OPEN_SCHEMA

    def test_required_fields_skip_optional(self) -> None:
        schema = {
            "type": "object",
            "properties": {
                "q": {"type": "string"},
                "limit": {"type": "integer", "default": 10},
                "lang": {"type": "string", "description": "Optional language"},
            },
        }
        assert mp.check_missing_required_fields(schema, _ctx()) is not None
        assert fix_required_fields(schema)["required"] == ["q"]

    def test_deep_nesting(self) -> None:
        schema: dict[str, object] = {"type": "string"}
        for _ in range(6):
            schema = {"type": "object", "properties": {"x": schema}}
        result = mp.check_deep_schema_nesting(schema, _ctx())
        assert result is not None
        assert "6 levels" in result.issue


class TestManifestChecks:
    def test_parse_error_reported(self) -> None:
        result = mp.check_invalid_manifest_json(None, _ctx(parse_error="bad"))
        assert result is not None
        assert result.line == 1

    def test_missing_fields_only_for_plugin_json(self) -> None:
        result = mp.check_missing_manifest_fields({"name": "p"}, _ctx("plugin.json"))
        assert result is not None
        assert result.details == ("version", "description")
        assert mp.check_missing_manifest_fields({}, _ctx("other.json")) is None

    def test_version_mismatch(self) -> None:
        ctx = _ctx("plugin.json", package_version="2.0.0")
        result = mp.check_version_mismatch({"version": "1.0.0"}, ctx)
        assert result is not None
        assert result.auto_fix_fn is not None
        assert result.auto_fix_fn({"version": "1.0.0"}) == {"version": "2.0.0"}
        assert mp.check_version_mismatch({"version": "2.0.0"}, ctx) is None


class TestSchemaPaths:
    def test_parse(self) -> None:
        assert parse_schema_path("a.b[0].c") == ["a", "b", 0, "c"]
        assert parse_schema_path("tools[1][2]") == ["tools", 1, 2]

    @pytest.mark.parametrize("path", ["a..b", "a.b[x]"])
    def test_malformed(self, path: str) -> None:
        with pytest.raises(SchemaPathError):
            parse_schema_path(path)

    def test_apply_does_not_mutate_input(self) -> None:
        doc = {"properties": {"opts": dict(OPEN_SCHEMA)}}
        fixed = apply_at_path(doc, "properties.opts", fix_additional_properties)
        assert fixed["properties"]["opts"]["additionalProperties"] is False
        assert "additionalProperties" not in doc["properties"]["opts"]

    @pytest.mark.parametrize("path", ["missing.key", "properties[0]"])
    def test_unresolvable_path(self, path: str) -> None:
        with pytest.raises(SchemaPathError):
            apply_at_path({"properties": {}}, path, fix_additional_properties)


class TestOpenSchemaFixRoundTrip:
    def test_fix_closes_schema_and_recheck_is_clean(self, tmp_path: Path) -> None:
        path = write_file(
            tmp_path, "tools/search.schema.json", json.dumps(OPEN_SCHEMA)
        )
        findings = analyze_artifact(load_artifact(path))
        open_schema = [
            f for f in findings if f.pattern_id == "missing_additional_properties"
        ]
        assert len(open_schema) == 1

        result = apply_fixes(findings)
        assert [e.pattern_id for e in result.applied] == [
            "missing_additional_properties"
        ]
        written = json.loads(path.read_text(encoding="utf-8"))
        assert written["additionalProperties"] is False

        recheck = analyze_artifact(load_artifact(path))
        assert "missing_additional_properties" not in {f.pattern_id for f in recheck}
