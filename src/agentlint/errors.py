"""Error classification for fix-batch error entries.

Classifies exceptions raised while reading, transforming or writing a
fix target so that:
- error entries carry a stable machine-readable category
- logs distinguish environment problems from bad schema paths
"""

from __future__ import annotations

import json
from enum import Enum


class ErrorClass(Enum):
    NOT_FOUND = "not_found"  # target file missing
    PERMISSION = "permission"  # read-only file or directory
    PARSE = "parse"  # target is not valid UTF-8 or JSON
    SCHEMA_PATH = "schema_path"  # path does not address a value
    UNKNOWN = "unknown"  # unclassified


class SchemaPathError(LookupError):
    """Raised when a schema path does not resolve inside a document."""


def classify_error(error: Exception) -> ErrorClass:
    """Classify an error raised during a fix.

    Checks exception types first, falls back to string matching for
    errors wrapped by third-party code.
    """
    if isinstance(error, FileNotFoundError):
        return ErrorClass.NOT_FOUND
    if isinstance(error, PermissionError):
        return ErrorClass.PERMISSION
    if isinstance(error, (json.JSONDecodeError, UnicodeDecodeError)):
        return ErrorClass.PARSE
    if isinstance(error, (SchemaPathError, KeyError, IndexError)):
        return ErrorClass.SCHEMA_PATH

    msg = str(error).lower()

    if "not found" in msg or "no such file" in msg:
        return ErrorClass.NOT_FOUND
    if "permission denied" in msg or "read-only" in msg:
        return ErrorClass.PERMISSION
    if "expecting" in msg and "line" in msg:
        return ErrorClass.PARSE

    return ErrorClass.UNKNOWN

