"""
dsl/validator.py — JSON Schema validation for Japavel model documents.

The document grammar lives in ``schemas/*.schema.json`` next to this module and
is evaluated with a Draft 2020-12 validator. Shorthand field strings are opaque
to JSON Schema, so they are additionally checked through the normalizer.

Usage:
    from japavel.dsl.validator import validate_document

    issues = validate_document(yaml.safe_load(text), source="user.yaml")
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from japavel.dsl.normalizer import normalize_field
from japavel.exceptions import SchemaValidationError, ValidationIssue

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

DOCUMENT_SCHEMA = "japavel.schema.json"

_SCHEMA_NAMES = ("_defs.schema.json", DOCUMENT_SCHEMA)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open(encoding="utf-8") as fh:
        return json.load(fh)


@lru_cache(maxsize=1)
def _load_registry() -> Registry:
    """Build a jsonschema Registry containing all Japavel schemas."""
    resources = []
    for name in _SCHEMA_NAMES:
        schema = _load_schema(name)
        resources.append((schema["$id"], Resource(contents=schema, specification=DRAFT202012)))
    return Registry().with_resources(resources)


@lru_cache(maxsize=1)
def _document_validator() -> Draft202012Validator:
    return Draft202012Validator(_load_schema(DOCUMENT_SCHEMA), registry=_load_registry())


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _shorthand_issues(doc: dict[str, Any], source: Path | str | None) -> list[ValidationIssue]:
    fields = doc.get("Fields")
    if not isinstance(fields, dict):
        return []
    issues: list[ValidationIssue] = []
    for name, spec in fields.items():
        if not isinstance(spec, str):
            continue
        try:
            normalize_field(spec)
        except SchemaValidationError as exc:
            for issue in exc.issues:
                issues.append(
                    ValidationIssue(message=issue.message, path=f"Fields/{name}", source=source)
                )
    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_document(doc: Any, source: Path | str | None = None) -> list[ValidationIssue]:
    """
    Validate a loaded YAML document against the model schema grammar.

    Args:
        doc:    The parsed document (plain mappings, sequences and scalars).
        source: File name or label used in issue messages.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    validator = _document_validator()
    issues = [
        ValidationIssue(message=error.message, path=_json_path(error), source=source)
        for error in sorted(
            validator.iter_errors(doc), key=lambda e: [str(p) for p in e.absolute_path]
        )
    ]
    if isinstance(doc, dict):
        issues.extend(_shorthand_issues(doc, source))

    if issues:
        logger.debug("%d schema issue(s) in %s", len(issues), source or "<string>")
    return issues
