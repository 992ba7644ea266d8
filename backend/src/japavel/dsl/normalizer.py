"""Expansion of shorthand field syntax into canonical field descriptors.

Shorthand grammar::

    "string"            required string
    "email?"            optional email
    "int!"              required int ("!" is accepted, required is the default)
    "enum(a, b, c)"     enum with members a, b, c
    "array<string>"     array of strings
"""

from __future__ import annotations

import re

from japavel.dsl.types import FIELD_TYPES, FieldDefinition, FieldSpec, JapavelSchema
from japavel.exceptions import SchemaValidationError, ValidationIssue

_ENUM_RE = re.compile(r"^enum\((.+)\)$")
_ARRAY_RE = re.compile(r"^array<(.+)>$")


def normalize_field(value: FieldSpec) -> FieldDefinition:
    """Return the canonical descriptor for a field in either author form.

    Object input is returned as is. Shorthand never sets ``unique``.

    Raises:
        SchemaValidationError: The shorthand names an unknown type, a blank
            enum member or a blank array element type.
    """
    if isinstance(value, FieldDefinition):
        return value

    text = value.strip()
    required = not text.endswith("?")
    body = text.rstrip("?!").strip()

    enum_match = _ENUM_RE.match(body)
    if enum_match:
        members = tuple(m.strip() for m in enum_match.group(1).split(","))
        if not all(members):
            raise SchemaValidationError(
                "Invalid field shorthand",
                [ValidationIssue(message=f"enum with a blank member: '{value}'")],
            )
        return FieldDefinition(type="enum", required=required, unique=False, enum=members)

    array_match = _ARRAY_RE.match(body)
    if array_match:
        items = array_match.group(1).strip()
        if not items:
            raise SchemaValidationError(
                "Invalid field shorthand",
                [ValidationIssue(message=f"array without an element type: '{value}'")],
            )
        return FieldDefinition(type="array", required=required, unique=False, items=items)

    if body not in FIELD_TYPES:
        raise SchemaValidationError(
            "Invalid field shorthand",
            [
                ValidationIssue(
                    message=f"invalid type name '{body}', expected one of: {', '.join(FIELD_TYPES)}"
                )
            ],
        )
    if body in ("enum", "array"):
        hint = "enum(a,b,...)" if body == "enum" else "array<type>"
        raise SchemaValidationError(
            "Invalid field shorthand",
            [ValidationIssue(message=f"bare '{body}' is incomplete, use {hint}")],
        )
    return FieldDefinition(type=body, required=required, unique=False)


def get_normalized_fields(schema: JapavelSchema) -> dict[str, FieldDefinition]:
    """Normalize every field of ``schema`` into a new mapping."""
    return {name: normalize_field(spec) for name, spec in schema.fields.items()}
