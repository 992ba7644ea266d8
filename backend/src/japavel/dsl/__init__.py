"""YAML model DSL: parsing, shorthand normalization and relation checks."""

from japavel.dsl.normalizer import get_normalized_fields, normalize_field
from japavel.dsl.parser import (
    dump_dsl_content,
    parse_dsl,
    parse_dsl_content,
    parse_dsl_directory,
)
from japavel.dsl.relationships import validate_relationships
from japavel.dsl.types import (
    FIELD_TYPES,
    ApiConfig,
    FieldDefinition,
    Hooks,
    JapavelSchema,
    Relationship,
    ViewConfig,
)
from japavel.dsl.validator import validate_document

__all__ = [
    "FIELD_TYPES",
    "ApiConfig",
    "FieldDefinition",
    "Hooks",
    "JapavelSchema",
    "Relationship",
    "ViewConfig",
    "dump_dsl_content",
    "get_normalized_fields",
    "normalize_field",
    "parse_dsl",
    "parse_dsl_content",
    "parse_dsl_directory",
    "validate_document",
    "validate_relationships",
]
