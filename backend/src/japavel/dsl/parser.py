"""Load Japavel model schemas from YAML documents."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from japavel.dsl.normalizer import get_normalized_fields, normalize_field
from japavel.dsl.types import (
    DEFAULT_API_OPERATIONS,
    HOOK_POINTS,
    ApiConfig,
    FieldDefinition,
    FieldSpec,
    Hooks,
    JapavelSchema,
    Relationship,
    ViewConfig,
)
from japavel.dsl.validator import validate_document
from japavel.exceptions import SchemaValidationError, ValidationIssue

logger = logging.getLogger(__name__)

DSL_EXTENSIONS = (".yaml", ".yml", ".japavel")

__all__ = [
    "DSL_EXTENSIONS",
    "dump_dsl_content",
    "get_normalized_fields",
    "normalize_field",
    "parse_dsl",
    "parse_dsl_content",
    "parse_dsl_directory",
]

_STR_TAG = "tag:yaml.org,2002:str"


class _DslLoader(yaml.SafeLoader):
    """
    SafeLoader that keeps plain mapping keys as the author wrote them.

    PyYAML follows YAML 1.1, so bare keys like ``on:``, ``no:`` or ``1:`` load
    as booleans or numbers. Field and relation names must stay strings.
    """

    def construct_mapping(self, node, deep=False):
        # Merged ("<<") keys must be retagged too
        self.flatten_mapping(node)
        for key_node, _ in node.value:
            if isinstance(key_node, yaml.ScalarNode) and key_node.tag != _STR_TAG:
                key_node.tag = _STR_TAG
        return super().construct_mapping(node, deep=deep)


def parse_dsl_content(content: str, source: Path | str | None = None) -> JapavelSchema:
    """Parse DSL text into a validated schema.

    Args:
        content: YAML text of one model document
        source: Optional file name used in error messages

    Raises:
        SchemaValidationError: The text is not valid YAML or does not match
            the schema grammar.
    """
    try:
        doc = yaml.load(content, Loader=_DslLoader)
    except yaml.YAMLError as exc:
        raise SchemaValidationError(
            "Invalid DSL document",
            [ValidationIssue(message=f"YAML parse error: {exc}", source=source)],
        ) from exc

    if doc is None:
        raise SchemaValidationError(
            "Invalid DSL document",
            [ValidationIssue(message="Document is empty or contains only whitespace", source=source)],
        )

    issues = validate_document(doc, source=source)
    if issues:
        raise SchemaValidationError("Invalid DSL document", issues)

    return _resolve_schema(doc)


def parse_dsl(path: Path | str) -> JapavelSchema:
    """Read and parse a single DSL file.

    Raises:
        OSError: The file cannot be read.
        SchemaValidationError: The content is invalid.
    """
    path = Path(path)
    content = path.read_text(encoding="utf-8")
    schema = parse_dsl_content(content, source=path)
    logger.debug("Parsed model %s from %s", schema.model, path)
    return schema


def parse_dsl_directory(path: Path | str) -> list[JapavelSchema]:
    """Parse every DSL file directly inside ``path``.

    Files are taken in name order. The first invalid file aborts the whole
    batch, as does a model name declared by more than one file.
    """
    path = Path(path)
    files = sorted(
        entry
        for entry in os.listdir(path)
        if entry.endswith(DSL_EXTENSIONS) and (path / entry).is_file()
    )

    schemas: list[JapavelSchema] = []
    seen: dict[str, str] = {}  # model name -> file name
    for name in files:
        schema = parse_dsl(path / name)
        if schema.model in seen:
            raise SchemaValidationError(
                "Duplicate model",
                [
                    ValidationIssue(
                        message=f"Model '{schema.model}' is also declared in {seen[schema.model]}",
                        path="Model",
                        source=path / name,
                    )
                ],
            )
        seen[schema.model] = name
        schemas.append(schema)

    logger.debug("Parsed %d model(s) from %s", len(schemas), path)
    return schemas


def dump_dsl_content(schema: JapavelSchema) -> str:
    """Serialize a schema to canonical DSL text."""
    return yaml.safe_dump(schema.to_dict(), sort_keys=False, allow_unicode=True)


# ---------------------------------------------------------------------------
# Resolution of a validated document into typed values
# ---------------------------------------------------------------------------


def _resolve_schema(data: dict[str, Any]) -> JapavelSchema:
    fields = {str(name): _resolve_field(spec) for name, spec in data["Fields"].items()}

    relations = None
    if "Relations" in data:
        relations = {
            str(name): _resolve_relationship(rel) for name, rel in data["Relations"].items()
        }

    hooks = _resolve_hooks(data["Hooks"]) if "Hooks" in data else None

    return JapavelSchema(
        model=data["Model"],
        fields=fields,
        view=_resolve_view(data.get("View")),
        api=_resolve_api(data.get("API")),
        relations=relations,
        hooks=hooks,
    )


def _resolve_field(spec: str | dict[str, Any]) -> FieldSpec:
    if isinstance(spec, str):
        return spec

    enum = spec.get("enum")
    return FieldDefinition(
        type=spec["type"],
        required=spec.get("required", True),
        unique=spec.get("unique", False),
        default=spec.get("default"),
        min=spec.get("min"),
        max=spec.get("max"),
        min_length=spec.get("minLength"),
        max_length=spec.get("maxLength"),
        pattern=spec.get("pattern"),
        enum=tuple(enum) if enum is not None else None,
        items=spec.get("items"),
        description=spec.get("description"),
    )


def _resolve_view(data: str | dict[str, Any] | None) -> str | ViewConfig | None:
    if data is None or isinstance(data, str):
        return data
    return ViewConfig(
        type=data["type"],
        fields=_tuple_or_none(data.get("fields")),
        sortable=_tuple_or_none(data.get("sortable")),
        filterable=_tuple_or_none(data.get("filterable")),
        searchable=_tuple_or_none(data.get("searchable")),
    )


def _resolve_api(data: str | dict[str, Any] | None) -> str | ApiConfig | None:
    if data is None or isinstance(data, str):
        return data
    return ApiConfig(
        operations=tuple(data.get("operations", DEFAULT_API_OPERATIONS)),
        auth=data.get("auth", "authenticated"),
        rate_limit=data.get("rateLimit"),
        pagination=data.get("pagination", True),
    )


def _resolve_relationship(data: dict[str, Any]) -> Relationship:
    return Relationship(
        type=data["type"],
        model=data["model"],
        foreign_key=data.get("foreignKey"),
        through=data.get("through"),
    )


def _resolve_hooks(data: dict[str, Any]) -> Hooks:
    return Hooks(**{attr: data.get(key) for key, attr in HOOK_POINTS.items()})


def _tuple_or_none(values: list[str] | None) -> tuple[str, ...] | None:
    return tuple(values) if values is not None else None
