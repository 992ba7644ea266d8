"""Types describing a parsed Japavel model schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

FIELD_TYPES = (
    "string",
    "number",
    "boolean",
    "date",
    "uuid",
    "email",
    "url",
    "int",
    "json",
    "array",
    "enum",
)

VIEW_TYPES = ("table", "form", "card", "list", "detail")

API_OPERATIONS = ("create", "read", "update", "delete", "list", "search")
DEFAULT_API_OPERATIONS = ("create", "read", "update", "delete", "list")

API_AUTH_LEVELS = ("public", "authenticated", "admin")

RELATION_TYPES = ("hasOne", "hasMany", "belongsTo", "manyToMany")

# YAML key -> attribute name
HOOK_POINTS = {
    "beforeCreate": "before_create",
    "afterCreate": "after_create",
    "beforeUpdate": "before_update",
    "afterUpdate": "after_update",
    "beforeDelete": "before_delete",
    "afterDelete": "after_delete",
}


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class FieldDefinition:
    """Canonical field descriptor.

    Attributes:
        type: One of FIELD_TYPES
        required: Whether a value must be supplied (default True)
        unique: Whether values must be unique (only settable in object form)
        enum: Allowed values, required when type is "enum"
        items: Element type name, required when type is "array"
    """

    type: str
    required: bool = True
    unique: bool = False
    default: str | int | float | bool | None = None
    min: float | None = None
    max: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    enum: tuple[str, ...] | None = None
    items: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "required": self.required,
                "unique": self.unique,
                "default": self.default,
                "min": self.min,
                "max": self.max,
                "minLength": self.min_length,
                "maxLength": self.max_length,
                "pattern": self.pattern,
                "enum": list(self.enum) if self.enum is not None else None,
                "items": self.items,
                "description": self.description,
            }
        )


# A field as the author wrote it: shorthand string or full object
FieldSpec = Union[str, FieldDefinition]


@dataclass(frozen=True)
class ViewConfig:
    type: str
    fields: tuple[str, ...] | None = None
    sortable: tuple[str, ...] | None = None
    filterable: tuple[str, ...] | None = None
    searchable: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "fields": _as_list(self.fields),
                "sortable": _as_list(self.sortable),
                "filterable": _as_list(self.filterable),
                "searchable": _as_list(self.searchable),
            }
        )


@dataclass(frozen=True)
class ApiConfig:
    operations: tuple[str, ...] = DEFAULT_API_OPERATIONS
    auth: str = "authenticated"
    rate_limit: float | None = None
    pagination: bool = True

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "operations": list(self.operations),
                "auth": self.auth,
                "rateLimit": self.rate_limit,
                "pagination": self.pagination,
            }
        )


@dataclass(frozen=True)
class Relationship:
    """A relation from one model to another."""

    type: str
    model: str
    foreign_key: str | None = None
    through: str | None = None  # junction table, manyToMany only

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "model": self.model,
                "foreignKey": self.foreign_key,
                "through": self.through,
            }
        )


@dataclass(frozen=True)
class Hooks:
    """Lifecycle callback identifiers. Opaque; never executed here."""

    before_create: str | None = None
    after_create: str | None = None
    before_update: str | None = None
    after_update: str | None = None
    before_delete: str | None = None
    after_delete: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({key: getattr(self, attr) for key, attr in HOOK_POINTS.items()})


@dataclass(frozen=True)
class JapavelSchema:
    """One parsed model document.

    ``fields`` keeps each field in the form it was written; use
    :func:`japavel.dsl.normalizer.get_normalized_fields` for canonical
    descriptors.
    """

    model: str
    fields: dict[str, FieldSpec] = field(default_factory=dict)
    view: str | ViewConfig | None = None
    api: str | ApiConfig | None = None
    relations: dict[str, Relationship] | None = None
    hooks: Hooks | None = None

    def to_dict(self) -> dict[str, Any]:
        """Author-facing mapping, suitable for dumping back to YAML."""
        data: dict[str, Any] = {
            "Model": self.model,
            "Fields": {
                name: spec if isinstance(spec, str) else spec.to_dict()
                for name, spec in self.fields.items()
            },
        }
        if self.view is not None:
            data["View"] = self.view if isinstance(self.view, str) else self.view.to_dict()
        if self.api is not None:
            data["API"] = self.api if isinstance(self.api, str) else self.api.to_dict()
        if self.relations is not None:
            data["Relations"] = {name: rel.to_dict() for name, rel in self.relations.items()}
        if self.hooks is not None:
            data["Hooks"] = self.hooks.to_dict()
        return data


def _as_list(values: tuple[str, ...] | None) -> list[str] | None:
    return list(values) if values is not None else None
