"""Cross-model checks over a set of parsed schemas."""

from __future__ import annotations

from typing import Iterable

from japavel.dsl.types import JapavelSchema


def validate_relationships(schemas: Iterable[JapavelSchema]) -> list[str]:
    """Check every declared relation against the loaded model set.

    Reports relations pointing at models outside the set, and ``manyToMany``
    relations without a ``through`` junction table. All problems are
    collected; nothing is mutated.

    Returns:
        Human-readable error messages, empty when all relations are valid.
    """
    schemas = list(schemas)
    model_names = {schema.model for schema in schemas}
    errors: list[str] = []

    for schema in schemas:
        if not schema.relations:
            continue

        for name, relation in schema.relations.items():
            if relation.model not in model_names:
                errors.append(
                    f'{schema.model}.{name}: References unknown model "{relation.model}"'
                )

            if relation.type == "manyToMany" and not relation.through:
                errors.append(
                    f'{schema.model}.{name}: manyToMany relation requires "through" junction table'
                )

    return errors
