"""Schema CLI commands — validate and show."""

from pathlib import Path

import click
import yaml

from japavel.dsl.normalizer import get_normalized_fields
from japavel.dsl.parser import parse_dsl, parse_dsl_directory
from japavel.dsl.relationships import validate_relationships
from japavel.exceptions import SchemaValidationError


def _report_schema_error(exc: SchemaValidationError) -> None:
    if not exc.issues:
        click.echo(click.style(str(exc), fg="red"), err=True)
    for issue in exc.issues:
        click.echo(click.style(str(issue), fg="red"), err=True)


@click.group()
def schema():
    """Model schema commands."""
    pass


@schema.command()
@click.argument(
    "directory",
    default="schemas",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
def validate(directory: Path):
    """Validate every model schema in DIRECTORY and the relations between them."""
    try:
        schemas = parse_dsl_directory(directory)
    except SchemaValidationError as exc:
        _report_schema_error(exc)
        raise SystemExit(1)

    click.echo(f"Loaded {len(schemas)} model(s):")
    for s in schemas:
        relation_count = len(s.relations) if s.relations else 0
        click.echo(f"  ✓ {s.model} ({len(s.fields)} fields, {relation_count} relations)")

    errors = validate_relationships(schemas)
    if errors:
        for error in errors:
            click.echo(click.style(error, fg="red"), err=True)
        click.echo(
            click.style(f"\n{len(errors)} relationship error(s) found", fg="red", bold=True),
            err=True,
        )
        raise SystemExit(1)

    click.echo(click.style("\nAll schemas are valid.", fg="green", bold=True))


@schema.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(file: Path):
    """Print the model in FILE with every field in canonical form."""
    try:
        parsed = parse_dsl(file)
    except SchemaValidationError as exc:
        _report_schema_error(exc)
        raise SystemExit(1)

    data = parsed.to_dict()
    data["Fields"] = {name: f.to_dict() for name, f in get_normalized_fields(parsed).items()}
    click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), nl=False)
