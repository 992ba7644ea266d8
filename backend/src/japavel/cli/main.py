"""Japavel CLI entry point."""

import logging

import click


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool):
    """Japavel — schema DSL and multi-tenancy tooling."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommand groups
from japavel.cli.schema_cmd import schema  # noqa: E402

cli.add_command(schema)
