"""Common CLI options for the CLI."""

from pathlib import Path

import typer

PathsArg = typer.Argument(
    ...,
    help="SQL files or directories (searched recursively for *.sql)",
    show_default=False,
)

DialectOpt = typer.Option(
    None,
    "--dialect",
    "-d",
    help="sqlglot dialect used to read the SQL (env: DDLCAT_DIALECT)",
)

CatalogNameOpt = typer.Option(
    None,
    "--catalog-name",
    help="Name given to the built catalog (env: DDLCAT_CATALOG_NAME)",
)

LogLevelOpt = typer.Option(
    None,
    "--log-level",
    help="Logging level, e.g. DEBUG or INFO (env: DDLCAT_LOG_LEVEL)",
)

OrderOpt = typer.Option(
    "dag",
    "--order",
    help="Table order: 'dag' (referenced tables first) or 'name'",
)

TableOpt = typer.Option(
    None,
    "--table",
    "-t",
    help="Only show this table (name or schema.name)",
)


def as_paths(values: list[str]) -> list[Path]:
    return [Path(v) for v in values]
