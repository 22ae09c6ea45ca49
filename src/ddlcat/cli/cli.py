"""CLI application for the ddlcat schema catalog."""

import logging

import typer
from rich.logging import RichHandler

from ddlcat.cli.commands import catalog
from ddlcat.cli.common.context import build_context
from ddlcat.cli.common.options import CatalogNameOpt, DialectOpt, LogLevelOpt
from ddlcat.cli.common.output import err_console
from ddlcat.core.config import Settings, parse_log_level

app = typer.Typer(
    help="ddlcat - catalog, order and lint SQL DDL without a database",
    no_args_is_help=True,
)


def _configure_logging(level: str) -> None:
    """Route ddlcat log records through a single Rich handler on stderr."""
    logger = logging.getLogger("ddlcat")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=err_console, show_path=False, markup=False))
    logger.setLevel(level)
    logger.propagate = False


@app.callback()
def _init(
    ctx: typer.Context,
    dialect: str | None = DialectOpt,
    catalog_name: str | None = CatalogNameOpt,
    log_level: str | None = LogLevelOpt,
):
    """Read settings and configure logging for every command."""
    settings = Settings.from_env()
    _configure_logging(parse_log_level(log_level) if log_level else settings.log_level)
    ctx.obj = build_context(settings, dialect=dialect, catalog_name=catalog_name)


app.command("summary")(catalog.summary)
app.command("tables")(catalog.tables)
app.command("checks")(catalog.checks)
app.command("triggers")(catalog.triggers)
app.command("roles")(catalog.roles)


if __name__ == "__main__":
    app()
