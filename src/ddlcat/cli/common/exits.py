"""Exit handling utilities for the CLI."""

import logging
from typing import NoReturn

import typer

from ddlcat.cli.common.output import out

logger = logging.getLogger(__name__)


def die(msg: str, code: int = 1) -> NoReturn:
    """Exit with an error message and optional exit code."""
    out.error(msg)
    raise typer.Exit(code)


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Exit with a warning message; an empty result is not a failure."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(
    exc: Exception, *, message: str | None = None, hint: str | None = None, code: int = 1
) -> NoReturn:
    """
    Report a failed catalog build or query and exit.

    The message defaults to the exception text. The traceback is only
    logged, at DEBUG level, so ``--log-level DEBUG`` shows where a
    statement was rejected.
    """
    logger.debug("%s raised", type(exc).__name__, exc_info=exc)
    out.error(message or str(exc))
    if hint:
        out.hint(hint)
    raise typer.Exit(code) from exc
