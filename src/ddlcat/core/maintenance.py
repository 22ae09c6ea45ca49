"""Recognition of maintenance trigger bodies.

A maintenance trigger only stamps or derives columns of the row being
written. Its function body must read::

    [BEGIN [;]]
        NEW.<column> {= | :=} <expression>;
        ...
        RETURN NEW;
    [END [;]]

with at least one assignment, every assigned column present on the
trigger's table and nothing else in between.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Sequence, TypeVar

from sqlglot.tokens import Token, TokenType

from ddlcat.core.adapters.tokens import TokenCursor, tokenize
from ddlcat.core.errors import MaintenanceBodyError, SqlParseError
from ddlcat.core.expressions import ParsedExpression, parse_expression

if TYPE_CHECKING:
    from ddlcat.core.interfaces import CatalogLike, ColumnLike, TriggerLike

logger = logging.getLogger(__name__)

_C = TypeVar("_C")


def parse_maintenance_body(
    body: str,
    columns: Sequence[_C],
    name_of: Callable[[_C], str] = lambda column: column.name,
    dialect: str = "postgres",
) -> list[tuple[_C, ParsedExpression]]:
    """Extract the ``(column, expression)`` assignments of a maintenance body.

    Args:
        body: Function body text (without dollar quotes).
        columns: Columns of the trigger's table.
        name_of: Returns the name of a column.
        dialect: sqlglot dialect used for tokens and expressions.

    Returns:
        Assignments in source order; repeated columns are kept.

    Raises:
        MaintenanceBodyError: if the body does not follow the grammar.
    """
    try:
        return _parse(body, columns, name_of, dialect)
    except SqlParseError as exc:
        raise MaintenanceBodyError(exc.message) from exc


def _parse(body, columns, name_of, dialect):
    c = TokenCursor(body, tokenize(body, dialect))
    if c.accept("BEGIN"):
        c.accept_symbol(";")

    assignments = []
    while True:
        if c.at_end():
            raise MaintenanceBodyError("missing RETURN NEW;")
        if c.accept("RETURN"):
            if not c.accept("NEW"):
                raise MaintenanceBodyError("only RETURN NEW is allowed")
            if not c.accept_symbol(";"):
                raise MaintenanceBodyError("expected `;` after RETURN NEW")
            break
        if not c.accept("NEW"):
            raise MaintenanceBodyError(f"unexpected statement starting with `{c.peek().text}`")
        c.expect_symbol(".")
        name = c.identifier()
        column = next((col for col in columns if name_of(col) == name), None)
        if column is None:
            raise MaintenanceBodyError(f"column `{name}` is not a column of the table")
        _assignment_operator(c)
        assignments.append((column, _expression(c, dialect)))

    if c.accept("END"):
        c.accept_symbol(";")
    if not c.at_end():
        raise MaintenanceBodyError(f"unexpected `{c.peek().text}` after RETURN NEW")
    if not assignments:
        raise MaintenanceBodyError("no assignments")
    return assignments


def _assignment_operator(c: TokenCursor) -> None:
    if c.accept_symbol(":="):
        return
    if c.at_symbol(":"):
        c.advance()
    c.expect_symbol("=")


def _expression(c: TokenCursor, dialect: str) -> ParsedExpression:
    """Consume an expression up to its terminating semicolon."""
    tokens: list[Token] = []
    depth = 0
    while True:
        if c.at_end():
            raise MaintenanceBodyError("assignment is not terminated by `;`")
        token = c.advance()
        if token.token_type == TokenType.SEMICOLON:
            break
        if token.token_type == TokenType.L_PAREN:
            depth += 1
        elif token.token_type == TokenType.R_PAREN:
            depth -= 1
            if depth < 0:
                raise MaintenanceBodyError("unbalanced parentheses in assignment")
        tokens.append(token)
    if depth != 0:
        raise MaintenanceBodyError("unbalanced parentheses in assignment")
    if not tokens:
        raise MaintenanceBodyError("assignment without an expression")
    return parse_expression(c.text(tokens), dialect)


def trigger_assignments(
    trigger: TriggerLike, catalog: CatalogLike
) -> list[tuple[ColumnLike, ParsedExpression]] | None:
    function = trigger.function(catalog)
    if function is None or not function.body:
        return None
    columns = trigger.table(catalog).columns(catalog)
    try:
        return parse_maintenance_body(function.body, columns)
    except MaintenanceBodyError as exc:
        logger.debug("Trigger `%s` is not a maintenance trigger: %s", trigger.name, exc.reason)
        return None
