"""Glue between sqlglot expression trees and the catalog.

Everything that pattern-matches sqlglot node shapes lives here so that the
rules in ``constraints`` and ``maintenance`` read as plain logic over a
handful of helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence, TypeVar

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, TokenError

from ddlcat.core.errors import SqlParseError, UnknownColumnError

# Functions that are written without parentheses.
NILADIC_FUNCTIONS = frozenset(
    {
        "current_user",
        "session_user",
        "current_role",
        "current_timestamp",
        "current_date",
        "current_time",
        "localtimestamp",
        "localtime",
        "user",
    }
)

LENGTH_FUNCTIONS = frozenset(
    {"length", "len", "char_length", "character_length", "octet_length"}
)

_C = TypeVar("_C")


@dataclass(frozen=True)
class ParsedExpression:
    """A SQL expression kept both as source text and as a sqlglot tree."""

    sql: str
    node: exp.Expression = field(compare=False, repr=False)

    def __str__(self) -> str:
        return self.sql


def parse_expression(sql: str, dialect: str = "postgres") -> ParsedExpression:
    """Parse a standalone SQL expression.

    Raises:
        SqlParseError: if sqlglot rejects the text.
    """
    text = sql.strip()
    if not text:
        raise SqlParseError("empty expression")
    try:
        node = sqlglot.parse_one(text, read=dialect)
    except (ParseError, TokenError) as exc:
        raise SqlParseError(f"{exc} in expression `{text}`") from exc
    if node is None:
        raise SqlParseError(f"no expression found in `{text}`")
    return ParsedExpression(sql=text, node=node)


def column_expression(name: str) -> ParsedExpression:
    """Build the expression of a bare column reference."""
    node = exp.column(name)
    return ParsedExpression(sql=name, node=node)


def children(node: exp.Expression) -> Iterator[exp.Expression]:
    """Yield the direct child expressions of a node in argument order."""
    for value in node.args.values():
        if isinstance(value, exp.Expression):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, exp.Expression):
                    yield item


def unwrap(node: exp.Expression) -> exp.Expression:
    """Strip any number of enclosing parentheses."""
    while isinstance(node, exp.Paren):
        node = node.this
    return node


def column_name(node: exp.Expression) -> str | None:
    """Return the column name if the node is a (possibly qualified) column."""
    node = unwrap(node)
    if isinstance(node, exp.Column) and isinstance(node.this, exp.Identifier):
        return node.name
    return None


def column_references(node: exp.Expression) -> list[str]:
    """Return referenced column names in first-seen order.

    Subqueries are not entered since they have their own column scope.
    """
    names: list[str] = []

    def visit(current: exp.Expression) -> None:
        if isinstance(current, (exp.Select, exp.Subquery)):
            return
        if isinstance(current, exp.Column):
            name = column_name(current)
            if name is not None and name not in names:
                names.append(name)
            return
        for child in children(current):
            visit(child)

    visit(node)
    return names


def resolve_columns(
    node: exp.Expression,
    table_name: str,
    columns: Sequence[_C],
    name_of=lambda column: column.name,
) -> list[_C]:
    """Map the column references of an expression onto table columns.

    Raises:
        UnknownColumnError: if a referenced name is not a column of the table.
    """
    resolved: list[_C] = []
    for name in column_references(node):
        match = next((c for c in columns if name_of(c) == name), None)
        if match is None:
            if name.lower() in NILADIC_FUNCTIONS:
                continue
            raise UnknownColumnError(name, table_name)
        resolved.append(match)
    return resolved


def function_references(node: exp.Expression) -> list[tuple[str, ...]]:
    """Return the calls made by an expression tree in source order.

    sqlglot folds spellings such as ``char_length`` and ``length`` into one
    node type, so each call is given as the lower-cased names it may have
    been written with, preferred name first. Niladic names that sqlglot
    reads as bare columns, e.g. ``session_user``, count as calls.
    """
    calls: list[tuple[str, ...]] = []
    for found in node.find_all(exp.Func, exp.Column, bfs=False):
        if isinstance(found, exp.Column):
            if found.table or found.name.lower() not in NILADIC_FUNCTIONS:
                continue
            names: tuple[str, ...] = (found.name.lower(),)
        else:
            names = call_names(found)
        if names and names not in calls:
            calls.append(names)
    return calls


def literal_value(node: exp.Expression) -> tuple[str, object] | None:
    """Return a comparable ``(kind, value)`` pair for literal nodes."""
    node = unwrap(node)
    if isinstance(node, exp.Boolean):
        return ("boolean", bool(node.this))
    if isinstance(node, exp.Null):
        return ("null", None)
    if isinstance(node, exp.Literal):
        if node.is_string:
            return ("string", node.this)
        return ("number", _number(node.this))
    if isinstance(node, exp.Neg) and isinstance(unwrap(node.this), exp.Literal):
        inner = literal_value(node.this)
        if inner is not None and inner[0] == "number":
            return ("number", -inner[1])
    return None


def _number(text: str) -> object:
    try:
        return int(text)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            return text


def null_test(node: exp.Expression) -> tuple[str, bool] | None:
    """Recognise ``col IS NULL`` / ``col IS NOT NULL``.

    Returns:
        ``(column_name, is_null)`` or None when the node is not a null test
        over a plain column.
    """
    node = unwrap(node)
    negated = False
    if isinstance(node, exp.Not):
        inner = unwrap(node.this)
        if not isinstance(inner, exp.Is):
            return None
        node = inner
        negated = True
    if not isinstance(node, exp.Is) or not isinstance(node.expression, exp.Null):
        return None
    name = column_name(node.this)
    if name is None:
        return None
    return name, not negated


def integer_literal(node: exp.Expression) -> int | None:
    value = literal_value(node)
    if value is None or value[0] != "number" or not isinstance(value[1], int):
        return None
    return value[1]


def string_literal(node: exp.Expression) -> str | None:
    value = literal_value(node)
    if value is None or value[0] != "string":
        return None
    return value[1]


def call_names(node: exp.Expression) -> tuple[str, ...]:
    """Return every name the call node may have been written with, preferred first."""
    node = unwrap(node)
    if isinstance(node, exp.Anonymous):
        return (node.name.lower(),)
    if isinstance(node, exp.Func):
        return tuple(name.lower() for name in type(node).sql_names())
    return ()


def call_aliases(node: exp.Expression) -> set[str]:
    """Return every name the call node may have been written with."""
    return set(call_names(node))


def call_arguments(node: exp.Expression) -> list[exp.Expression]:
    node = unwrap(node)
    if isinstance(node, exp.Anonymous):
        return list(node.expressions)
    return list(children(node))


def length_call_column(node: exp.Expression) -> str | None:
    """Return the column of ``length(col)`` style calls."""
    if not (call_aliases(node) & LENGTH_FUNCTIONS):
        return None
    arguments = call_arguments(node)
    if len(arguments) != 1:
        return None
    return column_name(arguments[0])
