"""Check-constraint analysis.

Classifies a CHECK expression as always true (tautology), always false
(negation) or data dependent, using nothing but the expression and the
nullability of the owning table's columns. Also recognises the
all-or-nothing nullability pattern, not-empty text checks and text length
bounds.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlglot import exp

from ddlcat.core.expressions import (
    column_name,
    integer_literal,
    length_call_column,
    literal_value,
    null_test,
    string_literal,
    unwrap,
)

if TYPE_CHECKING:
    from ddlcat.core.interfaces import CatalogLike, CheckConstraintLike, ColumnLike, TableLike

UPPER = "upper"
LOWER = "lower"

_SWAPPED = {exp.LT: exp.GT, exp.LTE: exp.GTE, exp.GT: exp.LT, exp.GTE: exp.LTE}

# (direction, operator) -> whether the literal itself is within the bound
_INCLUSIVE = {
    (UPPER, exp.LT): False,
    (UPPER, exp.LTE): True,
    (LOWER, exp.GT): False,
    (LOWER, exp.GTE): True,
}


def evaluate(check: CheckConstraintLike, catalog: CatalogLike) -> bool | None:
    """Three-valued classification: True, False or None for unknown."""
    columns = {c.name: c for c in check.columns(catalog)}
    return evaluate_expression(check.expression.node, columns, catalog)


def evaluate_expression(
    node: exp.Expression, columns: dict[str, ColumnLike], catalog: CatalogLike
) -> bool | None:
    node = unwrap(node)
    if isinstance(node, exp.Boolean):
        return bool(node.this)

    test = null_test(node)
    if test is not None:
        name, is_null = test
        column = columns.get(name)
        if column is None or column.is_nullable(catalog):
            return None
        return not is_null

    if isinstance(node, (exp.EQ, exp.NEQ)):
        left = literal_value(node.this)
        right = literal_value(node.expression)
        if left is None or right is None or "null" in (left[0], right[0]):
            return None
        equal = left == right
        return equal if isinstance(node, exp.EQ) else not equal

    if isinstance(node, exp.Or):
        if _is_null_pair(node.this, node.expression):
            return True
        left = evaluate_expression(node.this, columns, catalog)
        right = evaluate_expression(node.expression, columns, catalog)
        if left is True or right is True:
            return True
        if left is False and right is False:
            return False
        return None

    if isinstance(node, exp.And):
        left = evaluate_expression(node.this, columns, catalog)
        right = evaluate_expression(node.expression, columns, catalog)
        if left is False or right is False:
            return False
        if left is True and right is True:
            return True
        return None

    if isinstance(node, exp.Not):
        inner = evaluate_expression(node.this, columns, catalog)
        return None if inner is None else not inner

    return None


def _is_null_pair(left: exp.Expression, right: exp.Expression) -> bool:
    """``c IS NULL OR c IS NOT NULL`` in either order."""
    a, b = null_test(left), null_test(right)
    return a is not None and b is not None and a[0] == b[0] and a[1] != b[1]


def _null_columns(node: exp.Expression, is_null: bool) -> list[str] | None:
    """Columns of an AND chain made only of IS [NOT] NULL tests of one kind."""
    node = unwrap(node)
    if isinstance(node, exp.And):
        left = _null_columns(node.this, is_null)
        right = _null_columns(node.expression, is_null)
        if left is None or right is None:
            return None
        return sorted(set(left + right))
    test = null_test(node)
    if test is None or test[1] != is_null:
        return None
    return [test[0]]


def is_mutual_nullability(node: exp.Expression) -> bool:
    """``(a IS NULL AND b IS NULL) OR (a IS NOT NULL AND b IS NOT NULL)``,
    sides in either order, over at least two columns."""
    node = unwrap(node)
    if not isinstance(node, exp.Or):
        return False
    for first, second in ((node.this, node.expression), (node.expression, node.this)):
        nulls = _null_columns(first, True)
        not_nulls = _null_columns(second, False)
        if nulls is not None and not_nulls is not None:
            return nulls == not_nulls and len(nulls) >= 2
    return False


def is_not_empty_text(check: CheckConstraintLike, catalog: CatalogLike) -> bool:
    return _not_empty(check.expression.node, check, catalog)


def _not_empty(node: exp.Expression, check: CheckConstraintLike, catalog: CatalogLike) -> bool:
    node = unwrap(node)
    if isinstance(node, exp.NEQ):
        for column_side, value_side in ((node.this, node.expression), (node.expression, node.this)):
            name = column_name(column_side)
            if name is None or string_literal(value_side) != "":
                continue
            column = check.column(catalog, name)
            if column is not None and column.is_textual():
                return True
        return False
    if isinstance(node, exp.And):
        return _not_empty(node.this, check, catalog) or _not_empty(
            node.expression, check, catalog
        )
    return False


def text_length_bound(
    check: CheckConstraintLike, catalog: CatalogLike, direction: str
) -> int | None:
    """Text length bound enforced by a check.

    Upper bounds are exclusive (``length(c) <= 10`` gives 11), lower bounds
    inclusive (``length(c) > 10`` gives 11). A bound may come from another
    column's length, resolved over all checks of the table.
    """
    return _bound(check.expression.node, check, catalog, None, [], direction)


def _bound(
    node: exp.Expression,
    check: CheckConstraintLike,
    catalog: CatalogLike,
    target: str | None,
    visited: list[str],
    direction: str,
) -> int | None:
    node = unwrap(node)
    operator = type(node)
    if operator in _SWAPPED:
        bound = _length_bound(
            node.this, operator, node.expression, check, catalog, target, visited, direction
        )
        if bound is not None:
            return bound
        return _length_bound(
            node.expression, _SWAPPED[operator], node.this, check, catalog, target, visited, direction
        )

    if isinstance(node, exp.And):
        left = _bound(node.this, check, catalog, target, visited, direction)
        right = _bound(node.expression, check, catalog, target, visited, direction)
        if left is not None and right is not None:
            return min(left, right) if direction == UPPER else max(left, right)
        return left if left is not None else right

    if isinstance(node, exp.Or):
        left = _bound(node.this, check, catalog, target, visited, direction)
        right = _bound(node.expression, check, catalog, target, visited, direction)
        if left is not None and right is not None and direction == LOWER:
            return min(left, right)
        return None

    return None


def _length_bound(
    call: exp.Expression,
    operator: type,
    value: exp.Expression,
    check: CheckConstraintLike,
    catalog: CatalogLike,
    target: str | None,
    visited: list[str],
    direction: str,
) -> int | None:
    inclusive = _INCLUSIVE.get((direction, operator))
    if inclusive is None:
        return None
    name = length_call_column(call)
    if name is None or (target is not None and name != target):
        return None
    column = check.column(catalog, name)
    if column is None or not column.is_textual():
        return None

    limit = integer_literal(value)
    if limit is None or limit < 0:
        other = length_call_column(value)
        if other is None or other in visited:
            return None
        limit = _global_bound(check.table(catalog), catalog, other, visited, direction)
        if limit is None:
            return None

    if direction == UPPER:
        return limit + 1 if inclusive else limit
    return limit if inclusive else limit + 1


def _global_bound(
    table: TableLike, catalog: CatalogLike, target: str, visited: list[str], direction: str
) -> int | None:
    visited.append(target)
    result = None
    for check in table.check_constraints(catalog):
        bound = _bound(check.expression.node, check, catalog, target, visited, direction)
        if bound is None:
            continue
        if result is None:
            result = bound
        else:
            result = min(result, bound) if direction == UPPER else max(result, bound)
    visited.pop()
    return result
