"""Foreign-key dependency ordering of tables."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from ddlcat.core.errors import InconsistentCatalogError

if TYPE_CHECKING:
    from ddlcat.core.interfaces import CatalogLike, TableLike

logger = logging.getLogger(__name__)


def _format_key(key: tuple[str | None, str]) -> str:
    schema, name = key
    return f"{schema}.{name}" if schema else name


def table_dag(catalog: CatalogLike) -> list[TableLike]:
    """
    Order tables so that each table comes after every table it references.

    One edge per foreign key from the referenced table to the host table,
    self references skipped and parallel edges collapsed. Kahn's algorithm
    with a FIFO queue seeded in catalog order decides ties.

    Raises:
        InconsistentCatalogError: if a foreign key points at a table missing
            from the catalog, or the foreign keys form a cycle.
    """
    tables = list(catalog.tables())
    position = {table.key: i for i, table in enumerate(tables)}

    edges: set[tuple[int, int]] = set()
    for host, table in enumerate(tables):
        for foreign_key in table.foreign_keys(catalog):
            if foreign_key.is_self_referential():
                continue
            referenced = position.get(foreign_key.referenced_table_key)
            if referenced is None:
                raise InconsistentCatalogError(
                    f"Table `{table.qualified_name}` references "
                    f"`{_format_key(foreign_key.referenced_table_key)}`, which is not in the catalog."
                )
            edges.add((referenced, host))

    successors: list[list[int]] = [[] for _ in tables]
    in_degree = [0] * len(tables)
    for source, target in sorted(edges):
        successors[source].append(target)
        in_degree[target] += 1

    queue = deque(i for i, degree in enumerate(in_degree) if degree == 0)
    order: list[TableLike] = []
    while queue:
        current = queue.popleft()
        order.append(tables[current])
        for successor in successors[current]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    if len(order) != len(tables):
        stuck = [tables[i].qualified_name for i, degree in enumerate(in_degree) if degree > 0]
        raise InconsistentCatalogError(
            f"Foreign keys form a cycle between: {', '.join(stuck)}."
        )
    logger.debug("Ordered %d table(s) over %d dependency edge(s)", len(order), len(edges))
    return order
