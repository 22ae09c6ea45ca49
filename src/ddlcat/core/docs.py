from __future__ import annotations

import logging
from typing import Iterable

from ddlcat.core.catalog import TableDocumentation
from ddlcat.core.interfaces import TableKey
from ddlcat.core.statements import CommentOn, Statement

logger = logging.getLogger(__name__)


def extract_documentation(statements: Iterable[Statement]) -> dict[TableKey, TableDocumentation]:
    """
    Collect ``COMMENT ON TABLE`` and ``COMMENT ON COLUMN`` texts by table key.

    Later comments win; ``IS NULL`` clears a comment. Comments on other
    object kinds are skipped.
    """
    tables: dict[TableKey, str | None] = {}
    columns: dict[TableKey, dict[str, str | None]] = {}
    for statement in statements:
        if not isinstance(statement, CommentOn):
            continue
        key = (statement.target.schema, statement.target.name)
        if statement.object_kind == "TABLE":
            tables[key] = statement.text
        elif statement.object_kind == "COLUMN" and statement.column is not None:
            columns.setdefault(key, {})[statement.column] = statement.text
        else:
            logger.debug("Skipping COMMENT ON %s %s", statement.object_kind, statement.target)

    docs: dict[TableKey, TableDocumentation] = {}
    for key in list(tables) + [k for k in columns if k not in tables]:
        docs[key] = TableDocumentation(
            table=tables.get(key),
            columns=tuple(
                (name, text) for name, text in columns.get(key, {}).items() if text is not None
            ),
        )
    return docs
