"""Build catalogs from SQL text, files and directories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ddlcat.core.adapters.sqlglot_reader import parse_sql
from ddlcat.core.catalog import Catalog
from ddlcat.core.docs import extract_documentation
from ddlcat.core.errors import LoadError, SqlParseError
from ddlcat.core.processor import build_catalog
from ddlcat.core.statements import Statement

logger = logging.getLogger(__name__)

# Migration tools keep the reverse of each migration in a down.sql next to it.
SKIPPED_FILE_NAMES = frozenset({"down.sql"})


def catalog_from_sql(
    sql: str, *, catalog_name: str = "catalog", dialect: str = "postgres"
) -> Catalog:
    """Parse and build a catalog from one SQL document, with its comments."""
    statements = parse_sql(sql, dialect)
    return _build(statements, catalog_name)


def collect_sql_files(paths: Iterable[Path | str]) -> list[Path]:
    """
    Expand paths into the SQL files to load, in load order.

    Files are taken as given. Directories contribute every ``*.sql`` file
    below them (``down.sql`` excluded), sorted by path.

    Raises:
        LoadError: if a path does not exist.
    """
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            found = sorted(
                p for p in path.rglob("*.sql") if p.is_file() and p.name not in SKIPPED_FILE_NAMES
            )
            logger.debug("Found %d SQL file(s) under %s", len(found), path)
            files.extend(found)
        elif path.is_file():
            files.append(path)
        else:
            raise LoadError(path, "no such file or directory")
    return files


def catalog_from_paths(
    paths: Iterable[Path | str], *, catalog_name: str = "catalog", dialect: str = "postgres"
) -> Catalog:
    """
    Build one catalog from SQL files and directories.

    Files are parsed one at a time so parse errors name their file, then
    their statements are concatenated in load order.

    Raises:
        LoadError: if a path is missing or unreadable.
        SqlParseError: if a file does not parse; ``path`` names the file.
        CatalogError: if the statements do not form a valid catalog.
    """
    statements: list[Statement] = []
    for path in collect_sql_files(paths):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(path, str(exc)) from exc
        try:
            parsed = parse_sql(text, dialect)
        except SqlParseError as exc:
            raise SqlParseError(exc.message, path=path) from exc
        logger.info("Loaded %d statement(s) from %s", len(parsed), path)
        statements.extend(parsed)
    return _build(statements, catalog_name)


def _build(statements: list[Statement], catalog_name: str) -> Catalog:
    catalog = build_catalog(statements, catalog_name)
    docs = extract_documentation(statements)
    if docs:
        catalog = catalog.with_documentation(docs)
    return catalog
