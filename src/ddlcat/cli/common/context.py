"""Application context management for the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ddlcat.cli.common.exits import exit_from_exc
from ddlcat.cli.common.output import out
from ddlcat.core.catalog import Catalog
from ddlcat.core.config import Settings
from ddlcat.core.errors import CatalogError
from ddlcat.core.loader import catalog_from_paths


@dataclass
class CatalogAppContext:
    """Application context holding the settings commands build catalogs with."""

    dialect: str
    catalog_name: str


def build_context(
    settings: Settings, *, dialect: str | None = None, catalog_name: str | None = None
) -> CatalogAppContext:
    """Build the application context, letting CLI options override settings."""
    return CatalogAppContext(
        dialect=dialect or settings.dialect,
        catalog_name=catalog_name or settings.catalog_name,
    )


def load_catalog(appctx: CatalogAppContext, paths: list[Path]) -> Catalog:
    """Build the catalog for ``paths`` or exit with the first error."""
    try:
        with out.status(f"Reading {len(paths)} path(s)..."):
            return catalog_from_paths(
                paths, catalog_name=appctx.catalog_name, dialect=appctx.dialect
            )
    except CatalogError as exc:
        exit_from_exc(exc, code=1)
