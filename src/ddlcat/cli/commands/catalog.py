from __future__ import annotations

import typer

from ddlcat.cli.common.context import CatalogAppContext, load_catalog
from ddlcat.cli.common.exits import die, exit_from_exc, warn_exit
from ddlcat.cli.common.options import OrderOpt, PathsArg, TableOpt, as_paths
from ddlcat.cli.common.output import out
from ddlcat.core.errors import InconsistentCatalogError

_ORDERS = ("dag", "name")


def summary(ctx: typer.Context, paths: list[str] = PathsArg):
    """Count the entities of the catalog built from PATHS."""
    appctx: CatalogAppContext = ctx.obj
    catalog = load_catalog(appctx, as_paths(paths))

    out.header(f"Catalog {catalog.catalog_name}")
    out.kv(
        {
            "tables": catalog.number_of_tables(),
            "columns": len(catalog.columns()),
            "indices": len(catalog.indices()),
            "unique indices": len(catalog.unique_indices()),
            "foreign keys": len(catalog.foreign_keys()),
            "check constraints": len(catalog.check_constraints()),
            "functions": len([f for f in catalog.functions() if not f.builtin]),
            "triggers": len(catalog.triggers()),
            "policies": len(catalog.policies()),
            "roles": len(catalog.roles()),
            "grants": len(catalog.grants()),
            "schemas": len(catalog.schemas()),
            "tables with RLS": catalog.number_of_rls_tables(),
            "timezone": catalog.timezone or "-",
        }
    )


def tables(ctx: typer.Context, paths: list[str] = PathsArg, order: str = OrderOpt):
    """List tables, by default in foreign-key dependency order."""
    if order not in _ORDERS:
        die(f"Invalid --order '{order}'. Use one of: {', '.join(_ORDERS)}.", code=2)
    appctx: CatalogAppContext = ctx.obj
    catalog = load_catalog(appctx, as_paths(paths))

    if order == "dag":
        try:
            listed = catalog.table_dag()
        except InconsistentCatalogError as exc:
            exit_from_exc(exc, hint="Use --order name to list the tables anyway.", code=1)
    else:
        listed = sorted(catalog.tables(), key=lambda t: t.qualified_name)

    if not listed:
        warn_exit("No tables found.")
    out.tables_table(catalog, listed, title=f"Tables ({order} order)")


def checks(ctx: typer.Context, paths: list[str] = PathsArg, table: str | None = TableOpt):
    """List check constraints with their classification."""
    appctx: CatalogAppContext = ctx.obj
    catalog = load_catalog(appctx, as_paths(paths))

    found = catalog.check_constraints()
    if table:
        selected = [t for t in catalog.tables() if table in (t.name, t.qualified_name)]
        if not selected:
            die(f"Table '{table}' not found.", code=1)
        keys = {t.key for t in selected}
        found = [c for c in found if c.table_key in keys]

    if not found:
        warn_exit("No check constraints found.")
    out.checks_table(catalog, found)


def triggers(ctx: typer.Context, paths: list[str] = PathsArg):
    """List triggers and the columns maintenance triggers stamp."""
    appctx: CatalogAppContext = ctx.obj
    catalog = load_catalog(appctx, as_paths(paths))

    found = catalog.triggers()
    if not found:
        warn_exit("No triggers found.")
    out.triggers_table(catalog, found)


def roles(ctx: typer.Context, paths: list[str] = PathsArg):
    """List roles with their flags, memberships and grants."""
    appctx: CatalogAppContext = ctx.obj
    catalog = load_catalog(appctx, as_paths(paths))

    found = catalog.roles()
    if not found:
        warn_exit("No roles found.")
    out.roles_table(catalog, found)
