"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from ddlcat.core.interfaces import CatalogLike, CheckConstraintLike, RoleLike, TableLike, TriggerLike

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)
# Log records go to stderr so command output stays parseable.
err_console = Console(theme=_THEME, stderr=True)

_ROLE_FLAGS = (
    ("superuser", "SUPERUSER"),
    ("create_db", "CREATEDB"),
    ("create_role", "CREATEROLE"),
    ("login", "LOGIN"),
    ("bypass_rls", "BYPASSRLS"),
    ("replication", "REPLICATION"),
)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def hint(self, msg: str) -> None:
        """Print a dimmed follow-up suggestion under an error."""
        console.print(f"[meta]  {escape(msg)}[/]")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {escape(msg)}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {escape(str(v))}")

    def tables_table(
        self, catalog: CatalogLike, tables: Iterable[TableLike], title: str = "Tables"
    ) -> None:
        """Render tables with their column count, primary key and RLS state."""
        t = Table(title=title, show_lines=False)
        t.add_column("Schema", style="meta")
        t.add_column("Table", style="ok", no_wrap=True)
        t.add_column("Columns", justify="right")
        t.add_column("Primary key")
        t.add_column("RLS", style="meta")

        for table in tables:
            if table.has_forced_row_level_security(catalog):
                rls = "forced" if table.has_row_level_security(catalog) else "forced (disabled)"
            else:
                rls = "enabled" if table.has_row_level_security(catalog) else ""
            t.add_row(
                table.schema or "",
                escape(table.name),
                str(len(table.columns(catalog))),
                escape(", ".join(c.name for c in table.primary_key_columns(catalog))),
                rls,
            )

        console.print(t)

    def checks_table(
        self,
        catalog: CatalogLike,
        checks: Iterable[CheckConstraintLike],
        title: str = "Check constraints",
    ) -> None:
        """Render check constraints with the analyzer's classification."""
        t = Table(title=title, show_lines=False)
        t.add_column("Table", style="ok", no_wrap=True)
        t.add_column("Name", style="meta")
        t.add_column("Expression")
        t.add_column("Classification")

        for check in checks:
            t.add_row(
                escape(check.table(catalog).qualified_name),
                escape(getattr(check, "name", None) or ""),
                escape(check.expression.sql),
                describe_check(catalog, check),
            )

        console.print(t)

    def triggers_table(
        self, catalog: CatalogLike, triggers: Iterable[TriggerLike], title: str = "Triggers"
    ) -> None:
        """Render triggers; maintenance triggers list the columns they stamp."""
        t = Table(title=title, show_lines=False)
        t.add_column("Trigger", style="ok", no_wrap=True)
        t.add_column("Table")
        t.add_column("When", style="meta")
        t.add_column("Function")
        t.add_column("Maintains")

        for trigger in triggers:
            events = " OR ".join(e.value for e in trigger.events)
            assignments = trigger.maintenance_assignments(catalog)
            maintains = (
                "; ".join(f"{column.name} = {expression.sql}" for column, expression in assignments)
                if assignments
                else ""
            )
            t.add_row(
                escape(trigger.name),
                escape(trigger.table(catalog).qualified_name),
                f"{trigger.timing.value} {events} FOR EACH {trigger.orientation.value}",
                escape(trigger.function_name or ""),
                escape(maintains),
            )

        console.print(t)

    def roles_table(
        self, catalog: CatalogLike, roles: Iterable[RoleLike], title: str = "Roles"
    ) -> None:
        """Render roles with their flags, memberships and grants."""
        t = Table(title=title, show_lines=True)
        t.add_column("Role", style="ok", no_wrap=True)
        t.add_column("Flags", style="meta")
        t.add_column("Member of")
        t.add_column("Grants")

        for role in roles:
            flags = [label for attribute, label in _ROLE_FLAGS if getattr(role, attribute)]
            if not role.inherit:
                flags.append("NOINHERIT")
            if role.connection_limit is not None:
                flags.append(f"CONNECTION LIMIT {role.connection_limit}")
            t.add_row(
                escape(role.name),
                " ".join(flags),
                escape(", ".join(r.name for r in role.member_of(catalog))),
                escape("\n".join(g.describe() for g in role.grants(catalog))),
            )

        console.print(t)


def describe_check(catalog: CatalogLike, check: CheckConstraintLike) -> str:
    """Short human classification of a check constraint."""
    labels: list[str] = []
    if check.is_tautology(catalog):
        labels.append("[warn]tautology[/]")
    if check.is_negation(catalog):
        labels.append("[err]negation[/]")
    if check.is_mutual_nullability_constraint(catalog):
        labels.append("mutual nullability")
    if check.is_not_empty_text_constraint(catalog):
        labels.append("not empty")
    lower = check.lower_text_bound(catalog)
    upper = check.upper_text_bound(catalog)
    if lower is not None:
        labels.append(f"length >= {lower}")
    if upper is not None:
        labels.append(f"length < {upper}")
    return ", ".join(labels)


out = Out()
