"""Concrete catalog entities.

One frozen dataclass per interface in ``ddlcat.core.interfaces``. Entities
hold keys to the entities they relate to (a table key, a function name, a
role name) and resolve them against whichever catalog they are queried
with.
"""

from __future__ import annotations

from dataclasses import dataclass

from ddlcat.core.errors import InvalidArgumentError
from ddlcat.core.expressions import ParsedExpression
from ddlcat.core.interfaces import (
    CatalogLike,
    CheckConstraintLike,
    ColumnLike,
    ForeignKeyLike,
    FunctionLike,
    GrantLike,
    IndexLike,
    PolicyLike,
    RoleLike,
    SchemaLike,
    TableKey,
    TableLike,
    TriggerLike,
    UniqueIndexLike,
    qualified,
)
from ddlcat.core.statements import (
    FunctionArgument,
    GrantObjectKind,
    GrantObjects,
    ObjectName,
    PolicyCommand,
    Privilege,
    TriggerEvent,
    TriggerOrientation,
    TriggerTiming,
)

DEFAULT_SCHEMA = "public"


def resolve_table(catalog: CatalogLike, name: ObjectName) -> TableLike | None:
    """Look a table up by name, treating an unqualified name and ``public``
    as the same schema."""
    table = catalog.table(name.name, name.schema)
    if table is not None:
        return table
    if name.schema is None:
        return catalog.table(name.name, DEFAULT_SCHEMA)
    if name.schema == DEFAULT_SCHEMA:
        return catalog.table(name.name, None)
    return None


def _owning_table(catalog: CatalogLike, key: TableKey, what: str) -> TableLike:
    schema, name = key
    table = catalog.table(name, schema)
    if table is None:
        raise InvalidArgumentError(
            f"{what} belongs to table `{qualified(schema, name)}`, which is not in this catalog."
        )
    return table


def _in_schema(schema: str | None, name: str) -> bool:
    return schema == name or (schema is None and name == DEFAULT_SCHEMA)


@dataclass(frozen=True)
class TableMetadata:
    """Derived per-table data kept by the catalog next to each table."""

    columns: tuple[Column, ...] = ()
    primary_key: tuple[str, ...] = ()
    indices: tuple[Index, ...] = ()
    unique_indices: tuple[UniqueIndex, ...] = ()
    foreign_keys: tuple[ForeignKey, ...] = ()
    check_constraints: tuple[CheckConstraint, ...] = ()
    documentation: str | None = None
    column_documentation: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Table(TableLike):
    name: str
    schema: str | None = None
    rls_enabled: bool = False
    rls_forced: bool = False

    def metadata(self, catalog: CatalogLike) -> TableMetadata:
        return catalog.table_metadata(self)

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class Column(ColumnLike):
    table_key: TableKey
    name: str
    data_type: str
    not_null: bool = False
    default: str | None = None
    generated: bool = False
    identity: bool = False
    ordinal: int = 0

    def table(self, catalog: CatalogLike) -> TableLike:
        return _owning_table(catalog, self.table_key, f"Column `{self.name}`")


@dataclass(frozen=True)
class Index(IndexLike):
    table_key: TableKey
    expressions: tuple[ParsedExpression, ...]
    name: str | None = None

    def table(self, catalog: CatalogLike) -> TableLike:
        return _owning_table(catalog, self.table_key, f"Index `{self.name}`")


@dataclass(frozen=True)
class UniqueIndex(UniqueIndexLike):
    table_key: TableKey
    expressions: tuple[ParsedExpression, ...]
    name: str | None = None
    nulls_distinct: bool = True
    primary_key: bool = False

    def table(self, catalog: CatalogLike) -> TableLike:
        return _owning_table(catalog, self.table_key, f"Unique index `{self.name}`")

    def is_primary_key(self, catalog: CatalogLike) -> bool:
        return self.primary_key


@dataclass(frozen=True)
class ForeignKey(ForeignKeyLike):
    host_table_key: TableKey
    host_column_names: tuple[str, ...]
    referenced_table_key: TableKey
    referenced_column_names: tuple[str, ...]
    name: str | None = None
    on_delete: str | None = None
    on_update: str | None = None

    def host_table(self, catalog: CatalogLike) -> TableLike:
        return _owning_table(catalog, self.host_table_key, f"Foreign key `{self.name}`")


@dataclass(frozen=True)
class Function(FunctionLike):
    name: str
    arguments: tuple[FunctionArgument, ...] = ()
    return_type: str | None = None
    body: str | None = None
    language: str | None = None
    schema: str | None = None
    builtin: bool = False

    def argument_type_names(self) -> list[str]:
        return [a.data_type for a in self.arguments if a.mode != "OUT"]

    def return_type_name(self) -> str | None:
        return self.return_type

    @property
    def signature(self) -> str:
        return f"{self.name}({', '.join(self.argument_type_names())})"


@dataclass(frozen=True)
class CheckConstraint(CheckConstraintLike):
    table_key: TableKey
    expression: ParsedExpression
    column_names: tuple[str, ...] = ()
    function_names: tuple[str, ...] = ()
    name: str | None = None

    def table(self, catalog: CatalogLike) -> TableLike:
        return _owning_table(catalog, self.table_key, f"Check constraint `{self.expression}`")


@dataclass(frozen=True)
class Trigger(TriggerLike):
    name: str
    table_key: TableKey
    events: tuple[TriggerEvent, ...]
    timing: TriggerTiming
    orientation: TriggerOrientation = TriggerOrientation.STATEMENT
    function_name: str | None = None
    update_columns: tuple[str, ...] = ()
    when: ParsedExpression | None = None

    def table(self, catalog: CatalogLike) -> TableLike:
        return _owning_table(catalog, self.table_key, f"Trigger `{self.name}`")


@dataclass(frozen=True)
class Policy(PolicyLike):
    name: str
    table_key: TableKey
    command: PolicyCommand = PolicyCommand.ALL
    permissive: bool = True
    role_names: tuple[str, ...] = ()
    using: ParsedExpression | None = None
    with_check: ParsedExpression | None = None
    using_function_names: tuple[str, ...] = ()
    check_function_names: tuple[str, ...] = ()

    def table(self, catalog: CatalogLike) -> TableLike:
        return _owning_table(catalog, self.table_key, f"Policy `{self.name}`")


@dataclass(frozen=True)
class Role(RoleLike):
    name: str
    superuser: bool = False
    create_db: bool = False
    create_role: bool = False
    inherit: bool = True
    login: bool = False
    bypass_rls: bool = False
    replication: bool = False
    connection_limit: int | None = None
    memberships: tuple[str, ...] = ()

    def member_of(self, catalog: CatalogLike) -> list[RoleLike]:
        return [r for n in self.memberships if (r := catalog.role(n)) is not None]


@dataclass(frozen=True)
class Grant(GrantLike):
    privileges: tuple[Privilege, ...]
    objects: GrantObjects
    grantees: tuple[str, ...]
    all_privileges: bool = False
    with_grant_option: bool = False
    granted_by: str | None = None

    def tables(self, catalog: CatalogLike) -> list[TableLike]:
        kind = self.objects.kind
        if kind == GrantObjectKind.TABLES:
            return [t for n in self.objects.names if (t := resolve_table(catalog, n)) is not None]
        if kind == GrantObjectKind.ALL_TABLES_IN_SCHEMA:
            schemas = [n.name for n in self.objects.names]
            return [t for t in catalog.tables() if any(_in_schema(t.schema, s) for s in schemas)]
        return []

    def schemas(self, catalog: CatalogLike) -> list[SchemaLike]:
        if self.objects.kind in (
            GrantObjectKind.SCHEMAS,
            GrantObjectKind.ALL_TABLES_IN_SCHEMA,
            GrantObjectKind.ALL_FUNCTIONS_IN_SCHEMA,
        ):
            return [s for n in self.objects.names if (s := catalog.schema(n.name)) is not None]
        return []

    def functions(self, catalog: CatalogLike) -> list[FunctionLike]:
        kind = self.objects.kind
        if kind == GrantObjectKind.FUNCTIONS:
            return [f for n in self.objects.names if (f := catalog.function(n.name)) is not None]
        if kind == GrantObjectKind.ALL_FUNCTIONS_IN_SCHEMA:
            schemas = [n.name for n in self.objects.names]
            return [
                f
                for f in catalog.functions()
                if not f.builtin and any(_in_schema(f.schema, s) for s in schemas)
            ]
        return []

    def describe(self) -> str:
        privileges = "ALL" if self.all_privileges and not self.privileges else ", ".join(
            str(p) for p in self.privileges
        )
        return f"{privileges} ON {self.objects} TO {', '.join(self.grantees)}"


@dataclass(frozen=True)
class Schema(SchemaLike):
    name: str
    authorization: str | None = None
