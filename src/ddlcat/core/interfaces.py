"""Capability interfaces for catalog entities.

Each entity kind has one abstract base class declaring the attributes every
implementation carries, the accessors an implementation must provide and a
set of derived operations built on top of them. Cross references are never
stored as object pointers: every accessor that follows a reference takes
the catalog it should be resolved against, so the same entity value can be
queried against a builder during construction and against the frozen
catalog afterwards.

Lookups return None on absence. Handing an entity to a catalog it does not
belong to raises ``InvalidArgumentError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

from ddlcat.core import constraints, dag, maintenance
from ddlcat.core.datatypes import is_generated_type, is_textual, normalize_type
from ddlcat.core.expressions import column_name, column_references
from ddlcat.core.statements import GrantObjectKind

if TYPE_CHECKING:
    from ddlcat.core.expressions import ParsedExpression
    from ddlcat.core.models import TableMetadata
    from ddlcat.core.statements import (
        GrantObjects,
        PolicyCommand,
        Privilege,
        TriggerEvent,
        TriggerOrientation,
        TriggerTiming,
    )

TableKey = tuple["str | None", str]

# Grantees that are not catalog roles.
PSEUDO_ROLES = frozenset({"PUBLIC", "CURRENT_USER", "SESSION_USER", "CURRENT_ROLE"})

TABLE_OBJECT_KINDS = frozenset({GrantObjectKind.TABLES, GrantObjectKind.ALL_TABLES_IN_SCHEMA})


def qualified(schema: str | None, name: str) -> str:
    return f"{schema}.{name}" if schema else name


class TableLike(ABC):
    """A table: a name, an optional schema and row-level-security flags.

    Everything else about the table (columns, keys, indices, checks) lives
    in the catalog's metadata record for it.
    """

    name: str
    schema: str | None
    rls_enabled: bool
    rls_forced: bool

    @property
    def key(self) -> TableKey:
        return (self.schema, self.name)

    @property
    def qualified_name(self) -> str:
        return qualified(self.schema, self.name)

    @abstractmethod
    def metadata(self, catalog: CatalogLike) -> TableMetadata:
        """Return the derived metadata record of this table in ``catalog``."""
        ...

    def columns(self, catalog: CatalogLike) -> Sequence[ColumnLike]:
        return self.metadata(catalog).columns

    def column(self, catalog: CatalogLike, name: str) -> ColumnLike | None:
        return next((c for c in self.columns(catalog) if c.name == name), None)

    def primary_key_columns(self, catalog: CatalogLike) -> list[ColumnLike]:
        """Primary-key columns in key order (empty when there is no key)."""
        return [
            column
            for name in self.metadata(catalog).primary_key
            if (column := self.column(catalog, name)) is not None
        ]

    def has_primary_key(self, catalog: CatalogLike) -> bool:
        return bool(self.metadata(catalog).primary_key)

    def indices(self, catalog: CatalogLike) -> Sequence[IndexLike]:
        return self.metadata(catalog).indices

    def unique_indices(self, catalog: CatalogLike) -> Sequence[UniqueIndexLike]:
        return self.metadata(catalog).unique_indices

    def foreign_keys(self, catalog: CatalogLike) -> Sequence[ForeignKeyLike]:
        return self.metadata(catalog).foreign_keys

    def check_constraints(self, catalog: CatalogLike) -> Sequence[CheckConstraintLike]:
        return self.metadata(catalog).check_constraints

    def documentation(self, catalog: CatalogLike) -> str | None:
        return self.metadata(catalog).documentation

    def triggers(self, catalog: CatalogLike) -> list[TriggerLike]:
        return [t for t in catalog.triggers() if t.table_key == self.key]

    def policies(self, catalog: CatalogLike) -> list[PolicyLike]:
        return [p for p in catalog.policies() if p.table_key == self.key]

    def has_row_level_security(self, catalog: CatalogLike) -> bool:
        return self.rls_enabled

    def has_forced_row_level_security(self, catalog: CatalogLike) -> bool:
        return self.rls_forced

    def referenced_tables(self, catalog: CatalogLike) -> list[TableLike]:
        """Distinct tables this table points to by foreign key, self excluded."""
        tables: list[TableLike] = []
        for foreign_key in self.foreign_keys(catalog):
            if foreign_key.is_self_referential():
                continue
            table = foreign_key.referenced_table(catalog)
            if table is not None and table not in tables:
                tables.append(table)
        return tables

    def is_root(self, catalog: CatalogLike) -> bool:
        """A root table has no foreign key into another table."""
        return not any(not fk.is_self_referential() for fk in self.foreign_keys(catalog))


class ColumnLike(ABC):
    name: str
    table_key: TableKey
    data_type: str
    not_null: bool
    default: str | None
    generated: bool
    identity: bool

    @abstractmethod
    def table(self, catalog: CatalogLike) -> TableLike:
        ...

    def normalized_data_type(self) -> str:
        return normalize_type(self.data_type)

    def is_nullable(self, catalog: CatalogLike) -> bool:
        """Nullable unless declared NOT NULL or part of the primary key."""
        return not (self.not_null or self.is_primary_key(catalog))

    def is_primary_key(self, catalog: CatalogLike) -> bool:
        return self.name in self.table(catalog).metadata(catalog).primary_key

    def is_generated(self) -> bool:
        return self.generated or self.identity or is_generated_type(self.data_type)

    def is_textual(self) -> bool:
        return is_textual(self.data_type)

    def has_default(self) -> bool:
        return self.default is not None

    def documentation(self, catalog: CatalogLike) -> str | None:
        docs = dict(self.table(catalog).metadata(catalog).column_documentation)
        return docs.get(self.name)

    def check_constraints(self, catalog: CatalogLike) -> list[CheckConstraintLike]:
        return [
            check
            for check in self.table(catalog).check_constraints(catalog)
            if check.involves_column(self)
        ]


class IndexLike(ABC):
    """An index over one or more expressions of a single table."""

    table_key: TableKey
    expressions: tuple[ParsedExpression, ...]
    name: str | None

    @abstractmethod
    def table(self, catalog: CatalogLike) -> TableLike:
        ...

    @property
    def expression_sql(self) -> str:
        return ", ".join(e.sql for e in self.expressions)

    def is_simple(self) -> bool:
        """True when every indexed item is a plain column."""
        return all(column_name(e.node) is not None for e in self.expressions)

    def column_names(self) -> list[str]:
        names: list[str] = []
        for expression in self.expressions:
            for name in column_references(expression.node):
                if name not in names:
                    names.append(name)
        return names

    def columns(self, catalog: CatalogLike) -> list[ColumnLike]:
        table = self.table(catalog)
        return [
            column
            for name in self.column_names()
            if (column := table.column(catalog, name)) is not None
        ]


class UniqueIndexLike(IndexLike):
    @abstractmethod
    def is_primary_key(self, catalog: CatalogLike) -> bool:
        ...


class ForeignKeyLike(ABC):
    host_table_key: TableKey
    host_column_names: tuple[str, ...]
    referenced_table_key: TableKey
    referenced_column_names: tuple[str, ...]

    @abstractmethod
    def host_table(self, catalog: CatalogLike) -> TableLike:
        ...

    def referenced_table(self, catalog: CatalogLike) -> TableLike | None:
        """The referenced table, or None if it was dropped with CASCADE."""
        schema, name = self.referenced_table_key
        return catalog.table(name, schema)

    def is_self_referential(self) -> bool:
        return self.host_table_key == self.referenced_table_key

    def host_columns(self, catalog: CatalogLike) -> list[ColumnLike]:
        table = self.host_table(catalog)
        return [c for n in self.host_column_names if (c := table.column(catalog, n)) is not None]

    def referenced_columns(self, catalog: CatalogLike) -> list[ColumnLike]:
        table = self.referenced_table(catalog)
        if table is None:
            return []
        return [
            c for n in self.referenced_column_names if (c := table.column(catalog, n)) is not None
        ]


class FunctionLike(ABC):
    name: str
    body: str | None

    @abstractmethod
    def argument_type_names(self) -> list[str]:
        ...

    @abstractmethod
    def return_type_name(self) -> str | None:
        ...

    def normalized_argument_type_names(self) -> list[str]:
        return [normalize_type(t) for t in self.argument_type_names()]

    def normalized_return_type_name(self) -> str | None:
        return_type = self.return_type_name()
        return normalize_type(return_type) if return_type is not None else None


class CheckConstraintLike(ABC):
    """A CHECK constraint, with the classification queries of the analyzer."""

    table_key: TableKey
    expression: ParsedExpression
    column_names: tuple[str, ...]
    function_names: tuple[str, ...]

    @abstractmethod
    def table(self, catalog: CatalogLike) -> TableLike:
        ...

    def columns(self, catalog: CatalogLike) -> list[ColumnLike]:
        table = self.table(catalog)
        return [c for n in self.column_names if (c := table.column(catalog, n)) is not None]

    def column(self, catalog: CatalogLike, name: str) -> ColumnLike | None:
        if name not in self.column_names:
            return None
        return self.table(catalog).column(catalog, name)

    def functions(self, catalog: CatalogLike) -> list[FunctionLike]:
        return [f for n in self.function_names if (f := catalog.function(n)) is not None]

    def has_functions(self) -> bool:
        return bool(self.function_names)

    def involves_column(self, column: ColumnLike) -> bool:
        return column.table_key == self.table_key and column.name in self.column_names

    def involves_function(self, name: str) -> bool:
        return name.lower() in self.function_names

    def is_tautology(self, catalog: CatalogLike) -> bool:
        return constraints.evaluate(self, catalog) is True

    def is_negation(self, catalog: CatalogLike) -> bool:
        if constraints.evaluate(self, catalog) is False:
            return True
        upper = self.upper_text_bound(catalog)
        lower = self.lower_text_bound(catalog)
        return upper is not None and lower is not None and lower >= upper

    def is_mutual_nullability_constraint(self, catalog: CatalogLike) -> bool:
        return constraints.is_mutual_nullability(self.expression.node)

    def is_not_empty_text_constraint(self, catalog: CatalogLike) -> bool:
        return constraints.is_not_empty_text(self, catalog)

    def upper_text_bound(self, catalog: CatalogLike) -> int | None:
        """First rejected text length, if the constraint caps one."""
        return constraints.text_length_bound(self, catalog, constraints.UPPER)

    def lower_text_bound(self, catalog: CatalogLike) -> int | None:
        """Smallest accepted text length, if the constraint sets one."""
        return constraints.text_length_bound(self, catalog, constraints.LOWER)


class TriggerLike(ABC):
    name: str
    table_key: TableKey
    events: tuple[TriggerEvent, ...]
    timing: TriggerTiming
    orientation: TriggerOrientation
    function_name: str | None

    @abstractmethod
    def table(self, catalog: CatalogLike) -> TableLike:
        ...

    def function(self, catalog: CatalogLike) -> FunctionLike | None:
        if self.function_name is None:
            return None
        return catalog.function(self.function_name)

    def maintenance_assignments(self, catalog: CatalogLike):
        """Column assignments of a maintenance trigger, or None.

        Returns:
            ``[(column, ParsedExpression), ...]`` when the trigger's function
            body only stamps columns of the row being written, None otherwise.
        """
        return maintenance.trigger_assignments(self, catalog)


class PolicyLike(ABC):
    name: str
    table_key: TableKey
    command: PolicyCommand
    permissive: bool
    role_names: tuple[str, ...]
    using: ParsedExpression | None
    with_check: ParsedExpression | None
    using_function_names: tuple[str, ...]
    check_function_names: tuple[str, ...]

    @abstractmethod
    def table(self, catalog: CatalogLike) -> TableLike:
        ...

    def roles(self, catalog: CatalogLike) -> list[RoleLike]:
        return [r for n in self.role_names if (r := catalog.role(n)) is not None]

    def using_functions(self, catalog: CatalogLike) -> list[FunctionLike]:
        return [f for n in self.using_function_names if (f := catalog.function(n)) is not None]

    def check_functions(self, catalog: CatalogLike) -> list[FunctionLike]:
        return [f for n in self.check_function_names if (f := catalog.function(n)) is not None]

    def references_function(self, name: str) -> bool:
        name = name.lower()
        return name in self.using_function_names or name in self.check_function_names

    def applies_to_role(self, role: RoleLike) -> bool:
        """A policy without TO, or granted TO PUBLIC, applies to every role."""
        if not self.role_names:
            return True
        return any(n == role.name or n.upper() == "PUBLIC" for n in self.role_names)


class RoleLike(ABC):
    name: str
    superuser: bool
    create_db: bool
    create_role: bool
    inherit: bool
    login: bool
    bypass_rls: bool
    replication: bool
    connection_limit: int | None
    memberships: tuple[str, ...]

    @abstractmethod
    def member_of(self, catalog: CatalogLike) -> list[RoleLike]:
        ...

    def policies(self, catalog: CatalogLike) -> list[PolicyLike]:
        return [p for p in catalog.policies() if p.applies_to_role(self)]

    def grants(self, catalog: CatalogLike) -> list[GrantLike]:
        return [g for g in catalog.grants() if g.applies_to_role(self)]


class GrantLike(ABC):
    privileges: tuple[Privilege, ...]
    objects: GrantObjects
    grantees: tuple[str, ...]
    all_privileges: bool
    with_grant_option: bool
    granted_by: str | None

    @abstractmethod
    def tables(self, catalog: CatalogLike) -> list[TableLike]:
        ...

    @abstractmethod
    def schemas(self, catalog: CatalogLike) -> list[SchemaLike]:
        ...

    @abstractmethod
    def functions(self, catalog: CatalogLike) -> list[FunctionLike]:
        ...

    def privilege_columns(self, catalog: CatalogLike) -> list[tuple[str, ColumnLike]]:
        """``(privilege, column)`` pairs of column-scoped privileges."""
        pairs: list[tuple[str, ColumnLike]] = []
        for privilege in self.privileges:
            for table in self.tables(catalog):
                for name in privilege.columns:
                    column = table.column(catalog, name)
                    if column is not None:
                        pairs.append((privilege.kind, column))
        return pairs

    def is_column_grant(self) -> bool:
        return any(p.columns for p in self.privileges)

    def applies_to_table(self, catalog: CatalogLike, table: TableLike) -> bool:
        return any(t.key == table.key for t in self.tables(catalog))

    def applies_to_role(self, role: RoleLike) -> bool:
        return role.name in self.grantees

    def is_public(self) -> bool:
        return any(g.upper() == "PUBLIC" for g in self.grantees)

    def granted_by_role(self, catalog: CatalogLike) -> RoleLike | None:
        if self.granted_by is None:
            return None
        return catalog.role(self.granted_by)


class SchemaLike(ABC):
    name: str
    authorization: str | None

    def tables(self, catalog: CatalogLike) -> list[TableLike]:
        return [
            t
            for t in catalog.tables()
            if t.schema == self.name or (t.schema is None and self.name == "public")
        ]


class CatalogLike(ABC):
    """Read access shared by the staging builder and the frozen catalog."""

    catalog_name: str
    timezone: str | None

    @abstractmethod
    def tables(self) -> Sequence[TableLike]:
        ...

    @abstractmethod
    def table(self, name: str, schema: str | None = None) -> TableLike | None:
        ...

    @abstractmethod
    def table_metadata(self, table: TableLike) -> TableMetadata:
        """Return the metadata record of ``table``.

        Raises:
            InvalidArgumentError: if ``table`` is not a table of this catalog.
        """
        ...

    @abstractmethod
    def functions(self) -> Sequence[FunctionLike]:
        ...

    @abstractmethod
    def function(self, name: str) -> FunctionLike | None:
        """Case-insensitive lookup returning the first overload."""
        ...

    @abstractmethod
    def triggers(self) -> Sequence[TriggerLike]:
        ...

    @abstractmethod
    def policies(self) -> Sequence[PolicyLike]:
        ...

    @abstractmethod
    def roles(self) -> Sequence[RoleLike]:
        ...

    @abstractmethod
    def role(self, name: str) -> RoleLike | None:
        ...

    @abstractmethod
    def grants(self) -> Sequence[GrantLike]:
        ...

    @abstractmethod
    def schemas(self) -> Sequence[SchemaLike]:
        ...

    @abstractmethod
    def schema(self, name: str) -> SchemaLike | None:
        ...

    # derived

    def number_of_tables(self) -> int:
        return len(self.tables())

    def has_tables(self) -> bool:
        return bool(self.tables())

    def root_tables(self) -> list[TableLike]:
        return [t for t in self.tables() if t.is_root(self)]

    def maximum_number_of_columns(self) -> int:
        return max((len(t.columns(self)) for t in self.tables()), default=0)

    def columns(self) -> list[ColumnLike]:
        return [c for t in self.tables() for c in t.columns(self)]

    def indices(self) -> list[IndexLike]:
        return [i for t in self.tables() for i in t.indices(self)]

    def unique_indices(self) -> list[UniqueIndexLike]:
        return [i for t in self.tables() for i in t.unique_indices(self)]

    def foreign_keys(self) -> list[ForeignKeyLike]:
        return [fk for t in self.tables() for fk in t.foreign_keys(self)]

    def check_constraints(self) -> list[CheckConstraintLike]:
        return [c for t in self.tables() for c in t.check_constraints(self)]

    def trigger(self, name: str) -> TriggerLike | None:
        return next((t for t in self.triggers() if t.name == name), None)

    def policy(self, name: str) -> PolicyLike | None:
        return next((p for p in self.policies() if p.name == name), None)

    def table_grants(self) -> list[GrantLike]:
        return [g for g in self.grants() if g.objects.kind in TABLE_OBJECT_KINDS]

    def column_grants(self) -> list[GrantLike]:
        return [g for g in self.table_grants() if g.is_column_grant()]

    def rls_tables(self) -> list[TableLike]:
        return [t for t in self.tables() if t.has_row_level_security(self)]

    def forced_rls_tables(self) -> list[TableLike]:
        return [t for t in self.tables() if t.has_forced_row_level_security(self)]

    def has_rls_tables(self) -> bool:
        return bool(self.rls_tables())

    def number_of_rls_tables(self) -> int:
        return len(self.rls_tables())

    def has_policies(self) -> bool:
        return bool(self.policies())

    def has_roles(self) -> bool:
        return bool(self.roles())

    def has_schemas(self) -> bool:
        return bool(self.schemas())

    def table_dag(self) -> list[TableLike]:
        """Tables ordered so that every table follows the tables it references."""
        return dag.table_dag(self)
