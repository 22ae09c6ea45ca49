"""Mutable staging area for catalog construction.

The builder keeps one unsorted list per entity kind and answers the
cross-reference questions the statement processor asks while it validates
a statement ("is this function still used?", "who references this
table?"). ``freeze`` turns it into an immutable ``Catalog``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Sequence

from ddlcat.core.builtins import builtin_functions
from ddlcat.core.catalog import Catalog, table_sort_key
from ddlcat.core.errors import InvalidArgumentError
from ddlcat.core.interfaces import CatalogLike, TableKey, qualified
from ddlcat.core.models import (
    Function,
    Grant,
    Policy,
    Role,
    Schema,
    Table,
    TableMetadata,
    Trigger,
)
from ddlcat.core.statements import GrantObjectKind, GrantObjects, ObjectName

logger = logging.getLogger(__name__)


class CatalogBuilder(CatalogLike):
    def __init__(self, catalog_name: str):
        self.catalog_name = catalog_name
        self.timezone: str | None = None
        self._tables: list[tuple[Table, TableMetadata]] = []
        self._functions: list[Function] = []
        self._triggers: list[Trigger] = []
        self._policies: list[Policy] = []
        self._roles: list[Role] = []
        self._grants: list[Grant] = []
        self._schemas: list[Schema] = []

    def seed_builtins(self) -> None:
        self._functions.extend(builtin_functions())

    # read access

    def tables(self) -> list[Table]:
        return [table for table, _ in self._tables]

    def table(self, name: str, schema: str | None = None) -> Table | None:
        index = self._table_index((schema, name))
        return self._tables[index][0] if index is not None else None

    def table_metadata(self, table: Table) -> TableMetadata:
        index = self._table_index(table.key)
        if index is None:
            raise InvalidArgumentError(f"Table `{table.qualified_name}` is not in this catalog.")
        return self._tables[index][1]

    def functions(self) -> list[Function]:
        return list(self._functions)

    def function(self, name: str) -> Function | None:
        overloads = self.functions_named(name)
        if not overloads:
            return None
        return min(overloads, key=lambda f: tuple(f.argument_type_names()))

    def functions_named(self, name: str) -> list[Function]:
        lowered = name.lower()
        return [f for f in self._functions if f.name.lower() == lowered]

    def triggers(self) -> list[Trigger]:
        return list(self._triggers)

    def policies(self) -> list[Policy]:
        return list(self._policies)

    def roles(self) -> list[Role]:
        return list(self._roles)

    def role(self, name: str) -> Role | None:
        return next((r for r in self._roles if r.name == name), None)

    def grants(self) -> list[Grant]:
        return list(self._grants)

    def schemas(self) -> list[Schema]:
        return list(self._schemas)

    def schema(self, name: str) -> Schema | None:
        return next((s for s in self._schemas if s.name == name), None)

    def _table_index(self, key: TableKey) -> int | None:
        return next((i for i, (t, _) in enumerate(self._tables) if t.key == key), None)

    # cross references

    def table_dependents(self, key: TableKey) -> list[Table]:
        """Other tables holding a foreign key into the table ``key``."""
        return [
            table
            for table, metadata in self._tables
            if table.key != key
            and any(fk.referenced_table_key == key for fk in metadata.foreign_keys)
        ]

    def function_dependents(self, name: str) -> list[str]:
        """Descriptions of the checks, policies and triggers using a function."""
        lowered = name.lower()
        dependents: list[str] = []
        for table, metadata in self._tables:
            for check in metadata.check_constraints:
                if check.involves_function(lowered):
                    dependents.append(
                        f"check constraint `{check.expression}` on table `{table.qualified_name}`"
                    )
        for policy in self._policies:
            if policy.references_function(lowered):
                dependents.append(f"policy `{policy.name}`")
        for trigger in self._triggers:
            if trigger.function_name is not None and trigger.function_name.lower() == lowered:
                dependents.append(f"trigger `{trigger.name}`")
        return dependents

    def role_dependents(self, name: str) -> list[Grant]:
        return [g for g in self._grants if name in g.grantees]

    # tables

    def add_table(self, table: Table, metadata: TableMetadata) -> None:
        self._tables.append((table, metadata))

    def replace_table(self, table: Table) -> None:
        index = self._require_table(table.key)
        self._tables[index] = (table, self._tables[index][1])

    def update_metadata(self, key: TableKey, **changes) -> TableMetadata:
        index = self._require_table(key)
        table, metadata = self._tables[index]
        metadata = replace(metadata, **changes)
        self._tables[index] = (table, metadata)
        return metadata

    def remove_table(self, key: TableKey) -> Table:
        """Remove a table with its triggers, policies and table grants.

        Foreign keys of other tables pointing at it are left in place.
        """
        index = self._require_table(key)
        table, _ = self._tables.pop(index)
        self._triggers = [t for t in self._triggers if t.table_key != key]
        self._policies = [p for p in self._policies if p.table_key != key]
        grants = [_without_table(g, table) for g in self._grants]
        self._grants = [g for g in grants if g.objects.kind != GrantObjectKind.TABLES or g.objects.names]
        return table

    def rename_table_key(self, old: TableKey, new: TableKey) -> None:
        """Move a table to a new key, updating everything that refers to it."""
        index = self._require_table(old)
        table, metadata = self._tables[index]
        schema, name = new
        self._tables[index] = (
            replace(table, schema=schema, name=name),
            _rekey_metadata(metadata, new),
        )
        for i, (other, other_metadata) in enumerate(self._tables):
            foreign_keys = tuple(
                replace(fk, referenced_table_key=new) if fk.referenced_table_key == old else fk
                for fk in other_metadata.foreign_keys
            )
            self._tables[i] = (other, replace(other_metadata, foreign_keys=foreign_keys))
        self._triggers = [replace(t, table_key=new) if t.table_key == old else t for t in self._triggers]
        self._policies = [replace(p, table_key=new) if p.table_key == old else p for p in self._policies]
        old_name = ObjectName(old[1], old[0])
        self._grants = [
            replace(g, objects=_rename_object(g.objects, old_name, ObjectName(name, schema)))
            for g in self._grants
        ]

    def _require_table(self, key: TableKey) -> int:
        index = self._table_index(key)
        if index is None:
            raise InvalidArgumentError(f"Table `{qualified(*key)}` is not in this catalog.")
        return index

    # functions

    def add_function(self, function: Function) -> None:
        self._functions.append(function)

    def replace_function(self, old: Function, new: Function) -> None:
        self._functions[self._functions.index(old)] = new

    def remove_functions(self, functions: Sequence[Function]) -> None:
        self._functions = [f for f in self._functions if f not in functions]

    # triggers and policies

    def add_trigger(self, trigger: Trigger) -> None:
        self._triggers.append(trigger)

    def replace_trigger(self, old: Trigger, new: Trigger) -> None:
        self._triggers[self._triggers.index(old)] = new

    def remove_trigger(self, trigger: Trigger) -> None:
        self._triggers.remove(trigger)

    def add_policy(self, policy: Policy) -> None:
        self._policies.append(policy)

    def remove_policy(self, policy: Policy) -> None:
        self._policies.remove(policy)

    # roles, grants and schemas

    def add_role(self, role: Role) -> None:
        self._roles.append(role)

    def replace_role(self, role: Role) -> None:
        index = next(i for i, r in enumerate(self._roles) if r.name == role.name)
        self._roles[index] = role

    def remove_role(self, name: str) -> None:
        self._roles = [
            replace(r, memberships=tuple(m for m in r.memberships if m != name))
            for r in self._roles
            if r.name != name
        ]

    def add_grant(self, grant: Grant) -> None:
        self._grants.append(grant)

    def replace_grants(self, matcher: Callable[[Grant], bool], replacement: Callable[[Grant], Grant | None]) -> int:
        """Replace (or with a None replacement, drop) every matching grant.

        Returns:
            The number of grants that matched.
        """
        kept: list[Grant] = []
        matched = 0
        for grant in self._grants:
            if not matcher(grant):
                kept.append(grant)
                continue
            matched += 1
            new = replacement(grant)
            if new is not None:
                kept.append(new)
        self._grants = kept
        return matched

    def add_schema(self, schema: Schema) -> None:
        self._schemas.append(schema)

    def replace_schema(self, name: str, schema: Schema) -> None:
        index = next(i for i, s in enumerate(self._schemas) if s.name == name)
        self._schemas[index] = schema

    def remove_schema(self, name: str) -> None:
        self._schemas = [s for s in self._schemas if s.name != name]

    # freezing

    def freeze(self) -> Catalog:
        """Sort every collection by its canonical key and return the frozen catalog.

        Grants keep their insertion order.
        """
        catalog = Catalog(
            catalog_name=self.catalog_name,
            timezone=self.timezone,
            table_entries=tuple(sorted(self._tables, key=lambda e: table_sort_key(e[0].key))),
            function_entries=tuple(sorted(self._functions, key=function_sort_key)),
            trigger_entries=tuple(
                sorted(self._triggers, key=lambda t: (t.name, table_sort_key(t.table_key)))
            ),
            policy_entries=tuple(
                sorted(self._policies, key=lambda p: (p.name, table_sort_key(p.table_key)))
            ),
            role_entries=tuple(sorted(self._roles, key=lambda r: r.name)),
            grant_entries=tuple(self._grants),
            schema_entries=tuple(sorted(self._schemas, key=lambda s: s.name)),
        )
        logger.debug("Froze catalog %r", self.catalog_name)
        return catalog


def function_sort_key(function: Function) -> tuple[str, tuple[str, ...]]:
    return (function.name.lower(), tuple(function.argument_type_names()))


def _without_table(grant: Grant, table: Table) -> Grant:
    if grant.objects.kind != GrantObjectKind.TABLES:
        return grant
    names = tuple(n for n in grant.objects.names if (n.schema, n.name) != table.key)
    if len(names) == len(grant.objects.names):
        return grant
    return replace(grant, objects=replace(grant.objects, names=names))


def _rename_object(objects: GrantObjects, old: ObjectName, new: ObjectName) -> GrantObjects:
    if objects.kind != GrantObjectKind.TABLES or old not in objects.names:
        return objects
    return replace(objects, names=tuple(new if n == old else n for n in objects.names))


def _rekey_metadata(metadata: TableMetadata, key: TableKey) -> TableMetadata:
    return replace(
        metadata,
        columns=tuple(replace(c, table_key=key) for c in metadata.columns),
        indices=tuple(replace(i, table_key=key) for i in metadata.indices),
        unique_indices=tuple(replace(i, table_key=key) for i in metadata.unique_indices),
        foreign_keys=tuple(
            replace(
                fk,
                host_table_key=key,
                referenced_table_key=key if fk.is_self_referential() else fk.referenced_table_key,
            )
            for fk in metadata.foreign_keys
        ),
        check_constraints=tuple(replace(c, table_key=key) for c in metadata.check_constraints),
    )
