from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field, replace
from typing import Mapping

from ddlcat.core.errors import InvalidArgumentError
from ddlcat.core.interfaces import CatalogLike, TableKey
from ddlcat.core.models import (
    DEFAULT_SCHEMA,
    Function,
    Grant,
    Policy,
    Role,
    Schema,
    Table,
    TableMetadata,
    Trigger,
)


@dataclass(frozen=True)
class TableDocumentation:
    """Comments attached to one table and its columns."""

    table: str | None = None
    columns: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Catalog(CatalogLike):
    """
    Immutable catalog produced by ``CatalogBuilder.freeze``.

    Collections are sorted by their canonical key: tables by (schema, name)
    with unqualified tables first, functions by lower-cased name then
    argument types, triggers and policies by name then table, roles and
    schemas by name. Grants keep declaration order. Lookups bisect the
    sorted keys.
    """

    catalog_name: str
    table_entries: tuple[tuple[Table, TableMetadata], ...] = ()
    function_entries: tuple[Function, ...] = ()
    trigger_entries: tuple[Trigger, ...] = ()
    policy_entries: tuple[Policy, ...] = ()
    role_entries: tuple[Role, ...] = ()
    grant_entries: tuple[Grant, ...] = ()
    schema_entries: tuple[Schema, ...] = ()
    timezone: str | None = None

    _table_keys: tuple = field(init=False, repr=False, compare=False)
    _function_keys: tuple = field(init=False, repr=False, compare=False)
    _trigger_keys: tuple = field(init=False, repr=False, compare=False)
    _policy_keys: tuple = field(init=False, repr=False, compare=False)
    _role_keys: tuple = field(init=False, repr=False, compare=False)
    _schema_keys: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_table_keys", tuple(table_sort_key(t.key) for t, _ in self.table_entries)
        )
        object.__setattr__(
            self, "_function_keys", tuple(f.name.lower() for f in self.function_entries)
        )
        object.__setattr__(self, "_trigger_keys", tuple(t.name for t in self.trigger_entries))
        object.__setattr__(self, "_policy_keys", tuple(p.name for p in self.policy_entries))
        object.__setattr__(self, "_role_keys", tuple(r.name for r in self.role_entries))
        object.__setattr__(self, "_schema_keys", tuple(s.name for s in self.schema_entries))

    def tables(self) -> list[Table]:
        return [table for table, _ in self.table_entries]

    def table(self, name: str, schema: str | None = None) -> Table | None:
        index = _find(self._table_keys, table_sort_key((schema, name)))
        return self.table_entries[index][0] if index is not None else None

    def table_metadata(self, table: Table) -> TableMetadata:
        index = _find(self._table_keys, table_sort_key(table.key))
        if index is None:
            raise InvalidArgumentError(f"Table `{table.qualified_name}` is not in this catalog.")
        return self.table_entries[index][1]

    def functions(self) -> list[Function]:
        return list(self.function_entries)

    def function(self, name: str) -> Function | None:
        index = _find(self._function_keys, name.lower())
        return self.function_entries[index] if index is not None else None

    def triggers(self) -> list[Trigger]:
        return list(self.trigger_entries)

    def trigger(self, name: str) -> Trigger | None:
        index = _find(self._trigger_keys, name)
        return self.trigger_entries[index] if index is not None else None

    def policies(self) -> list[Policy]:
        return list(self.policy_entries)

    def policy(self, name: str) -> Policy | None:
        index = _find(self._policy_keys, name)
        return self.policy_entries[index] if index is not None else None

    def roles(self) -> list[Role]:
        return list(self.role_entries)

    def role(self, name: str) -> Role | None:
        index = _find(self._role_keys, name)
        return self.role_entries[index] if index is not None else None

    def grants(self) -> list[Grant]:
        return list(self.grant_entries)

    def schemas(self) -> list[Schema]:
        return list(self.schema_entries)

    def schema(self, name: str) -> Schema | None:
        index = _find(self._schema_keys, name)
        return self.schema_entries[index] if index is not None else None

    def with_documentation(self, docs: Mapping[TableKey, TableDocumentation]) -> Catalog:
        """Return a copy with table and column comments attached.

        Comments for tables that are not in the catalog are ignored.
        """
        entries = []
        for table, metadata in self.table_entries:
            doc = docs.get(table.key)
            if doc is None and table.schema in (None, DEFAULT_SCHEMA):
                doc = docs.get((DEFAULT_SCHEMA if table.schema is None else None, table.name))
            if doc is not None:
                metadata = replace(
                    metadata,
                    documentation=doc.table if doc.table is not None else metadata.documentation,
                    column_documentation=_merge_pairs(metadata.column_documentation, doc.columns),
                )
            entries.append((table, metadata))
        return replace(self, table_entries=tuple(entries))


def table_sort_key(key: TableKey) -> tuple[bool, str, str]:
    schema, name = key
    return (schema is not None, schema or "", name)


def _find(keys: tuple, key) -> int | None:
    index = bisect_left(keys, key)
    if index < len(keys) and keys[index] == key:
        return index
    return None


def _merge_pairs(
    existing: tuple[tuple[str, str], ...], new: tuple[tuple[str, str], ...]
) -> tuple[tuple[str, str], ...]:
    merged = dict(existing)
    merged.update(new)
    return tuple(merged.items())
