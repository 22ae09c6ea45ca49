"""Statement processor: drives a ``CatalogBuilder`` over parsed statements.

Each statement is validated against what earlier statements committed and
then applied. The first failure aborts the whole build, so callers either
get a complete catalog or an exception.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from ddlcat.core.builder import CatalogBuilder
from ddlcat.core.catalog import Catalog
from ddlcat.core.datatypes import is_generated_type, normalize_type
from ddlcat.core.errors import (
    AlreadyExistsError,
    DropConflictError,
    NotFoundError,
    RevokeMismatchError,
    UnknownColumnError,
    UnresolvedReferenceError,
    UnsupportedStatementError,
)
from ddlcat.core.expressions import (
    ParsedExpression,
    column_expression,
    function_references,
    resolve_columns,
)
from ddlcat.core.interfaces import PSEUDO_ROLES, qualified
from ddlcat.core.models import (
    DEFAULT_SCHEMA,
    CheckConstraint,
    Column,
    ForeignKey,
    Function,
    Grant,
    Index,
    Policy,
    Role,
    Schema,
    Table,
    TableMetadata,
    Trigger,
    UniqueIndex,
    resolve_table,
)
from ddlcat.core.statements import (
    AlterSchema,
    AlterTable,
    CheckDefinition,
    CommentOn,
    CreateFunction,
    CreateIndex,
    CreatePolicy,
    CreateRole,
    CreateSchema,
    CreateTable,
    CreateTrigger,
    DropFunction,
    DropIndex,
    DropPolicy,
    DropRole,
    DropSchema,
    DropTable,
    DropTrigger,
    ForeignKeyDefinition,
    GrantObjectKind,
    GrantObjects,
    GrantPrivileges,
    GrantRole,
    ObjectName,
    OtherStatement,
    PrimaryKeyDefinition,
    RevokePrivileges,
    RevokeRole,
    RowSecurityAction,
    SetTimeZone,
    Statement,
    UniqueDefinition,
)

logger = logging.getLogger(__name__)

# Statement kinds that do not change the modelled catalog. A kind is ignored
# when it equals an entry or starts with an entry followed by a space.
IGNORED_STATEMENT_KINDS = (
    # queries and DML
    "SELECT", "WITH", "VALUES", "TABLE", "INSERT", "UPDATE", "DELETE", "MERGE",
    "COPY", "TRUNCATE", "CALL", "DO",
    # transaction control
    "BEGIN", "START", "COMMIT", "END", "ROLLBACK", "ABORT", "SAVEPOINT",
    "RELEASE", "PREPARE", "EXECUTE", "DEALLOCATE",
    # cursors
    "DECLARE", "FETCH", "MOVE", "CLOSE",
    # session
    "SET", "RESET", "SHOW", "DISCARD", "LISTEN", "NOTIFY", "UNLISTEN", "LOAD",
    "SECURITY",
    # maintenance
    "VACUUM", "ANALYZE", "ANALYSE", "CLUSTER", "REINDEX", "CHECKPOINT",
    "EXPLAIN", "LOCK", "REFRESH",
    "COMMENT",
    # objects that are not modelled
    "CREATE VIEW", "ALTER VIEW", "DROP VIEW",
    "CREATE MATERIALIZED VIEW", "ALTER MATERIALIZED VIEW", "DROP MATERIALIZED VIEW",
    "CREATE SEQUENCE", "ALTER SEQUENCE", "DROP SEQUENCE",
    "CREATE EXTENSION", "ALTER EXTENSION", "DROP EXTENSION",
    "CREATE TYPE", "ALTER TYPE", "DROP TYPE",
    "CREATE DOMAIN", "ALTER DOMAIN", "DROP DOMAIN",
    "CREATE OPERATOR", "ALTER OPERATOR", "DROP OPERATOR",
    "CREATE COLLATION", "ALTER COLLATION", "DROP COLLATION",
    "CREATE AGGREGATE", "ALTER AGGREGATE", "DROP AGGREGATE",
    "CREATE CAST", "DROP CAST",
    "CREATE RULE", "ALTER RULE", "DROP RULE",
    "CREATE PROCEDURE", "ALTER PROCEDURE", "DROP PROCEDURE",
    "CREATE PUBLICATION", "ALTER PUBLICATION", "DROP PUBLICATION",
    "CREATE SUBSCRIPTION", "ALTER SUBSCRIPTION", "DROP SUBSCRIPTION",
    "CREATE EVENT TRIGGER", "ALTER EVENT TRIGGER", "DROP EVENT TRIGGER",
    "CREATE TEXT SEARCH", "ALTER TEXT SEARCH", "DROP TEXT SEARCH",
    "CREATE CONVERSION", "ALTER CONVERSION", "DROP CONVERSION",
    "CREATE LANGUAGE", "ALTER LANGUAGE", "DROP LANGUAGE",
    "CREATE TRANSFORM", "DROP TRANSFORM",
    "CREATE STATISTICS", "ALTER STATISTICS", "DROP STATISTICS",
    "CREATE ACCESS METHOD", "DROP ACCESS METHOD",
    "CREATE FOREIGN", "ALTER FOREIGN", "DROP FOREIGN",
    "CREATE SERVER", "ALTER SERVER", "DROP SERVER",
    "CREATE USER MAPPING", "ALTER USER MAPPING", "DROP USER MAPPING",
    # ownership and options of objects whose structure is modelled elsewhere
    "ALTER FUNCTION", "ALTER ROLE", "ALTER USER", "ALTER GROUP", "ALTER INDEX",
    "ALTER TRIGGER", "ALTER POLICY", "ALTER DEFAULT PRIVILEGES",
    "REASSIGN", "DROP OWNED",
)


def is_ignored(kind: str) -> bool:
    return any(kind == p or kind.startswith(p + " ") for p in IGNORED_STATEMENT_KINDS)


def build_catalog(
    statements: Iterable[Statement],
    catalog_name: str = "catalog",
) -> Catalog:
    """Build a frozen catalog from statements, in order.

    Raises:
        CatalogError: the first validation failure; no catalog is produced.
    """
    processor = StatementProcessor(catalog_name)
    count = 0
    for statement in statements:
        processor.process(statement)
        count += 1
    catalog = processor.builder.freeze()
    logger.info(
        "Built catalog %r from %d statement(s): %d table(s)",
        catalog_name,
        count,
        catalog.number_of_tables(),
    )
    return catalog


class StatementProcessor:
    """Applies statements to a builder seeded with the built-in functions."""

    def __init__(self, catalog_name: str):
        self.builder = CatalogBuilder(catalog_name)
        self.builder.seed_builtins()
        self._handlers = {
            CreateTable: self._create_table,
            DropTable: self._drop_table,
            AlterTable: self._alter_table,
            CreateIndex: self._create_index,
            DropIndex: self._drop_index,
            CreateFunction: self._create_function,
            DropFunction: self._drop_function,
            CreateTrigger: self._create_trigger,
            DropTrigger: self._drop_trigger,
            CreatePolicy: self._create_policy,
            DropPolicy: self._drop_policy,
            CreateRole: self._create_role,
            DropRole: self._drop_role,
            GrantPrivileges: self._grant_privileges,
            RevokePrivileges: self._revoke_privileges,
            GrantRole: self._grant_role,
            RevokeRole: self._revoke_role,
            CreateSchema: self._create_schema,
            DropSchema: self._drop_schema,
            AlterSchema: self._alter_schema,
            SetTimeZone: self._set_time_zone,
            CommentOn: self._comment_on,
            OtherStatement: self._other,
        }

    def process(self, statement: Statement) -> None:
        handler = self._handlers.get(type(statement))
        if handler is None:
            raise UnsupportedStatementError(type(statement).__name__)
        logger.debug("Processing %s", type(statement).__name__)
        handler(statement)

    # helpers

    def _table(self, name: ObjectName) -> Table | None:
        return resolve_table(self.builder, name)

    def _require_table(self, name: ObjectName, referenced_by: str) -> Table:
        table = self._table(name)
        if table is None:
            raise UnresolvedReferenceError("table", str(name), referenced_by=referenced_by)
        return table

    def _require_role(self, name: str, referenced_by: str) -> None:
        if name.upper() in PSEUDO_ROLES:
            return
        if self.builder.role(name) is None:
            raise UnresolvedReferenceError("role", name, referenced_by=referenced_by)

    def _known_functions(self, expression: ParsedExpression | None) -> tuple[str, ...]:
        """Names of catalog functions called by an expression.

        Calls that are not catalog functions are dropped: sqlglot also reads
        constructs such as CAST and CASE as function nodes.
        """
        if expression is None:
            return ()
        names: list[str] = []
        for candidates in function_references(expression.node):
            name = next((n for n in candidates if self.builder.functions_named(n)), None)
            if name is None:
                logger.debug("Ignoring unknown function %r in `%s`", candidates[0], expression.sql)
            elif name not in names:
                names.append(name)
        return tuple(names)

    # tables

    def _create_table(self, stmt: CreateTable) -> None:
        if self._table(stmt.name) is not None:
            if stmt.if_not_exists:
                logger.debug("Table %s exists, skipping CREATE TABLE IF NOT EXISTS", stmt.name)
                return
            raise AlreadyExistsError("table", str(stmt.name))

        key = (stmt.name.schema, stmt.name.name)
        table_name = str(stmt.name)
        columns: list[Column] = []
        for ordinal, definition in enumerate(stmt.columns, start=1):
            if any(c.name == definition.name for c in columns):
                raise AlreadyExistsError("column", f"{table_name}.{definition.name}")
            columns.append(
                Column(
                    table_key=key,
                    name=definition.name,
                    data_type=definition.data_type,
                    not_null=definition.not_null,
                    default=definition.default,
                    generated=definition.generated or is_generated_type(definition.data_type),
                    identity=definition.identity,
                    ordinal=ordinal,
                )
            )

        definitions = [d for column in stmt.columns for d in column.constraints]
        definitions.extend(stmt.constraints)

        def require_columns(names: tuple[str, ...]) -> None:
            for name in names:
                if not any(c.name == name for c in columns):
                    raise UnknownColumnError(name, table_name)

        primary_key: tuple[str, ...] = ()
        unique_indices: list[UniqueIndex] = []
        checks: list[CheckConstraint] = []
        for definition in definitions:
            if isinstance(definition, PrimaryKeyDefinition):
                if primary_key:
                    raise AlreadyExistsError("primary key", table_name)
                require_columns(definition.columns)
                primary_key = definition.columns
                unique_indices.append(
                    UniqueIndex(
                        table_key=key,
                        expressions=tuple(column_expression(n) for n in definition.columns),
                        name=definition.name,
                        primary_key=True,
                    )
                )
            elif isinstance(definition, UniqueDefinition):
                require_columns(definition.columns)
                unique_indices.append(
                    UniqueIndex(
                        table_key=key,
                        expressions=tuple(column_expression(n) for n in definition.columns),
                        name=definition.name,
                        nulls_distinct=definition.nulls_distinct,
                    )
                )
            elif isinstance(definition, CheckDefinition):
                checks.append(self._check(key, table_name, columns, definition))

        # Foreign keys last: a self reference may target the key declared above.
        foreign_keys = [
            self._foreign_key(key, stmt.name, columns, primary_key, definition)
            for definition in definitions
            if isinstance(definition, ForeignKeyDefinition)
        ]

        self.builder.add_table(
            Table(name=stmt.name.name, schema=stmt.name.schema),
            TableMetadata(
                columns=tuple(columns),
                primary_key=primary_key,
                unique_indices=tuple(unique_indices),
                foreign_keys=tuple(foreign_keys),
                check_constraints=tuple(checks),
            ),
        )
        logger.debug("Created table %s with %d column(s)", table_name, len(columns))

    def _check(self, key, table_name, columns, definition: CheckDefinition) -> CheckConstraint:
        expression = definition.expression
        resolved = resolve_columns(expression.node, table_name, columns)
        return CheckConstraint(
            table_key=key,
            expression=expression,
            column_names=tuple(c.name for c in resolved),
            function_names=self._known_functions(expression),
            name=definition.name,
        )

    def _foreign_key(
        self,
        key,
        name: ObjectName,
        columns: list[Column],
        primary_key: tuple[str, ...],
        definition: ForeignKeyDefinition,
    ) -> ForeignKey:
        table_name = str(name)
        referenced_by = f"foreign key on table `{table_name}`"
        for column in definition.columns:
            if not any(c.name == column for c in columns):
                raise UnknownColumnError(column, table_name)

        target = definition.referenced_table
        if _same_table(target, name):
            referenced_key = key
            referenced_names = [c.name for c in columns]
            referenced_primary_key = primary_key
        else:
            table = self._require_table(target, referenced_by)
            metadata = self.builder.table_metadata(table)
            referenced_key = table.key
            referenced_names = [c.name for c in metadata.columns]
            referenced_primary_key = metadata.primary_key

        referenced_columns = definition.referenced_columns or referenced_primary_key
        if not referenced_columns:
            raise UnresolvedReferenceError("primary key", str(target), referenced_by=referenced_by)
        for column in referenced_columns:
            if column not in referenced_names:
                raise UnknownColumnError(column, str(target))
        if len(referenced_columns) != len(definition.columns):
            raise UnresolvedReferenceError(
                "column list",
                f"{target}({', '.join(referenced_columns)})",
                referenced_by=f"{referenced_by} with {len(definition.columns)} column(s)",
            )
        return ForeignKey(
            host_table_key=key,
            host_column_names=definition.columns,
            referenced_table_key=referenced_key,
            referenced_column_names=tuple(referenced_columns),
            name=definition.name,
            on_delete=definition.on_delete,
            on_update=definition.on_update,
        )

    def _drop_table(self, stmt: DropTable) -> None:
        tables: list[Table] = []
        for name in stmt.names:
            table = self._table(name)
            if table is None:
                if stmt.if_exists:
                    logger.debug("Table %s does not exist, skipping", name)
                    continue
                raise NotFoundError("table", str(name))
            if all(t.key != table.key for t in tables):
                tables.append(table)

        dropped = {t.key for t in tables}
        if not stmt.cascade:
            for table in tables:
                dependents = [
                    t.qualified_name
                    for t in self.builder.table_dependents(table.key)
                    if t.key not in dropped
                ]
                if dependents:
                    raise DropConflictError("table", table.qualified_name, dependents)
        for table in tables:
            self.builder.remove_table(table.key)
            logger.debug("Dropped table %s", table.qualified_name)

    def _alter_table(self, stmt: AlterTable) -> None:
        table = self._table(stmt.name)
        if table is None:
            if stmt.if_exists:
                return
            raise NotFoundError("table", str(stmt.name))
        for action in stmt.actions:
            if action == RowSecurityAction.ENABLE:
                table = replace(table, rls_enabled=True)
            elif action == RowSecurityAction.DISABLE:
                table = replace(table, rls_enabled=False)
            elif action == RowSecurityAction.FORCE:
                table = replace(table, rls_forced=True)
            else:
                table = replace(table, rls_forced=False)
        self.builder.replace_table(table)

    # indices

    def _create_index(self, stmt: CreateIndex) -> None:
        referenced_by = f"index `{stmt.name}`" if stmt.name else "index"
        table = self._require_table(stmt.table, referenced_by)
        if stmt.name is not None and self._find_indices(ObjectName(stmt.name, table.schema)):
            if stmt.if_not_exists:
                logger.debug("Index %s exists, skipping", stmt.name)
                return
            raise AlreadyExistsError("index", stmt.name)

        metadata = self.builder.table_metadata(table)
        for item in stmt.items:
            resolve_columns(item.node, table.qualified_name, metadata.columns)
        if stmt.unique:
            index = UniqueIndex(table_key=table.key, expressions=stmt.items, name=stmt.name)
            self.builder.update_metadata(table.key, unique_indices=metadata.unique_indices + (index,))
        else:
            index = Index(table_key=table.key, expressions=stmt.items, name=stmt.name)
            self.builder.update_metadata(table.key, indices=metadata.indices + (index,))

    def _find_indices(self, name: ObjectName) -> list[Index | UniqueIndex]:
        found: list[Index | UniqueIndex] = []
        for table in self.builder.tables():
            if name.schema is not None and not _same_schema(table.schema, name.schema):
                continue
            metadata = self.builder.table_metadata(table)
            found.extend(i for i in metadata.indices if i.name == name.name)
            found.extend(i for i in metadata.unique_indices if i.name == name.name)
        return found

    def _drop_index(self, stmt: DropIndex) -> None:
        for name in stmt.names:
            found = self._find_indices(name)
            if not found:
                if stmt.if_exists:
                    continue
                raise NotFoundError("index", str(name))
            for index in found:
                if isinstance(index, UniqueIndex) and index.primary_key:
                    raise DropConflictError(
                        "index", str(name), [f"primary key of table `{qualified(*index.table_key)}`"]
                    )
                metadata = self.builder.table_metadata(index.table(self.builder))
                self.builder.update_metadata(
                    index.table_key,
                    indices=tuple(i for i in metadata.indices if i is not index),
                    unique_indices=tuple(i for i in metadata.unique_indices if i is not index),
                )

    # functions

    def _create_function(self, stmt: CreateFunction) -> None:
        function = Function(
            name=stmt.name.name,
            arguments=stmt.arguments,
            return_type=stmt.return_type,
            body=stmt.body,
            language=stmt.language,
            schema=stmt.name.schema,
        )
        signature = function.normalized_argument_type_names()
        existing = next(
            (
                f
                for f in self.builder.functions_named(function.name)
                if f.normalized_argument_type_names() == signature
            ),
            None,
        )
        if existing is None:
            self.builder.add_function(function)
        elif stmt.or_replace or existing.builtin:
            self.builder.replace_function(existing, function)
        else:
            raise AlreadyExistsError("function", function.signature)

    def _drop_function(self, stmt: DropFunction) -> None:
        for target in stmt.targets:
            name = target.name.name
            overloads = self.builder.functions_named(name)
            if target.argument_types is None:
                matched = overloads
            else:
                wanted = [normalize_type(t) for t in target.argument_types]
                matched = [f for f in overloads if f.normalized_argument_type_names() == wanted]
            if not matched:
                if stmt.if_exists:
                    continue
                raise NotFoundError("function", _signature_text(target.name, target.argument_types))
            if len(matched) == len(overloads):
                dependents = self.builder.function_dependents(name)
                if dependents:
                    raise DropConflictError("function", name, dependents)
            self.builder.remove_functions(matched)

    # triggers and policies

    def _create_trigger(self, stmt: CreateTrigger) -> None:
        referenced_by = f"trigger `{stmt.name}`"
        table = self._require_table(stmt.table, referenced_by)
        function_name = None
        if stmt.function is not None:
            function = self.builder.function(stmt.function.name)
            if function is None:
                raise UnresolvedReferenceError(
                    "function", str(stmt.function), referenced_by=referenced_by
                )
            function_name = function.name
        columns = self.builder.table_metadata(table).columns
        for column in stmt.update_columns:
            if not any(c.name == column for c in columns):
                raise UnknownColumnError(column, table.qualified_name)

        trigger = Trigger(
            name=stmt.name,
            table_key=table.key,
            events=stmt.events,
            timing=stmt.timing,
            orientation=stmt.orientation,
            function_name=function_name,
            update_columns=stmt.update_columns,
            when=stmt.when,
        )
        existing = next(
            (t for t in self.builder.triggers() if t.name == stmt.name and t.table_key == table.key),
            None,
        )
        if existing is None:
            self.builder.add_trigger(trigger)
        elif stmt.or_replace:
            self.builder.replace_trigger(existing, trigger)
        else:
            raise AlreadyExistsError("trigger", f"{stmt.name} on {table.qualified_name}")

    def _drop_trigger(self, stmt: DropTrigger) -> None:
        key = None
        if stmt.table is not None:
            table = self._table(stmt.table)
            key = table.key if table is not None else (stmt.table.schema, stmt.table.name)
        found = [
            t
            for t in self.builder.triggers()
            if t.name == stmt.name and (key is None or t.table_key == key)
        ]
        if not found:
            if stmt.if_exists:
                return
            raise NotFoundError("trigger", stmt.name)
        for trigger in found:
            self.builder.remove_trigger(trigger)

    def _create_policy(self, stmt: CreatePolicy) -> None:
        table = self._require_table(stmt.table, f"policy `{stmt.name}`")
        if self._find_policy(stmt.name, table) is not None:
            raise AlreadyExistsError("policy", f"{stmt.name} on {table.qualified_name}")
        self.builder.add_policy(
            Policy(
                name=stmt.name,
                table_key=table.key,
                command=stmt.command,
                permissive=stmt.permissive,
                role_names=stmt.roles,
                using=stmt.using,
                with_check=stmt.with_check,
                using_function_names=self._known_functions(stmt.using),
                check_function_names=self._known_functions(stmt.with_check),
            )
        )

    def _find_policy(self, name: str, table: Table) -> Policy | None:
        return next(
            (p for p in self.builder.policies() if p.name == name and p.table_key == table.key),
            None,
        )

    def _drop_policy(self, stmt: DropPolicy) -> None:
        table = self._table(stmt.table)
        policy = self._find_policy(stmt.name, table) if table is not None else None
        if policy is None:
            if stmt.if_exists:
                return
            raise NotFoundError("policy", f"{stmt.name} on {stmt.table}")
        self.builder.remove_policy(policy)

    # roles

    def _create_role(self, stmt: CreateRole) -> None:
        if self.builder.role(stmt.name) is not None:
            raise AlreadyExistsError("role", stmt.name)
        for parent in stmt.member_of:
            self._require_role(parent, f"role `{stmt.name}`")
        self.builder.add_role(
            Role(
                name=stmt.name,
                superuser=stmt.superuser,
                create_db=stmt.create_db,
                create_role=stmt.create_role,
                inherit=stmt.inherit,
                login=stmt.login,
                bypass_rls=stmt.bypass_rls,
                replication=stmt.replication,
                connection_limit=stmt.connection_limit,
                memberships=stmt.member_of,
            )
        )

    def _drop_role(self, stmt: DropRole) -> None:
        for name in stmt.names:
            if self.builder.role(name) is None:
                if stmt.if_exists:
                    continue
                raise NotFoundError("role", name)
            grants = self.builder.role_dependents(name)
            if grants:
                raise DropConflictError(
                    "role", name, [f"grant `{g.describe()}`" for g in grants]
                )
            self.builder.remove_role(name)

    # grants

    def _grant_objects(self, objects: GrantObjects, referenced_by: str) -> GrantObjects:
        """Validate grant objects, naming tables by their catalog key."""
        kind = objects.kind
        if kind == GrantObjectKind.TABLES:
            tables = [self._require_table(n, referenced_by) for n in objects.names]
            return replace(objects, names=tuple(ObjectName(t.name, t.schema) for t in tables))
        if kind in (
            GrantObjectKind.SCHEMAS,
            GrantObjectKind.ALL_TABLES_IN_SCHEMA,
            GrantObjectKind.ALL_FUNCTIONS_IN_SCHEMA,
        ):
            for name in objects.names:
                if name.name != DEFAULT_SCHEMA and self.builder.schema(name.name) is None:
                    raise UnresolvedReferenceError(
                        "schema", name.name, referenced_by=referenced_by
                    )
        elif kind == GrantObjectKind.FUNCTIONS:
            for name in objects.names:
                if self.builder.function(name.name) is None:
                    raise UnresolvedReferenceError(
                        "function", str(name), referenced_by=referenced_by
                    )
        return objects

    def _grant_privileges(self, stmt: GrantPrivileges) -> None:
        grant = Grant(
            privileges=stmt.privileges,
            objects=stmt.objects,
            grantees=stmt.grantees,
            all_privileges=stmt.all_privileges,
            with_grant_option=stmt.with_grant_option,
            granted_by=stmt.granted_by,
        )
        referenced_by = f"GRANT {grant.describe()}"
        for grantee in stmt.grantees:
            self._require_role(grantee, referenced_by)
        if stmt.granted_by is not None:
            self._require_role(stmt.granted_by, referenced_by)

        objects = self._grant_objects(stmt.objects, referenced_by)
        if objects.kind == GrantObjectKind.TABLES:
            for name in objects.names:
                table = self.builder.table(name.name, name.schema)
                columns = self.builder.table_metadata(table).columns
                for privilege in stmt.privileges:
                    for column in privilege.columns:
                        if not any(c.name == column for c in columns):
                            raise UnknownColumnError(column, table.qualified_name)
        self.builder.add_grant(replace(grant, objects=objects))

    def _revoke_privileges(self, stmt: RevokePrivileges) -> None:
        objects = stmt.objects
        if objects.kind == GrantObjectKind.TABLES:
            names = []
            for name in objects.names:
                table = self._table(name)
                names.append(ObjectName(table.name, table.schema) if table is not None else name)
            objects = replace(objects, names=tuple(names))
        revoked_kinds = {p.kind for p in stmt.privileges}
        revoked_grantees = set(stmt.grantees)

        def matches(grant: Grant) -> bool:
            if grant.objects != objects or not revoked_grantees & set(grant.grantees):
                return False
            if grant.all_privileges or stmt.all_privileges:
                return True
            return bool(revoked_kinds & {p.kind for p in grant.privileges})

        def revoke(grant: Grant) -> Grant | None:
            if stmt.grant_option_for:
                return replace(grant, with_grant_option=False)
            return None

        if not self.builder.replace_grants(matches, revoke):
            privileges = "ALL" if stmt.all_privileges else ", ".join(str(p) for p in stmt.privileges)
            raise RevokeMismatchError(
                f"{privileges} ON {objects} FROM {', '.join(stmt.grantees)}"
            )

    def _grant_role(self, stmt: GrantRole) -> None:
        referenced_by = f"GRANT {', '.join(stmt.roles)}"
        for role in stmt.roles:
            self._require_role(role, referenced_by)
        for grantee in stmt.grantees:
            self._require_role(grantee, referenced_by)
            member = self.builder.role(grantee)
            if member is None:
                continue
            memberships = member.memberships + tuple(
                r for r in stmt.roles if r not in member.memberships
            )
            self.builder.replace_role(replace(member, memberships=memberships))

    def _revoke_role(self, stmt: RevokeRole) -> None:
        removed = 0
        for grantee in stmt.grantees:
            member = self.builder.role(grantee)
            if member is None:
                continue
            kept = tuple(m for m in member.memberships if m not in stmt.roles)
            removed += len(member.memberships) - len(kept)
            self.builder.replace_role(replace(member, memberships=kept))
        if not removed:
            raise RevokeMismatchError(
                f"{', '.join(stmt.roles)} FROM {', '.join(stmt.grantees)}"
            )

    # schemas

    def _create_schema(self, stmt: CreateSchema) -> None:
        if self.builder.schema(stmt.name) is not None:
            if stmt.if_not_exists:
                return
            raise AlreadyExistsError("schema", stmt.name)
        self.builder.add_schema(Schema(name=stmt.name, authorization=stmt.authorization))

    def _schema_tables(self, name: str) -> list[Table]:
        return [t for t in self.builder.tables() if _same_schema(t.schema, name)]

    def _drop_schema(self, stmt: DropSchema) -> None:
        for name in stmt.names:
            if self.builder.schema(name) is None:
                if stmt.if_exists:
                    continue
                raise NotFoundError("schema", name)
            tables = self._schema_tables(name)
            if tables and not stmt.cascade:
                raise DropConflictError(
                    "schema", name, [f"table `{t.qualified_name}`" for t in tables]
                )
            for table in tables:
                self.builder.remove_table(table.key)
            self.builder.replace_grants(
                lambda g: _names_schema(g.objects, name), lambda g: None
            )
            self.builder.remove_schema(name)

    def _alter_schema(self, stmt: AlterSchema) -> None:
        schema = self.builder.schema(stmt.name)
        if schema is None:
            if stmt.if_exists:
                return
            raise NotFoundError("schema", stmt.name)
        if stmt.new_owner is not None:
            self.builder.replace_schema(schema.name, replace(schema, authorization=stmt.new_owner))
            return
        new_name = stmt.new_name
        if self.builder.schema(new_name) is not None:
            raise AlreadyExistsError("schema", new_name)
        for table in self.builder.tables():
            if table.schema == schema.name:
                self.builder.rename_table_key(table.key, (new_name, table.name))

        def rename(grant: Grant) -> Grant:
            names = tuple(
                ObjectName(new_name) if n.name == schema.name else n for n in grant.objects.names
            )
            return replace(grant, objects=replace(grant.objects, names=names))

        self.builder.replace_grants(lambda g: _names_schema(g.objects, schema.name), rename)
        self.builder.replace_schema(schema.name, replace(schema, name=new_name))

    # session and miscellany

    def _set_time_zone(self, stmt: SetTimeZone) -> None:
        self.builder.timezone = stmt.value

    def _comment_on(self, stmt: CommentOn) -> None:
        # Comments are collected separately by ddlcat.core.docs.
        pass

    def _other(self, stmt: OtherStatement) -> None:
        if is_ignored(stmt.kind):
            logger.debug("Ignoring %s statement", stmt.kind)
            return
        raise UnsupportedStatementError(stmt.kind, stmt.sql)


def _same_schema(schema: str | None, name: str) -> bool:
    return schema == name or (schema is None and name == DEFAULT_SCHEMA)


def _same_table(a: ObjectName, b: ObjectName) -> bool:
    if a.name != b.name:
        return False
    return (a.schema or DEFAULT_SCHEMA) == (b.schema or DEFAULT_SCHEMA)


def _names_schema(objects: GrantObjects, name: str) -> bool:
    return objects.kind in (
        GrantObjectKind.SCHEMAS,
        GrantObjectKind.ALL_TABLES_IN_SCHEMA,
        GrantObjectKind.ALL_FUNCTIONS_IN_SCHEMA,
    ) and any(n.name == name for n in objects.names)


def _signature_text(name: ObjectName, argument_types: tuple[str, ...] | None) -> str:
    if argument_types is None:
        return str(name)
    return f"{name}({', '.join(argument_types)})"
