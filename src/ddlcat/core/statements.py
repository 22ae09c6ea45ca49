"""Statement values produced by the SQL front end.

These are the only inputs the statement processor understands. They are
plain immutable records: names as written, expressions as
``ParsedExpression`` and enumerations for the small closed vocabularies
(trigger events, policy commands, row-level-security actions).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ddlcat.core.expressions import ParsedExpression


class TriggerEvent(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"


class TriggerTiming(str, Enum):
    BEFORE = "BEFORE"
    AFTER = "AFTER"
    INSTEAD_OF = "INSTEAD OF"


class TriggerOrientation(str, Enum):
    ROW = "ROW"
    STATEMENT = "STATEMENT"


class PolicyCommand(str, Enum):
    ALL = "ALL"
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class RowSecurityAction(str, Enum):
    ENABLE = "ENABLE"
    DISABLE = "DISABLE"
    FORCE = "FORCE"
    NO_FORCE = "NO FORCE"


class GrantObjectKind(str, Enum):
    TABLES = "TABLES"
    ALL_TABLES_IN_SCHEMA = "ALL TABLES IN SCHEMA"
    SCHEMAS = "SCHEMAS"
    FUNCTIONS = "FUNCTIONS"
    ALL_FUNCTIONS_IN_SCHEMA = "ALL FUNCTIONS IN SCHEMA"
    SEQUENCES = "SEQUENCES"
    OTHER = "OTHER"


@dataclass(frozen=True)
class ObjectName:
    """A possibly schema-qualified object name."""

    name: str
    schema: str | None = None

    def __str__(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name


class Statement:
    """Marker base class for every statement value."""


# CREATE TABLE and its parts


@dataclass(frozen=True)
class PrimaryKeyDefinition:
    columns: tuple[str, ...]
    name: str | None = None


@dataclass(frozen=True)
class UniqueDefinition:
    columns: tuple[str, ...]
    name: str | None = None
    nulls_distinct: bool = True


@dataclass(frozen=True)
class ForeignKeyDefinition:
    columns: tuple[str, ...]
    referenced_table: ObjectName
    referenced_columns: tuple[str, ...] = ()
    name: str | None = None
    on_delete: str | None = None
    on_update: str | None = None


@dataclass(frozen=True)
class CheckDefinition:
    expression: ParsedExpression
    name: str | None = None


ConstraintDefinition = (
    PrimaryKeyDefinition | UniqueDefinition | ForeignKeyDefinition | CheckDefinition
)


@dataclass(frozen=True)
class ColumnDefinition:
    """A column declaration; inline constraints are already lowered to
    table-constraint form with the column as their only host column."""

    name: str
    data_type: str
    not_null: bool = False
    default: str | None = None
    generated: bool = False
    identity: bool = False
    constraints: tuple[ConstraintDefinition, ...] = ()


@dataclass(frozen=True)
class CreateTable(Statement):
    name: ObjectName
    columns: tuple[ColumnDefinition, ...]
    constraints: tuple[ConstraintDefinition, ...] = ()
    if_not_exists: bool = False


@dataclass(frozen=True)
class DropTable(Statement):
    names: tuple[ObjectName, ...]
    if_exists: bool = False
    cascade: bool = False


@dataclass(frozen=True)
class AlterTable(Statement):
    """ALTER TABLE reduced to its row-level-security actions."""

    name: ObjectName
    actions: tuple[RowSecurityAction, ...] = ()
    if_exists: bool = False


# Indices


@dataclass(frozen=True)
class CreateIndex(Statement):
    table: ObjectName
    items: tuple[ParsedExpression, ...]
    name: str | None = None
    unique: bool = False
    if_not_exists: bool = False


@dataclass(frozen=True)
class DropIndex(Statement):
    names: tuple[ObjectName, ...]
    if_exists: bool = False


# Functions


@dataclass(frozen=True)
class FunctionArgument:
    data_type: str
    name: str | None = None
    mode: str | None = None
    default: str | None = None


@dataclass(frozen=True)
class CreateFunction(Statement):
    name: ObjectName
    arguments: tuple[FunctionArgument, ...] = ()
    return_type: str | None = None
    body: str | None = None
    language: str | None = None
    or_replace: bool = False


@dataclass(frozen=True)
class FunctionSignature:
    """A DROP FUNCTION target; ``argument_types`` is None when omitted."""

    name: ObjectName
    argument_types: tuple[str, ...] | None = None


@dataclass(frozen=True)
class DropFunction(Statement):
    targets: tuple[FunctionSignature, ...]
    if_exists: bool = False
    cascade: bool = False


# Triggers and policies


@dataclass(frozen=True)
class CreateTrigger(Statement):
    name: str
    table: ObjectName
    events: tuple[TriggerEvent, ...]
    timing: TriggerTiming
    orientation: TriggerOrientation = TriggerOrientation.STATEMENT
    function: ObjectName | None = None
    update_columns: tuple[str, ...] = ()
    when: ParsedExpression | None = None
    or_replace: bool = False


@dataclass(frozen=True)
class DropTrigger(Statement):
    name: str
    table: ObjectName | None = None
    if_exists: bool = False


@dataclass(frozen=True)
class CreatePolicy(Statement):
    name: str
    table: ObjectName
    command: PolicyCommand = PolicyCommand.ALL
    permissive: bool = True
    roles: tuple[str, ...] = ()
    using: ParsedExpression | None = None
    with_check: ParsedExpression | None = None


@dataclass(frozen=True)
class DropPolicy(Statement):
    name: str
    table: ObjectName
    if_exists: bool = False


# Roles, grants, schemas


@dataclass(frozen=True)
class CreateRole(Statement):
    name: str
    superuser: bool = False
    create_db: bool = False
    create_role: bool = False
    inherit: bool = True
    login: bool = False
    bypass_rls: bool = False
    replication: bool = False
    connection_limit: int | None = None
    member_of: tuple[str, ...] = ()


@dataclass(frozen=True)
class DropRole(Statement):
    names: tuple[str, ...]
    if_exists: bool = False


@dataclass(frozen=True)
class Privilege:
    """A privilege keyword with the optional column list it is limited to."""

    kind: str
    columns: tuple[str, ...] = ()

    def __str__(self) -> str:
        if self.columns:
            return f"{self.kind} ({', '.join(self.columns)})"
        return self.kind


@dataclass(frozen=True)
class GrantObjects:
    kind: GrantObjectKind
    names: tuple[ObjectName, ...] = ()

    def __str__(self) -> str:
        names = ", ".join(str(n) for n in self.names)
        return f"{self.kind.value} {names}".strip()


@dataclass(frozen=True)
class GrantPrivileges(Statement):
    privileges: tuple[Privilege, ...]
    objects: GrantObjects
    grantees: tuple[str, ...]
    all_privileges: bool = False
    with_grant_option: bool = False
    granted_by: str | None = None


@dataclass(frozen=True)
class RevokePrivileges(Statement):
    privileges: tuple[Privilege, ...]
    objects: GrantObjects
    grantees: tuple[str, ...]
    all_privileges: bool = False
    grant_option_for: bool = False
    cascade: bool = False


@dataclass(frozen=True)
class GrantRole(Statement):
    roles: tuple[str, ...]
    grantees: tuple[str, ...]
    with_admin_option: bool = False


@dataclass(frozen=True)
class RevokeRole(Statement):
    roles: tuple[str, ...]
    grantees: tuple[str, ...]


@dataclass(frozen=True)
class CreateSchema(Statement):
    name: str
    authorization: str | None = None
    if_not_exists: bool = False


@dataclass(frozen=True)
class DropSchema(Statement):
    names: tuple[str, ...]
    if_exists: bool = False
    cascade: bool = False


@dataclass(frozen=True)
class AlterSchema(Statement):
    name: str
    new_name: str | None = None
    new_owner: str | None = None
    if_exists: bool = False


# Session and miscellany


@dataclass(frozen=True)
class SetTimeZone(Statement):
    """SET TIME ZONE; ``value`` is ``LOCAL`` or ``DEFAULT`` for those forms."""

    value: str


@dataclass(frozen=True)
class CommentOn(Statement):
    object_kind: str
    target: ObjectName
    column: str | None = None
    text: str | None = None


@dataclass(frozen=True)
class OtherStatement(Statement):
    """Any statement the front end recognises only by its leading keywords."""

    kind: str
    sql: str = ""
