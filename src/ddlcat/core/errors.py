"""Error taxonomy for catalog construction and querying.

Every failure raised by the core derives from CatalogError so callers can
catch a single type per input unit (for instance one SQL file) and decide
their own recovery policy. Each error carries the names involved as
attributes, so the message is only a rendering of that data.
"""

from __future__ import annotations

from pathlib import Path


class CatalogError(RuntimeError):
    """Base class for all catalog errors."""


class UnresolvedReferenceError(CatalogError):
    """A statement names a table, column, function or role that does not exist."""

    def __init__(self, kind: str, name: str, *, referenced_by: str):
        self.kind = kind
        self.name = name
        self.referenced_by = referenced_by
        super().__init__(f"Unknown {kind} `{name}` referenced by {referenced_by}.")


class UnknownColumnError(UnresolvedReferenceError):
    """An expression or constraint references a column missing from its table."""

    def __init__(self, column_name: str, table_name: str):
        self.column_name = column_name
        self.table_name = table_name
        super().__init__("column", column_name, referenced_by=f"table `{table_name}`")


class AlreadyExistsError(CatalogError):
    """A CREATE statement collides with an existing entity of the same kind."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.capitalize()} `{name}` already exists.")


class NotFoundError(CatalogError):
    """A DROP or ALTER target does not exist and IF EXISTS was not given."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.capitalize()} `{name}` does not exist.")


class DropConflictError(CatalogError):
    """A DROP target is still referenced by other live entities."""

    def __init__(self, kind: str, name: str, dependents: list[str]):
        self.kind = kind
        self.name = name
        self.dependents = list(dependents)
        joined = ", ".join(self.dependents)
        super().__init__(
            f"Cannot drop {kind} `{name}`: still referenced by {joined}."
        )


class RevokeMismatchError(CatalogError):
    """A REVOKE statement did not match any recorded grant."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(f"REVOKE matched no existing grant: {description}.")


class SqlParseError(CatalogError):
    """The SQL front end rejected the input text."""

    def __init__(self, message: str, *, path: Path | None = None):
        self.message = message
        self.path = path
        location = f" in {path}" if path else ""
        super().__init__(f"SQL parse error{location}: {message}")


class LoadError(CatalogError):
    """Reading SQL sources from the filesystem failed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load `{path}`: {reason}")


class UnsupportedStatementError(CatalogError):
    """A statement kind is neither handled nor explicitly ignored."""

    def __init__(self, kind: str, sql: str = ""):
        self.kind = kind
        self.sql = sql
        super().__init__(f"Unsupported statement: {kind}")


class InconsistentCatalogError(CatalogError):
    """An internal lookup that must always succeed failed (construction bug)."""


class InvalidArgumentError(CatalogError, ValueError):
    """A caller passed an entity or value that does not belong to this catalog."""


class MaintenanceBodyError(CatalogError):
    """A trigger function body does not match the maintenance grammar."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Not a maintenance trigger body: {reason}")
