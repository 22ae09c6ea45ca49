"""Type-name normalization for PostgreSQL column and argument types."""

from __future__ import annotations

import re

_CANONICAL = {
    "int2": "SMALLINT",
    "smallint": "SMALLINT",
    "smallserial": "SMALLINT",
    "serial2": "SMALLINT",
    "int4": "INT",
    "int": "INT",
    "integer": "INT",
    "serial": "INT",
    "serial4": "INT",
    "int8": "BIGINT",
    "bigint": "BIGINT",
    "bigserial": "BIGINT",
    "serial8": "BIGINT",
    "float4": "real",
    "real": "real",
    "float8": "double precision",
    "double precision": "double precision",
    "numeric": "numeric",
    "decimal": "numeric",
    "bool": "boolean",
    "boolean": "boolean",
    "varchar": "VARCHAR",
    "character varying": "VARCHAR",
    "char": "CHAR",
    "character": "CHAR",
    "text": "TEXT",
    "date": "date",
    "uuid": "UUID",
    "timestamp": "timestamp without time zone",
    "timestamp without time zone": "timestamp without time zone",
    "timestamptz": "timestamp with time zone",
    "timestamp with time zone": "timestamp with time zone",
    "time": "time without time zone",
    "time without time zone": "time without time zone",
    "timetz": "time with time zone",
    "time with time zone": "time with time zone",
    "bytea": "bytea",
}

# Types whose values are generated by an implicit sequence.
GENERATED_TYPES = frozenset({"serial", "serial2", "serial4", "serial8", "smallserial", "bigserial"})

TEXTUAL_TYPES = frozenset({"TEXT", "VARCHAR", "CHAR", "citext", "name", "bpchar"})

_MODIFIERS_RE = re.compile(r"\s*\([^)]*\)")
_MULTIWORD_RE = re.compile(
    r"^(double\s+precision|(character|char|bit)\s+varying|national\s+char(acter)?"
    r"|(timestamp|time)(\s*\(\s*\d+\s*\))?\s+with(out)?\s+time\s+zone)\b",
    re.IGNORECASE,
)


def _base(type_name: str) -> tuple[str, str]:
    """Split a type into its modifier-free base name and array suffix."""
    text = " ".join(type_name.split())
    suffix = ""
    while text.endswith("[]"):
        text = text[:-2].rstrip()
        suffix += "[]"
    if text.upper().endswith(" ARRAY"):
        text = text[: -len(" ARRAY")]
        suffix += "[]"
    text = _MODIFIERS_RE.sub("", text).strip()
    return text, suffix


def normalize_type(type_name: str) -> str:
    """Return the canonical spelling of a type name.

    Length / precision modifiers are dropped, array suffixes kept and schema
    qualification of built-in types (``pg_catalog.int4``) ignored. Unknown
    types are returned as written.

    >>> normalize_type("character varying(255)")
    'VARCHAR'
    >>> normalize_type("int4[]")
    'INT[]'
    """
    base, suffix = _base(type_name)
    key = base.lower().strip('"')
    if key.startswith("pg_catalog."):
        key = key[len("pg_catalog.") :]
    canonical = _CANONICAL.get(key)
    if canonical is None:
        return type_name.strip()
    return canonical + suffix


def is_generated_type(type_name: str) -> bool:
    base, suffix = _base(type_name)
    return not suffix and base.lower().strip('"') in GENERATED_TYPES


def is_textual(type_name: str) -> bool:
    """Return True for scalar character types (not arrays of them)."""
    base, suffix = _base(type_name)
    if suffix:
        return False
    key = base.lower().strip('"')
    return _CANONICAL.get(key, key) in TEXTUAL_TYPES


def is_multiword_type(text: str) -> bool:
    """Return True when ``text`` starts with a type spelled as several words."""
    return bool(_MULTIWORD_RE.match(text.strip()))
