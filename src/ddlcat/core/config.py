"""Environment-driven settings.

Command-line options take precedence over these values; the environment
only supplies defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DIALECT_ENV = "DDLCAT_DIALECT"
CATALOG_NAME_ENV = "DDLCAT_CATALOG_NAME"
LOG_LEVEL_ENV = "DDLCAT_LOG_LEVEL"

DEFAULT_DIALECT = "postgres"
DEFAULT_CATALOG_NAME = "catalog"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    dialect: str = DEFAULT_DIALECT
    catalog_name: str = DEFAULT_CATALOG_NAME
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings, falling back to defaults for unset or blank variables."""
        return cls(
            dialect=_env(DIALECT_ENV) or DEFAULT_DIALECT,
            catalog_name=_env(CATALOG_NAME_ENV) or DEFAULT_CATALOG_NAME,
            log_level=parse_log_level(_env(LOG_LEVEL_ENV)),
        )


def _env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip() or None


def parse_log_level(raw: str | None) -> str:
    """Return an upper-cased logging level name, or the default if unknown."""
    if not raw:
        return DEFAULT_LOG_LEVEL
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        return DEFAULT_LOG_LEVEL
    return level
