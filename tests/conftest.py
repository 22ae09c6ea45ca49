from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# Import the local src tree, not an installed ddlcat.
SRC = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def restore_ddlcat_logger():
    # The CLI callback replaces the handlers of the package logger.
    logger = logging.getLogger("ddlcat")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
