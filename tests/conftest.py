from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture(autouse=True)
def reset_sqlsplit_logger() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` call so caplog sees library records."""
    yield
    logger = logging.getLogger("sqlsplit")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
