"""Pytest configuration and fixtures."""

from __future__ import annotations

import contextlib
import sqlite3
import sys

from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from tests.constants import (
    PRODUCT_COLUMNS,
    PRODUCT_CREATED_AT,
    PRODUCT_ROWS,
    PRODUCT_TABLE,
)


if TYPE_CHECKING:
    from collections.abc import Generator


# Add restgrid to path for imports
restgrid_path = Path(__file__).parent.parent / "restgrid"
if str(restgrid_path.parent) not in sys.path:
    sys.path.insert(0, str(restgrid_path.parent))


_SETTINGS_ENV_PREFIXES = (
    "RESTGRID__",
    "RESTGRID_LOG__",
    "RESTGRID_LAYOUT__",
    "RESTGRID_PAGINATION__",
    "RESTGRID_SORT__",
    "RESTGRID_FORMATTER__",
    "RESTGRID_CONFIG_FILE",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Run every test with default settings and no bound request params.

    Settings are loaded from a clean working directory so the project's own
    pyproject.toml and any user config cannot leak into the tests.
    """
    import os

    from restgrid.config import clear_settings
    from restgrid.formatter import get_formatter
    from restgrid.request import reset_query_params, set_query_params

    for name in list(os.environ):
        if name.startswith(_SETTINGS_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("APPDATA", str(tmp_path))
    monkeypatch.chdir(tmp_path)

    clear_settings()
    get_formatter.cache_clear()
    token = set_query_params(None)

    yield

    reset_query_params(token)
    clear_settings()
    get_formatter.cache_clear()


@pytest.fixture
def product_db() -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite database with a populated product table."""
    connection = sqlite3.connect(":memory:")
    columns = ", ".join(f"{name} {kind}" for name, kind in PRODUCT_COLUMNS.items())
    connection.execute(f"CREATE TABLE {PRODUCT_TABLE} ({columns})")
    connection.executemany(
        f"INSERT INTO {PRODUCT_TABLE} (name, price, created_at) VALUES (?, ?, ?)",
        [(f"Product {item}", 100 + item, PRODUCT_CREATED_AT) for item in range(1, PRODUCT_ROWS + 1)],
    )
    connection.commit()
    with contextlib.closing(connection):
        yield connection


@pytest.fixture
def product_rows() -> list[dict[str, Any]]:
    """The product table as a list of dicts."""
    return [
        {
            "id": item,
            "name": f"Product {item}",
            "price": 100 + item,
            "created_at": PRODUCT_CREATED_AT,
        }
        for item in range(1, PRODUCT_ROWS + 1)
    ]


@pytest.fixture
def id_counter():
    """A fresh grid id counter starting at zero."""
    from restgrid.grid import GridIdCounter

    return GridIdCounter()
