"""Pytest configuration shared by the statement import suite.

Ids are random uuid4 strings in production; tests inject a counter-based
factory so group and row identifiers are stable and readable in assertions.
Database tests get a file-backed SQLite URL under the test's ``tmp_path`` so
no state leaks between tests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from statement_import.categories import CategoryDirectory, load_default_categories
from statement_import.db.client import dispose_engines


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Return a factory yielding ``id-1``, ``id-2``, ... for this test."""

    counter = 0

    def _next() -> str:
        nonlocal counter
        counter += 1
        return f"id-{counter}"

    return _next


@pytest.fixture(scope="session")
def categories() -> CategoryDirectory:
    return load_default_categories()


@pytest.fixture
def sqlite_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """A fresh SQLite database URL; ``DATABASE_URL`` is cleared for the test."""

    monkeypatch.delenv("DATABASE_URL", raising=False)
    yield f"sqlite+pysqlite:///{tmp_path / 'imports.db'}"
    dispose_engines()
