from __future__ import annotations

from pathlib import Path
import shutil

import pytest

from dataaccess.db.connection import set_connection_manager


@pytest.fixture
def temp_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Provide a temporary directory removed after the test."""
    path = tmp_path_factory.mktemp("dataaccess")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def people_rows() -> list[dict]:
    """Canned rows shared by the test double tests."""
    return [
        {'id': 1, 'name': 'Ada', 'age': 36},
        {'id': 2, 'name': 'Grace', 'age': 45},
    ]


@pytest.fixture(autouse=True)
def reset_connection_manager():
    """Make sure no test leaks a global connection manager."""
    yield
    set_connection_manager(None)
