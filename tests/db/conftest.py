"""Fixtures for the db tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from dataaccess.db.adapters.sqlite import SQLiteDAO

PEOPLE = [
    ('Ada', 36),
    ('Grace', 45),
    ('Linus', 28),
]


@pytest.fixture()
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "dataaccess_test.db"


@pytest.fixture()
def sqlite_dao(sqlite_path: Path) -> SQLiteDAO:
    dao = SQLiteDAO({'server': str(sqlite_path)})

    dao.query("CREATE TABLE people (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, age INTEGER)")

    insert_query = "INSERT INTO people (name, age) VALUES (:name, :age)"
    for name, age in PEOPLE:
        dao.query(insert_query, {'name': name, 'age': age})

    yield dao
    dao.close()
