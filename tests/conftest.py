"""Shared test fixtures for the table DAO."""

from typing import Any, Dict, List

import pytest
from sqlalchemy import create_engine, text

from dao_conn import Dao, DaoConnection

PEOPLE: List[Dict[str, Any]] = [
    {"name": "bob", "age": 5, "status": "active"},
    {"name": "bobby", "age": 31, "status": "active"},
    {"name": "alice", "age": 27, "status": "inactive"},
    {"name": "robert", "age": 44, "status": "active"},
]

SCHEMA = """
CREATE TABLE person (
    id_person INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    age INTEGER,
    status TEXT
)
"""


@pytest.fixture
def db_url(tmp_path) -> str:
    """SQLite file database with an empty person table."""
    url = f"sqlite:///{tmp_path / 'dao.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text(SCHEMA))
    engine.dispose()
    return url


@pytest.fixture
def con(db_url):
    with DaoConnection(db_url) as c:
        yield c


@pytest.fixture
def people(con) -> Dao:
    """Dao over person, seeded with PEOPLE in order."""
    dao = Dao(con, "person")
    for row in PEOPLE:
        dao.insert(row)
    return dao
