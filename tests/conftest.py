"""
Shared pytest fixtures for the dbtabledump test suite

This module provides:
- FakeConnection / FakeCursor: an in-memory stand-in for a DB-API source
- run_args: ArgType for library-style runs
- Postgres connection arguments for the integration tests
"""

import io
import os

import pytest
from dotenv import load_dotenv

from dbtabledump.runner import ArgType

load_dotenv()


# ==================== Fake source ====================


class FakeDBError(Exception):
    pass


class FakeCursor:
    def __init__(self, conn, name=None):
        self.conn = conn
        self.name = name
        self.description = None
        self.closed = False
        self._rows = iter(())

    def execute(self, sql, params=None):
        self.conn.executed.append(sql)
        if sql.upper().startswith(("SAVEPOINT", "ROLLBACK TO", "RELEASE")):
            return
        try:
            result = self.conn.results[sql]
        except KeyError:
            raise FakeDBError(f'relation for "{sql}" does not exist') from None
        if isinstance(result, Exception):
            raise result
        columns, rows = result
        self.description = [(col, None, None, None, None, None, None) for col in columns]
        self._rows = iter(rows)

    def fetchmany(self, size=1):
        batch = []
        for row in self._rows:
            if isinstance(row, Exception):
                raise row
            batch.append(row)
            if len(batch) >= size:
                break
        return batch

    def fetchone(self):
        return next(self._rows, None)

    def close(self):
        self.closed = True
        self.conn.closed_cursors += 1


class FakeConnection:
    """
    Maps SQL text to `(columns, rows)` or to an exception to raise.

    A row that is an exception instance is raised when fetched.
    """

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.executed = []
        self.cursor_names = []
        self.closed_cursors = 0

    def cursor(self, name=None):
        self.cursor_names.append(name)
        return FakeCursor(self, name)

    def add_table(self, table, columns, rows, max_id=None):
        self.results[f"select * from {table}"] = (columns, rows)
        if max_id is not None:
            self.results[f"select coalesce(max(id), 0) as max_id from {table}"] = (["max_id"], [(max_id,)])


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def sink():
    return io.StringIO()


@pytest.fixture
def run_args():
    """ArgType for library runs: progress goes to the log, not stderr."""
    return ArgType(verbosity=1, log_rather_than_print=True)


# ==================== Database Connection ====================


@pytest.fixture(scope="session")
def db_args():
    """
    Database connection arguments.

    Scope: session - created once and reused for all tests.
    Uses DB_URL environment variable or defaults to local PostgreSQL.
    """
    return ArgType(
        verbosity=2,
        dburl=os.environ.get("DB_URL", os.environ.get("DBURL", "postgresql://postgres@localhost:5435/postgres")),
    )


@pytest.fixture(scope="session")
def pg_available(db_args):
    psycopg = pytest.importorskip("psycopg")
    try:
        psycopg.connect(db_args.dburl, connect_timeout=3).close()
    except psycopg.Error as ouch:
        pytest.skip(f"PostgreSQL not reachable: {ouch}")
    return db_args


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests (no database required)")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
