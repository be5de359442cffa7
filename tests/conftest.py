"""Shared fixtures: an in-memory DuckDB connection and small driver fakes."""
import pytest

from colquery.config.settings import ConnectionConfig
from colquery.utils.db_connector import Connection, get_connection


@pytest.fixture
def conn():
    with get_connection(ConnectionConfig(db_type="duckdb", db_path=":memory:")) as c:
        yield c


class FakeCursor:
    """Records executed statements and replays canned rows."""

    def __init__(self, rows=(), description=None, fetch_error=None):
        self.rows = list(rows)
        self.description = description
        self.fetch_error = fetch_error
        self.executed = []
        self.rowcount = -1
        self.closed = False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))

    def fetchone(self):
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.rows.pop(0) if self.rows else None

    def close(self):
        self.closed = True


class FakeDriverConnection:
    """Driver connection stand-in; cursor_error / commit_error are raised when set."""

    def __init__(self, cursor):
        self._cursor = cursor
        self.closed = 0
        self.cursor_error = None
        self.commit_error = None
        self.rolled_back = False

    def cursor(self):
        if self.cursor_error is not None:
            raise self.cursor_error
        return self._cursor

    def commit(self):
        if self.commit_error is not None:
            raise self.commit_error

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = 1


@pytest.fixture
def fake_conn():
    """
    Factory: fake_conn(db_type, cursor, fail_cursor=..., fail_commit=...) -> (Connection, cursor).
    Failures are raised as the dialect's own driver error class with the given message.
    """
    def make(db_type="duckdb", cursor=None, fail_cursor=None, fail_commit=None):
        cursor = cursor or FakeCursor()
        raw = FakeDriverConnection(cursor)
        conn = Connection(raw, db_type)
        driver_error = conn.driver_errors[0]
        if fail_cursor:
            raw.cursor_error = driver_error(fail_cursor)
        if fail_commit:
            raw.commit_error = driver_error(fail_commit)
        return conn, cursor
    return make
