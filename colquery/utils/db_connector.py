"""Database connection helper - built from an explicit ConnectionConfig (no hardcoded credentials).
Supports: DuckDB (default, file or in-memory), PostgreSQL (psycopg2), SQL Server (pyodbc).
"""
import os
from contextlib import contextmanager
from typing import Iterator

import duckdb

from colquery.config.settings import ConnectionConfig
from colquery.query.errors import ConnectionError, QueryError

try:
    import pyodbc
    HAS_PYODBC = True
except ImportError:
    HAS_PYODBC = False

try:
    import psycopg2
    HAS_PSYCOPG2 = True
except ImportError:
    HAS_PSYCOPG2 = False

_DEFAULT_PORTS = {"postgres": 5432, "sqlserver": 1433}


class Connection:
    """
    Opaque handle around a DB-API driver connection.
    Knows its dialect and placeholder style, and tells connection-level driver
    failures apart from server rejections of a query.
    """

    def __init__(self, raw, db_type: str):
        self._raw = raw
        self.db_type = db_type
        self._closed = False

    @property
    def paramstyle(self) -> str:
        return "format" if self.db_type == "postgres" else "qmark"

    @property
    def closed(self) -> bool:
        if self._closed:
            return True
        # psycopg2 reports an int, pyodbc a bool; duckdb has no such attribute
        return bool(getattr(self._raw, "closed", False))

    @property
    def driver_errors(self) -> tuple:
        """Base exception classes raised by the underlying driver."""
        if self.db_type == "postgres" and HAS_PSYCOPG2:
            return (psycopg2.Error,)
        if self.db_type == "sqlserver" and HAS_PYODBC:
            return (pyodbc.Error,)
        return (duckdb.Error,)

    def is_connection_error(self, exc: BaseException) -> bool:
        if self.closed:
            return True
        if self.db_type == "duckdb":
            return isinstance(exc, duckdb.ConnectionException)
        if self.db_type == "postgres" and HAS_PSYCOPG2:
            return isinstance(exc, psycopg2.InterfaceError)
        if self.db_type == "sqlserver" and HAS_PYODBC:
            # SQLSTATE class 08 = connection exception
            return isinstance(exc, pyodbc.Error) and bool(exc.args) and str(exc.args[0]).startswith("08")
        return False

    def wrap_error(self, exc: BaseException, query: str | None = None):
        """Map a driver exception onto ConnectionError or QueryError."""
        if self.is_connection_error(exc):
            return ConnectionError(str(exc), query=query)
        return QueryError(str(exc), query=query)

    def cursor(self):
        if self.closed:
            raise ConnectionError("connection is closed")
        try:
            return self._raw.cursor()
        except self.driver_errors as e:
            raise self.wrap_error(e) from e

    def commit(self) -> None:
        # duckdb runs in autocommit mode
        if self.db_type == "duckdb" or self.closed:
            return
        try:
            self._raw.commit()
        except self.driver_errors as e:
            raise self.wrap_error(e, query="COMMIT") from e

    def rollback(self) -> None:
        if self.db_type == "duckdb" or self.closed:
            return
        try:
            self._raw.rollback()
        except self.driver_errors as e:
            raise self.wrap_error(e, query="ROLLBACK") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._raw.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Connection {self.db_type} {state}>"


def get_connection_string(config: ConnectionConfig) -> str:
    """Build connection string from config."""
    port = config.port or _DEFAULT_PORTS.get(config.db_type)
    if config.db_type == "sqlserver":
        return (
            f"DRIVER={{{config.odbc_driver}}};"
            f"SERVER={config.host},{port};"
            f"DATABASE={config.database};"
            f"UID={config.user};"
            f"PWD={config.password}"
        )
    if config.db_type == "postgres":
        return (
            f"postgresql://{config.user}:{config.password}"
            f"@{config.host}:{port}/{config.database}"
        )
    return f"duckdb:///{config.db_path}"


def open_connection(config: ConnectionConfig) -> Connection:
    """Open a driver connection for config.db_type. Failures raise ConnectionError."""
    if config.db_type == "sqlserver":
        if not HAS_PYODBC:
            raise ConnectionError("DB_TYPE=sqlserver needs pyodbc: pip install pyodbc")
        try:
            raw = pyodbc.connect(get_connection_string(config))
        except pyodbc.Error as e:
            raise ConnectionError(str(e)) from e
    elif config.db_type == "postgres":
        if not HAS_PSYCOPG2:
            raise ConnectionError("DB_TYPE=postgres needs psycopg2: pip install psycopg2-binary")
        try:
            raw = psycopg2.connect(get_connection_string(config))
        except psycopg2.Error as e:
            raise ConnectionError(str(e)) from e
    else:
        db_path = config.db_path
        if db_path != ":memory:":
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        try:
            raw = duckdb.connect(db_path)
        except duckdb.Error as e:
            raise ConnectionError(str(e)) from e
    return Connection(raw, config.db_type)


@contextmanager
def get_connection(config: ConnectionConfig) -> Iterator[Connection]:
    """Yield an open Connection; commit on success, roll back on error, always close."""
    conn = open_connection(config)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
