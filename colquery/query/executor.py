"""
Query execution: run one statement against an open Connection.
Reads return Rows, a lazy forward-only sequence decoded against the caller's
column schema; writes return Ack. Driver failures surface as ConnectionError or
QueryError, decoding failures as DecodeError. Nothing is retried or cached here.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Sequence

import pandas as pd

from colquery.query.errors import DecodeError
from colquery.query.schema import Column, ColumnType, as_schema, decode_row
from colquery.utils.db_connector import Connection

logger = logging.getLogger("colquery.executor")

READ_KEYWORDS = frozenset({
    "SELECT", "WITH", "VALUES", "SHOW", "DESCRIBE", "DESC", "EXPLAIN", "PRAGMA", "TABLE", "FROM",
    "SUMMARIZE", "CALL", "PIVOT", "UNPIVOT",
})

_LEADING_NOISE = re.compile(r"^(?:\s+|--[^\n]*(?:\n|$)|/\*.*?\*/|\()*", re.S)
_FIRST_WORD = re.compile(r"[A-Za-z_]+")
# string literals, quoted identifiers, placeholders and bare percent signs
_PLACEHOLDER_TOKENS = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\?|%")

_PANDAS_DTYPES = {
    ColumnType.INT64: "Int64",
    ColumnType.FLOAT64: "Float64",
    ColumnType.BOOL: "boolean",
    ColumnType.STRING: "string",
}


@dataclass(frozen=True)
class Query:
    """Statement text plus positional parameters (`?` placeholders)."""

    text: str
    params: tuple = ()

    def __post_init__(self):
        if isinstance(self.params, (str, bytes)):
            raise TypeError("params must be a sequence of values, not a single string")
        object.__setattr__(self, "params", tuple(self.params))


@dataclass(frozen=True)
class Ack:
    """Completion of a write; rowcount is None when the driver does not report it."""

    rowcount: int | None = None


def is_read(text: str) -> bool:
    """True when the statement's first keyword produces a result set."""
    body = _LEADING_NOISE.sub("", text, count=1)
    m = _FIRST_WORD.match(body)
    return bool(m) and m.group(0).upper() in READ_KEYWORDS


def _format_placeholders(text: str) -> str:
    """Rewrite `?` to `%s` outside quoted text and escape every `%`, for format-style drivers."""
    def repl(m):
        token = m.group(0)
        if token == "?":
            return "%s"
        return token.replace("%", "%%")

    return _PLACEHOLDER_TOKENS.sub(repl, text)


class Rows:
    """
    Lazy, forward-only, non-restartable result set.
    Rows are fetched and decoded one at a time; the cursor is released when the
    sequence is exhausted, on a decode error, or on close(). Iterating again after
    that yields nothing.
    """

    def __init__(self, cursor, connection: Connection, schema: Sequence[Column], query_text: str):
        self._cursor = cursor
        self._connection = connection
        self.schema = tuple(schema)
        self.query = query_text
        description = cursor.description or ()
        if description and len(description) != len(self.schema):
            self.close()
            raise DecodeError(
                f"query returns {len(description)} columns but schema declares {len(self.schema)}",
                query=query_text,
            )
        if description:
            self.columns = tuple(d[0] for d in description)
        else:
            self.columns = tuple(c.name or f"column_{i}" for i, c in enumerate(self.schema))

    @property
    def consumed(self) -> bool:
        return self._cursor is None

    def __iter__(self):
        return self

    def __next__(self) -> tuple:
        if self._cursor is None:
            raise StopIteration
        try:
            raw = self._cursor.fetchone()
        except self._connection.driver_errors as e:
            self.close()
            raise self._connection.wrap_error(e, self.query) from e
        if raw is None:
            self.close()
            raise StopIteration
        try:
            return decode_row(raw, self.schema)
        except DecodeError as e:
            e.query = self.query
            self.close()
            raise

    def close(self) -> None:
        cursor, self._cursor = self._cursor, None
        if cursor is not None and not self._connection.closed:
            cursor.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def execute(
    connection: Connection,
    query: Query | str,
    schema: Sequence[Column | ColumnType] | None = None,
) -> Rows | Ack:
    """
    Execute one statement.

    Reads (SELECT, WITH, SHOW, ...) need a column schema and return Rows; any
    statement given a schema is read the same way (INSERT ... RETURNING). Writes
    return Ack once the driver call completes. Raises ConnectionError when the
    connection is closed or lost, QueryError when the server rejects the
    statement, and DecodeError when the schema does not fit the result.
    """
    if isinstance(query, str):
        query = Query(query)
    if not query.text or not query.text.strip():
        raise ValueError("query text must not be empty")

    # a declared schema means the caller expects rows (e.g. INSERT ... RETURNING)
    read = schema is not None or is_read(query.text)
    if read and schema is None:
        raise ValueError("a column schema is required to decode a read query")
    columns = as_schema(schema) if read else ()

    cursor = connection.cursor()
    logger.info("Executing query: %s", query.text)
    try:
        if query.params:
            text = query.text
            if connection.paramstyle == "format":
                text = _format_placeholders(text)
            cursor.execute(text, query.params)
        else:
            cursor.execute(query.text)
    except connection.driver_errors as e:
        cursor.close()
        raise connection.wrap_error(e, query.text) from e

    if read:
        return Rows(cursor, connection, columns, query.text)

    rowcount = getattr(cursor, "rowcount", -1)
    cursor.close()
    return Ack(rowcount if isinstance(rowcount, int) and rowcount >= 0 else None)


def to_dataframe(rows: Rows) -> pd.DataFrame:
    """Drain rows into a DataFrame; nullable numeric columns keep <NA> distinct from 0."""
    records: list[Any] = list(rows)
    df = pd.DataFrame.from_records(records, columns=list(rows.columns))
    for i, column in enumerate(rows.schema):
        dtype = _PANDAS_DTYPES.get(column.type)
        if dtype:
            df.isetitem(i, df.iloc[:, i].astype(dtype))
    return df
