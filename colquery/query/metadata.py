"""Server metadata queries (version, current user), one statement per dialect."""
from colquery.query.errors import QueryError
from colquery.query.executor import execute
from colquery.query.schema import ColumnType
from colquery.utils.db_connector import Connection

VERSION_QUERIES = {
    "duckdb": "SELECT version()",
    "postgres": "SELECT version()",
    "sqlserver": "SELECT @@VERSION",
}

CURRENT_USER_QUERIES = {
    "duckdb": "SELECT current_user",
    "postgres": "SELECT current_user",
    "sqlserver": "SELECT SUSER_SNAME()",
}


def _scalar(connection: Connection, sql: str) -> str:
    with execute(connection, sql, (ColumnType.STRING,)) as rows:
        for (value,) in rows:
            return value
    raise QueryError("query returned no rows", query=sql)


def server_version(connection: Connection) -> str:
    return _scalar(connection, VERSION_QUERIES[connection.db_type])


def current_user(connection: Connection) -> str:
    return _scalar(connection, CURRENT_USER_QUERIES[connection.db_type])
