"""
Error taxonomy for query execution.
Every error records the phase it happened in (connect / query / scan) so callers
can report which step failed without parsing messages.
"""


class QueryExecutorError(Exception):
    """Base class for errors raised while executing a query."""

    phase = "query"

    def __init__(self, message: str, query: str | None = None):
        super().__init__(message)
        self.message = message
        self.query = query

    def __str__(self) -> str:
        return f"{self.phase} failed: {self.message}"


class ConnectionError(QueryExecutorError):
    """The connection is closed or unreachable."""

    phase = "connect"


class QueryError(QueryExecutorError):
    """The server rejected the query; message is the server's."""

    phase = "query"


class DecodeError(QueryExecutorError):
    """A column value could not be converted to its declared type."""

    phase = "scan"
