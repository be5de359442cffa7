"""
Column schema and decoding.
A schema is the caller's ordered list of expected column types; rows coming off a
driver cursor are decoded against it one value at a time.
- Nullability is declared per column (optional(...)); NULL decodes to None.
- Arity mismatch between schema and row is a DecodeError, never truncation.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence

from colquery.query.errors import DecodeError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


class ColumnType(str, Enum):
    INT64 = "Int64"
    FLOAT64 = "Float64"
    STRING = "String"
    DATE = "Date"
    DATETIME = "DateTime"
    BOOL = "Bool"


@dataclass(frozen=True)
class Column:
    """One declared column: its type, whether NULL is allowed, and an optional label."""

    type: ColumnType
    nullable: bool = False
    name: str | None = None

    def __str__(self) -> str:
        return f"Nullable({self.type.value})" if self.nullable else self.type.value


def optional(column_type: ColumnType, name: str | None = None) -> Column:
    """Declare a nullable column of the given type."""
    return Column(column_type, nullable=True, name=name)


def as_schema(schema: Sequence[Column | ColumnType]) -> tuple[Column, ...]:
    """Normalize a schema; bare ColumnType entries are non-nullable columns."""
    out = []
    for entry in schema:
        if isinstance(entry, Column):
            out.append(entry)
        elif isinstance(entry, ColumnType):
            out.append(Column(entry))
        else:
            raise TypeError(f"Schema entries must be Column or ColumnType, got {type(entry).__name__}")
    return tuple(out)


def infer_type(text: str) -> ColumnType:
    """Classify a textual value: integer, decimal, date, datetime, else string."""
    if _INT_RE.match(text):
        return ColumnType.INT64
    if _FLOAT_RE.match(text):
        return ColumnType.FLOAT64
    if _DATE_RE.match(text):
        return ColumnType.DATE
    if _DATETIME_RE.match(text):
        return ColumnType.DATETIME
    return ColumnType.STRING


def _to_int64(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("boolean is not an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        result = int(value)
    elif isinstance(value, str) and _INT_RE.match(value.strip()):
        result = int(value.strip())
    else:
        raise ValueError("not an integer")
    if not INT64_MIN <= result <= INT64_MAX:
        raise ValueError("out of Int64 range")
    return result


def _to_float64(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        if _INT_RE.match(s) or _FLOAT_RE.match(s):
            return float(s)
    raise ValueError("not a number")


def _to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    # date-as-text
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    raise ValueError("not a string")


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        raise ValueError("datetime is not a date")
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _DATE_RE.match(value.strip()):
        return date.fromisoformat(value.strip())
    raise ValueError("not a date")


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and _DATETIME_RE.match(value.strip()):
        return datetime.strptime(value.strip(), "%Y-%m-%d %H:%M:%S")
    raise ValueError("not a datetime")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError("not a boolean")


_DECODERS = {
    ColumnType.INT64: _to_int64,
    ColumnType.FLOAT64: _to_float64,
    ColumnType.STRING: _to_string,
    ColumnType.DATE: _to_date,
    ColumnType.DATETIME: _to_datetime,
    ColumnType.BOOL: _to_bool,
}


def decode_value(value: Any, column: Column, position: int = 0) -> Any:
    """Convert one driver value to the column's declared type, or raise DecodeError."""
    label = column.name or f"#{position}"
    if value is None:
        if column.nullable:
            return None
        raise DecodeError(f"column {label}: NULL in non-nullable {column}")
    try:
        return _DECODERS[column.type](value)
    except (ValueError, ArithmeticError) as e:
        raise DecodeError(
            f"column {label}: cannot decode {type(value).__name__} {value!r} as {column} ({e})"
        ) from e


def decode_row(row: Sequence[Any], schema: Sequence[Column]) -> tuple:
    """Decode a full row against the schema; arity must match exactly."""
    if len(row) != len(schema):
        raise DecodeError(f"row has {len(row)} columns but schema declares {len(schema)}")
    return tuple(decode_value(v, c, i) for i, (v, c) in enumerate(zip(row, schema)))
