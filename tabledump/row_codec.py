# row_codec.py
"""
One row <-> one line of text.

A line is a JSON array holding the row's values in schema order. The array
elements carry no type of their own that we trust: time, uuid and string all
look like JSON strings, so on the way back each element is coerced by the
type tag at its position in the header.

Canonical formats:
- float: Python's shortest round-trip repr (0.1, 3.0, 1e+20). NaN/Infinity
  are refused.
- time: UTC, always microseconds, 'Z' suffix: 2024-03-01T12:00:00.000000Z.
  Naive datetimes are taken as UTC; decoded times are naive UTC.
- uuid: 36-char hyphenated lowercase.
"""
from __future__ import annotations
import json
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Sequence

from tabledump.dump_errors import (
    ArityError,
    MalformedRowError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from tabledump.schema_model import Schema, TypeTag, classify_value


# -------------------------
# Scalars
# -------------------------
def format_time(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds") + "Z"


def parse_time(text: str) -> datetime:
    # fromisoformat only learned 'Z' in 3.11
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _to_json_scalar(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedTypeError(f"non-finite float: {value!r}")
        return value
    if isinstance(value, datetime):
        try:
            return format_time(value)
        except OverflowError:
            raise UnsupportedTypeError(f"time out of range in UTC: {value!r}") from None
    if isinstance(value, uuid.UUID):
        return str(value)
    raise UnsupportedTypeError(f"unsupported export type: {type(value).__name__}")


def _as_bool(v: Any) -> bool:
    if not isinstance(v, bool):
        raise TypeError
    return v


def _as_int(v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError
    return v


def _as_str(v: Any) -> str:
    if not isinstance(v, str):
        raise TypeError
    return v


def _as_float(v: Any) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise TypeError
    # json.loads lets NaN and Infinity through
    if not math.isfinite(v):
        raise ValueError
    return float(v)


def _as_time(v: Any) -> datetime:
    return parse_time(_as_str(v))


def _as_uuid(v: Any) -> uuid.UUID:
    return uuid.UUID(_as_str(v))


DECODERS: Dict[TypeTag, Callable[[Any], Any]] = {
    TypeTag.BOOL: _as_bool,
    TypeTag.INT: _as_int,
    TypeTag.STRING: _as_str,
    TypeTag.FLOAT: _as_float,
    TypeTag.TIME: _as_time,
    TypeTag.UUID: _as_uuid,
}


def _decoder_for(tag: Any, column: str) -> Callable[[Any], Any]:
    try:
        return DECODERS[TypeTag(tag)]
    except (ValueError, KeyError):
        raise UnsupportedTypeError(f"unsupported import type: {tag!r}", column=column) from None


# -------------------------
# Rows
# -------------------------
def row_values(row: Mapping[str, Any], keys: Sequence[str]) -> List[Any]:
    """Materialize a row into key order. Missing keys come out as None."""
    return [row.get(k) for k in keys]


def check_row(schema: Schema, row: Mapping[str, Any]) -> None:
    """
    Make sure every non-null value still fits its column's type, so nothing is
    written that decode_row would refuse. An int is fine in a float column.
    """
    for col in schema:
        value = row.get(col.name)
        if value is None:
            continue
        try:
            tag = classify_value(value)
        except UnsupportedTypeError as e:
            e.column = col.name
            raise
        if tag is col.type or (col.type is TypeTag.FLOAT and tag is TypeTag.INT):
            continue
        raise TypeMismatchError(
            f"{tag.value} value {value!r} does not fit a {TypeTag(col.type).value} column",
            column=col.name,
        )


def encode_row(row: Mapping[str, Any], keys: Sequence[str]) -> str:
    values = []
    for k, v in zip(keys, row_values(row, keys)):
        try:
            values.append(_to_json_scalar(v))
        except UnsupportedTypeError as e:
            e.column = k
            raise
    # JSON escaping keeps control characters (newlines included) off the line
    return json.dumps(values, ensure_ascii=False, allow_nan=False, separators=(",", ":"))


def decode_row(schema: Schema, line: str) -> List[Any]:
    try:
        arr = json.loads(line)
    except ValueError as e:
        raise MalformedRowError(f"row is not valid JSON: {e}") from None
    if not isinstance(arr, list):
        raise MalformedRowError(f"row is not a JSON array: {type(arr).__name__}")
    if len(arr) != len(schema):
        raise ArityError(f"row has {len(arr)} values, header declares {len(schema)}")

    vals = []
    for col, raw in zip(schema, arr):
        decoder = _decoder_for(col.type, col.name)
        if raw is None:
            vals.append(None)
            continue
        try:
            vals.append(decoder(raw))
        except (TypeError, ValueError, OverflowError):
            raise TypeMismatchError(
                f"cannot read {json.dumps(raw, ensure_ascii=False)} as {TypeTag(col.type).value}",
                column=col.name,
            ) from None
    return vals
