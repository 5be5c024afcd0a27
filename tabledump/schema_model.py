# schema_model.py
from __future__ import annotations
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Tuple

from tabledump.dump_errors import MalformedHeaderError, UnsupportedTypeError


class TypeTag(str, Enum):
    BOOL = "bool"
    INT = "int"
    STRING = "string"
    FLOAT = "float"
    TIME = "time"
    UUID = "uuid"

    @classmethod
    def parse(cls, tag: str) -> "TypeTag":
        try:
            return cls(tag)
        except ValueError:
            raise UnsupportedTypeError(f"unsupported column type: {tag!r}") from None


@dataclass(frozen=True)
class Column:
    name: str
    type: TypeTag


@dataclass(frozen=True)
class Schema:
    """
    Ordered, typed column list governing one dump file.

    The order here is the order of every row's values and of the insert
    statement built from it.
    """

    columns: Tuple[Column, ...]

    @property
    def keys(self) -> List[str]:
        return [c.name for c in self.columns]

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self):
        return iter(self.columns)

    def __getitem__(self, idx: int) -> Column:
        return self.columns[idx]


# -------------------------
# Classification
# -------------------------
def classify_value(value: Any) -> TypeTag:
    """
    Map a Python value onto exactly one TypeTag, or raise UnsupportedTypeError.
    bool is checked before int since bool subclasses int.
    """
    if isinstance(value, bool):
        return TypeTag.BOOL
    if isinstance(value, int):
        return TypeTag.INT
    if isinstance(value, str):
        return TypeTag.STRING
    if isinstance(value, float):
        return TypeTag.FLOAT
    if isinstance(value, datetime):
        return TypeTag.TIME
    if isinstance(value, uuid.UUID):
        return TypeTag.UUID
    raise UnsupportedTypeError(f"unsupported export type: {type(value).__name__}")


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not name or "," in name or ":" in name:
        raise MalformedHeaderError(f"column name cannot be written to a header: {name!r}")
    return name


# -------------------------
# Public
# -------------------------
def infer_from_sample(row: Mapping[str, Any]) -> Tuple[Schema, List[str]]:
    """
    Build the schema from one row. Keys are sorted so the column order does not
    depend on how the source happened to order the row.
    """
    keys = sorted(row.keys())
    columns = []
    for k in keys:
        _check_name(k)
        try:
            tag = classify_value(row[k])
        except UnsupportedTypeError as e:
            e.column = k
            raise
        columns.append(Column(name=k, type=tag))
    return Schema(tuple(columns)), keys


def serialize_header(schema: Schema) -> str:
    return ",".join(f"{c.name}:{c.type.value}" for c in schema)


def parse_header(line: str) -> Tuple[Schema, List[str]]:
    columns = []
    keys = []
    for field in line.rstrip("\r\n").split(","):
        parts = field.split(":")
        if len(parts) != 2 or not parts[0]:
            raise MalformedHeaderError(f"bad header field: {field!r}")
        name, tag = parts
        try:
            columns.append(Column(name=name, type=TypeTag.parse(tag)))
        except UnsupportedTypeError as e:
            e.column = name
            raise
        keys.append(name)
    return Schema(tuple(columns)), keys
