"""RoadData Schema - Column Specs and Type Inference.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from roaddata.errors import ColumnNotFoundError, SchemaInferenceError

logger = logging.getLogger(__name__)

# One named-column data unit
Record = Dict[str, Any]


class ColumnType(Enum):
    """Declared column types, ordered from strictest to loosest parse."""

    INTEGER = "integer"
    NUMERIC = "numeric"
    TEXT = "text"

    @property
    def zero(self) -> Any:
        """Default used for missing fields when none is declared."""
        if self is ColumnType.INTEGER:
            return 0
        if self is ColumnType.NUMERIC:
            return 0.0
        return ""

    def convert(self, raw: str) -> Any:
        """Parse one field. Raises ValueError when the text does not fit."""
        if self is ColumnType.INTEGER:
            return int(raw.strip())
        if self is ColumnType.NUMERIC:
            return float(raw.strip())
        return raw


@dataclass(frozen=True)
class ColumnSpec:
    """Declared name, type and default for one column.

    Attributes:
        name: Column name
        dtype: Column type (a ColumnType or its string value)
        default: Value for missing fields; None means the type's zero value
    """

    name: str
    dtype: ColumnType = ColumnType.NUMERIC
    default: Any = None

    def __post_init__(self):
        if not isinstance(self.dtype, ColumnType):
            object.__setattr__(self, "dtype", ColumnType(self.dtype))

    @property
    def fill_value(self) -> Any:
        return self.dtype.zero if self.default is None else self.default

    def parse(self, raw: str) -> Any:
        """Parse a non-missing field according to the declared type."""
        return self.dtype.convert(raw)


@dataclass(frozen=True)
class Schema:
    """Ordered, fixed set of columns for a dataset."""

    columns: Tuple[ColumnSpec, ...]

    def __post_init__(self):
        object.__setattr__(self, "columns", tuple(self.columns))
        seen = set()
        for column in self.columns:
            if column.name in seen:
                raise ValueError(f"Duplicate column name: {column.name}")
            seen.add(column.name)

    @classmethod
    def of(cls, columns: Iterable[Union[ColumnSpec, Tuple[str, Any]]]) -> "Schema":
        """Build a schema from specs or (name, dtype) pairs."""
        specs = [
            c if isinstance(c, ColumnSpec) else ColumnSpec(name=c[0], dtype=c[1])
            for c in columns
        ]
        return cls(tuple(specs))

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self.columns)

    def __contains__(self, name: object) -> bool:
        return any(c.name == name for c in self.columns)

    def __getitem__(self, name: str) -> ColumnSpec:
        for column in self.columns:
            if column.name == name:
                return column
        raise ColumnNotFoundError(name, self.names)

    def select(self, names: Sequence[str]) -> "Schema":
        """Sub-schema with the given columns, in the given order."""
        return Schema(tuple(self[name] for name in names))

    def describe(self) -> str:
        return ", ".join(f"{c.name}:{c.dtype.value}" for c in self.columns)


def classify_literal(raw: str) -> ColumnType:
    """Strictest type a single literal parses as."""
    for dtype in (ColumnType.INTEGER, ColumnType.NUMERIC):
        try:
            dtype.convert(raw)
            return dtype
        except ValueError:
            continue
    return ColumnType.TEXT


def infer_column_type(name: str, values: Iterable[str]) -> ColumnType:
    """Infer a column type from sampled, non-missing literals.

    Integer and numeric literals widen to numeric. Mixing numeric and
    non-numeric literals is ambiguous.

    Raises:
        SchemaInferenceError: On conflicting literals or an empty sample
    """
    kinds = set()
    examples: Dict[ColumnType, str] = {}

    for raw in values:
        kind = classify_literal(raw)
        kinds.add(kind)
        examples.setdefault(kind, raw)

    if not kinds:
        raise SchemaInferenceError(
            "no non-missing values in sampled rows; supply explicit columns",
            column=name,
        )

    if ColumnType.TEXT in kinds and len(kinds) > 1:
        numeric = examples.get(ColumnType.INTEGER, examples.get(ColumnType.NUMERIC))
        raise SchemaInferenceError(
            f"conflicting literal types (text {examples[ColumnType.TEXT]!r} "
            f"vs number {numeric!r}); supply explicit columns",
            column=name,
        )

    if kinds == {ColumnType.INTEGER}:
        return ColumnType.INTEGER
    if ColumnType.TEXT in kinds:
        return ColumnType.TEXT
    return ColumnType.NUMERIC


def infer_schema(
    names: Sequence[str],
    rows: Iterable[Sequence[str]],
    is_missing=lambda raw: raw == "",
) -> Schema:
    """Infer a schema from sampled text rows.

    Args:
        names: Column names, in order
        rows: Sampled rows of raw fields (short rows are allowed)
        is_missing: Predicate for missing fields, which are ignored

    Returns:
        Inferred schema
    """
    samples: List[List[str]] = [[] for _ in names]

    for row in rows:
        for i, raw in enumerate(row[:len(names)]):
            if not is_missing(raw):
                samples[i].append(raw)

    columns = tuple(
        ColumnSpec(name=name, dtype=infer_column_type(name, samples[i]))
        for i, name in enumerate(names)
    )
    return Schema(columns)


__all__ = [
    "Record",
    "ColumnType",
    "ColumnSpec",
    "Schema",
    "classify_literal",
    "infer_column_type",
    "infer_schema",
]
