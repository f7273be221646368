"""RoadData Errors - Pipeline Error Taxonomy.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Every pipeline fault derives from DatasetError. OutOfRangeError does not:
it is the normal end-of-data signal and callers are expected to catch it
separately from real failures.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class DatasetError(Exception):
    """Base class for pipeline faults."""


class SchemaInferenceError(DatasetError):
    """Column types could not be inferred from a source.

    Attributes:
        column: Offending column name (None when the whole source is unusable)
    """

    def __init__(self, message: str, column: Optional[str] = None):
        self.column = column
        if column is not None:
            message = f"column '{column}': {message}"
        super().__init__(message)


class RecordParseError(DatasetError):
    """A delimited-text field could not be parsed.

    Attributes:
        path: Source file
        row: 1-based physical row in the file
        column: Column name (None for row-level problems)
        value: Raw field text
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        row: Optional[int] = None,
        column: Optional[str] = None,
        value: Any = None,
    ):
        self.path = path
        self.row = row
        self.column = column
        self.value = value

        location = []
        if path is not None:
            location.append(str(path))
        if row is not None:
            location.append(f"row {row}")
        if column is not None:
            location.append(f"column '{column}'")
        prefix = ", ".join(location)
        super().__init__(f"{prefix}: {message}" if prefix else message)


class TransformError(DatasetError):
    """A map or filter function failed for one element.

    Attributes:
        index: Position of the element in the stage's input stream
        cause: The exception raised by the function
    """

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(
            f"transform failed on element {index}: "
            f"{type(cause).__name__}: {cause}"
        )


class ColumnNotFoundError(DatasetError):
    """A selection referenced a column that is not present."""

    def __init__(self, column: str, available: Sequence[str] = ()):
        self.column = column
        self.available = list(available)
        super().__init__(
            f"column '{column}' not found (available: {self.available})"
        )


class OutOfRangeError(Exception):
    """End of traversal. Raised by every next() call once an iterator is exhausted."""

    def __init__(self, message: str = "end of dataset reached"):
        super().__init__(message)


__all__ = [
    "DatasetError",
    "SchemaInferenceError",
    "RecordParseError",
    "TransformError",
    "ColumnNotFoundError",
    "OutOfRangeError",
]
