"""RoadData Materialize - Batches and Feature/Response Split.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from roaddata.errors import ColumnNotFoundError

logger = logging.getLogger(__name__)

Names = Union[str, Sequence[str]]


class Batch(list):
    """Elements materialized together by a batch stage.

    Behaves as a plain list of elements. For record elements, column()
    and columns() give numpy views per column.
    """

    def column(self, name: str) -> np.ndarray:
        """Values of one column across the batch."""
        records = _records(self)
        _require_columns(records, [name])
        return np.asarray([record[name] for record in records])

    def columns(self) -> Dict[str, np.ndarray]:
        """All columns, in the order of the first record."""
        records = _records(self)
        if not records:
            return {}
        return {name: self.column(name) for name in records[0]}

    def __repr__(self) -> str:
        return f"Batch({list.__repr__(self)})"


def _as_names(names: Optional[Names]) -> List[str]:
    if names is None:
        return []
    if isinstance(names, str):
        return [names]
    return list(names)


def _records(batch: Iterable[Any]) -> List[Mapping]:
    records = list(batch)
    for position, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise TypeError(
                f"batch element {position} is {type(record).__name__}, "
                "expected a record mapping column names to values"
            )
    return records


def _require_columns(records: Sequence[Mapping], names: Sequence[str]) -> None:
    for record in records:
        for name in names:
            if name not in record:
                raise ColumnNotFoundError(name, list(record))


def _stack(columns: Sequence[np.ndarray], length: int) -> np.ndarray:
    """Stack 1-D columns into (length, k); mixed kinds fall back to object."""
    if all(np.issubdtype(c.dtype, np.number) or c.dtype == np.bool_ for c in columns):
        return np.column_stack(columns) if columns else np.empty((length, 0))

    stacked = np.empty((length, len(columns)), dtype=object)
    for j, column in enumerate(columns):
        stacked[:, j] = column
    return stacked


def materialize(
    batch: Iterable[Any],
    features: Names,
    response: Optional[Names] = None,
    named_features: bool = False,
) -> Tuple[Union[np.ndarray, Dict[str, np.ndarray]], Optional[np.ndarray]]:
    """Split a batch of records into aligned feature and response arrays.

    Args:
        batch: Batch (or any iterable) of record mappings
        features: Feature column names; output columns follow this order
        response: Response column name(s), or None
        named_features: Return features as a dict of 1-D arrays

    Returns:
        (features, response). Features has shape (n, len(features)) unless
        named_features is set. Response has shape (n,) for one column,
        (n, k) for several, and is None when not requested.

    Raises:
        ColumnNotFoundError: A selected column is absent
        ValueError: Empty feature selection or overlapping selections
        TypeError: A batch element is not a record
    """
    feature_names = _as_names(features)
    response_names = _as_names(response)

    if not feature_names:
        raise ValueError("At least one feature column is required")

    overlap = [name for name in feature_names if name in response_names]
    if overlap:
        raise ValueError(f"Columns selected as both feature and response: {overlap}")

    records = _records(batch)
    _require_columns(records, feature_names + response_names)
    length = len(records)

    def column(name: str) -> np.ndarray:
        return np.asarray([record[name] for record in records])

    if named_features:
        x: Union[np.ndarray, Dict[str, np.ndarray]] = {
            name: column(name) for name in feature_names
        }
    else:
        x = _stack([column(name) for name in feature_names], length)

    if not response_names:
        y = None
    elif len(response_names) == 1:
        y = column(response_names[0])
    else:
        y = _stack([column(name) for name in response_names], length)

    return x, y


__all__ = ["Batch", "materialize"]
