"""RoadData Dataset - Lazy Pipeline Nodes.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A Dataset is an immutable node wrapping at most one upstream Dataset.
Composition methods (map, shuffle, batch, repeat, ...) return new nodes and
never touch the upstream. Nothing runs until an iterator is pulled.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple, Union

from roaddata.data.cursors import (
    BatchCursor,
    Cursor,
    FilterCursor,
    MapCursor,
    ParallelMapCursor,
    PrepareCursor,
    RepeatCursor,
    ShuffleCursor,
    SkipCursor,
    TakeCursor,
)
from roaddata.data.iterator import DatasetIterator
from roaddata.data.materialize import Names, materialize
from roaddata.data.schema import ColumnSpec, Schema
from roaddata.utils.validation import FieldValidator, non_negative_int, positive_int

logger = logging.getLogger(__name__)


class Dataset(ABC):
    """Immutable blueprint for one pipeline stage and its upstream.

    Example:
        dataset = (
            csv_dataset("train.csv")
            .map(normalize, parallelism=4)
            .shuffle(1000)
            .batch(32)
            .repeat(10)
        )

        with dataset.iterator() as it:
            batch = it.next()
    """

    stage = "dataset"

    def __init__(self, upstream: Optional["Dataset"] = None, schema: Optional[Schema] = None):
        self._upstream = upstream
        self._schema = schema

    @property
    def upstream(self) -> Optional["Dataset"]:
        return self._upstream

    @property
    def schema(self) -> Optional[Schema]:
        """Column layout of record elements, or None when elements are not records."""
        return self._schema

    @property
    def column_names(self) -> List[str]:
        return self._schema.names if self._schema is not None else []

    @abstractmethod
    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        """Build fresh per-traversal state for this node and its upstream.

        epoch holds the pass numbers of every enclosing repeat stage, outermost
        first; it is empty outside a repeat.
        """
        pass

    def iterator(self) -> DatasetIterator:
        """Create a new, independent traversal."""
        return DatasetIterator(self)

    def __iter__(self) -> Iterator[Any]:
        with self.iterator() as it:
            yield from it

    def lineage(self) -> List["Dataset"]:
        """Nodes from the source down to this one."""
        nodes = []
        node: Optional[Dataset] = self
        while node is not None:
            nodes.append(node)
            node = node.upstream
        return list(reversed(nodes))

    def describe(self) -> str:
        return " -> ".join(node._describe() for node in self.lineage())

    def _describe(self) -> str:
        return self.stage

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"

    # Composition

    def map(
        self,
        fn: Callable[[Any], Any],
        parallelism: int = 1,
        output_schema: Optional[Union[Schema, Sequence[ColumnSpec]]] = None,
        window: Optional[int] = None,
    ) -> "MapDataset":
        """Apply fn to every element, optionally on a thread pool."""
        return MapDataset(self, fn, parallelism, output_schema, window)

    def filter(self, predicate: Callable[[Any], Any]) -> "FilterDataset":
        """Keep elements for which predicate is truthy."""
        return FilterDataset(self, predicate)

    def shuffle(self, buffer_size: int, seed: Optional[int] = None) -> "ShuffleDataset":
        """Reorder elements through a bounded random-eviction buffer."""
        return ShuffleDataset(self, buffer_size, seed)

    def batch(self, batch_size: int, drop_remainder: bool = False) -> "BatchDataset":
        """Group consecutive elements into batches."""
        return BatchDataset(self, batch_size, drop_remainder)

    def repeat(self, count: Optional[int] = None) -> "RepeatDataset":
        """Replay the dataset count times, or forever when count is None."""
        return RepeatDataset(self, count)

    def take(self, count: int) -> "TakeDataset":
        return TakeDataset(self, count)

    def skip(self, count: int) -> "SkipDataset":
        return SkipDataset(self, count)

    def prepare(
        self,
        features: Names,
        response: Optional[Names] = None,
        named_features: bool = False,
    ) -> "PrepareDataset":
        """Split each batch into (features, response) arrays.

        Apply after batch(); see materialize() for shapes and errors.
        """
        return PrepareDataset(self, features, response, named_features)


class MapDataset(Dataset):
    """Transform stage.

    With parallelism > 1, results are computed on worker threads but
    released in input order through a window of in-flight elements
    (default 2 * parallelism).

    The upstream schema carries through unless output_schema declares the
    records fn returns.
    """

    stage = "map"

    def __init__(
        self,
        upstream: Dataset,
        fn: Callable[[Any], Any],
        parallelism: int = 1,
        output_schema: Optional[Union[Schema, Sequence[ColumnSpec]]] = None,
        window: Optional[int] = None,
    ):
        FieldValidator("fn").is_callable().validate(fn)
        self.parallelism = positive_int("parallelism", parallelism)
        self.window = positive_int("window", window if window is not None else 2 * parallelism)
        if output_schema is None:
            output_schema = upstream.schema
        elif not isinstance(output_schema, Schema):
            output_schema = Schema(tuple(output_schema))

        super().__init__(upstream, output_schema)
        self.fn = fn

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        upstream = self._upstream._make_cursor(epoch)
        if self.parallelism == 1:
            return MapCursor(upstream, self.fn)
        return ParallelMapCursor(upstream, self.fn, self.parallelism, self.window)

    def _describe(self) -> str:
        name = getattr(self.fn, "__name__", type(self.fn).__name__)
        if self.parallelism > 1:
            return f"map({name}, parallelism={self.parallelism})"
        return f"map({name})"


class PrepareDataset(Dataset):
    """Feature/response split of each batch.

    Selection errors surface as ColumnNotFoundError at the pull that
    materializes the offending batch.
    """

    stage = "prepare"

    def __init__(
        self,
        upstream: Dataset,
        features: Names,
        response: Optional[Names] = None,
        named_features: bool = False,
    ):
        super().__init__(upstream, None)
        self.features = features
        self.response = response
        self.named_features = named_features

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        fn = functools.partial(
            materialize,
            features=self.features,
            response=self.response,
            named_features=self.named_features,
        )
        return PrepareCursor(self._upstream._make_cursor(epoch), fn)


class FilterDataset(Dataset):
    stage = "filter"

    def __init__(self, upstream: Dataset, predicate: Callable[[Any], Any]):
        FieldValidator("predicate").is_callable().validate(predicate)
        super().__init__(upstream, upstream.schema)
        self.predicate = predicate

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return FilterCursor(self._upstream._make_cursor(epoch), self.predicate)


class ShuffleDataset(Dataset):
    """Windowed shuffle.

    Output is a uniformly random permutation only within the buffer window;
    a full shuffle needs buffer_size >= dataset length. A fixed seed gives
    every traversal the same order. Under repeat(), each pass mixes its pass
    number into the seed, so epochs differ but stay reproducible.
    """

    stage = "shuffle"

    def __init__(self, upstream: Dataset, buffer_size: int, seed: Optional[int] = None):
        self.buffer_size = positive_int("buffer_size", buffer_size)
        if seed is not None:
            non_negative_int("seed", seed)
        super().__init__(upstream, upstream.schema)
        self.seed = seed

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        seed = self.seed
        if seed is not None and epoch:
            seed = [seed, *epoch]
        return ShuffleCursor(self._upstream._make_cursor(epoch), self.buffer_size, seed)

    def _describe(self) -> str:
        return f"shuffle({self.buffer_size})"


class BatchDataset(Dataset):
    stage = "batch"

    def __init__(self, upstream: Dataset, batch_size: int, drop_remainder: bool = False):
        self.batch_size = positive_int("batch_size", batch_size)
        super().__init__(upstream, upstream.schema)
        self.drop_remainder = bool(drop_remainder)

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return BatchCursor(self._upstream._make_cursor(epoch), self.batch_size, self.drop_remainder)

    def _describe(self) -> str:
        suffix = ", drop_remainder=True" if self.drop_remainder else ""
        return f"batch({self.batch_size}{suffix})"


class RepeatDataset(Dataset):
    stage = "repeat"

    def __init__(self, upstream: Dataset, count: Optional[int] = None):
        self.count = None if count is None else non_negative_int("count", count)
        super().__init__(upstream, upstream.schema)

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        def open_pass(number: int) -> Cursor:
            return self._upstream._make_cursor(epoch + (number,))

        return RepeatCursor(open_pass, self.count)

    def _describe(self) -> str:
        return f"repeat({'inf' if self.count is None else self.count})"


class TakeDataset(Dataset):
    stage = "take"

    def __init__(self, upstream: Dataset, count: int):
        self.count = non_negative_int("count", count)
        super().__init__(upstream, upstream.schema)

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return TakeCursor(self._upstream._make_cursor(epoch), self.count)

    def _describe(self) -> str:
        return f"take({self.count})"


class SkipDataset(Dataset):
    stage = "skip"

    def __init__(self, upstream: Dataset, count: int):
        self.count = non_negative_int("count", count)
        super().__init__(upstream, upstream.schema)

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return SkipCursor(self._upstream._make_cursor(epoch), self.count)

    def _describe(self) -> str:
        return f"skip({self.count})"


__all__ = [
    "Dataset",
    "MapDataset",
    "PrepareDataset",
    "FilterDataset",
    "ShuffleDataset",
    "BatchDataset",
    "RepeatDataset",
    "TakeDataset",
    "SkipDataset",
]
