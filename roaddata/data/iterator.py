"""RoadData Iterator - Traversal Cursor Over a Dataset.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional

from roaddata.data.cursors import END, Cursor
from roaddata.errors import OutOfRangeError
from roaddata.utils.timing import ThroughputStats, Timer

if TYPE_CHECKING:
    from roaddata.data.dataset import Dataset

logger = logging.getLogger(__name__)


class IteratorState(Enum):
    """Iterator lifecycle."""

    READY = auto()
    ACTIVE = auto()
    EXHAUSTED = auto()


class DatasetIterator:
    """Single traversal of a Dataset.

    READY until the first next() call, ACTIVE while elements remain, then
    EXHAUSTED for good: every later next() raises OutOfRangeError. There is
    no reset; ask the dataset for a new iterator instead.

    Example:
        it = dataset.iterator()
        while True:
            try:
                batch = it.next()
            except OutOfRangeError:
                break
            train_step(batch)

    Closing the iterator (explicitly, via a with block, or on garbage
    collection) releases open files and worker threads.
    """

    def __init__(self, dataset: "Dataset"):
        self._dataset = dataset
        self._cursor: Optional[Cursor] = None
        self._state = IteratorState.READY
        self._produced = 0
        self._timer = Timer(name="traversal")

    @property
    def state(self) -> IteratorState:
        return self._state

    @property
    def produced(self) -> int:
        """Elements returned so far."""
        return self._produced

    @property
    def dataset(self) -> "Dataset":
        return self._dataset

    @property
    def stats(self) -> ThroughputStats:
        return ThroughputStats(elements=self._produced, seconds=self._timer.elapsed)

    def next(self) -> Any:
        """Return the next element.

        Raises:
            OutOfRangeError: The traversal is exhausted
            TransformError: A map/filter function failed for this element
        """
        if self._state is IteratorState.EXHAUSTED:
            raise OutOfRangeError()

        if self._cursor is None:
            self._cursor = self._dataset._make_cursor()
            self._timer.start()
            logger.debug(f"Traversal started: {self._dataset!r}")

        self._state = IteratorState.ACTIVE
        element = self._cursor.pull()

        if element is END:
            self._finish()
            raise OutOfRangeError()

        self._produced += 1
        return element

    get_next = next

    def __next__(self) -> Any:
        try:
            return self.next()
        except OutOfRangeError:
            raise StopIteration from None

    def __iter__(self) -> "DatasetIterator":
        return self

    def _finish(self) -> None:
        self._state = IteratorState.EXHAUSTED
        if self._cursor is not None:
            cursor, self._cursor = self._cursor, None
            cursor.close()
            self._timer.stop()
            logger.debug(
                f"Traversal finished: {self._produced} elements "
                f"in {self._timer.elapsed:.3f}s"
            )

    def close(self) -> None:
        """Release all resources. The iterator becomes EXHAUSTED."""
        if self._state is not IteratorState.EXHAUSTED or self._cursor is not None:
            self._finish()

    def __enter__(self) -> "DatasetIterator":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __del__(self):
        if getattr(self, "_cursor", None) is not None:
            self.close()

    def __repr__(self) -> str:
        return f"DatasetIterator(state={self._state.name}, produced={self._produced})"


__all__ = ["DatasetIterator", "IteratorState"]
