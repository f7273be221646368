"""RoadData Cursors - Per-Traversal Stage State.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A Dataset is an immutable blueprint; each traversal builds a chain of
cursors mirroring the dataset chain. Cursors own all mutable state
(positions, shuffle buffers, batch accumulators, repeat counters, worker
pools) and are pulled from downstream to upstream.

pull() returns the next element or END. Once a cursor has returned END it
keeps returning END. An exception raised by pull() leaves the cursor usable:
the failing element is consumed and the next pull continues after it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Deque, List, Optional, Tuple, Union

import numpy as np

from roaddata.data.materialize import Batch
from roaddata.errors import TransformError

logger = logging.getLogger(__name__)


class _End:
    """Upstream-exhausted marker."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END"

    def __bool__(self) -> bool:
        return False


END = _End()


class Cursor(ABC):
    """Stateful puller for one stage of one traversal."""

    @abstractmethod
    def pull(self) -> Any:
        """Return the next element, or END."""
        pass

    def close(self) -> None:
        """Release resources held by this cursor and its upstream."""
        pass


class WrappingCursor(Cursor):
    """Cursor over a single upstream cursor."""

    def __init__(self, upstream: Cursor):
        self._upstream = upstream

    def close(self) -> None:
        self._upstream.close()


class SequenceCursor(Cursor):
    """Yields getter(0) .. getter(length - 1)."""

    def __init__(self, length: int, getter: Callable[[int], Any]):
        self._length = length
        self._getter = getter
        self._position = 0

    def pull(self) -> Any:
        if self._position >= self._length:
            return END
        element = self._getter(self._position)
        self._position += 1
        return element


class RangeCursor(Cursor):
    def __init__(self, values: range):
        self._values = iter(values)

    def pull(self) -> Any:
        return next(self._values, END)


class MapCursor(WrappingCursor):
    """Applies fn on the consumer thread."""

    def __init__(self, upstream: Cursor, fn: Callable[[Any], Any]):
        super().__init__(upstream)
        self._fn = fn
        self._index = 0

    def pull(self) -> Any:
        element = self._upstream.pull()
        if element is END:
            return END

        index = self._index
        self._index += 1
        try:
            return self._fn(element)
        except Exception as e:
            raise TransformError(index, e) from e


class PrepareCursor(WrappingCursor):
    """Applies a materializer; its errors propagate unwrapped."""

    def __init__(self, upstream: Cursor, fn: Callable[[Any], Any]):
        super().__init__(upstream)
        self._fn = fn

    def pull(self) -> Any:
        element = self._upstream.pull()
        if element is END:
            return END
        return self._fn(element)


class ParallelMapCursor(WrappingCursor):
    """Applies fn on a thread pool and re-emits results in input order.

    Upstream elements are pulled on the consumer thread and submitted into a
    bounded in-flight window. The consumer waits on the oldest entry, so the
    window never runs more than `window` elements ahead of consumption.
    """

    def __init__(
        self,
        upstream: Cursor,
        fn: Callable[[Any], Any],
        parallelism: int,
        window: int,
    ):
        super().__init__(upstream)
        self._fn = fn
        self._parallelism = parallelism
        self._window = window
        self._executor: Optional[ThreadPoolExecutor] = None
        # (index, future); index is None for an upstream failure
        self._in_flight: Deque[Tuple[Optional[int], Future]] = deque()
        self._next_index = 0
        self._upstream_done = False
        self._closed = False

    def _fill(self) -> None:
        while not self._upstream_done and len(self._in_flight) < self._window:
            try:
                element = self._upstream.pull()
            except Exception as e:
                failed: Future = Future()
                failed.set_exception(e)
                self._in_flight.append((None, failed))
                return

            if element is END:
                self._upstream_done = True
                return

            future = self._executor.submit(self._fn, element)
            self._in_flight.append((self._next_index, future))
            self._next_index += 1

    def pull(self) -> Any:
        if self._closed:
            return END

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._parallelism,
                thread_name_prefix="roaddata-map",
            )

        self._fill()
        if not self._in_flight:
            self.close()
            return END

        index, future = self._in_flight.popleft()
        if index is None:
            raise future.exception()

        try:
            return future.result()
        except Exception as e:
            raise TransformError(index, e) from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._executor is not None:
            for _, future in self._in_flight:
                future.cancel()
            self._executor.shutdown(wait=True)
            self._executor = None
            logger.debug(f"Map worker pool ({self._parallelism} threads) shut down")

        self._in_flight.clear()
        super().close()


class FilterCursor(WrappingCursor):
    def __init__(self, upstream: Cursor, predicate: Callable[[Any], Any]):
        super().__init__(upstream)
        self._predicate = predicate
        self._index = 0

    def pull(self) -> Any:
        while True:
            element = self._upstream.pull()
            if element is END:
                return END

            index = self._index
            self._index += 1
            try:
                keep = self._predicate(element)
            except Exception as e:
                raise TransformError(index, e) from e
            if keep:
                return element


class ShuffleCursor(WrappingCursor):
    """Bounded random-eviction buffer.

    Holds at most buffer_size elements. Each pull fills the buffer, picks a
    uniformly random occupied slot, and refills that slot from upstream (or
    drops it once upstream is exhausted).
    """

    def __init__(
        self,
        upstream: Cursor,
        buffer_size: int,
        seed: Optional[Union[int, List[int]]] = None,
    ):
        super().__init__(upstream)
        self._buffer_size = buffer_size
        self._buffer: List[Any] = []
        self._rng = np.random.default_rng(seed)
        self._upstream_done = False

    def _pull_upstream(self) -> Any:
        element = self._upstream.pull()
        if element is END:
            self._upstream_done = True
        return element

    def pull(self) -> Any:
        while not self._upstream_done and len(self._buffer) < self._buffer_size:
            element = self._pull_upstream()
            if element is not END:
                self._buffer.append(element)

        if not self._buffer:
            return END

        slot = int(self._rng.integers(len(self._buffer)))
        # Pull the replacement before evicting so an upstream error loses nothing
        replacement = END if self._upstream_done else self._pull_upstream()

        element = self._buffer[slot]
        if replacement is END:
            self._buffer[slot] = self._buffer[-1]
            self._buffer.pop()
        else:
            self._buffer[slot] = replacement
        return element

    def close(self) -> None:
        self._buffer.clear()
        super().close()


class BatchCursor(WrappingCursor):
    def __init__(self, upstream: Cursor, batch_size: int, drop_remainder: bool = False):
        super().__init__(upstream)
        self._batch_size = batch_size
        self._drop_remainder = drop_remainder
        self._pending: List[Any] = []

    def pull(self) -> Any:
        while len(self._pending) < self._batch_size:
            element = self._upstream.pull()
            if element is END:
                break
            self._pending.append(element)

        if not self._pending:
            return END

        if len(self._pending) < self._batch_size and self._drop_remainder:
            logger.debug(f"Dropping partial batch of {len(self._pending)} elements")
            self._pending = []
            return END

        batch = Batch(self._pending)
        self._pending = []
        return batch


class RepeatCursor(Cursor):
    """Replays fresh upstream traversals.

    count=None repeats forever. open_pass receives the 0-based pass number.
    A pass that yields nothing ends repetition.
    """

    def __init__(self, open_pass: Callable[[int], Cursor], count: Optional[int] = None):
        self._open_pass = open_pass
        self._count = count
        self._completed = 0
        self._cursor: Optional[Cursor] = None
        self._pass_elements = 0
        self._done = count == 0

    @property
    def completed_passes(self) -> int:
        return self._completed

    def pull(self) -> Any:
        while not self._done:
            if self._cursor is None:
                self._cursor = self._open_pass(self._completed)
                self._pass_elements = 0

            element = self._cursor.pull()
            if element is not END:
                self._pass_elements += 1
                return element

            self._cursor.close()
            self._cursor = None
            self._completed += 1
            if self._pass_elements == 0:
                self._done = True
            elif self._count is not None and self._completed >= self._count:
                self._done = True

        return END

    def close(self) -> None:
        self._done = True
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None


class TakeCursor(WrappingCursor):
    def __init__(self, upstream: Cursor, count: int):
        super().__init__(upstream)
        self._remaining = count
        self._closed = False

    def pull(self) -> Any:
        if self._remaining <= 0:
            # Release upstream as soon as the limit is reached
            self.close()
            return END

        element = self._upstream.pull()
        if element is END:
            return END
        self._remaining -= 1
        return element

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            super().close()


class SkipCursor(WrappingCursor):
    def __init__(self, upstream: Cursor, count: int):
        super().__init__(upstream)
        self._to_skip = count

    def pull(self) -> Any:
        while self._to_skip > 0:
            element = self._upstream.pull()
            if element is END:
                self._to_skip = 0
                return END
            self._to_skip -= 1
        return self._upstream.pull()


__all__ = [
    "END",
    "Cursor",
    "WrappingCursor",
    "SequenceCursor",
    "RangeCursor",
    "MapCursor",
    "PrepareCursor",
    "ParallelMapCursor",
    "FilterCursor",
    "ShuffleCursor",
    "BatchCursor",
    "RepeatCursor",
    "TakeCursor",
    "SkipCursor",
]
