"""RoadData DataLoader - Training Loop Helpers.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, Optional, Tuple

from roaddata.data.dataset import Dataset
from roaddata.data.iterator import DatasetIterator
from roaddata.data.materialize import Names, materialize
from roaddata.errors import OutOfRangeError

logger = logging.getLogger(__name__)


def until_out_of_range(iterator: DatasetIterator, fn: Callable[[Any], Any]) -> int:
    """Call fn on every remaining element.

    OutOfRangeError ends the loop normally; any other error propagates.

    Returns:
        Number of elements processed
    """
    count = 0
    while True:
        try:
            element = iterator.next()
        except OutOfRangeError:
            return count
        fn(element)
        count += 1


class DataLoader(ABC):
    """Abstract re-iterable loader."""

    @abstractmethod
    def __iter__(self) -> Iterator:
        pass


class BatchLoader(DataLoader):
    """Yields (features, response) arrays per batch of a batched dataset.

    Every iter() opens a fresh traversal, so one loader serves many epochs.

    Example:
        loader = BatchLoader(csv_dataset("train.csv").batch(32), ["x1", "x2"], "y")
        for epoch in range(10):
            for X, y in loader:
                model.partial_fit(X, y)
    """

    def __init__(
        self,
        dataset: Dataset,
        features: Names,
        response: Optional[Names] = None,
        named_features: bool = False,
    ):
        self.dataset = dataset
        self.features = features
        self.response = response
        self.named_features = named_features

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        with self.dataset.iterator() as it:
            for batch in it:
                yield materialize(
                    batch,
                    self.features,
                    self.response,
                    named_features=self.named_features,
                )
            logger.debug(f"BatchLoader pass done: {it.produced} batches")


def input_fn(
    dataset: Dataset,
    features: Names,
    response: Optional[Names] = None,
    named_features: bool = False,
) -> Callable[[], Iterator[Tuple[Any, Any]]]:
    """Wrap a batched dataset as a zero-argument input function.

    Each call returns a new iterator of (features, response) pairs, the
    shape a training loop expects from an input_fn.
    """
    loader = BatchLoader(dataset, features, response, named_features)

    def fn() -> Iterator[Tuple[Any, Any]]:
        return iter(loader)

    return fn


__all__ = ["DataLoader", "BatchLoader", "until_out_of_range", "input_fn"]
