"""RoadData - Lazy Dataset Pipeline Engine.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A pull-based input pipeline for training loops with:
- Delimited-text, text-line, in-memory and range sources
- Schema inference with explicit column specs as override
- Parallel, order-preserving map stages
- Windowed shuffle, batching, repeat, take/skip/filter
- Stateful iterators with a distinguished end-of-data signal
- Feature/response materialization into numpy arrays

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                        RoadData Engine                           │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌─────────────┐  ┌─────────────┐  ┌─────────────┐             │
    │  │  Pipeline   │  │  StageSpec  │  │   Config    │  BUILDER    │
    │  │  Compose    │  │  Declare    │  │  Defaults   │   LAYER     │
    │  └──────┬──────┘  └──────┬──────┘  └──────┬──────┘             │
    │         │                │                │                     │
    │  ┌──────┴────────────────┴────────────────┴──────┐             │
    │  │              Dataset (immutable)               │             │
    │  │   ┌─────┐  ┌───────┐  ┌─────┐  ┌──────┐      │   STAGE     │
    │  │   │ Map │  │Shuffle│  │Batch│  │Repeat│      │   LAYER     │
    │  │   └─────┘  └───────┘  └─────┘  └──────┘      │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │                 Sources                        │             │
    │  │   ┌─────┐  ┌──────┐  ┌──────┐  ┌─────┐       │   SOURCE    │
    │  │   │ CSV │  │ Text │  │Slices│  │Range│       │   LAYER     │
    │  │   └─────┘  └──────┘  └──────┘  └─────┘       │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │           Iterator / Cursors                   │             │
    │  │   ┌────────┐  ┌──────────┐  ┌────────┐       │  TRAVERSAL  │
    │  │   │  Pull  │  │Materialize│  │ Loader │       │    LAYER    │
    │  │   └────────┘  └──────────┘  └────────┘       │             │
    │  └──────────────────────────────────────────────┘             │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from roaddata import csv_dataset, OutOfRangeError

    dataset = (
        csv_dataset("train.csv")
        .map(normalize, parallelism=4)
        .shuffle(1000)
        .batch(32)
        .prepare(features=["x1", "x2"], response="y")
    )

    it = dataset.iterator()
    while True:
        try:
            X, y = it.next()
        except OutOfRangeError:
            break
        model.partial_fit(X, y)
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from roaddata.errors import (
    DatasetError,
    SchemaInferenceError,
    RecordParseError,
    TransformError,
    ColumnNotFoundError,
    OutOfRangeError,
)
from roaddata.data.schema import ColumnSpec, ColumnType, Schema
from roaddata.data.dataset import Dataset
from roaddata.data.sources import (
    CsvConfig,
    CsvDataset,
    TextLineDataset,
    TensorSlicesDataset,
    RangeDataset,
    csv_dataset,
    text_line_dataset,
    tensor_slices_dataset,
    range_dataset,
)
from roaddata.data.iterator import DatasetIterator, IteratorState
from roaddata.data.materialize import Batch, materialize
from roaddata.data.loader import BatchLoader, until_out_of_range, input_fn
from roaddata.pipeline import Pipeline, PipelineConfig, StageKind, StageSpec

__all__ = [
    # Errors
    "DatasetError",
    "SchemaInferenceError",
    "RecordParseError",
    "TransformError",
    "ColumnNotFoundError",
    "OutOfRangeError",
    # Schema
    "ColumnSpec",
    "ColumnType",
    "Schema",
    # Datasets
    "Dataset",
    "CsvConfig",
    "CsvDataset",
    "TextLineDataset",
    "TensorSlicesDataset",
    "RangeDataset",
    "csv_dataset",
    "text_line_dataset",
    "tensor_slices_dataset",
    "range_dataset",
    # Iteration
    "DatasetIterator",
    "IteratorState",
    "Batch",
    "materialize",
    "BatchLoader",
    "until_out_of_range",
    "input_fn",
    # Pipeline
    "Pipeline",
    "PipelineConfig",
    "StageKind",
    "StageSpec",
]
