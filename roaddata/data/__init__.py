"""Data module - Sources, pipeline stages and iteration."""

from roaddata.data.schema import ColumnSpec, ColumnType, Record, Schema
from roaddata.data.dataset import (
    Dataset,
    MapDataset,
    PrepareDataset,
    FilterDataset,
    ShuffleDataset,
    BatchDataset,
    RepeatDataset,
    TakeDataset,
    SkipDataset,
)
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
from roaddata.data.loader import DataLoader, BatchLoader, until_out_of_range, input_fn

__all__ = [
    "ColumnSpec", "ColumnType", "Record", "Schema",
    "Dataset", "MapDataset", "PrepareDataset", "FilterDataset", "ShuffleDataset",
    "BatchDataset", "RepeatDataset", "TakeDataset", "SkipDataset",
    "CsvConfig", "CsvDataset", "TextLineDataset", "TensorSlicesDataset", "RangeDataset",
    "csv_dataset", "text_line_dataset", "tensor_slices_dataset", "range_dataset",
    "DatasetIterator", "IteratorState",
    "Batch", "materialize",
    "DataLoader", "BatchLoader", "until_out_of_range", "input_fn",
]
