"""RoadData Sources - Record Sources.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Sources are the leaves of a pipeline: finite and restartable, every
iterator re-reads from the start. File-backed sources open their files on
the first pull and close them at exhaustion or when the iterator is closed.
"""

from __future__ import annotations

import csv
import itertools
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from roaddata.data.cursors import END, Cursor, RangeCursor, SequenceCursor
from roaddata.data.dataset import Dataset
from roaddata.data.schema import ColumnSpec, ColumnType, Record, Schema, infer_schema
from roaddata.errors import ColumnNotFoundError, RecordParseError, SchemaInferenceError
from roaddata.utils.validation import FieldValidator, non_negative_int, positive_int

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _as_paths(paths: Union[PathLike, Sequence[PathLike]]) -> List[Path]:
    if isinstance(paths, (str, Path)):
        paths = [paths]
    resolved = [Path(p) for p in paths]
    if not resolved:
        raise ValueError("At least one file path is required")
    for path in resolved:
        if not path.is_file():
            raise FileNotFoundError(f"No such file: {path}")
    return resolved


@dataclass
class CsvConfig:
    """Delimited-text reader configuration.

    Attributes:
        delimiter: Field separator
        quotechar: Quote character for fields containing the delimiter
        header: First row (after skip) holds column names
        skip: Leading rows to ignore before the header
        na_value: Field text treated as missing, in addition to ""
        sample_rows: Rows sampled for type inference
        select_columns: Columns to keep, in output order
        on_malformed: "error" raises RecordParseError, "default" substitutes
            the column default
        encoding: File encoding
    """

    delimiter: str = ","
    quotechar: str = '"'
    header: bool = True
    skip: int = 0
    na_value: str = ""
    sample_rows: int = 1000
    select_columns: Optional[Sequence[str]] = None
    on_malformed: str = "error"
    encoding: str = "utf-8"

    def __post_init__(self):
        non_negative_int("skip", self.skip)
        positive_int("sample_rows", self.sample_rows)
        FieldValidator("on_malformed").one_of("error", "default").validate(self.on_malformed)
        if len(self.delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {self.delimiter!r}")

    def is_missing(self, raw: str) -> bool:
        return raw == "" or raw == self.na_value


class CsvDataset(Dataset):
    """Records read from delimited-text files.

    Without explicit columns the schema is inferred from up to
    config.sample_rows rows of the first file when the dataset is built.

    Example:
        dataset = CsvDataset("iris.csv")
        dataset = CsvDataset(
            ["part-0.csv", "part-1.csv"],
            columns=[ColumnSpec("x", ColumnType.NUMERIC), ColumnSpec("label", "integer", default=-1)],
            config=CsvConfig(header=False),
        )
    """

    stage = "csv"

    def __init__(
        self,
        paths: Union[PathLike, Sequence[PathLike]],
        columns: Optional[Sequence[ColumnSpec]] = None,
        names: Optional[Sequence[str]] = None,
        config: Optional[CsvConfig] = None,
    ):
        self.paths = _as_paths(paths)
        self.config = config or CsvConfig()

        if columns is not None and names is not None:
            raise ValueError("Pass either columns or names, not both")

        if columns is not None:
            full_schema = Schema(tuple(columns))
        else:
            full_schema = self._infer(names)

        self.full_schema = full_schema
        selected = self.config.select_columns
        if selected is not None:
            for name in selected:
                if name not in full_schema:
                    raise ColumnNotFoundError(name, full_schema.names)
            schema = full_schema.select(selected)
        else:
            schema = full_schema

        super().__init__(None, schema)

    def _open_reader(self, path: Path) -> Tuple[IO[str], Any]:
        handle = open(path, newline="", encoding=self.config.encoding)
        reader = csv.reader(
            handle,
            delimiter=self.config.delimiter,
            quotechar=self.config.quotechar,
        )
        try:
            for _ in range(self.config.skip):
                if next(reader, None) is None:
                    break
        except Exception:
            handle.close()
            raise
        return handle, reader

    def _infer(self, names: Optional[Sequence[str]]) -> Schema:
        path = self.paths[0]
        try:
            handle, reader = self._open_reader(path)
            with handle:
                header = next(reader, None) if self.config.header else None
                rows = list(itertools.islice((r for r in reader if r), self.config.sample_rows))
        except (csv.Error, UnicodeDecodeError) as e:
            raise SchemaInferenceError(f"{path}: unreadable delimited text: {e}") from e

        if names is None:
            if header:
                names = [name.strip() for name in header]
            elif rows:
                names = [f"column_{i + 1}" for i in range(len(rows[0]))]
            else:
                raise SchemaInferenceError(f"{path}: no rows to infer column names from")

        if not rows:
            raise SchemaInferenceError(f"{path}: no data rows to infer column types from")

        try:
            schema = infer_schema(list(names), rows, is_missing=self.config.is_missing)
        except ValueError as e:
            raise SchemaInferenceError(f"{path}: {e}") from e
        logger.info(f"Inferred schema for {path} from {len(rows)} rows: {schema.describe()}")
        return schema

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return CsvCursor(self)

    def _describe(self) -> str:
        return f"csv({', '.join(p.name for p in self.paths)})"


class CsvCursor(Cursor):
    """Reads files in order, one parsed record per data row."""

    def __init__(self, dataset: CsvDataset):
        self._paths = dataset.paths
        self._config = dataset.config
        self._schema = dataset.full_schema
        self._open_reader = dataset._open_reader
        selected = dataset.schema.names
        self._indices = [dataset.full_schema.names.index(name) for name in selected]

        self._path_index = 0
        self._path: Optional[Path] = None
        self._handle: Optional[IO[str]] = None
        self._reader: Any = None
        self._done = False

    def _open_next(self) -> bool:
        if self._path_index >= len(self._paths):
            return False
        self._path = self._paths[self._path_index]
        self._handle, self._reader = self._open_reader(self._path)
        if self._config.header:
            next(self._reader, None)
        logger.debug(f"Opened {self._path}")
        return True

    def _close_file(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            self._reader = None

    def pull(self) -> Any:
        while not self._done:
            try:
                if self._reader is None and not self._open_next():
                    self._done = True
                    break
                row = next(self._reader, None)
            except UnicodeDecodeError as e:
                # The rest of the file cannot be decoded; resume with the next one
                line = self._reader.line_num if self._reader is not None else 0
                path = self._path
                self._close_file()
                self._path_index += 1
                raise RecordParseError(
                    f"cannot decode as {self._config.encoding}: {e.reason}",
                    path=str(path),
                    row=line + 1,
                ) from e
            except csv.Error as e:
                raise RecordParseError(
                    f"unreadable delimited text: {e}",
                    path=str(self._path),
                    row=self._reader.line_num if self._reader is not None else None,
                ) from e

            if row is None:
                self._close_file()
                self._path_index += 1
                continue
            if not row:
                continue
            return self._parse(row, self._reader.line_num)

        return END

    def _parse(self, row: List[str], line: int) -> Record:
        if len(row) > len(self._schema):
            raise RecordParseError(
                f"expected at most {len(self._schema)} fields, got {len(row)}",
                path=str(self._path),
                row=line,
            )

        record: Record = {}
        for i in self._indices:
            spec = self._schema.columns[i]
            raw = row[i] if i < len(row) else ""
            record[spec.name] = self._field(spec, raw, line)
        return record

    def _field(self, spec: ColumnSpec, raw: str, line: int) -> Any:
        if self._config.is_missing(raw):
            return spec.fill_value
        try:
            return spec.parse(raw)
        except ValueError as e:
            if self._config.on_malformed == "default":
                logger.debug(
                    f"{self._path} row {line}: {raw!r} is not {spec.dtype.value}, "
                    f"using default for '{spec.name}'"
                )
                return spec.fill_value
            raise RecordParseError(
                f"cannot parse {raw!r} as {spec.dtype.value}",
                path=str(self._path),
                row=line,
                column=spec.name,
                value=raw,
            ) from e

    def close(self) -> None:
        self._close_file()
        self._done = True


class TextLineDataset(Dataset):
    """One str element per line, trailing newline removed."""

    stage = "text"

    def __init__(
        self,
        paths: Union[PathLike, Sequence[PathLike]],
        skip: int = 0,
        encoding: str = "utf-8",
    ):
        super().__init__(None, None)
        self.paths = _as_paths(paths)
        self.skip = non_negative_int("skip", skip)
        self.encoding = encoding

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return TextLineCursor(self.paths, self.skip, self.encoding)

    def _describe(self) -> str:
        return f"text({', '.join(p.name for p in self.paths)})"


class TextLineCursor(Cursor):
    def __init__(self, paths: Sequence[Path], skip: int, encoding: str):
        self._paths = list(paths)
        self._skip = skip
        self._encoding = encoding
        self._handle: Optional[IO[str]] = None
        self._path_index = 0

    def pull(self) -> Any:
        while True:
            if self._handle is None:
                if self._path_index >= len(self._paths):
                    return END
                self._handle = open(self._paths[self._path_index], encoding=self._encoding)
                for _ in range(self._skip):
                    if not self._handle.readline():
                        break

            line = self._handle.readline()
            if line:
                return line.rstrip("\r\n")

            self._handle.close()
            self._handle = None
            self._path_index += 1

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        self._path_index = len(self._paths)


def _column_type(values: Sequence[Any]) -> ColumnType:
    """Column type of in-memory values; booleans are not numbers."""
    if isinstance(values, np.ndarray):
        if np.issubdtype(values.dtype, np.integer):
            return ColumnType.INTEGER
        if np.issubdtype(values.dtype, np.number):
            return ColumnType.NUMERIC
        return ColumnType.TEXT

    if any(isinstance(v, (bool, np.bool_)) for v in values):
        return ColumnType.TEXT
    if all(isinstance(v, (int, np.integer)) for v in values):
        return ColumnType.INTEGER
    if all(isinstance(v, (int, float, np.number)) for v in values):
        return ColumnType.NUMERIC
    return ColumnType.TEXT


class TensorSlicesDataset(Dataset):
    """In-memory source, one element per index of the first axis.

    - a sequence yields its elements unchanged
    - a numpy array yields its slices along axis 0
    - a mapping of parallel sequences yields dict records
    - a tuple of parallel sequences yields tuples
    """

    stage = "slices"

    def __init__(self, data: Any):
        schema = None

        if isinstance(data, (str, bytes)):
            raise TypeError("Cannot slice a string; wrap it in a list")

        if isinstance(data, Mapping):
            columns = {str(name): _materialize(values) for name, values in data.items()}
            length = _common_length(list(columns.values()))
            schema = Schema(tuple(
                ColumnSpec(name=name, dtype=_column_type(values))
                for name, values in columns.items()
            ))
            self._data: Any = columns
        elif isinstance(data, tuple):
            parts = tuple(_materialize(values) for values in data)
            length = _common_length(list(parts))
            self._data = parts
        elif isinstance(data, np.ndarray):
            if data.ndim == 0:
                raise TypeError("Cannot slice a 0-d array")
            length = data.shape[0]
            self._data = data
        elif isinstance(data, Sequence):
            self._data = list(data)
            length = len(self._data)
        else:
            raise TypeError(f"Cannot slice {type(data).__name__}")

        super().__init__(None, schema)
        self.length = length

    def __len__(self) -> int:
        return self.length

    def _element(self, index: int) -> Any:
        data = self._data
        if isinstance(data, dict):
            return {name: values[index] for name, values in data.items()}
        if isinstance(data, tuple):
            return tuple(values[index] for values in data)
        return data[index]

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return SequenceCursor(self.length, self._element)

    def _describe(self) -> str:
        return f"slices({self.length})"


def _materialize(values: Any) -> Any:
    if isinstance(values, np.ndarray):
        return values
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise TypeError(f"Expected a sequence of values, got {type(values).__name__}")
    return list(values)


def _common_length(parts: Sequence[Any]) -> int:
    lengths = {len(part) for part in parts}
    if len(lengths) > 1:
        raise ValueError(f"Parallel sequences must have equal lengths, got {sorted(lengths)}")
    return lengths.pop() if lengths else 0


class RangeDataset(Dataset):
    """Integers from range(start, stop, step)."""

    stage = "range"

    def __init__(self, start: int, stop: Optional[int] = None, step: int = 1):
        if stop is None:
            start, stop = 0, start
        for name, value in (("start", start), ("stop", stop), ("step", step)):
            FieldValidator(name).integer().validate(value)
        if step == 0:
            raise ValueError("step must not be zero")

        super().__init__(None, None)
        self.values = range(start, stop, step)

    def __len__(self) -> int:
        return len(self.values)

    def _make_cursor(self, epoch: Tuple[int, ...] = ()) -> Cursor:
        return RangeCursor(self.values)

    def _describe(self) -> str:
        return f"range({self.values.start}, {self.values.stop}, {self.values.step})"


def csv_dataset(
    paths: Union[PathLike, Sequence[PathLike]],
    columns: Optional[Sequence[ColumnSpec]] = None,
    names: Optional[Sequence[str]] = None,
    config: Optional[CsvConfig] = None,
    **options: Any,
) -> CsvDataset:
    """Create a dataset from delimited-text files.

    Keyword options (delimiter, header, skip, ...) build a CsvConfig when
    no config is given.
    """
    if options:
        if config is not None:
            raise ValueError("Pass either config or reader options, not both")
        config = CsvConfig(**options)
    return CsvDataset(paths, columns=columns, names=names, config=config)


def text_line_dataset(paths: Union[PathLike, Sequence[PathLike]], skip: int = 0) -> TextLineDataset:
    return TextLineDataset(paths, skip=skip)


def tensor_slices_dataset(data: Any) -> TensorSlicesDataset:
    return TensorSlicesDataset(data)


def range_dataset(start: int, stop: Optional[int] = None, step: int = 1) -> RangeDataset:
    return RangeDataset(start, stop, step)


__all__ = [
    "CsvConfig",
    "CsvDataset",
    "TextLineDataset",
    "TensorSlicesDataset",
    "RangeDataset",
    "csv_dataset",
    "text_line_dataset",
    "tensor_slices_dataset",
    "range_dataset",
]
