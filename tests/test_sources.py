"""Tests for record sources.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import numpy as np
import pytest

from roaddata.data.schema import ColumnSpec, ColumnType
from roaddata.data.sources import (
    CsvConfig,
    csv_dataset,
    range_dataset,
    tensor_slices_dataset,
    text_line_dataset,
)
from roaddata.errors import (
    ColumnNotFoundError,
    DatasetError,
    RecordParseError,
    SchemaInferenceError,
)


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return path


class TestCsvDataset:
    """Test CsvDataset class."""

    def test_infer_from_header(self, tmp_path):
        """Test names from header and types from rows."""
        path = write(tmp_path, "data.csv", "a,b,c\n1,2.5,x\n2,3,y\n")
        dataset = csv_dataset(path)

        assert dataset.schema.names == ["a", "b", "c"]
        assert [c.dtype for c in dataset.schema] == [
            ColumnType.INTEGER, ColumnType.NUMERIC, ColumnType.TEXT,
        ]
        assert list(dataset) == [
            {"a": 1, "b": 2.5, "c": "x"},
            {"a": 2, "b": 3.0, "c": "y"},
        ]

    def test_ambiguous_column_fails_at_construction(self, tmp_path):
        """Test conflicting literals raise SchemaInferenceError."""
        path = write(tmp_path, "data.csv", "a,b\n1,2\nx,3\n")
        with pytest.raises(SchemaInferenceError) as exc:
            csv_dataset(path)
        assert exc.value.column == "a"

    def test_explicit_columns_skip_inference(self, tmp_path):
        """Test explicit columns resolve ambiguity."""
        path = write(tmp_path, "data.csv", "a,b\n1,2\nx,3\n")
        dataset = csv_dataset(path, columns=[ColumnSpec("a", "text"), ColumnSpec("b", "integer")])
        assert list(dataset) == [{"a": "1", "b": 2}, {"a": "x", "b": 3}]

    def test_header_only_file(self, tmp_path):
        """Test inference needs data rows."""
        path = write(tmp_path, "data.csv", "a,b\n")
        with pytest.raises(SchemaInferenceError):
            csv_dataset(path)

    def test_generated_names_without_header(self, tmp_path):
        """Test names when there is no header row."""
        path = write(tmp_path, "data.csv", "1,x\n2,y\n")
        dataset = csv_dataset(path, header=False)

        assert dataset.schema.names == ["column_1", "column_2"]
        assert len(list(dataset)) == 2

    def test_skip_with_explicit_names(self, tmp_path):
        """Test skipped rows and a discarded header."""
        text = "# exported\n# by tool\nA,B\n1,2\n3,4\n"
        path = write(tmp_path, "data.csv", text)
        dataset = csv_dataset(path, names=["x", "y"], skip=2)

        assert dataset.schema.names == ["x", "y"]
        assert list(dataset) == [{"x": 1, "y": 2}, {"x": 3, "y": 4}]

    def test_missing_fields_use_defaults(self, tmp_path):
        """Test empty, NA and absent fields."""
        path = write(tmp_path, "data.csv", "a,b,c\n1,,NA\n2\n")
        columns = [
            ColumnSpec("a", "integer"),
            ColumnSpec("b", "numeric", default=-1.0),
            ColumnSpec("c", "text", default="none"),
        ]
        dataset = csv_dataset(path, columns=columns, na_value="NA")

        assert list(dataset) == [
            {"a": 1, "b": -1.0, "c": "none"},
            {"a": 2, "b": -1.0, "c": "none"},
        ]

    def test_malformed_field_raises_with_context(self, tmp_path):
        """Test parse errors carry row and column."""
        path = write(tmp_path, "data.csv", "a,b\n1,2\noops,3\n")
        dataset = csv_dataset(path, columns=[ColumnSpec("a", "integer"), ColumnSpec("b", "integer")])

        it = dataset.iterator()
        assert it.next() == {"a": 1, "b": 2}
        with pytest.raises(RecordParseError) as exc:
            it.next()

        assert exc.value.row == 3
        assert exc.value.column == "a"
        assert exc.value.value == "oops"
        it.close()

    def test_malformed_field_default_policy(self, tmp_path):
        """Test on_malformed='default'."""
        path = write(tmp_path, "data.csv", "a\n1\noops\n")
        config = CsvConfig(on_malformed="default")
        dataset = csv_dataset(path, columns=[ColumnSpec("a", "integer", default=-1)], config=config)
        assert list(dataset) == [{"a": 1}, {"a": -1}]

    def test_too_many_fields(self, tmp_path):
        """Test rows wider than the schema."""
        path = write(tmp_path, "data.csv", "a,b\n1,2\n3,4,5\n")
        dataset = csv_dataset(path)
        with pytest.raises(RecordParseError, match="row 3"):
            list(dataset)

    def test_undecodable_bytes_at_inference(self, tmp_path):
        """Test invalid encoding fails inference with the file named."""
        path = tmp_path / "data.csv"
        path.write_bytes(b"a,b\n1,x\n2,\xff\xfe\n")

        with pytest.raises(SchemaInferenceError, match="data.csv"):
            csv_dataset(path)

    def test_undecodable_bytes_while_reading(self, tmp_path):
        """Test invalid encoding is a parse error with location."""
        bad = tmp_path / "bad.csv"
        bad.write_bytes(b"a,b\n1,x\n2,\xff\xfe\n")
        good = write(tmp_path, "good.csv", "a,b\n3,y\n")
        columns = [ColumnSpec("a", "integer"), ColumnSpec("b", "text")]

        it = csv_dataset([bad, good], columns=columns).iterator()
        with pytest.raises(RecordParseError) as exc:
            it.next()

        assert isinstance(exc.value, DatasetError)
        assert exc.value.path == str(bad)
        assert exc.value.row == 1
        assert isinstance(exc.value.__cause__, UnicodeDecodeError)
        assert it.next() == {"a": 3, "b": "y"}
        it.close()

    def test_duplicate_header_names(self, tmp_path):
        """Test a repeated column name is an inference error."""
        path = write(tmp_path, "data.csv", "a,a\n1,2\n")
        with pytest.raises(SchemaInferenceError, match="Duplicate column name: a"):
            csv_dataset(path)

    def test_select_columns(self, tmp_path):
        """Test column selection order."""
        path = write(tmp_path, "data.csv", "a,b,c\n1,2,3\n")
        dataset = csv_dataset(path, select_columns=["c", "a"])

        assert dataset.schema.names == ["c", "a"]
        assert list(dataset) == [{"c": 3, "a": 1}]

    def test_select_unknown_column(self, tmp_path):
        """Test selecting a column that does not exist."""
        path = write(tmp_path, "data.csv", "a,b\n1,2\n")
        with pytest.raises(ColumnNotFoundError):
            csv_dataset(path, select_columns=["z"])

    def test_multiple_files_in_order(self, tmp_path):
        """Test files are read one after another."""
        first = write(tmp_path, "part-0.csv", "a\n1\n2\n")
        second = write(tmp_path, "part-1.csv", "a\n3\n")
        assert [r["a"] for r in csv_dataset([first, second])] == [1, 2, 3]

    def test_custom_delimiter(self, tmp_path):
        """Test non-comma delimiter."""
        path = write(tmp_path, "data.tsv", "a\tb\n1\thello, world\n")
        dataset = csv_dataset(path, delimiter="\t")
        assert list(dataset) == [{"a": 1, "b": "hello, world"}]

    def test_restartable(self, tmp_path):
        """Test each traversal re-reads the file."""
        path = write(tmp_path, "data.csv", "a\n1\n2\n")
        dataset = csv_dataset(path)
        assert list(dataset) == list(dataset)

    def test_missing_file(self, tmp_path):
        """Test nonexistent path."""
        with pytest.raises(FileNotFoundError):
            csv_dataset(tmp_path / "nope.csv")

    def test_config_and_options_conflict(self, tmp_path):
        """Test passing both config and options."""
        path = write(tmp_path, "data.csv", "a\n1\n")
        with pytest.raises(ValueError):
            csv_dataset(path, config=CsvConfig(), header=False)

    def test_repeat_then_batch_drop_remainder(self, tmp_path):
        """Test 5 rows, repeat(2), batch(3, drop_remainder=True)."""
        path = write(tmp_path, "data.csv", "a\n1\n2\n3\n4\n5\n")
        dataset = csv_dataset(path).repeat(2).batch(3, drop_remainder=True)

        batches = list(dataset)
        assert len(batches) == 3
        assert all(len(b) == 3 for b in batches)
        assert sum(len(b) for b in batches) == 9


class TestTextLineDataset:
    """Test TextLineDataset class."""

    def test_lines(self, tmp_path):
        """Test one element per line."""
        path = write(tmp_path, "notes.txt", "first\nsecond\r\nthird")
        assert list(text_line_dataset(path)) == ["first", "second", "third"]

    def test_skip(self, tmp_path):
        """Test skipped leading lines."""
        path = write(tmp_path, "notes.txt", "header\nbody\n")
        assert list(text_line_dataset(path, skip=1)) == ["body"]


class TestTensorSlicesDataset:
    """Test TensorSlicesDataset class."""

    def test_plain_sequence(self):
        """Test elements unchanged."""
        dataset = tensor_slices_dataset([3, 1, 2])
        assert list(dataset) == [3, 1, 2]
        assert dataset.schema is None
        assert len(dataset) == 3

    def test_mapping_of_columns(self):
        """Test dict records and schema."""
        dataset = tensor_slices_dataset({"x": [1, 2], "y": [0.5, 1.5], "label": ["a", "b"]})

        assert list(dataset) == [
            {"x": 1, "y": 0.5, "label": "a"},
            {"x": 2, "y": 1.5, "label": "b"},
        ]
        assert [c.dtype for c in dataset.schema] == [
            ColumnType.INTEGER, ColumnType.NUMERIC, ColumnType.TEXT,
        ]

    def test_bool_column_is_not_integer(self):
        """Test booleans are typed as text, not numbers."""
        dataset = tensor_slices_dataset({"flag": [True, False], "n": [1, 2]})
        assert dataset.schema["flag"].dtype is ColumnType.TEXT
        assert dataset.schema["n"].dtype is ColumnType.INTEGER

    def test_array_columns_use_dtype(self):
        """Test ndarray columns are typed from their dtype."""
        dataset = tensor_slices_dataset({
            "pixels": np.zeros((3, 4), dtype=np.uint8),
            "embedding": np.ones((3, 2)),
            "mask": np.array([True, False, True]),
        })

        assert [c.dtype for c in dataset.schema] == [
            ColumnType.INTEGER, ColumnType.NUMERIC, ColumnType.TEXT,
        ]
        assert list(list(dataset)[0]["pixels"]) == [0, 0, 0, 0]

    def test_tuple_of_columns(self):
        """Test tuple elements."""
        dataset = tensor_slices_dataset(([1, 2], ["a", "b"]))
        assert list(dataset) == [(1, "a"), (2, "b")]

    def test_numpy_rows(self):
        """Test slicing along the first axis."""
        array = np.arange(6).reshape(3, 2)
        rows = list(tensor_slices_dataset(array))
        assert len(rows) == 3
        assert list(rows[2]) == [4, 5]

    def test_unequal_lengths(self):
        """Test parallel sequences must align."""
        with pytest.raises(ValueError, match="equal lengths"):
            tensor_slices_dataset({"x": [1, 2], "y": [1]})

    def test_string_rejected(self):
        """Test strings are not sliced."""
        with pytest.raises(TypeError):
            tensor_slices_dataset("abc")


class TestRangeDataset:
    """Test RangeDataset class."""

    def test_range(self):
        """Test start/stop/step."""
        assert list(range_dataset(5)) == [0, 1, 2, 3, 4]
        assert list(range_dataset(1, 10, 3)) == [1, 4, 7]

    def test_zero_step(self):
        """Test zero step."""
        with pytest.raises(ValueError):
            range_dataset(0, 5, 0)
