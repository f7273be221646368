"""Tests for pipeline module.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from roaddata.data.dataset import BatchDataset, MapDataset, RepeatDataset, ShuffleDataset
from roaddata.data.sources import range_dataset, tensor_slices_dataset
from roaddata.pipeline import Pipeline, PipelineConfig, StageKind, StageSpec


class TestPipeline:
    """Test Pipeline class."""

    def test_create_pipeline(self):
        """Test pipeline creation."""
        pipeline = Pipeline(name="test-pipeline")
        assert pipeline.name == "test-pipeline"
        assert pipeline.config.name == "test-pipeline"
        assert len(pipeline) == 0

    def test_transform_decorator(self):
        """Test registering a map stage."""
        pipeline = Pipeline(name="test-pipeline")

        @pipeline.transform()
        def double(x):
            return x * 2

        assert pipeline.describe() == ["double"]
        assert double(3) == 6
        assert list(pipeline.build(range_dataset(3))) == [0, 2, 4]

    def test_transform_named(self):
        """Test explicit stage name."""
        pipeline = Pipeline(name="test-pipeline")

        @pipeline.transform(name="plus-one")
        def inc(x):
            return x + 1

        assert pipeline.stages[0].label == "plus-one"
        assert pipeline.stages[0].kind is StageKind.MAP

    def test_stages_in_order(self):
        """Test build applies stages in declaration order."""
        pipeline = (
            Pipeline(name="test-pipeline")
            .map(lambda x: x + 1)
            .filter(lambda x: x % 2 == 0)
            .batch(2)
        )

        dataset = pipeline.build(range_dataset(8))
        assert isinstance(dataset, BatchDataset)
        assert list(dataset) == [[2, 4], [6, 8]]

    def test_build_is_reusable(self):
        """Test one pipeline over many sources."""
        pipeline = Pipeline(name="test-pipeline").map(lambda x: -x)

        assert list(pipeline.build(range_dataset(2))) == [0, -1]
        assert list(pipeline.build(range_dataset(3))) == [0, -1, -2]

    def test_build_leaves_source_unchanged(self):
        """Test the source is wrapped, not modified."""
        source = range_dataset(4)
        Pipeline(name="test-pipeline").take(2).build(source)
        assert list(source) == [0, 1, 2, 3]

    def test_remove_stage(self):
        """Test removing a stage by name."""
        pipeline = Pipeline(name="test-pipeline")
        pipeline.map(lambda x: x * 10, name="scale").take(2)

        pipeline.remove_stage("scale")
        assert pipeline.describe() == ["take"]
        assert list(pipeline.build(range_dataset(5))) == [0, 1]

    def test_shuffle_uses_config(self):
        """Test shuffle defaults come from config."""
        config = PipelineConfig(shuffle_buffer=10, seed=7)
        pipeline = Pipeline(name="test-pipeline", config=config).shuffle()

        dataset = pipeline.build(range_dataset(10))
        assert isinstance(dataset, ShuffleDataset)
        assert dataset.buffer_size == 10
        assert dataset.seed == 7
        assert sorted(dataset) == list(range(10))

    def test_shuffle_without_buffer(self):
        """Test shuffle needs a buffer size."""
        pipeline = Pipeline(name="test-pipeline")
        with pytest.raises(ValueError, match="buffer_size"):
            pipeline.shuffle()

    def test_map_uses_config_parallelism(self):
        """Test map stages default to config parallelism."""
        pipeline = Pipeline(name="test-pipeline", config=PipelineConfig(parallelism=3))
        pipeline.map(lambda x: x)

        dataset = pipeline.build(range_dataset(20))
        assert isinstance(dataset, MapDataset)
        assert dataset.parallelism == 3
        assert list(dataset) == list(range(20))

    def test_prepare_stage(self):
        """Test prepare as the last stage."""
        source = tensor_slices_dataset({"x": [1.0, 2.0, 3.0], "y": [0, 1, 0]})
        pipeline = Pipeline(name="test-pipeline").batch(3).prepare(features=["x"], response="y")

        [(x, y)] = list(pipeline.build(source))
        assert x.shape == (3, 1)
        assert y.tolist() == [0, 1, 0]

    def test_invalid_stage_argument(self):
        """Test stage arguments are validated at build time."""
        pipeline = Pipeline(name="test-pipeline").batch(0)
        with pytest.raises(ValueError):
            pipeline.build(range_dataset(3))

    def test_describe_on_build(self, caplog):
        """Test build logs the resulting chain."""
        pipeline = Pipeline(name="test-pipeline").batch(2)

        with caplog.at_level("INFO", logger="roaddata"):
            pipeline.build(range_dataset(4))
        assert "test-pipeline" in caplog.text
        assert "batch(2)" in caplog.text


class TestFromConfig:
    """Test Pipeline.from_config."""

    def test_standard_chain(self):
        """Test transforms, shuffle, batch, repeat."""
        config = PipelineConfig(name="train", batch_size=4, shuffle_buffer=8, seed=1, repeat=2)
        pipeline = Pipeline.from_config(config, transforms=[lambda x: x * 2])

        assert [s.kind for s in pipeline.stages] == [
            StageKind.MAP,
            StageKind.SHUFFLE,
            StageKind.BATCH,
            StageKind.REPEAT,
        ]

        dataset = pipeline.build(range_dataset(8))
        assert isinstance(dataset, RepeatDataset)
        batches = list(dataset)
        assert len(batches) == 4
        assert sorted(x for b in batches[:2] for x in b) == list(range(0, 16, 2))

    def test_defaults(self):
        """Test default config only batches."""
        pipeline = Pipeline.from_config(PipelineConfig())
        assert [s.kind for s in pipeline.stages] == [StageKind.BATCH]

    def test_drop_remainder(self):
        """Test drop_remainder is carried to the batch stage."""
        config = PipelineConfig(batch_size=3, drop_remainder=True)
        dataset = Pipeline.from_config(config).build(range_dataset(7))
        assert list(dataset) == [[0, 1, 2], [3, 4, 5]]


class TestPipelineConfig:
    """Test PipelineConfig class."""

    def test_round_trip_dict(self):
        """Test to_dict / from_dict."""
        config = PipelineConfig(name="x", batch_size=8, seed=3)
        assert PipelineConfig.from_dict(config.to_dict()) == config

    def test_unknown_keys(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ValueError, match="batchsize"):
            PipelineConfig.from_dict({"batchsize": 8})

    @pytest.mark.parametrize("field,value", [
        ("batch_size", 0),
        ("shuffle_buffer", -1),
        ("repeat", -2),
        ("parallelism", 0),
    ])
    def test_invalid_values(self, field, value):
        """Test config validation."""
        with pytest.raises(ValueError):
            PipelineConfig(**{field: value})


class TestStageSpec:
    """Test StageSpec class."""

    def test_kind_from_string(self):
        """Test kind is coerced from its value."""
        spec = StageSpec("take", {"count": 2})
        assert spec.kind is StageKind.TAKE
        assert spec.label == "take"

    def test_apply(self):
        """Test apply calls the matching Dataset method."""
        spec = StageSpec(StageKind.SKIP, {"count": 3})
        assert list(spec.apply(range_dataset(5))) == [3, 4]
