"""RoadData Pipeline - Declarative Pipeline Builder.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, List, Optional, Sequence

from roaddata.data.dataset import Dataset
from roaddata.data.materialize import Names
from roaddata.pipeline.stage import StageKind, StageSpec
from roaddata.utils.validation import non_negative_int, positive_int

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Pipeline configuration.

    Attributes:
        name: Pipeline name
        batch_size: Batch size, or None for no batch stage
        drop_remainder: Drop the final partial batch
        shuffle_buffer: Shuffle buffer size, or None for no shuffle stage
        seed: Shuffle seed
        repeat: Number of passes; None repeats forever
        parallelism: Default worker count for map stages
    """

    name: str = "pipeline"
    batch_size: Optional[int] = 32
    drop_remainder: bool = False
    shuffle_buffer: Optional[int] = None
    seed: Optional[int] = None
    repeat: Optional[int] = 1
    parallelism: int = 1

    def __post_init__(self):
        if self.batch_size is not None:
            positive_int("batch_size", self.batch_size)
        if self.shuffle_buffer is not None:
            positive_int("shuffle_buffer", self.shuffle_buffer)
        if self.repeat is not None:
            non_negative_int("repeat", self.repeat)
        positive_int("parallelism", self.parallelism)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """Build from a plain dict, e.g. a parsed JSON file."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown pipeline config keys: {unknown}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Pipeline:
    """Reusable, declarative pipeline definition.

    Stages are recorded in order and applied to a source by build(). The
    same Pipeline can be built over many sources.

    Example:
        pipeline = Pipeline("train", PipelineConfig(parallelism=4))

        @pipeline.transform()
        def scale(record):
            return {**record, "x": record["x"] / 100.0}

        pipeline.shuffle(1000).batch(32).repeat(5)
        dataset = pipeline.build(csv_dataset("train.csv"))
    """

    def __init__(self, name: str, config: Optional[PipelineConfig] = None):
        self.name = name
        self.config = config or PipelineConfig(name=name)
        self._stages: List[StageSpec] = []
        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        transforms: Sequence[Callable[[Any], Any]] = (),
    ) -> "Pipeline":
        """Standard chain: transforms, then shuffle, batch and repeat per config."""
        pipeline = cls(config.name, config)
        for fn in transforms:
            pipeline.map(fn)
        if config.shuffle_buffer is not None:
            pipeline.shuffle(config.shuffle_buffer, seed=config.seed)
        if config.batch_size is not None:
            pipeline.batch(config.batch_size, drop_remainder=config.drop_remainder)
        if config.repeat != 1:
            pipeline.repeat(config.repeat)
        return pipeline

    @property
    def stages(self) -> List[StageSpec]:
        with self._lock:
            return list(self._stages)

    def add_stage(self, stage: StageSpec) -> "Pipeline":
        with self._lock:
            self._stages.append(stage)
        return self

    def remove_stage(self, name: str) -> None:
        """Remove every stage with the given display name."""
        with self._lock:
            self._stages = [s for s in self._stages if s.label != name]

    def transform(
        self,
        name: Optional[str] = None,
        parallelism: Optional[int] = None,
        output_schema: Any = None,
    ) -> Callable:
        """Decorator registering a function as a map stage.

        Args:
            name: Stage name (defaults to the function name)
            parallelism: Worker threads (defaults to config.parallelism)
            output_schema: Schema of the records the function returns

        Returns:
            Decorator returning the function unchanged
        """
        def decorator(func: Callable) -> Callable:
            self.map(
                func,
                parallelism=parallelism,
                output_schema=output_schema,
                name=name or func.__name__,
            )
            return func

        return decorator

    def map(
        self,
        fn: Callable[[Any], Any],
        parallelism: Optional[int] = None,
        output_schema: Any = None,
        name: Optional[str] = None,
    ) -> "Pipeline":
        params = {
            "fn": fn,
            "parallelism": self.config.parallelism if parallelism is None else parallelism,
            "output_schema": output_schema,
        }
        return self.add_stage(StageSpec(StageKind.MAP, params, name=name))

    def filter(self, predicate: Callable[[Any], Any], name: Optional[str] = None) -> "Pipeline":
        return self.add_stage(StageSpec(StageKind.FILTER, {"predicate": predicate}, name=name))

    def shuffle(self, buffer_size: Optional[int] = None, seed: Optional[int] = None) -> "Pipeline":
        if buffer_size is None:
            buffer_size = self.config.shuffle_buffer
        if buffer_size is None:
            raise ValueError("shuffle needs a buffer_size (argument or config.shuffle_buffer)")
        seed = seed if seed is not None else self.config.seed
        return self.add_stage(
            StageSpec(StageKind.SHUFFLE, {"buffer_size": buffer_size, "seed": seed})
        )

    def batch(self, batch_size: Optional[int] = None, drop_remainder: Optional[bool] = None) -> "Pipeline":
        if batch_size is None:
            batch_size = self.config.batch_size
        if batch_size is None:
            raise ValueError("batch needs a batch_size (argument or config.batch_size)")
        if drop_remainder is None:
            drop_remainder = self.config.drop_remainder
        return self.add_stage(
            StageSpec(StageKind.BATCH, {"batch_size": batch_size, "drop_remainder": drop_remainder})
        )

    def repeat(self, count: Optional[int] = None) -> "Pipeline":
        return self.add_stage(StageSpec(StageKind.REPEAT, {"count": count}))

    def take(self, count: int) -> "Pipeline":
        return self.add_stage(StageSpec(StageKind.TAKE, {"count": count}))

    def skip(self, count: int) -> "Pipeline":
        return self.add_stage(StageSpec(StageKind.SKIP, {"count": count}))

    def prepare(self, features: Names, response: Optional[Names] = None) -> "Pipeline":
        return self.add_stage(
            StageSpec(StageKind.PREPARE, {"features": features, "response": response})
        )

    def build(self, source: Dataset) -> Dataset:
        """Apply every stage, in order, to a source dataset."""
        dataset = source
        for stage in self.stages:
            dataset = stage.apply(dataset)
        logger.info(f"Built pipeline '{self.name}': {dataset.describe()}")
        return dataset

    def describe(self) -> List[str]:
        return [stage.label for stage in self.stages]

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        return f"Pipeline(name={self.name!r}, stages={self.describe()})"


__all__ = ["Pipeline", "PipelineConfig"]
