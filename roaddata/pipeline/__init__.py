"""Pipeline module - Declarative pipeline composition."""

from roaddata.pipeline.pipeline import Pipeline, PipelineConfig
from roaddata.pipeline.stage import StageKind, StageSpec

__all__ = [
    "Pipeline",
    "PipelineConfig",
    "StageKind",
    "StageSpec",
]
