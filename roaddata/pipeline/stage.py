"""RoadData Stage - Declarative Stage Specs.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from roaddata.data.dataset import Dataset

logger = logging.getLogger(__name__)


class StageKind(Enum):
    """Stage kinds; values name the Dataset method that applies them."""

    MAP = "map"
    FILTER = "filter"
    SHUFFLE = "shuffle"
    BATCH = "batch"
    REPEAT = "repeat"
    TAKE = "take"
    SKIP = "skip"
    PREPARE = "prepare"


@dataclass
class StageSpec:
    """One stage of a declarative pipeline.

    Attributes:
        kind: Stage kind
        params: Keyword arguments for the Dataset method
        name: Optional display name
    """

    kind: StageKind
    params: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.kind, StageKind):
            self.kind = StageKind(self.kind)

    @property
    def label(self) -> str:
        return self.name or self.kind.value

    def apply(self, dataset: Dataset) -> Dataset:
        """Wrap dataset with this stage."""
        method = getattr(dataset, self.kind.value)
        return method(**self.params)

    def __repr__(self) -> str:
        return f"StageSpec(kind={self.kind.value!r}, name={self.label!r})"


__all__ = ["StageKind", "StageSpec"]
