"""Timing utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class Timer:
    """Stopwatch for a traversal or a code block.

    Usage:
        with Timer() as t:
            do_something()
        print(f"Took {t.elapsed:.3f}s")

        # Or started and stopped by hand
        timer = Timer("epoch")
        timer.start()
        ...
        timer.stop()
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def start(self) -> "Timer":
        self.start_time = time.perf_counter()
        self.end_time = None
        return self

    def stop(self) -> float:
        """Stop the timer and return the elapsed seconds."""
        if self.start_time is not None and self.end_time is None:
            self.end_time = time.perf_counter()
        return self.elapsed

    def __enter__(self) -> "Timer":
        return self.start()

    def __exit__(self, *args) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self.start_time is not None and self.end_time is None

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds."""
        if self.start_time is None:
            return 0.0

        end = self.end_time or time.perf_counter()
        return end - self.start_time


@dataclass
class ThroughputStats:
    """Element count and wall time for one traversal."""

    elements: int = 0
    seconds: float = 0.0

    @property
    def per_second(self) -> float:
        return self.elements / self.seconds if self.seconds > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": self.elements,
            "seconds": self.seconds,
            "per_second": self.per_second,
        }


__all__ = ["Timer", "ThroughputStats"]
