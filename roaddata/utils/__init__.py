"""Utilities module."""

from roaddata.utils.validation import (
    FieldValidator,
    positive_int,
    non_negative_int,
)
from roaddata.utils.timing import Timer, ThroughputStats

__all__ = [
    "FieldValidator",
    "positive_int",
    "non_negative_int",
    "Timer",
    "ThroughputStats",
]
