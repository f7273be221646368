"""Argument validation utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple, Type

logger = logging.getLogger(__name__)

# (exception type, message) or None when the value passes
Check = Callable[[Any], Optional[Tuple[Type[Exception], str]]]


class FieldValidator:
    """Chainable validator for a single stage argument.

    Usage:
        FieldValidator("batch_size").integer().min_value(1).validate(32)
    """

    def __init__(self, field_name: str):
        self.field_name = field_name
        self._checks: List[Check] = []

    def integer(self) -> "FieldValidator":
        """Value must be an int (bools are rejected)."""
        def check(value):
            if isinstance(value, bool) or not isinstance(value, int):
                return TypeError, f"{self.field_name} must be an int, got {type(value).__name__}"
            return None
        self._checks.append(check)
        return self

    def min_value(self, minimum: int) -> "FieldValidator":
        """Value must be >= minimum."""
        def check(value):
            if value < minimum:
                return ValueError, f"{self.field_name} must be >= {minimum}, got {value}"
            return None
        self._checks.append(check)
        return self

    def one_of(self, *choices: Any) -> "FieldValidator":
        """Value must be one of the given choices."""
        def check(value):
            if value not in choices:
                return ValueError, f"{self.field_name} must be one of {list(choices)}, got {value!r}"
            return None
        self._checks.append(check)
        return self

    def is_callable(self) -> "FieldValidator":
        """Value must be callable."""
        def check(value):
            if not callable(value):
                return TypeError, f"{self.field_name} must be callable"
            return None
        self._checks.append(check)
        return self

    def validate(self, value: Any) -> Any:
        """Run checks in order and raise on the first failure.

        Returns:
            The value, unchanged
        """
        for check in self._checks:
            failure = check(value)
            if failure is not None:
                exc_type, message = failure
                raise exc_type(message)
        return value


def positive_int(name: str, value: Any) -> int:
    """Validate an int >= 1."""
    return FieldValidator(name).integer().min_value(1).validate(value)


def non_negative_int(name: str, value: Any) -> int:
    """Validate an int >= 0."""
    return FieldValidator(name).integer().min_value(0).validate(value)


__all__ = ["FieldValidator", "positive_int", "non_negative_int"]
