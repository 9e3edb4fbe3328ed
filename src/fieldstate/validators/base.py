"""Default equality, emptiness and formatting strategies."""

from __future__ import annotations

import math
from typing import Any

DEFAULT_REQUIRED_ERROR = "required"


def same(a: Any, b: Any) -> bool:
    """Shallow comparison used when diffing snapshot keys."""
    return a is b or a == b


def default_is_equal(a: Any, b: Any) -> bool:
    """Identity or equality; the default `is_equal` of a Field."""
    return a is b or a == b


def default_is_empty(value: Any) -> bool:
    """
    Treat ``None``, ``""``, NaN and empty lists/tuples as empty.

    Examples
    --------
        >>> default_is_empty(None), default_is_empty(""), default_is_empty([])
        (True, True, True)
        >>> default_is_empty(float("nan"))
        True
        >>> default_is_empty(0), default_is_empty(" ")
        (False, False)
    """
    if value is None or value == "":
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, (list, tuple)) and len(value) == 0


def default_format_input(input_value: Any) -> Any:
    return input_value
