"""Validation strategies and helpers shared by fields and groups."""

from .base import (
    DEFAULT_REQUIRED_ERROR,
    default_format_input,
    default_is_empty,
    default_is_equal,
    same,
)
from .core import AsyncValidation, ValidateAsyncFn, ValidateFn

__all__ = [
    "DEFAULT_REQUIRED_ERROR",
    "AsyncValidation",
    "ValidateFn",
    "ValidateAsyncFn",
    "default_format_input",
    "default_is_empty",
    "default_is_equal",
    "same",
]
