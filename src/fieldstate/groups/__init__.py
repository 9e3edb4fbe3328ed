"""Composite groups aggregating fields into one state."""

from .array import FieldArrayGroup
from .base import FieldGroup
from .object import FieldObjectGroup

__all__ = [
    "FieldGroup",
    "FieldArrayGroup",
    "FieldObjectGroup",
]
