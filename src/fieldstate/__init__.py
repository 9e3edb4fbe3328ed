"""
Fieldstate: reactive value and validation state for form-like input.

Edit a field, watch its state. Group fields, watch the group.
"""

from .fields import Field
from .groups import FieldArrayGroup, FieldGroup, FieldObjectGroup
from .state import (
    ArrayGroupState,
    FieldState,
    NodeState,
    ObjectGroupState,
    State,
)
from .validators import (
    DEFAULT_REQUIRED_ERROR,
    default_format_input,
    default_is_empty,
    default_is_equal,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Field",
    "FieldArrayGroup",
    "FieldObjectGroup",
    # Snapshots
    "NodeState",
    "FieldState",
    "ArrayGroupState",
    "ObjectGroupState",
    # Defaults
    "DEFAULT_REQUIRED_ERROR",
    "default_format_input",
    "default_is_empty",
    "default_is_equal",
    # Internal (for advanced use)
    "State",
    "FieldGroup",
]
