"""Group over an ordered list of members."""

from __future__ import annotations

from typing import Any, Callable, Iterator

from ..state import ArrayGroupState, StateHandler
from ..validators import ValidateAsyncFn, ValidateFn
from .base import FieldGroup


class FieldArrayGroup(FieldGroup):
    """
    Aggregates an ordered list of fields (or nested groups).

    The group value is the list of member values in order, skipping members
    whose ``skip`` flag is set; ``length`` counts the members that were kept.
    Member errors are collected in the same order and the group's own
    `validate` output is appended after them.

    Examples
    --------
        >>> from fieldstate import Field
        >>> text = Field(initial_value="", to_input=str, from_input=str.strip, required=True)
        >>> number = Field(initial_value=0, to_input=str, from_input=int)
        >>> group = FieldArrayGroup(fields=[text, number])
        >>> state = group.get_state()
        >>> state.value, state.error, state.length
        (['', 0], ['required'], 2)
    """

    state_class = ArrayGroupState

    def __init__(
        self,
        *,
        fields: list[Any],
        validate: ValidateFn | None = None,
        validate_async: ValidateAsyncFn | None = None,
        on_change_state: StateHandler | None = None,
        skip: bool = False,
        name: str | None = None,
    ):
        if isinstance(fields, dict):
            raise TypeError(
                "FieldArrayGroup expects a list of fields; "
                "use FieldObjectGroup for a name -> field mapping"
            )
        super().__init__(
            validate=validate,
            validate_async=validate_async,
            skip=skip,
            name=name,
        )
        self.fields: list[Any] = list(fields)
        self._attach_all(on_change_state)

    def _items(self) -> Iterator[tuple[int, Any]]:
        return enumerate(self.fields)

    def _pack(self, pairs: list[tuple[Any, Any]]) -> list[Any]:
        return [item for _index, item in pairs]

    def _merge_errors(self, errors: list[Any] | None, own: Any) -> list[Any]:
        if not isinstance(own, (list, tuple)):
            own = [own]
        return [*(errors or []), *own]

    def _extra_state(self, values: list[tuple[Any, Any]]) -> dict[str, Any]:
        return {"length": len(values)}

    def add_field(self, field: Any) -> None:
        """Append `field` as a member, subscribe to it and recompute."""
        self.fields.append(field)
        self.sub_field(field)

    def remove_field(self, field: Any) -> None:
        """Drop `field` from the members, unsubscribe from it and recompute."""
        try:
            self.fields.remove(field)
        except ValueError:
            raise ValueError(f"{field!r} is not a member of this group") from None
        self.unsub_field(field)
        self.refresh_state()

    def for_each(self, fn: Callable[[Any, int, list[Any]], Any]) -> None:
        """Call ``fn(field, index, fields)`` for every member."""
        fields = self.fields
        for index, field in enumerate(list(fields)):
            fn(field, index, fields)

    def __len__(self) -> int:
        return len(self.fields)
