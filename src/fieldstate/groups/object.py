"""Group over a name -> member mapping."""

from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping

from ..state import ObjectGroupState, StateHandler
from ..validators import ValidateAsyncFn, ValidateFn
from .base import FieldGroup


class FieldObjectGroup(FieldGroup):
    """
    Aggregates named fields (or nested groups) into one dict-valued snapshot.

    The value maps each non-skipped member name to its value, in insertion
    order. Errors map member names to their error; the dict returned by the
    group's own `validate` is merged on top, so its keys win on collision.

    Examples
    --------
        >>> from fieldstate import Field
        >>> name = Field(initial_value="", to_input=str, from_input=str.strip, required=True)
        >>> age = Field(initial_value=0, to_input=str, from_input=int)
        >>> group = FieldObjectGroup(
        ...     fields={"name": name, "age": age},
        ...     validate=lambda v: {"age": "young"} if v["age"] < 10 else None,
        ... )
        >>> group.get_state().error
        {'name': 'required', 'age': 'young'}
    """

    state_class = ObjectGroupState

    def __init__(
        self,
        *,
        fields: Mapping[str, Any],
        validate: ValidateFn | None = None,
        validate_async: ValidateAsyncFn | None = None,
        on_change_state: StateHandler | None = None,
        skip: bool = False,
        name: str | None = None,
    ):
        if not isinstance(fields, Mapping):
            raise TypeError(
                f"FieldObjectGroup expects a mapping of name -> field, "
                f"got {type(fields).__name__}; use FieldArrayGroup for a list"
            )
        super().__init__(
            validate=validate,
            validate_async=validate_async,
            skip=skip,
            name=name,
        )
        self.fields: dict[str, Any] = dict(fields)
        self._attach_all(on_change_state)

    def _items(self) -> Iterator[tuple[str, Any]]:
        return iter(list(self.fields.items()))

    def _pack(self, pairs: list[tuple[Any, Any]]) -> dict[str, Any]:
        return dict(pairs)

    def _merge_errors(self, errors: dict[str, Any] | None, own: Any) -> dict[str, Any]:
        return {**(errors or {}), **own}

    def add_field(self, name: str, field: Any) -> None:
        """Register `field` under `name`, subscribe to it and recompute."""
        previous = self.fields.get(name)
        if previous is not None and previous is not field:
            previous.off(self.refresh_state)
        self.fields[name] = field
        self.sub_field(field)

    def remove_field(self, name: str) -> Any:
        """Drop the member called `name`, unsubscribe from it and recompute."""
        try:
            field = self.fields.pop(name)
        except KeyError:
            raise KeyError(f"No field named '{name}' in this group") from None
        self.unsub_field(field)
        self.refresh_state()
        return field

    def for_each(self, fn: Callable[[Any, str, dict[str, Any]], Any]) -> None:
        """Call ``fn(field, name, fields)`` for every member."""
        fields = self.fields
        for name, field in list(fields.items()):
            fn(field, name, fields)

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __len__(self) -> int:
        return len(self.fields)
