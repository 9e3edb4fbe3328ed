"""Aggregation shared by the array and object group shapes."""

from __future__ import annotations

from typing import Any, Iterator

from loguru import logger

from ..state import State, StateHandler
from ..validators import AsyncValidation, ValidateAsyncFn, ValidateFn, same

_NOTHING = object()


class FieldGroup(State):
    """
    Base class for groups that fold many child nodes into one snapshot.

    Subclasses decide how members are stored and keyed, how per-member
    values/errors are packed (list or dict) and how the group's own
    validator output is merged into the member errors.

    Parameters
    ----------
    validate : Callable, optional
        ``validate(value) -> errors | None`` over the aggregated value.
        An array group appends the output to the member errors (a bare
        error is appended as one item); an object group merges the returned
        mapping over them.
    validate_async : Callable, optional
        ``async validate_async(value) -> errors | None`` over the aggregated
        value. Only called while no error is known. Requires a running event
        loop.
    on_change_state : Callable, optional
        Subscribed before the first snapshot is published.
    skip : bool, default False
        Excludes this group from a parent group.
    name : str, optional
        Used in log messages.

    Raises
    ------
    RuntimeError
        If an async request has to be issued outside a running event loop.
        Nothing is published in that case.
    """

    def __init__(
        self,
        *,
        validate: ValidateFn | None = None,
        validate_async: ValidateAsyncFn | None = None,
        on_change_state: StateHandler | None = None,
        skip: bool = False,
        name: str | None = None,
    ):
        super().__init__(self.state_class(skip=bool(skip)))
        self.name = name
        self.validate = validate
        self.validate_async = validate_async
        self._validation = AsyncValidation(name or self.__class__.__name__)
        self._async_issued: Any = _NOTHING
        self._async_settled: tuple[Any, Any] | None = None

    def _attach_all(self, on_change_state: StateHandler | None) -> None:
        for _key, field in self._items():
            field.on(self.refresh_state)
        if on_change_state is not None:
            self.on(on_change_state)
        self.refresh_state()

    # -- member storage, implemented by subclasses ---------------------------

    def _items(self) -> Iterator[tuple[Any, Any]]:
        """Yield ``(key, child)`` in aggregation order."""
        raise NotImplementedError

    def _pack(self, pairs: list[tuple[Any, Any]]) -> Any:
        """Build the aggregated container from ``(key, item)`` pairs."""
        raise NotImplementedError

    def _merge_errors(self, errors: Any, own: Any) -> Any:
        """Merge the group's own validator output into the member errors."""
        raise NotImplementedError

    def _extra_state(self, values: list[tuple[Any, Any]]) -> dict[str, Any]:
        return {}

    # -- aggregation ----------------------------------------------------------

    def reduce_child_states(self) -> dict[str, Any]:
        """
        Fold the members' snapshots into the group's derived keys.

        Skipped members take no part in value, error, changed, empty,
        complete, validating or valid; their focused, touched and disabled
        flags still count.
        """
        values: list[tuple[Any, Any]] = []
        errors: list[tuple[Any, Any]] = []
        changed = False  # any
        empty = True  # all
        complete = True  # all
        validating = False  # any
        valid = True  # all
        focused = False  # any
        touched = False  # any
        disabled = True  # all

        for key, field in self._items():
            fstate = field.get_state()
            if fstate.focused:
                focused = True
            if fstate.touched:
                touched = True
            if not fstate.disabled:
                disabled = False
            if fstate.skip:
                continue
            values.append((key, fstate.value))
            if fstate.error is not None:
                errors.append((key, fstate.error))
            if fstate.changed:
                changed = True
            if not fstate.empty:
                empty = False
            if not fstate.complete:
                complete = False
            if fstate.validating:
                validating = True
            if fstate.valid is False:
                valid = False

        return {
            **self._extra_state(values),
            "value": self._pack(values),
            "error": self._pack(errors) if errors else None,
            "changed": changed,
            "empty": empty,
            "complete": complete,
            "validating": validating,
            "valid": valid,
            "focused": focused,
            "touched": touched,
            "disabled": disabled,
        }

    def refresh_state(self, *_args: Any) -> bool:
        """
        Recompute the aggregate, apply the group's own validation and publish.

        Accepts and ignores handler arguments so it can be subscribed to
        members directly.
        """
        state = self.reduce_child_states()

        if self.validate is not None:
            own = self.validate(state["value"])
            if own:
                state["error"] = self._merge_errors(state["error"], own)

        start_async = False
        if state["error"] is not None:
            state["valid"] = False
        elif self.validate_async is not None:
            start_async = self._layer_async(state)

        published = self.set_state(**state)
        if start_async:
            self._validation.start(
                self.validate_async, state["value"], self._commit_async_result
            )
        return published

    def _layer_async(self, state: dict[str, Any]) -> bool:
        value = state["value"]
        if self._async_settled is not None and same(self._async_settled[0], value):
            error = self._async_settled[1]
            state["error"] = error
            state["valid"] = state["valid"] and error is None
            return False

        state["valid"] = False
        state["validating"] = True
        if self._async_issued is not _NOTHING and same(self._async_issued, value):
            return False
        self._validation.require_loop()
        self._async_issued = value
        return True

    def _commit_async_result(self, value: Any, error: Any) -> None:
        if not same(value, self._state.value):
            logger.debug(
                "{}: discarding stale async result for {!r}", self._validation.owner, value
            )
            if same(self._async_issued, value):
                self._async_issued = _NOTHING
            return
        self._async_issued = _NOTHING
        self._async_settled = (value, error)
        self.refresh_state()

    # -- membership -----------------------------------------------------------

    def sub_field(self, field: Any) -> None:
        """Attach the recomputation handler to `field` and recompute."""
        field.on(self.refresh_state)
        self.refresh_state()

    def unsub_field(self, field: Any) -> None:
        """Detach the recomputation handler; `field` changes go unnoticed."""
        field.off(self.refresh_state)

    def reset(self) -> bool:
        """
        Reset every member and publish a single recomputed snapshot.

        Members are detached while they reset so their own notifications
        do not each trigger a recomputation.
        """
        for _key, field in list(self._items()):
            attached = field.off(self.refresh_state)
            field.reset()
            if attached:
                field.on(self.refresh_state)
        return self.refresh_state()

    async def settle(self) -> None:
        """Wait until no member and no own async validation is pending."""
        while True:
            for _key, field in list(self._items()):
                settle = getattr(field, "settle", None)
                if settle is not None:
                    await settle()
            if not self._validation.pending:
                break
            await self._validation.settle()

    def __iter__(self) -> Iterator[Any]:
        return (field for _key, field in self._items())
