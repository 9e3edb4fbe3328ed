"""Single-value reactive field with raw input and sanitized value."""

from __future__ import annotations

from typing import Any, Callable

from loguru import logger

from .state import FieldState, State, StateHandler
from .validators import (
    DEFAULT_REQUIRED_ERROR,
    AsyncValidation,
    ValidateAsyncFn,
    ValidateFn,
    default_format_input,
    default_is_empty,
    default_is_equal,
    same,
)

# initial_value = ''                  default or stored value
# input_value   = '  sample text '    what the user typed, maybe incomplete
# value         = 'sample text'       from_input(input_value), what gets validated
#
# initial_value = 0
# input_value   = ' 10,000 '
# value         = 10000


class Field(State):
    """
    A single editable value and everything derived from it.

    Every mutation goes through `get_next_state()`, which re-derives the
    value/input pair and the flags (changed, empty, error, valid, ...) from
    the previous snapshot, then publishes the result to subscribers.

    Parameters
    ----------
    initial_value : Any
        Baseline for `changed` and `reset()`.
    to_input : Callable
        Turns a value into its raw input representation.
    from_input : Callable
        Turns raw input into a value.
    input_value : Any, optional
        Pre-set raw input. Defaults to ``to_input(initial_value)``.
    required : bool, default False
        Empty values produce `required_error`.
    required_error : Any, optional
        Error used for required empty values. Defaults to ``"required"``.
    focused, touched, disabled, skip : bool, default False
        Initial flags.
    format_input : Callable, optional
        Normalizes raw input as it is typed (default: identity).
    validate : Callable, optional
        ``validate(value) -> error | None``.
    validate_async : Callable, optional
        ``async validate_async(value) -> error | None``. Only called when the
        synchronous checks pass. Requires a running event loop.
    is_equal : Callable, optional
        Value equality (default: identity or ``==``).
    is_empty : Callable, optional
        Emptiness predicate (default: None, "", NaN, empty list/tuple).
    on_change_state : Callable, optional
        Subscribed before the first snapshot is published.
    name : str, optional
        Used in log messages.

    Raises
    ------
    RuntimeError
        If `validate_async` has to run outside a running event loop. The
        check happens before anything is published, so subscribers never see
        a snapshot whose async request was not issued.

    Examples
    --------
        >>> age = Field(
        ...     initial_value=0,
        ...     to_input=str,
        ...     from_input=lambda raw: int(raw.strip() or 0),
        ...     validate=lambda n: "too old" if n > 120 else None,
        ... )
        >>> age.set_input_value(" 130 ")
        True
        >>> state = age.get_state()
        >>> state.value, state.error, state.touched
        (130, 'too old', True)
    """

    state_class = FieldState

    def __init__(
        self,
        *,
        initial_value: Any,
        to_input: Callable[[Any], Any],
        from_input: Callable[[Any], Any],
        input_value: Any = None,
        required: bool = False,
        required_error: Any = None,
        focused: bool = False,
        touched: bool = False,
        disabled: bool = False,
        skip: bool = False,
        format_input: Callable[[Any], Any] | None = None,
        validate: ValidateFn | None = None,
        validate_async: ValidateAsyncFn | None = None,
        is_equal: Callable[[Any, Any], bool] | None = None,
        is_empty: Callable[[Any], bool] | None = None,
        on_change_state: StateHandler | None = None,
        name: str | None = None,
    ):
        super().__init__()
        self.name = name
        self.to_input = to_input
        self.from_input = from_input
        self.format_input = format_input or default_format_input
        self.required_error = (
            DEFAULT_REQUIRED_ERROR if required_error is None else required_error
        )
        self.validate = validate
        self.validate_async = validate_async
        self.is_equal = is_equal or default_is_equal
        self.is_empty = is_empty or default_is_empty
        self._validation = AsyncValidation(name or self.__class__.__name__)

        # Construction derives every flag once and never marks touched
        self._constructed = False

        if on_change_state is not None:
            self.on(on_change_state)

        raw = to_input(initial_value) if input_value is None else input_value
        state, start_async = self._derive(
            self._state,
            {
                "required": bool(required),
                "focused": bool(focused),
                "touched": bool(touched),
                "disabled": bool(disabled),
                "skip": bool(skip),
                "initial_value": initial_value,
                "input_value": raw,
            },
        )
        if start_async:
            self._validation.require_loop()
        self._constructed = True
        self._state = state
        self.emit_state()
        if start_async:
            self._start_validate_async(state.value)

    @property
    def value(self) -> Any:
        return self._state.value

    @value.setter
    def value(self, value: Any) -> None:
        self.set_value(value)

    @property
    def input_value(self) -> Any:
        return self._state.input_value

    def set_value(self, value: Any) -> bool:
        """Set the value directly; the input is re-derived from it."""
        return self.set_state(value=value)

    def set_input_value(self, input_value: Any) -> bool:
        """Set the raw input; the value is re-derived from it."""
        return self.set_state(input_value=input_value)

    def focus(self) -> bool:
        return self.set_state(focused=True)

    def unfocus(self) -> bool:
        return self.set_state(focused=False)

    def set_state(self, **changes: Any) -> bool:
        """
        Apply `changes` and re-derive every dependent flag.

        Returns ``True`` if a new snapshot was published.
        """
        self._check_keys(changes)
        if not self._differs(changes):
            return False
        state, start_async = self._derive(self._state, changes)
        if start_async:
            self._validation.require_loop()
        published = self._replace_state(state)
        if start_async:
            self._start_validate_async(state.value)
        return published

    def reset(self) -> bool:
        """Restore `initial_value` and clear `touched`."""
        return self.set_state(value=self._state.initial_value, touched=False)

    async def settle(self) -> None:
        """Wait for every pending async validation of this field."""
        await self._validation.settle()

    def get_next_state(self, prev: FieldState, update: dict[str, Any]) -> FieldState:
        """Compute the snapshot that results from applying `update` to `prev`."""
        return self._derive(prev, update)[0]

    def _derive(
        self, prev: FieldState, update: dict[str, Any]
    ) -> tuple[FieldState, bool]:
        state = dict(prev)
        state.update(update)
        first = not self._constructed

        input_changed = first or not same(state["input_value"], prev.input_value)
        if input_changed:
            state["input_value"] = self.format_input(state["input_value"])
            state["value"] = self.from_input(state["input_value"])

        value = state["value"]
        value_changed = first or not same(value, prev.value)
        if value_changed:
            if not input_changed:
                state["input_value"] = self.format_input(self.to_input(value))
            state["empty"] = bool(self.is_empty(value))
            state["complete"] = not state["empty"]

        # Only raw input edits count as user interaction
        edited = input_changed and not same(state["input_value"], prev.input_value)
        if edited and not first:
            state["touched"] = True

        value_truly_changed = value_changed and (
            first or not self.is_equal(value, prev.value)
        )
        if value_truly_changed or not same(state["initial_value"], prev.initial_value):
            state["changed"] = not self.is_equal(value, state["initial_value"])

        revalidate = value_truly_changed or state["required"] != prev.required
        if revalidate:
            state["error"] = self._validate_sync(value, state["empty"], state["required"])

        if revalidate or not same(state["error"], prev.error):
            has_async = self.validate_async is not None
            state["valid"] = state["error"] is None and not has_async
            state["validating"] = state["error"] is None and has_async

        start_async = revalidate and state["validating"]
        return prev.model_copy(update=state), start_async

    def _validate_sync(self, value: Any, empty: bool, required: bool) -> Any:
        if empty and required:
            return self.required_error
        if self.validate is None:
            return None
        return self.validate(value)

    def _start_validate_async(self, value: Any) -> None:
        self._validation.start(self.validate_async, value, self._commit_async_result)

    def _commit_async_result(self, value: Any, error: Any) -> None:
        current = self._state
        if not current.validating or not self.is_equal(value, current.value):
            logger.debug(
                "{}: discarding stale async result for {!r}", self._validation.owner, value
            )
            return
        self._replace_state(
            current.model_copy(
                update={"validating": False, "valid": error is None, "error": error}
            )
        )
