"""Observable state container and the immutable snapshot models it publishes."""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict

from .validators import same

StateHandler = Callable[[Any, Any], Any]


class NodeState(BaseModel):
    """
    Immutable snapshot shared by every node (Field or Group).

    A snapshot is never mutated: each change produces a new instance via
    `model_copy(update=...)` and the old one is left untouched for whoever
    still holds it.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None
    changed: bool = False
    empty: bool = True
    complete: bool = False
    validating: bool = False
    valid: bool = False
    error: Any = None
    focused: bool = False
    touched: bool = False
    disabled: bool = False
    skip: bool = False


class FieldState(NodeState):
    """Snapshot of a single `Field`."""

    initial_value: Any = None
    input_value: Any = None
    required: bool = False


class ArrayGroupState(NodeState):
    """Snapshot of a `FieldArrayGroup`."""

    length: int = 0


class ObjectGroupState(NodeState):
    """Snapshot of a `FieldObjectGroup`."""


class State:
    """
    Minimal publish/subscribe container around one snapshot.

    Subscribers are notified synchronously, in registration order, as
    ``handler(state, previous)`` where ``previous`` is whatever the handler
    called just before returned (``None`` for the first one).

    Examples
    --------
        >>> state = State(NodeState())
        >>> seen = []
        >>> _ = state.on(lambda s, prev: seen.append(s.focused))
        >>> state.set_state(focused=True)
        True
        >>> state.set_state(focused=True)
        False
        >>> seen
        [True]
    """

    state_class: type[NodeState] = NodeState

    def __init__(self, initial: NodeState | None = None):
        self._state: NodeState = initial if initial is not None else self.state_class()
        self._handlers: list[StateHandler] = []

    def get_state(self) -> Any:
        """Return the current snapshot."""
        return self._state

    def set_state(self, **changes: Any) -> bool:
        """
        Merge `changes` into the snapshot and notify subscribers.

        Only the supplied keys are compared against the current snapshot.
        Nothing happens (and ``False`` is returned) when none of them differ.
        """
        self._check_keys(changes)
        if not self._differs(changes):
            return False
        self._state = self._state.model_copy(update=changes)
        self.emit_state()
        return True

    def emit_state(self) -> None:
        """Notify every subscriber with the current snapshot."""
        state = self._state
        result = None
        # Copy so handlers may subscribe/unsubscribe while being notified
        for handler in list(self._handlers):
            result = handler(state, result)

    def on(self, handler: StateHandler) -> StateHandler:
        """Subscribe `handler`; returns it so it can be passed to `off()`."""
        if handler not in self._handlers:
            self._handlers.append(handler)
        return handler

    def off(self, handler: StateHandler) -> bool:
        """Unsubscribe `handler`. Returns ``False`` if it was not subscribed."""
        try:
            self._handlers.remove(handler)
        except ValueError:
            return False
        return True

    def has_listener(self, handler: StateHandler) -> bool:
        """Check whether `handler` is currently subscribed."""
        return handler in self._handlers

    def _differs(self, changes: dict[str, Any]) -> bool:
        current = self._state
        return any(not same(getattr(current, key), value) for key, value in changes.items())

    def _replace_state(self, state: NodeState) -> bool:
        """Swap in a fully derived snapshot, emitting only if any key moved."""
        if not self._differs(dict(state)):
            return False
        self._state = state
        self.emit_state()
        return True

    def _check_keys(self, changes: dict[str, Any]) -> None:
        fields = type(self._state).model_fields
        unknown = [key for key in changes if key not in fields]
        if unknown:
            raise TypeError(
                f"{self.__class__.__name__}.set_state() got unknown state "
                f"key(s): {', '.join(sorted(unknown))}. "
                f"Valid keys: {', '.join(fields)}"
            )
