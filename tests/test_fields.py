"""Tests for the single-value Field state machine."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from fieldstate import Field


def _snapshot(**overrides):
    """Expected text-field snapshot, starting from the constructed state."""
    expected = {
        "value": "",
        "changed": False,
        "empty": True,
        "complete": False,
        "validating": False,
        "valid": False,
        "error": "required",
        "focused": False,
        "touched": False,
        "disabled": False,
        "skip": False,
        "initial_value": "",
        "input_value": "",
        "required": True,
    }
    expected.update(overrides)
    return expected


def _last(listener):
    state, previous = listener.call_args.args
    assert previous is None
    return state.model_dump()


class TestConstruction:
    """Test the snapshot published at construction."""

    def test_initial_snapshot_published_once(self, make_text_field, listener):
        """The subscriber passed to the constructor sees the first snapshot."""
        make_text_field(on_change_state=listener)

        assert listener.call_count == 1
        assert _last(listener) == _snapshot()

    def test_preset_input_value(self):
        """A pre-set raw input wins over the initial value."""
        field = Field(
            initial_value=0,
            input_value=" 5 ",
            to_input=str,
            from_input=lambda raw: int(raw.strip()),
        )

        state = field.get_state()
        assert state.value == 5
        assert state.input_value == " 5 "
        assert state.changed is True
        assert state.touched is False

    def test_flags_from_config(self):
        """Constructor flags land in the snapshot."""
        field = Field(
            initial_value="x",
            to_input=str,
            from_input=str,
            focused=True,
            touched=True,
            disabled=True,
            skip=True,
        )

        state = field.get_state()
        assert (state.focused, state.touched, state.disabled, state.skip) == (
            True,
            True,
            True,
            True,
        )
        assert state.valid is True
        assert state.error is None

    def test_custom_required_error(self):
        """required_error replaces the default sentinel."""
        field = Field(
            initial_value=None,
            to_input=lambda v: v,
            from_input=lambda v: v,
            required=True,
            required_error={"code": "missing"},
        )

        assert field.get_state().error == {"code": "missing"}

    def test_unknown_option_raises(self):
        with pytest.raises(TypeError):
            Field(initial_value="", to_input=str, from_input=str, colour="red")


class TestEdits:
    """Test synchronous edits and derived flags."""

    def test_input_edit_derives_value_and_flags(self, make_text_field, listener):
        """Raw input is formatted, parsed, validated and marks touched."""
        field = make_text_field(on_change_state=listener)
        listener.reset_mock()

        assert field.set_input_value(" a ") is True

        assert listener.call_count == 1
        assert _last(listener) == _snapshot(
            value="a",
            input_value="a ",
            changed=True,
            empty=False,
            complete=True,
            error="short",
            touched=True,
        )

    def test_value_tracks_input(self, make_text_field):
        """value always equals from_input(input_value)."""
        field = make_text_field()
        for raw in [" abc", "abc  ", "", "  x y  "]:
            field.set_input_value(raw)
            state = field.get_state()
            assert state.value == field.from_input(state.input_value)

        field.set_value("zzz")
        state = field.get_state()
        assert state.input_value == "zzz"
        assert state.value == field.from_input(state.input_value)

    def test_set_value_is_idempotent(self, make_text_field, listener):
        """Setting the same value twice only notifies once."""
        field = make_text_field(on_change_state=listener)
        listener.reset_mock()

        assert field.set_value("hello") is True
        assert field.set_value("hello") is False

        assert listener.call_count == 1

    def test_set_value_does_not_touch(self, make_text_field):
        """Programmatic values do not count as user edits."""
        field = make_text_field()
        field.set_value("hello")

        state = field.get_state()
        assert state.touched is False
        assert state.input_value == "hello"
        assert state.changed is True

    def test_value_property(self, make_text_field):
        field = make_text_field()
        field.value = "abc"
        assert field.value == "abc"
        assert field.input_value == "abc"

    def test_input_change_with_same_value_skips_validation(self):
        """Editing the raw input to an equivalent value does not revalidate."""
        validate = MagicMock(return_value=None)
        field = Field(
            initial_value="",
            to_input=lambda v: v,
            from_input=str.strip,
            validate=validate,
        )
        field.set_input_value("abc ")
        calls = validate.call_count

        field.set_input_value("abc   ")

        state = field.get_state()
        assert state.input_value == "abc   "
        assert state.value == "abc"
        assert validate.call_count == calls

    def test_custom_is_equal(self):
        """Values equal under is_equal are not revalidated."""
        validate = MagicMock(return_value=None)
        field = Field(
            initial_value="abc",
            to_input=lambda v: v,
            from_input=lambda v: v,
            validate=validate,
            is_equal=lambda a, b: a.lower() == b.lower(),
        )
        calls = validate.call_count

        field.set_value("ABC")

        state = field.get_state()
        assert state.value == "ABC"
        assert state.input_value == "ABC"
        assert state.changed is False
        assert validate.call_count == calls

    def test_focus_does_not_touch(self, make_text_field):
        """Focus and unfocus only flip the focused flag."""
        field = make_text_field()

        assert field.focus() is True
        assert field.get_state().focused is True
        assert field.get_state().touched is False
        assert field.focus() is False

        assert field.unfocus() is True
        assert field.get_state().focused is False

    def test_toggling_required(self):
        """Changing required re-derives the error."""
        field = Field(initial_value="", to_input=str, from_input=str)
        assert field.get_state().valid is True

        field.set_state(required=True)
        state = field.get_state()
        assert state.error == "required"
        assert state.valid is False

        field.set_state(required=False)
        assert field.get_state().error is None
        assert field.get_state().valid is True

    def test_generic_flags(self, make_text_field, listener):
        """disabled and skip are plain flags."""
        field = make_text_field(on_change_state=listener)
        listener.reset_mock()

        field.set_state(disabled=True, skip=True)

        assert listener.call_count == 1
        assert _last(listener) == _snapshot(disabled=True, skip=True)


class TestReset:
    """Test reset to the initial value."""

    def test_reset_restores_initial_value(self, make_text_field, listener):
        """reset() clears the edit without marking touched."""
        field = make_text_field(on_change_state=listener)
        field.set_input_value("abcd")
        listener.reset_mock()

        assert field.reset() is True

        assert listener.call_count == 1
        assert _last(listener) == _snapshot()

    def test_reset_without_changes(self, make_text_field, listener):
        field = make_text_field(on_change_state=listener)
        listener.reset_mock()

        assert field.reset() is False
        listener.assert_not_called()

    def test_edit_after_reset_marks_touched(self, make_text_field):
        field = make_text_field()
        field.set_input_value("abcd")
        field.reset()

        field.set_input_value("xyz")

        assert field.get_state().touched is True


class TestAsyncValidation:
    """Test asynchronous validation and stale result handling."""

    @pytest.mark.asyncio
    async def test_text_field_lifecycle(self, make_text_field, listener):
        """Async results land only after sync validation passes."""

        async def validate_async(value):
            await asyncio.sleep(0)
            return "unavailable" if value == "a a a" else None

        field = make_text_field(validate_async=validate_async, on_change_state=listener)
        assert _last(listener) == _snapshot()
        listener.reset_mock()

        field.set_input_value(" a a a ")
        pending = _snapshot(
            value="a a a",
            input_value="a a a ",
            changed=True,
            empty=False,
            complete=True,
            error=None,
            touched=True,
            validating=True,
        )
        assert listener.call_count == 1
        assert _last(listener) == pending
        listener.reset_mock()

        await field.settle()
        assert listener.call_count == 1
        assert _last(listener) == {**pending, "validating": False, "error": "unavailable"}
        listener.reset_mock()

        field.set_input_value(" bbb ")
        pending = {**pending, "value": "bbb", "input_value": "bbb "}
        assert _last(listener) == pending
        listener.reset_mock()

        await field.settle()
        assert listener.call_count == 1
        assert _last(listener) == {**pending, "validating": False, "valid": True}
        listener.reset_mock()

        field.set_value("ccc")
        pending = {**pending, "value": "ccc", "input_value": "ccc"}
        assert _last(listener) == pending

        await field.settle()
        assert _last(listener) == {**pending, "validating": False, "valid": True}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("first_delay", [0.03, 0.001])
    async def test_last_edit_wins(self, make_text_field, delayed_validator, first_delay):
        """Results for superseded values are discarded whatever their timing."""
        validate_async = delayed_validator(
            {"a a a": (first_delay, "unavailable"), "bbb": (0.01, None)}
        )
        field = make_text_field(validate_async=validate_async)

        field.set_input_value(" a a a ")
        field.set_input_value(" bbb ")
        await field.settle()

        state = field.get_state()
        assert validate_async.calls == ["a a a", "bbb"]
        assert state.value == "bbb"
        assert state.error is None
        assert state.valid is True
        assert state.validating is False

    @pytest.mark.asyncio
    async def test_sync_error_beats_pending_async(self, make_text_field, delayed_validator):
        """A pending result is dropped once a sync error replaced it."""
        validate_async = delayed_validator({"abcd": (0.01, "taken")})
        field = make_text_field(validate_async=validate_async)

        field.set_input_value("abcd")
        field.set_input_value("ab")
        await field.settle()

        state = field.get_state()
        assert state.error == "short"
        assert state.valid is False
        assert state.validating is False

    @pytest.mark.asyncio
    async def test_required_empty_skips_async(self, make_text_field):
        """Required and empty always reports the required error."""
        validate_async = AsyncMock(return_value=None)
        field = make_text_field(validate_async=validate_async)
        field.set_input_value("abc")
        await field.settle()
        validate_async.assert_awaited_once_with("abc")

        field.set_input_value("   ")
        await field.settle()

        state = field.get_state()
        assert state.error == "required"
        assert state.valid is False
        assert state.validating is False
        assert validate_async.await_count == 1

    @pytest.mark.asyncio
    async def test_validating_implies_no_error(self, make_text_field, delayed_validator):
        field = make_text_field(validate_async=delayed_validator({}))
        for raw in ["a", "abc", "", "abcdef"]:
            field.set_input_value(raw)
            state = field.get_state()
            if state.validating or state.valid:
                assert state.error is None
        await field.settle()

    @pytest.mark.asyncio
    async def test_validation_at_construction(self):
        """A valid initial value is validated asynchronously right away."""
        validate_async = AsyncMock(return_value=None)
        field = Field(
            initial_value="taken",
            to_input=str,
            from_input=str,
            validate_async=validate_async,
        )
        assert field.get_state().validating is True

        await field.settle()

        validate_async.assert_awaited_once_with("taken")
        assert field.get_state().valid is True

    def test_construction_without_loop_publishes_nothing(self):
        """Outside an event loop the constructor raises before notifying."""
        listener = MagicMock()

        with pytest.raises(RuntimeError):
            Field(
                initial_value="taken",
                to_input=str,
                from_input=str,
                validate_async=AsyncMock(return_value=None),
                on_change_state=listener,
            )

        listener.assert_not_called()

    def test_edit_without_loop_publishes_nothing(self, make_text_field, listener):
        """An edit needing async validation raises outside a loop, state unchanged."""
        field = make_text_field(
            validate_async=AsyncMock(return_value=None), on_change_state=listener
        )
        listener.reset_mock()
        before = field.get_state()

        with pytest.raises(RuntimeError):
            field.set_input_value("abc")

        listener.assert_not_called()
        assert field.get_state() is before

    @pytest.mark.asyncio
    async def test_raising_validator(self, make_text_field, log_messages):
        """A raising validator leaves the field valid and logs the failure."""

        async def validate_async(value):
            raise ConnectionError("lookup failed")

        field = make_text_field(validate_async=validate_async)
        field.set_input_value("abc")
        await field.settle()

        state = field.get_state()
        assert state.validating is False
        assert state.valid is True
        assert state.error is None
        assert any("async validator raised" in str(m) for m in log_messages)
