"""Shared fixtures for fieldstate tests."""

import asyncio
from unittest.mock import MagicMock

import pytest
from loguru import logger

from fieldstate import Field


@pytest.fixture
def listener():
    """State subscriber that records every notification."""
    return MagicMock(return_value=None)


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def make_text_field():
    """Factory for a trimmed, required text field with a length check."""

    def factory(**overrides):
        options = {
            "initial_value": "",
            "to_input": lambda v: v,
            "format_input": str.lstrip,
            "from_input": str.strip,
            "is_empty": lambda v: not v,
            "validate": lambda v: "short" if len(v) < 3 else None,
            "required": True,
        }
        options.update(overrides)
        return Field(**options)

    return factory


@pytest.fixture
def make_number_field():
    """Factory for a float field that rejects values over 100."""

    def factory(**overrides):
        options = {
            "initial_value": 0,
            "to_input": str,
            "from_input": float,
            "validate": lambda n: "big" if n > 100 else None,
        }
        options.update(overrides)
        return Field(**options)

    return factory


@pytest.fixture
def delayed_validator():
    """
    Build an async validator from a ``value -> (delay, error)`` table.

    Unknown values resolve to no error after 10ms. Every call is recorded on
    the returned function's ``calls`` list.
    """

    def factory(table):
        calls = []

        async def validate_async(value):
            calls.append(value)
            delay, error = next(
                (result for key, result in table.items() if key == value),
                (0.01, None),
            )
            await asyncio.sleep(delay)
            return error

        validate_async.calls = calls
        return validate_async

    return factory
