"""In-flight asynchronous validation requests."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger

ValidateFn = Callable[[Any], Any]
ValidateAsyncFn = Callable[[Any], Awaitable[Any]]
ResultCallback = Callable[[Any, Any], None]


class AsyncValidation:
    """
    Runs `validate_async` requests for one node.

    Every request is tagged with the value it was issued for and reports
    ``(value, error)`` back through `on_result`; deciding whether that value
    is still current is up to the owner. There is no cancellation: a
    superseded request simply finishes and gets ignored.

    Parameters
    ----------
    owner : str
        Name used in log messages.
    """

    def __init__(self, owner: str):
        self.owner = owner
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of requests that have not resolved yet."""
        return len(self._tasks)

    @staticmethod
    def require_loop() -> asyncio.AbstractEventLoop:
        """
        Return the running event loop.

        Raises
        ------
        RuntimeError
            If no event loop is running in this thread.
        """
        return asyncio.get_running_loop()

    def start(
        self, validate_async: ValidateAsyncFn, value: Any, on_result: ResultCallback
    ) -> asyncio.Task:
        """
        Schedule `validate_async(value)` on the running event loop.

        Raises
        ------
        RuntimeError
            If called outside a running event loop.
        """
        loop = self.require_loop()
        logger.debug("{}: starting async validation for {!r}", self.owner, value)
        task = loop.create_task(self._run(validate_async, value, on_result))
        # The loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def settle(self) -> None:
        """Wait until every request issued so far (and any it triggers) resolved."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _run(
        self, validate_async: ValidateAsyncFn, value: Any, on_result: ResultCallback
    ) -> None:
        try:
            error = await validate_async(value)
        except Exception:
            logger.exception(
                "{}: async validator raised for {!r}, treating it as no error",
                self.owner,
                value,
            )
            error = None
        on_result(value, error)
