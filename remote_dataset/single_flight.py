"""Single-flight execution of an async operation.

Concurrent callers of ``SingleFlight.run`` share one underlying task
instead of each starting its own.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def _consume_exception(task: asyncio.Task) -> None:
    # Marks the failure retrieved even when every caller was cancelled
    if not task.cancelled():
        task.exception()


class SingleFlight(Generic[T]):
    """Runs at most one instance of an operation at a time.

    The first caller starts the operation; callers arriving while it is
    running await the same task and observe the same result or exception.
    Once the task settles the slot is cleared, so the next call starts a
    fresh attempt. Failures are never cached.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[T] | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def run(self, factory: Callable[[], Coroutine[Any, Any, T]]) -> T:
        """Join the running operation or start a new one from ``factory``."""
        task = self._task
        if task is None:
            task = asyncio.ensure_future(self._execute(factory))
            task.add_done_callback(_consume_exception)
            self._task = task
        # Shielded so a cancelled caller does not cancel the shared task
        return await asyncio.shield(task)

    async def _execute(self, factory: Callable[[], Coroutine[Any, Any, T]]) -> T:
        try:
            return await factory()
        finally:
            self._task = None
