"""Share one in-flight coroutine between concurrent callers asking for the same key."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class InflightRegistry(Generic[T]):
    """Per-key registry of running tasks.

    The first caller for a key starts the work; callers arriving before it
    finishes await the same task instead of starting their own. The entry is
    dropped as soon as the task completes, so the next call after that starts
    fresh work.
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[T]] = {}

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        # Shielded so one waiter being cancelled does not cancel the shared work
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[T]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
