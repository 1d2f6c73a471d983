"""In-process cache of changelog generation runs."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[str, int]


class ChangelogCache(Generic[T]):
    """Share generation runs between callers asking for the same result.

    Entries are keyed by ``(base_revision, max_leftovers)`` and hold the
    running task rather than its result, so concurrent callers wait on a
    single run instead of starting their own. A run that fails is evicted
    and the next call starts over.

    Entries never expire; call clear() to start afresh.
    """

    def __init__(self) -> None:
        self._tasks: dict[CacheKey, asyncio.Task[T]] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    async def get_or_create(self, key: CacheKey, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the cached result for key, running factory on a miss.

        Args:
            key: Cache key
            factory: Called without arguments to start a run

        Returns:
            The result of the (possibly shared) run

        Raises:
            Exception: Whatever the run raised
        """
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda done: self._evict_failed(key, done))
        else:
            logger.debug("Changelog cache hit for %s", key)
        # A caller being cancelled must not cancel the run other callers wait on.
        return await asyncio.shield(task)

    def _evict_failed(self, key: CacheKey, task: asyncio.Task[T]) -> None:
        if not (task.cancelled() or task.exception() is not None):
            return
        if self._tasks.get(key) is task:
            del self._tasks[key]
            logger.debug("Evicted failed changelog run for %s", key)

    def clear(self) -> None:
        """Forget every cached run."""
        self._tasks.clear()
