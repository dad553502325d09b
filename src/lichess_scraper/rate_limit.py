"""Bounded-concurrency task scheduler with pacing between task completions."""

import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, Set, Tuple, TypeVar

from .config import get_settings
from .lichess_logging import get_logger, metrics

logger = get_logger(__name__)

T = TypeVar("T")

TaskFactory = Callable[[], Awaitable[T]]


class RateLimiter:
    """Run submitted tasks with at most ``max_concurrent`` in flight.

    Every time a task finishes (successfully or not) the scheduler waits
    ``min_spacing`` seconds before it looks at the queue again, which caps
    the aggregate request rate even when concurrency slots are free. Tasks
    start in submission order. A task's result or exception is delivered
    only to the future returned by ``submit``.

    Must be used from a single event loop.
    """

    def __init__(self, max_concurrent: int = 5, min_spacing: float = 0.2) -> None:
        """Initialize the scheduler.

        Args:
            max_concurrent: Maximum number of tasks executing at once
            min_spacing: Seconds to wait after each completion before starting more
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if min_spacing < 0:
            raise ValueError("min_spacing must be non-negative")

        self.max_concurrent = max_concurrent
        self.min_spacing = min_spacing

        self._queue: Deque[Tuple[TaskFactory, asyncio.Future]] = deque()
        self._running = 0
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls) -> "RateLimiter":
        """Build a scheduler from application settings."""
        settings = get_settings()
        limiter = cls(
            max_concurrent=settings.MAX_CONCURRENT_REQUESTS,
            min_spacing=settings.MIN_SPACING_S,
        )
        logger.info("Rate limiter initialized",
                    max_concurrent=limiter.max_concurrent,
                    min_spacing_s=limiter.min_spacing)
        return limiter

    @property
    def running(self) -> int:
        """Number of tasks currently executing."""
        return self._running

    @property
    def pending(self) -> int:
        """Number of tasks waiting for a slot."""
        return len(self._queue)

    def submit(self, task: TaskFactory) -> "asyncio.Future[T]":
        """Enqueue ``task`` and return a future for its outcome.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Future resolved with the task's value or its exception
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._queue.append((task, future))
        self._process_queue()
        return future

    async def run(self, task: TaskFactory) -> T:
        """Submit ``task`` and wait for its outcome."""
        return await self.submit(task)

    def _process_queue(self) -> None:
        # One start per check; each submit and each completion triggers a check.
        if self._running >= self.max_concurrent:
            return
        while self._queue:
            task, future = self._queue.popleft()
            if future.cancelled():
                continue
            self._running += 1
            runner = asyncio.create_task(self._execute(task, future))
            self._tasks.add(runner)
            runner.add_done_callback(self._tasks.discard)
            return

    async def _execute(self, task: TaskFactory, future: asyncio.Future) -> None:
        try:
            result = await task()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            metrics.increment("scheduler.completed", tags={"status": "error"})
            if not future.done():
                future.set_exception(e)
        else:
            metrics.increment("scheduler.completed", tags={"status": "success"})
            if not future.done():
                future.set_result(result)
        finally:
            self._running -= 1
            self._schedule_next()

    def _schedule_next(self) -> None:
        loop = asyncio.get_running_loop()
        if self.min_spacing > 0:
            loop.call_later(self.min_spacing, self._process_queue)
        else:
            loop.call_soon(self._process_queue)

