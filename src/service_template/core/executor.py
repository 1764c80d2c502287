"""
Bounded worker pool for commands dispatched in async mode.

`ThreadPoolExecutor` queues without limit. `BoundedTaskExecutor` wraps it
with a semaphore sized `max_workers + queue_capacity`: a task holds one slot
from `submit` until it finishes, and `submit` raises `TaskRejectedError`
instead of blocking when no slot is free (abort policy).

`build_task_executor(settings)` makes a new pool; each application built by
`create_app` owns one and stops it in its lifespan. Code running outside an
application (scripts, workers) shares the process-wide instance from
`get_task_executor()`, stopped by `shutdown_task_executor()`.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable

from service_template.config.settings import Settings, get_settings
from service_template.exceptions import TaskRejectedError
from service_template.i18n.message_keys import MessageKeys

logger = logging.getLogger(__name__)


class BoundedTaskExecutor(Executor):
    """
    Thread pool with a bounded backlog.

    Args:
        max_workers: threads that run tasks concurrently.
        queue_capacity: tasks allowed to wait for a free thread.
        thread_name_prefix: prefix for worker thread names (visible in logs).
    """

    def __init__(self, max_workers: int = 10, queue_capacity: int = 500, thread_name_prefix: str = "async-command"):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if queue_capacity < 0:
            raise ValueError("queue_capacity must be >= 0")
        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self.thread_name_prefix = thread_name_prefix
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)
        self._slots = threading.BoundedSemaphore(max_workers + queue_capacity)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._rejected = 0

    @property
    def capacity(self) -> int:
        return self.max_workers + self.queue_capacity

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        if not self._slots.acquire(blocking=False):
            with self._lock:
                self._rejected += 1
            logger.warning(
                "executor.rejected",
                extra={"capacity": self.capacity, "in_flight": self._in_flight, "task": getattr(fn, "__qualname__", repr(fn))},
            )
            raise TaskRejectedError(
                "The service is busy, please retry later",
                message_key=MessageKeys.ERROR_INFRASTRUCTURE_EXECUTOR_BUSY,
            )

        try:
            future = self._pool.submit(fn, *args, **kwargs)
        except BaseException:
            # Pool already shut down (RuntimeError) or similar: give the slot back.
            self._slots.release()
            raise

        with self._lock:
            self._in_flight += 1
        future.add_done_callback(self._release)
        return future

    def _release(self, _future: Future) -> None:
        with self._lock:
            self._in_flight -= 1
        self._slots.release()

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        logger.info("executor.shutdown", extra={"wait": wait, "in_flight": self._in_flight})
        self._pool.shutdown(wait=wait, cancel_futures=cancel_futures)

    def stats(self) -> dict:
        with self._lock:
            return {
                "max_workers": self.max_workers,
                "queue_capacity": self.queue_capacity,
                "in_flight": self._in_flight,
                "rejected": self._rejected,
            }


def build_task_executor(settings: Settings) -> BoundedTaskExecutor:
    executor = BoundedTaskExecutor(
        max_workers=settings.ASYNC_EXECUTOR_MAX_WORKERS,
        queue_capacity=settings.ASYNC_EXECUTOR_QUEUE_CAPACITY,
        thread_name_prefix=settings.ASYNC_EXECUTOR_THREAD_NAME_PREFIX,
    )
    logger.info("executor.created", extra=executor.stats())
    return executor


_EXECUTOR: BoundedTaskExecutor | None = None
_EXECUTOR_LOCK = threading.Lock()


def get_task_executor(settings: Settings | None = None) -> BoundedTaskExecutor:
    """
    The process-wide executor, created on first call.

    `settings` only matters for that first call; later calls return the same
    instance until shutdown_task_executor() clears it.
    """
    global _EXECUTOR
    with _EXECUTOR_LOCK:
        if _EXECUTOR is None:
            _EXECUTOR = build_task_executor(settings or get_settings())
        return _EXECUTOR


def shutdown_task_executor(wait: bool = True) -> None:
    """Stop the shared executor, if it was ever created."""
    global _EXECUTOR
    with _EXECUTOR_LOCK:
        executor, _EXECUTOR = _EXECUTOR, None
    if executor is not None:
        executor.shutdown(wait=wait)


__all__ = ["BoundedTaskExecutor", "build_task_executor", "get_task_executor", "shutdown_task_executor"]
