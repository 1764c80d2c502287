"""
Command pipeline: mutating operations in three gated phases.

    pre_process()   validate the context; set `is_valid = True` to continue
    process()       perform the mutation; set `is_executed = True` on completion
    post_process()  finalize; runs only when `is_executed` is True

`execute()` returns `self.result` or raises a single `DomainError`, whatever
phase failed:

  - any exception from pre_process or process is logged once
    (`command.failed`, with the command class and phase) and re-raised as a
    plain `DomainError`. Service errors keep their message, fields, message
    key and params; anything else keeps its text. The original exception
    stays reachable as `__cause__`.
  - pre_process returning without setting `is_valid` is a `DomainError` too;
    process never runs.
  - post_process is not guarded: what it raises reaches the caller untouched.

With `is_async = True` the same sequence runs on `executor` (sync flavour) or
as a separate event-loop task (coroutine flavour) and the caller waits for
it. The outcome is identical except for where the work ran.

`timeout` (seconds) bounds that wait; None waits indefinitely. A run that
times out is abandoned: the worker checks before process, before
post_process and once more at the end, stops at the first check it reaches
and leaves `is_executed` False and `result` None. A phase already running
when the timeout fires is not interrupted, so its changes may still be
applied.

Instances carry mutable per-call state. Use one instance per invocation.

    class CreateItem(CommandProcess[ItemIn, Item]):
        def pre_process(self):
            require_fields(self.context, "sku", "name")
            self.is_valid = True

        def process(self):
            self.result = store.add(self.context)
            self.is_executed = True

        def post_process(self):
            events.publish("item.created", self.result)

    cmd = CreateItem(executor)
    cmd.context = ItemIn(sku="A-1", name="Anvil")
    item = cmd.execute()
"""

import asyncio
import contextvars
import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Executor, wait
from typing import Generic, TypeVar

from service_template.exceptions import ApplicationError, DomainError, ServiceError

logger = logging.getLogger(__name__)

C = TypeVar("C")
R = TypeVar("R")


class _CommandState(Generic[C, R]):
    """Flags, context and result shared by both command flavours."""

    def __init__(self, *, timeout: float | None = None) -> None:
        self.context: C | None = None
        self.result: R | None = None
        self.is_valid: bool = False
        self.is_executed: bool = False
        self.is_async: bool = False
        self.timeout = timeout
        # Guards the hand-over between a timed-out caller and its worker.
        self._run_lock = threading.Lock()
        self._abandoned = False
        self._finished = False

    @property
    def command_name(self) -> str:
        return type(self).__name__

    def _reset(self) -> None:
        self.is_valid = False
        self.is_executed = False

    def _start_run(self) -> None:
        with self._run_lock:
            self._abandoned = False
            self._finished = False

    def _ensure_valid(self) -> None:
        if not self.is_valid:
            raise DomainError(f"{self.command_name} context was not accepted by pre_process")

    def _unify(self, exc: Exception, phase: str) -> DomainError:
        """Log a failure once and build the DomainError the caller receives."""
        logger.error(
            "command.failed",
            exc_info=exc,
            extra={"command": self.command_name, "phase": phase, "error_type": type(exc).__name__},
        )
        if isinstance(exc, ServiceError):
            return DomainError(exc.message, fields=exc.fields, message_key=exc.message_key, params=exc.params)
        return DomainError(str(exc) or type(exc).__name__)

    def _discard_outcome(self) -> None:
        self.is_executed = False
        self.result = None

    def _stop_if_abandoned(self, next_phase: str) -> None:
        """Worker side: give up a run whose caller already timed out."""
        with self._run_lock:
            if not self._abandoned:
                return
            self._discard_outcome()
        logger.warning("command.abandoned", extra={"command": self.command_name, "skipped_phase": next_phase})
        raise DomainError(f"{self.command_name} was abandoned after a timeout before {next_phase}")

    def _finish_run(self) -> None:
        with self._run_lock:
            if not self._abandoned:
                self._finished = True
                return
        self._stop_if_abandoned("completion")

    def _abandon(self) -> bool:
        """
        Caller side: mark the run abandoned unless the worker already finished.

        Returns False when the worker won the race and its result is valid.
        """
        with self._run_lock:
            if self._finished:
                return False
            self._abandoned = True
            self._discard_outcome()
            return True

    def _timed_out(self) -> DomainError:
        logger.error("command.async.timeout", extra={"command": self.command_name, "timeout": self.timeout})
        return DomainError(
            f"{self.command_name} did not complete within {self.timeout} seconds; "
            "a step already running may still apply its changes"
        )

    def _log_success(self, started: float) -> None:
        logger.debug(
            "command.success",
            extra={
                "command": self.command_name,
                "async_mode": self.is_async,
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            },
        )


# -----------------------
# Sync flavour
# -----------------------

class CommandProcess(_CommandState[C, R], ABC):
    """
    Template for mutating operations.

    Args:
        executor: worker pool used when `is_async` is True. Any
                  `concurrent.futures.Executor` works; the application injects
                  the shared `BoundedTaskExecutor`.
        timeout: seconds to wait for an async run; None waits indefinitely.
    """

    def __init__(self, executor: Executor | None = None, *, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self.executor = executor

    @abstractmethod
    def pre_process(self) -> None:
        """Validate `self.context`; set `self.is_valid = True` to let process run."""

    @abstractmethod
    def process(self) -> None:
        """Perform the operation, store `self.result` and set `self.is_executed = True`."""

    @abstractmethod
    def post_process(self) -> None:
        """Finalize after a successful process."""

    def execute(self) -> R | None:
        self._start_run()
        if self.is_async:
            return self._execute_async()
        return self._execute_sync()

    def _execute_sync(self) -> R | None:
        self._reset()
        started = time.perf_counter()
        logger.debug("command.start", extra={"command": self.command_name, "async_mode": self.is_async})

        try:
            self.pre_process()
            self._ensure_valid()
        except Exception as exc:
            raise self._unify(exc, "pre_process") from exc

        self._stop_if_abandoned("process")
        try:
            self.process()
        except Exception as exc:
            raise self._unify(exc, "process") from exc

        if self.is_executed:
            self._stop_if_abandoned("post_process")
            self.post_process()

        self._finish_run()
        self._log_success(started)
        return self.result

    def _execute_async(self) -> R | None:
        if self.executor is None:
            logger.error("command.async.no_executor", extra={"command": self.command_name})
            raise ApplicationError(f"{self.command_name} is in async mode but has no executor")

        # Worker threads do not inherit contextvars; carry request id and locale over.
        ctx = contextvars.copy_context()
        # TaskRejectedError from a saturated executor propagates as is.
        future = self.executor.submit(ctx.run, self._execute_sync)

        done, _ = wait([future], timeout=self.timeout)
        if not done and self._abandon():
            future.cancel()
            raise self._timed_out()

        # The worker already unified its failures; post_process errors pass through as in sync mode.
        return future.result()


# -----------------------
# Coroutine flavour
# -----------------------

class AsyncCommandProcess(_CommandState[C, R], ABC):
    """
    Same contract as CommandProcess with coroutine phases, for commands that
    await the async repositories.

    In async mode the sequence runs as its own event-loop task and `execute()`
    awaits it; on timeout the task is cancelled.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)

    @abstractmethod
    async def pre_process(self) -> None: ...

    @abstractmethod
    async def process(self) -> None: ...

    @abstractmethod
    async def post_process(self) -> None: ...

    async def execute(self) -> R | None:
        self._start_run()
        if self.is_async:
            return await self._execute_async()
        return await self._execute_sync()

    async def _execute_sync(self) -> R | None:
        self._reset()
        started = time.perf_counter()
        logger.debug("command.start", extra={"command": self.command_name, "async_mode": self.is_async})

        try:
            await self.pre_process()
            self._ensure_valid()
        except Exception as exc:
            raise self._unify(exc, "pre_process") from exc

        self._stop_if_abandoned("process")
        try:
            await self.process()
        except Exception as exc:
            raise self._unify(exc, "process") from exc

        if self.is_executed:
            self._stop_if_abandoned("post_process")
            await self.post_process()

        self._finish_run()
        self._log_success(started)
        return self.result

    async def _execute_async(self) -> R | None:
        task = asyncio.create_task(self._execute_sync(), name=f"command:{self.command_name}")

        done, _ = await asyncio.wait({task}, timeout=self.timeout)
        if not done and self._abandon():
            task.cancel()
            raise self._timed_out()

        return await task


__all__ = ["CommandProcess", "AsyncCommandProcess"]
