"""
Query pipeline: side-effect-free reads in three fixed steps.

    execute(context):
        pre_process(context)                     validate; raise DomainError when invalid
        result = process(context)                perform the read
        return post_process(context, result)     identity unless overridden

Nothing is skipped and nothing is translated: exceptions from any step reach
the caller as raised. Queries always run inline.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

C = TypeVar("C")
R = TypeVar("R")


def _log_start(query: object) -> float:
    logger.debug("query.start", extra={"query": type(query).__name__})
    return time.perf_counter()


def _log_success(query: object, started: float) -> None:
    logger.debug(
        "query.success",
        extra={"query": type(query).__name__, "duration_ms": round((time.perf_counter() - started) * 1000, 3)},
    )


class Query(ABC, Generic[C, R]):
    """
    Template for read operations. Subclasses implement pre_process and process.

    `execute` is the orchestration and is not meant to be overridden.
    """

    def execute(self, context: C) -> R:
        started = _log_start(self)
        self.pre_process(context)
        result = self.process(context)
        result = self.post_process(context, result)
        _log_success(self, started)
        return result

    @abstractmethod
    def pre_process(self, context: C) -> None:
        """Raise a DomainError (e.g. ValidationError) for a None or incomplete context."""

    @abstractmethod
    def process(self, context: C) -> R: ...

    def post_process(self, context: C, result: R) -> R:
        return result


class AsyncQuery(ABC, Generic[C, R]):
    """Coroutine flavour of Query, for reads through the async repositories."""

    async def execute(self, context: C) -> R:
        started = _log_start(self)
        await self.pre_process(context)
        result = await self.process(context)
        result = await self.post_process(context, result)
        _log_success(self, started)
        return result

    @abstractmethod
    async def pre_process(self, context: C) -> None: ...

    @abstractmethod
    async def process(self, context: C) -> R: ...

    async def post_process(self, context: C, result: R) -> R:
        return result


__all__ = ["Query", "AsyncQuery"]
