"""
Concrete commands and queries for the pipeline tests.

`ItemStore` is an in-memory collaborator; the recording command/query classes
log every step they run so tests can assert ordering and gating.
"""

import asyncio
import time
from typing import Any

import pytest
from pydantic import BaseModel

from service_template.exceptions import ExecutionError, ValidationError
from service_template.pipeline import AsyncCommandProcess, AsyncQuery, CommandProcess, Query
from service_template.validators.context_validators import require_context, require_fields


class ItemIn(BaseModel):
    sku: str | None = None
    name: str | None = None
    category: str | None = None
    quantity: int = 0


class ItemStore:
    def __init__(self):
        self.items: dict[str, dict[str, Any]] = {}
        self.events: list[tuple[str, str]] = []
        self.reads = 0

    def add(self, item: ItemIn) -> dict[str, Any]:
        if item.sku in self.items:
            raise ExecutionError(f"Item {item.sku} already exists")
        row = {"id": len(self.items) + 1, **item.model_dump()}
        self.items[item.sku] = row
        return row

    def by_category(self, category: str, min_quantity: int = 0) -> list[dict[str, Any]]:
        self.reads += 1
        return [row for row in self.items.values() if row["category"] == category and row["quantity"] >= min_quantity]


# -----------------------
# Commands
# -----------------------

class CreateItemCommand(CommandProcess[ItemIn, dict]):
    def __init__(self, store: ItemStore, executor=None, **kwargs):
        super().__init__(executor, **kwargs)
        self.store = store

    def pre_process(self):
        require_fields(self.context, "sku", "name")
        self.is_valid = True

    def process(self):
        self.result = self.store.add(self.context)
        self.is_executed = True

    def post_process(self):
        self.store.events.append(("created", self.context.sku))


class RecordingCommand(CommandProcess[dict, str]):
    """
    Step recorder with switchable behaviour.

    `fail` maps a step name to the exception that step raises; `accept` and
    `complete` control whether is_valid / is_executed get set.
    """

    def __init__(
        self,
        executor=None,
        *,
        accept: bool = True,
        complete: bool = True,
        fail: dict[str, BaseException] | None = None,
        delay: float = 0.0,
        **kwargs,
    ):
        super().__init__(executor, **kwargs)
        self.accept = accept
        self.complete = complete
        self.fail = fail or {}
        self.delay = delay
        self.calls: list[str] = []

    def _step(self, name: str):
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    def pre_process(self):
        self._step("pre_process")
        self.is_valid = self.accept

    def process(self):
        self._step("process")
        if self.delay:
            time.sleep(self.delay)
        self.result = f"done:{self.context}"
        self.is_executed = self.complete

    def post_process(self):
        self._step("post_process")


class AsyncRecordingCommand(AsyncCommandProcess[dict, str]):
    def __init__(self, *, accept: bool = True, fail: dict[str, BaseException] | None = None, delay: float = 0.0, **kwargs):
        super().__init__(**kwargs)
        self.accept = accept
        self.fail = fail or {}
        self.delay = delay
        self.calls: list[str] = []

    def _step(self, name: str):
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    async def pre_process(self):
        self._step("pre_process")
        self.is_valid = self.accept

    async def process(self):
        self._step("process")
        if self.delay:
            await asyncio.sleep(self.delay)
        self.result = f"done:{self.context}"
        self.is_executed = True

    async def post_process(self):
        self._step("post_process")


# -----------------------
# Queries
# -----------------------

class ItemsByCategoryQuery(Query[dict, list]):
    """Items of one category with at least `min_quantity` units, sorted by name."""

    def __init__(self, store: ItemStore):
        self.store = store

    def pre_process(self, context):
        require_fields(context, "category")

    def process(self, context):
        return self.store.by_category(context["category"], context.get("min_quantity", 0))

    def post_process(self, context, result):
        return sorted(result, key=lambda row: row["name"])


class CountingQuery(Query[dict, int]):
    """Counts how often each step ran."""

    def __init__(self):
        self.counts = {"pre_process": 0, "process": 0, "post_process": 0}

    def pre_process(self, context):
        self.counts["pre_process"] += 1
        require_context(context)

    def process(self, context):
        self.counts["process"] += 1
        return sum(context.values())

    def post_process(self, context, result):
        self.counts["post_process"] += 1
        return result


class AsyncItemsQuery(AsyncQuery[dict, list]):
    def __init__(self, store: ItemStore):
        self.store = store

    async def pre_process(self, context):
        require_context(context)
        if "category" not in context:
            raise ValidationError("category is required", fields=["category"])

    async def process(self, context):
        return self.store.by_category(context["category"])


# -----------------------
# Fixtures
# -----------------------

@pytest.fixture
def item_store() -> ItemStore:
    store = ItemStore()
    for sku, name, category, quantity in [
        ("T-1", "Wrench", "tools", 5),
        ("T-2", "Hammer", "tools", 0),
        ("B-1", "Atlas", "books", 2),
    ]:
        store.add(ItemIn(sku=sku, name=name, category=category, quantity=quantity))
    return store
