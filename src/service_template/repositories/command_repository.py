"""
Generic write-side repository.

Works on any mapped model with a single primary-key column. Every write runs
inside `db_error_handler`, so integrity violations come out as DuplicateError
/ RepositoryError and the session is rolled back. Committing is left to the
session owner (see `database.session.get_command_session`).
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Generic, Iterable, Type, TypeVar

from sqlalchemy import delete as sa_delete, inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from service_template.database.base import Base
from service_template.exceptions import DuplicateError, InvalidFieldError, NotFoundError, RepositoryError
from service_template.exceptions.integrity import db_error_handler
from service_template.i18n.message_keys import MessageKeys
from service_template.validators.model_validators import (
    find_unique_conflicts,
    find_unknown_model_kwargs,
    get_required_columns,
    primary_key_column,
)

ModelType = TypeVar("ModelType", bound=Base)
KeyType = TypeVar("KeyType")

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class CommandRepository(Generic[ModelType, KeyType]):
    """
    save / save_all / create / update / update_all / delete / delete_all.

    Args:
        model: the SQLAlchemy model class (not an instance)
        db: the async session for the command database
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db
        self._pk = primary_key_column(model)
        self._pk_attr = sa_inspect(model).get_property_by_column(self._pk).key

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def _key_of(self, entity: ModelType) -> Any:
        return getattr(entity, self._pk_attr)

    @asynccontextmanager
    async def _write(self, operation: str, **log_fields: Any):
        start = time.perf_counter()
        async with db_error_handler(self.db, self.model_name):
            yield
        logger.info(
            f"repo.{operation}.success",
            extra={"model": self.model_name, "operation": operation, "duration_ms": _elapsed_ms(start), **log_fields},
        )

    # --- Create ---
    async def save(self, entity: ModelType) -> ModelType:
        """Insert a new entity (or persist changes to an attached one) and return it refreshed."""
        async with self._write("save"):
            self.db.add(entity)
            await self.db.flush()
            await self.db.refresh(entity)
        return entity

    async def save_all(self, entities: Iterable[ModelType]) -> list[ModelType]:
        items = list(entities)
        if not items:
            return []
        async with self._write("save_all", count=len(items)):
            self.db.add_all(items)
            await self.db.flush()
            for entity in items:
                await self.db.refresh(entity)
        return items

    async def create(self, **fields: Any) -> ModelType:
        """
        Build and insert an entity from keyword fields.

        Validation before touching the database:
          - unknown fields -> InvalidFieldError (422)
          - missing required columns -> RepositoryError (400)
          - existing row for a unique column set -> DuplicateError (409)
        """
        logger.debug(
            "repo.create.start",
            extra={"model": self.model_name, "operation": "create", "provided_keys": sorted(fields)},
        )

        unknown = find_unknown_model_kwargs(self.model, fields)
        if unknown:
            logger.info("repo.create.invalid_fields", extra={"model": self.model_name, "invalid_fields": sorted(unknown)})
            raise InvalidFieldError(
                f"Unknown field(s) for {self.model_name}: {', '.join(unknown)}",
                fields=unknown,
                message_key=MessageKeys.ERROR_UNKNOWN_FIELDS,
                params=(", ".join(unknown),),
            )

        missing = [c for c in get_required_columns(self.model) if fields.get(c) is None]
        if missing:
            logger.info("repo.create.missing_required", extra={"model": self.model_name, "missing_fields": sorted(missing)})
            raise RepositoryError(
                f"Missing required field(s): {', '.join(missing)} for {self.model_name}",
                fields=missing,
                message_key=MessageKeys.ERROR_MISSING_FIELDS,
                params=(", ".join(missing),),
            )

        conflicts = sorted(await find_unique_conflicts(self.db, self.model, fields))
        if conflicts:
            logger.info("repo.create.duplicate_precheck", extra={"model": self.model_name, "conflict_fields": conflicts})
            detail = f"{self.model_name} ({', '.join(conflicts)})"
            raise DuplicateError(
                f"{detail} already exists",
                fields=conflicts,
                message_key=MessageKeys.ERROR_DUPLICATE,
                params=(detail,),
            )

        return await self.save(self.model(**fields))

    # --- Update ---
    async def _require_existing(self, key: Any) -> ModelType:
        existing = await self.db.get(self.model, key) if key is not None else None
        if existing is None:
            raise NotFoundError(
                f"{self.model_name} with id {key} not found",
                message_key=MessageKeys.ERROR_INFRASTRUCTURE_NO_RECORD_BY_ID,
                params=(key,),
            )
        return existing

    async def update(self, entity: ModelType) -> ModelType:
        """
        Persist the state of an existing entity (attached or detached).

        Raises NotFoundError when no row has the entity's primary key.
        """
        key = self._key_of(entity)
        await self._require_existing(key)
        async with self._write("update", id=key):
            merged = await self.db.merge(entity)
            await self.db.flush()
            await self.db.refresh(merged)
        return merged

    async def update_all(self, entities: Iterable[ModelType]) -> list[ModelType]:
        items = list(entities)
        for entity in items:
            await self._require_existing(self._key_of(entity))
        updated: list[ModelType] = []
        async with self._write("update_all", count=len(items)):
            for entity in items:
                updated.append(await self.db.merge(entity))
            await self.db.flush()
            for entity in updated:
                await self.db.refresh(entity)
        return updated

    # --- Delete ---
    async def delete(self, key: KeyType) -> None:
        """Delete by primary key; NotFoundError when there is no such row."""
        entity = await self._require_existing(key)
        async with self._write("delete", id=key):
            await self.db.delete(entity)
            await self.db.flush()

    async def delete_all(self, keys: Iterable[KeyType]) -> int:
        """Bulk delete by primary keys. Missing keys are ignored; returns rows deleted."""
        key_list = list(keys)
        if not key_list:
            return 0
        async with self._write("delete_all", requested=len(key_list)):
            result = await self.db.execute(
                sa_delete(self.model)
                .where(self._pk.in_(key_list))
                .execution_options(synchronize_session="fetch")
            )
            await self.db.flush()
        return result.rowcount or 0


__all__ = ["CommandRepository"]
