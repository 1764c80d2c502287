"""
Generic read-side repository with query-by-example and paging.

An "example" is a dict, a model instance or a pydantic model: every non-None
value becomes an equality filter on the column of the same name.

    repo = QueryRepository(Item, db)
    page = await repo.find_page({"category": "tools"}, page_number=0, page_size=20, sort_by="name")
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Generic, Mapping, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, Sequence, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from service_template.database.base import Base
from service_template.exceptions import InvalidFieldError, NotFoundError, RepositoryError
from service_template.i18n.message_keys import MessageKeys
from service_template.responses.pagination import PageContext, PageResult
from service_template.validators.model_validators import column_attribute_names, primary_key_column

ModelType = TypeVar("ModelType", bound=Base)
KeyType = TypeVar("KeyType")

logger = logging.getLogger(__name__)


class QueryRepository(Generic[ModelType, KeyType]):
    """
    find_all / find_page / find_by_id / get_by_id_or_raise / exists_by_id / get_next_val_sequence.

    Args:
        model: the SQLAlchemy model class
        db: the async session for the query database
        sequence_name: database sequence used by get_next_val_sequence; when
                       None the next value is max(primary key) + 1
    """

    sequence_name: str | None = None

    def __init__(self, model: Type[ModelType], db: AsyncSession, sequence_name: str | None = None):
        self.model = model
        self.db = db
        self._pk = primary_key_column(model)
        self._columns = set(column_attribute_names(model))
        if sequence_name is not None:
            self.sequence_name = sequence_name

    @property
    def model_name(self) -> str:
        return self.model.__name__

    @asynccontextmanager
    async def _read(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            logger.exception("repo.read.failed", extra={"model": self.model_name, "operation": operation})
            raise RepositoryError(f"Failed to read {self.model_name}") from e

    # --- Statement helpers ---
    def _example_values(self, example: Any) -> dict[str, Any]:
        if example is None:
            return {}
        if isinstance(example, Mapping):
            values = dict(example)
        elif isinstance(example, BaseModel):
            values = example.model_dump(exclude_none=True)
        elif isinstance(example, self.model):
            values = {name: getattr(example, name) for name in self._columns}
        else:
            raise TypeError(f"Unsupported example type for {self.model_name}: {type(example).__name__}")

        values = {k: v for k, v in values.items() if v is not None}
        unknown = sorted(set(values) - self._columns)
        if unknown:
            raise InvalidFieldError(
                f"Unknown field(s) for {self.model_name}: {', '.join(unknown)}",
                fields=unknown,
                message_key=MessageKeys.ERROR_UNKNOWN_FIELDS,
                params=(", ".join(unknown),),
            )
        return values

    def _filtered(self, example: Any) -> Select:
        stmt = select(self.model)
        for name, value in self._example_values(example).items():
            stmt = stmt.where(getattr(self.model, name) == value)
        return stmt

    def _ordered(self, stmt: Select, sort_by: str | None, sort_dir: str = "asc") -> Select:
        if sort_by and sort_by not in self._columns:
            logger.warning("repo.sort.ignored", extra={"model": self.model_name, "sort_by": sort_by})
            sort_by = None
        column = getattr(self.model, sort_by) if sort_by else self._pk
        descending = (sort_dir or "asc").lower() == "desc"
        stmt = stmt.order_by(column.desc() if descending else column.asc())
        if sort_by:
            # Stable pages when the sort column has duplicates.
            stmt = stmt.order_by(self._pk.asc())
        return stmt

    # --- Queries ---
    async def find_all(self, example: Any = None, sort_by: str | None = None, sort_dir: str = "asc") -> list[ModelType]:
        stmt = self._ordered(self._filtered(example), sort_by, sort_dir)
        async with self._read("find_all"):
            result = await self.db.execute(stmt)
            entities = list(result.scalars().all())
        logger.debug("repo.find_all.success", extra={"model": self.model_name, "count": len(entities)})
        return entities

    async def find_page(
        self,
        example: Any = None,
        page_number: int = 0,
        page_size: int = 20,
        sort_by: str | None = None,
        sort_dir: str = "asc",
    ) -> PageResult[ModelType]:
        """One zero-based page of the rows matching `example`, with the total match count."""
        if page_number < 0 or page_size < 1:
            raise RepositoryError(
                f"Invalid page request (page_number={page_number}, page_size={page_size})",
                fields=["page_number", "page_size"],
            )
        filtered = self._filtered(example)
        count_stmt = select(func.count()).select_from(filtered.subquery())
        page_stmt = self._ordered(filtered, sort_by, sort_dir).offset(page_number * page_size).limit(page_size)

        async with self._read("find_page"):
            total = (await self.db.scalar(count_stmt)) or 0
            content = list((await self.db.execute(page_stmt)).scalars().all()) if total else []

        logger.debug(
            "repo.find_page.success",
            extra={"model": self.model_name, "page_number": page_number, "page_size": page_size, "total": total},
        )
        return PageResult(content=content, page_number=page_number, page_size=page_size, total_elements=total)

    async def find_page_for(self, page: PageContext) -> PageResult[ModelType]:
        return await self.find_page(page.data, page.page_number, page.page_size, page.sort_by, page.sort_dir)

    async def find_by_id(self, key: KeyType) -> ModelType | None:
        async with self._read("find_by_id"):
            return await self.db.get(self.model, key)

    async def get_by_id_or_raise(self, key: KeyType) -> ModelType:
        entity = await self.find_by_id(key)
        if entity is None:
            raise NotFoundError(
                f"{self.model_name} with id {key} not found",
                message_key=MessageKeys.ERROR_INFRASTRUCTURE_NO_RECORD_BY_ID,
                params=(key,),
            )
        return entity

    async def exists_by_id(self, key: KeyType) -> bool:
        stmt = select(func.count()).select_from(self.model).where(self._pk == key)
        async with self._read("exists_by_id"):
            return bool(await self.db.scalar(stmt))

    async def get_next_val_sequence(self) -> int:
        """
        Next identifier for a new row.

        With `sequence_name` set the database sequence is advanced (Postgres
        `nextval`). Otherwise max(primary key) + 1, which is only safe when a
        single writer allocates ids.
        """
        if self.sequence_name:
            stmt = select(Sequence(self.sequence_name).next_value())
        else:
            stmt = select(func.coalesce(func.max(self._pk), 0) + 1)
        async with self._read("get_next_val_sequence"):
            value = await self.db.scalar(stmt)
        return int(value)


__all__ = ["QueryRepository"]
