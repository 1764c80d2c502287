from typing import Any, Iterable, Mapping

from sqlalchemy import UniqueConstraint, and_, func, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession


def mapped_attribute_names(model) -> set[str]:
    """Names callers may use as keyword arguments for `model` (columns + relationships)."""
    return {attr.key for attr in sa_inspect(model).attrs}


def column_attribute_names(model) -> list[str]:
    """Mapped column attribute names, in table order. Relationships excluded."""
    return [attr.key for attr in sa_inspect(model).column_attrs]


def find_unknown_model_kwargs(model, kwargs: Mapping[str, Any]) -> list[str]:
    """
    Return the keys of `kwargs` that are not mapped attributes of `model`.
    - model: the SQLAlchemy model class (not instance)
    """
    allowed = mapped_attribute_names(model)
    return [k for k in kwargs.keys() if k not in allowed]


def get_required_columns(model) -> list[str]:
    """
    Columns that are NOT NULL, have no client/server default and are not autoincrement PKs.
    """
    cols = []
    for col in model.__table__.columns:
        has_default = col.default is not None or col.server_default is not None
        # Integer PKs are autoincrement="auto" unless turned off explicitly.
        is_auto_pk = col.primary_key and col.autoincrement in (True, "auto")
        if not col.nullable and not has_default and not is_auto_pk:
            cols.append(col.name)
    return cols


def get_unique_column_sets(model) -> list[list[str]]:
    """
    Unique column sets declared on the model's table:
      - Column(unique=True)
      - UniqueConstraint(...)
      - Index(..., unique=True)
    """
    table = model.__table__
    unique_sets: list[list[str]] = [[col.name] for col in table.columns if col.unique]
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            unique_sets.append([c.name for c in constraint.columns])
    for idx in table.indexes:
        if idx.unique:
            unique_sets.append([c.name for c in idx.columns])
    return unique_sets


async def find_unique_conflicts(db: AsyncSession, model, values: Mapping[str, Any]) -> set[str]:
    """
    Best-effort pre-insert check: names of the columns whose unique set already
    exists in the table with the given values.
    """
    conflicts: set[str] = set()
    for cols in get_unique_column_sets(model):
        if not all(c in values for c in cols):
            continue
        conditions = [getattr(model, c) == values[c] for c in cols]
        stmt = select(func.count()).select_from(model).where(and_(*conditions))
        if (await db.scalar(stmt)) or 0:
            conflicts.update(cols)
    return conflicts


def primary_key_column(model):
    """
    The single primary-key column of `model`.

    Composite keys are not supported by the generic repositories.
    """
    pk: Iterable = sa_inspect(model).primary_key
    pk = list(pk)
    if len(pk) != 1:
        raise TypeError(f"{model.__name__} must have exactly one primary key column, found {len(pk)}")
    return pk[0]


__all__ = [
    "mapped_attribute_names",
    "column_attribute_names",
    "find_unknown_model_kwargs",
    "get_required_columns",
    "get_unique_column_sets",
    "find_unique_conflicts",
    "primary_key_column",
]
