"""
Translate SQLAlchemy IntegrityErrors into service-level repository errors.

Two steps:
    classify_integrity_error(exc)      -> (ConstraintKind, constraint_name)
    raise_mapped_integrity_error(exc)  -> raises DuplicateError / RepositoryError

| ConstraintKind | Raised as                                   | Message key            |
| -------------- | ------------------------------------------- | ---------------------- |
| UNIQUE         | DuplicateError (409)                        | ERROR_DUPLICATE        |
| NOT_NULL       | RepositoryError                             | ERROR_MISSING_FIELDS   |
| FOREIGN_KEY    | RepositoryError                             | ERROR_FK_CONSTRAINT    |
| CHECK          | RepositoryError                             | ERROR_DATA_INTEGRITY   |
| UNKNOWN        | RepositoryError                             | ERROR_DATA_INTEGRITY   |

Raw driver messages are logged at DEBUG only and never copied into the raised error.
"""

import logging
import re
from contextlib import asynccontextmanager
from enum import Enum

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from service_template.i18n.message_keys import MessageKeys

from .base import DuplicateError, RepositoryError, ServiceError

logger = logging.getLogger(__name__)


class ConstraintKind(str, Enum):
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    UNKNOWN = "unknown"


# https://www.postgresql.org/docs/current/errcodes-appendix.html
PGCODE_TO_KIND = {
    "23505": ConstraintKind.UNIQUE,
    "23502": ConstraintKind.NOT_NULL,
    "23503": ConstraintKind.FOREIGN_KEY,
    "23514": ConstraintKind.CHECK,
}

# Message fragments for drivers without structured diagnostics (SQLite, MySQL...).
_MESSAGE_HINTS: list[tuple[ConstraintKind, tuple[str, ...]]] = [
    (ConstraintKind.UNIQUE, ("unique constraint", "unique failed", "unique violation", "duplicate")),
    (ConstraintKind.NOT_NULL, ("not null constraint", "not null", "null value in column")),
    (ConstraintKind.FOREIGN_KEY, ("foreign key constraint", "foreign key", "is not present in table")),
    (ConstraintKind.CHECK, ("check constraint", "check failed")),
]


def _raw_message(exc: IntegrityError) -> str:
    return str(exc.orig) if exc.orig is not None else str(exc)


def classify_integrity_error(exc: IntegrityError) -> tuple[ConstraintKind, str | None]:
    """Return the violated constraint kind and, when the driver exposes it, its name."""
    orig = exc.orig

    # asyncpg exposes sqlstate/constraint_name; psycopg exposes pgcode/diag.
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode:
        diag = getattr(orig, "diag", None)
        constraint = getattr(diag, "constraint_name", None) or getattr(orig, "constraint_name", None)
        kind = PGCODE_TO_KIND.get(str(pgcode), ConstraintKind.UNKNOWN)
        logger.debug("integrity.classified", extra={"pgcode": pgcode, "kind": kind.value, "constraint": constraint})
        return kind, constraint

    normalized = _raw_message(exc).lower()
    for kind, hints in _MESSAGE_HINTS:
        if any(hint in normalized for hint in hints):
            return kind, None

    logger.warning("integrity.unclassified", extra={"message_snippet": normalized[:200]})
    return ConstraintKind.UNKNOWN, None


def extract_columns(exc: IntegrityError) -> list[str] | None:
    """Best-effort column names from Postgres, SQLite and MySQL messages."""
    msg = _raw_message(exc)

    # Postgres: 'null value in column "username"' / 'Key (email, username)=(...)'
    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]
    m = re.search(r"key \((?P<cols>[^)]+)\)=", msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    # SQLite: 'UNIQUE constraint failed: items.sku' / 'NOT NULL constraint failed: items.name'
    m = re.search(r"(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$", msg, flags=re.IGNORECASE | re.MULTILINE)
    if m:
        return [c.split(".")[-1].strip() for c in re.split(r",\s*", m.group("cols"))]

    # MySQL: "Duplicate entry 'x' for key 'items.uq_items_sku'"
    m = re.search(r"Duplicate entry .* for key '([^']+)'", msg, flags=re.IGNORECASE)
    if m:
        return [m.group(1).split(".")[-1]]

    return None


def raise_mapped_integrity_error(exc: IntegrityError, model_name: str | None = None) -> None:
    """Raise the repository error matching `exc`. Always raises."""
    kind, constraint = classify_integrity_error(exc)
    columns = extract_columns(exc)
    model = model_name or "Record"
    logger.info(
        "integrity.violation",
        extra={"model": model, "kind": kind.value, "fields": columns, "constraint": constraint},
    )

    if kind is ConstraintKind.UNIQUE:
        detail = f"{model} ({', '.join(columns)})" if columns else model
        raise DuplicateError(
            f"{detail} already exists",
            fields=columns,
            constraint=constraint,
            message_key=MessageKeys.ERROR_DUPLICATE,
            params=(detail,),
        ) from exc

    if kind is ConstraintKind.NOT_NULL:
        missing = ", ".join(columns) if columns else "unknown"
        raise RepositoryError(
            f"Missing required field(s): {missing} for {model}",
            fields=columns,
            constraint=constraint,
            message_key=MessageKeys.ERROR_MISSING_FIELDS,
            params=(missing,),
        ) from exc

    if kind is ConstraintKind.FOREIGN_KEY:
        raise RepositoryError(
            f"{model} references a record that does not exist",
            fields=columns,
            constraint=constraint,
            message_key=MessageKeys.ERROR_FK_CONSTRAINT,
        ) from exc

    logger.debug("integrity.raw", extra={"model": model, "raw": _raw_message(exc)})
    raise RepositoryError(
        f"{model} violates data integrity",
        constraint=constraint,
        message_key=MessageKeys.ERROR_DATA_INTEGRITY,
    ) from exc


@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None):
    """
    Roll back and translate errors raised by DB work inside the block.

        async with db_error_handler(self.db, self.model.__name__):
            self.db.add(entity)
            await self.db.flush()

    ServiceErrors raised on purpose inside the block pass through untouched
    (after the rollback).
    """
    try:
        yield
    except IntegrityError as exc:
        await _safe_rollback(db, model_name)
        raise_mapped_integrity_error(exc, model_name)
    except ServiceError:
        await _safe_rollback(db, model_name)
        raise
    except Exception as exc:
        await _safe_rollback(db, model_name)
        logger.exception("repo.unexpected_error", extra={"model": model_name})
        raise RepositoryError(f"Failed to operate on {model_name or 'database'}") from exc


async def _safe_rollback(db: AsyncSession, model_name: str | None) -> None:
    try:
        await db.rollback()
    except Exception:
        logger.exception("repo.rollback_failed", extra={"model": model_name})


__all__ = [
    "ConstraintKind",
    "classify_integrity_error",
    "extract_columns",
    "raise_mapped_integrity_error",
    "db_error_handler",
]
