"""
Small guards for the `pre_process` step of commands and queries.

Each helper raises `ValidationError` (a `DomainError`) carrying a message key,
so the HTTP layer can translate the failure into the caller's language.
"""

from enum import Enum
from typing import Any, Iterable, Type, TypeVar

from service_template.exceptions import ValidationError
from service_template.i18n.message_keys import MessageKeys

C = TypeVar("C")
E = TypeVar("E", bound=Enum)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return not value
    return False


def _read(context: Any, name: str) -> Any:
    if isinstance(context, dict):
        return context.get(name)
    return getattr(context, name, None)


def require_context(context: C | None) -> C:
    """Reject a missing context."""
    if context is None:
        raise ValidationError(
            "The request context must not be empty",
            message_key=MessageKeys.ERROR_DOMAIN_VALID_CONTEXT_NULL,
        )
    return context


def require_fields(context: Any, *names: str) -> None:
    """
    Reject a context in which any of `names` is missing, None, blank or empty.

    Works with dicts, dataclasses and pydantic models alike.
    """
    require_context(context)
    missing = [name for name in names if _is_blank(_read(context, name))]
    if missing:
        joined = ", ".join(missing)
        raise ValidationError(
            f"Missing required field(s): {joined}",
            fields=missing,
            message_key=MessageKeys.ERROR_MISSING_FIELDS,
            params=(joined,),
        )


def require_id(value: Any, field: str = "id") -> Any:
    if _is_blank(value):
        raise ValidationError(
            "The identifier must not be empty",
            fields=[field],
            message_key=MessageKeys.ERROR_DOMAIN_VALID_ID_EMPTY,
        )
    return value


def require_non_empty(items: Iterable[Any] | None, *, for_update: bool = False) -> list[Any]:
    """Reject an empty batch of items to create (or update)."""
    values = list(items or [])
    if not values:
        key = MessageKeys.ERROR_DOMAIN_VALID_UPDATE_EMPTY if for_update else MessageKeys.ERROR_DOMAIN_VALID_CREATE_EMPTY
        raise ValidationError("Nothing to update" if for_update else "Nothing to create", message_key=key)
    return values


def require_enum(enum_cls: Type[E], value: Any, field: str | None = None) -> E:
    """Return `enum_cls(value)`, accepting member names too; reject anything else."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    if isinstance(value, str) and value in enum_cls.__members__:
        return enum_cls[value]
    raise ValidationError(
        f"Value {value!r} is not allowed",
        fields=[field] if field else None,
        message_key=MessageKeys.ERROR_DOMAIN_VALID_ENUM,
        params=(value,),
    )


__all__ = ["require_context", "require_fields", "require_id", "require_non_empty", "require_enum"]
