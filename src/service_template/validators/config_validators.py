def to_uppercase(value: str | None) -> str | None:
    """
    Converts a string to uppercase if it's not None.
    """
    if value is None:
        return None
    return value.upper()


def to_lowercase(value: str | None) -> str | None:
    """
    Converts a string to lowercase if it's not None.
    """
    if value is None:
        return None
    return value.lower()


def split_csv(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """
    'es, en ,pt' -> ['es', 'en', 'pt']. Empty items are dropped; lists pass through stripped.
    """
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [item.strip() for item in items if item and item.strip()]


def empty_to_none(value):
    """Treat '' from an env file as unset."""
    if isinstance(value, str) and not value.strip():
        return None
    return value
