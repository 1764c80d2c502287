"""
Date helpers for the `dd/mm/yyyy` format used in request and response payloads.
"""

from datetime import date, datetime

from service_template.exceptions import ParsingError
from service_template.i18n.message_keys import MessageKeys

DISPLAY_FORMAT = "%d/%m/%Y"

# Tried in order by parse_any_date. dd/mm wins over mm/dd when both would parse.
_LENIENT_FORMATS = ("%d/%m/%Y", "%Y-%m-%d", "%m/%d/%Y")


def parse_date(text: str | None) -> date | None:
    """
    Parse a `dd/mm/yyyy` string.

    Returns None for None input; raises ParsingError for anything else that
    does not match the format.
    """
    if text is None:
        return None
    try:
        return datetime.strptime(text.strip(), DISPLAY_FORMAT).date()
    except ValueError as exc:
        raise ParsingError(
            f"Invalid date: {text!r}",
            message_key=MessageKeys.ERROR_DOMAIN_INVALID_DATE,
            params=(text,),
        ) from exc


def format_date(value: date | datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime(DISPLAY_FORMAT)


def format_date_string(iso_text: str | None) -> str | None:
    """
    '2024-03-05T10:15:00+01:00' / '2024-03-05' -> '05/03/2024'.

    The full ISO datetime is tried first, then the leading `yyyy-mm-dd`.
    Returns None when the input is None or cannot be parsed.
    """
    if iso_text is None:
        return None
    try:
        return format_date(datetime.fromisoformat(iso_text.strip()))
    except ValueError:
        pass
    try:
        return format_date(date.fromisoformat(iso_text.strip()[:10]))
    except ValueError:
        return None


def parse_any_date(text: str | None) -> date | None:
    """
    Best-effort parse of `dd/mm/yyyy`, `yyyy-mm-dd`, `mm/dd/yyyy` and ISO
    datetimes (with or without offset). Returns None when nothing matches.
    """
    if not text:
        return None
    text = text.strip()
    for fmt in _LENIENT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def days_between(start: str | None, end: str | None) -> int:
    """
    Absolute number of days between two dates in any supported format.

    Returns -1 when either side cannot be parsed.
    """
    start_date = parse_any_date(start)
    end_date = parse_any_date(end)
    if start_date is None or end_date is None:
        return -1
    return abs((end_date - start_date).days)


__all__ = ["DISPLAY_FORMAT", "parse_date", "format_date", "format_date_string", "parse_any_date", "days_between"]
