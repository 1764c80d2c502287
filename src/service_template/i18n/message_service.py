"""
Message lookup with locale fallback.

Catalogs are TOML files in a single directory:

    messages.toml          base catalog (last resort)
    messages_es.toml       one file per supported locale
    messages_en.toml
    messages_pt.toml

Lookup order for `get_message(key)`:
    1. the requested locale, exact tag ("pt-BR" -> "pt_br")
    2. its base language ("pt")
    3. the default locale
    4. the base catalog
If none of them knows the key, a warning is logged and the key itself is returned,
so a missing translation never breaks a response.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Iterable, Mapping

from .context import get_locale

logger = logging.getLogger(__name__)

DEFAULT_LOCALES_DIR = Path(__file__).resolve().parent / "locales"
BASE_CATALOG = ""


def normalize_locale(tag: str | None) -> str | None:
    """'pt-BR' / 'pt_BR' / ' PT-br ' -> 'pt_br'."""
    if not tag:
        return None
    return tag.strip().replace("-", "_").lower() or None


def _load_catalog(path: Path) -> dict[str, str]:
    with path.open("rb") as f:
        data = tomllib.load(f)
    # Only flat string entries are messages; anything else is a mistake in the file.
    catalog = {k: v for k, v in data.items() if isinstance(v, str)}
    skipped = set(data) - set(catalog)
    if skipped:
        logger.warning("i18n.catalog.non_string_entries", extra={"catalog": path.name, "keys": sorted(skipped)})
    return catalog


class MessageService:
    """
    Translate message keys into localized strings.

    Args:
        catalogs: mapping of normalized locale -> {key: template}. The base catalog
                  is stored under the empty string.
        default_locale: locale used when the request has none or lacks the key.
    """

    def __init__(self, catalogs: Mapping[str, Mapping[str, str]], default_locale: str = "es"):
        self._catalogs = {normalize_locale(k) or BASE_CATALOG: dict(v) for k, v in catalogs.items()}
        self.default_locale = normalize_locale(default_locale) or "es"

    @classmethod
    def from_directory(
        cls,
        directory: Path | str | None = None,
        *,
        default_locale: str = "es",
        supported_locales: Iterable[str] | None = None,
    ) -> "MessageService":
        """
        Load `messages.toml` and every `messages_<locale>.toml` found in `directory`.

        When `supported_locales` is given, catalogs for other locales are ignored.
        """
        directory = Path(directory) if directory else DEFAULT_LOCALES_DIR
        allowed = {normalize_locale(loc) for loc in supported_locales} if supported_locales else None

        catalogs: dict[str, dict[str, str]] = {}
        base = directory / "messages.toml"
        if base.exists():
            catalogs[BASE_CATALOG] = _load_catalog(base)

        for path in sorted(directory.glob("messages_*.toml")):
            locale = normalize_locale(path.stem.removeprefix("messages_"))
            if allowed is not None and locale not in allowed:
                continue
            catalogs[locale] = _load_catalog(path)

        logger.debug(
            "i18n.catalogs.loaded",
            extra={"directory": str(directory), "locales": sorted(k for k in catalogs if k)},
        )
        return cls(catalogs, default_locale=default_locale)

    @property
    def locales(self) -> list[str]:
        return sorted(k for k in self._catalogs if k)

    def _candidates(self, locale: str | None) -> list[str]:
        chain: list[str] = []
        requested = normalize_locale(locale)
        if requested:
            chain.append(requested)
            language = requested.split("_", 1)[0]
            if language != requested:
                chain.append(language)
        if self.default_locale not in chain:
            chain.append(self.default_locale)
        chain.append(BASE_CATALOG)
        return chain

    def resolve(self, key: str, locale: str | None = None) -> str | None:
        """Return the raw template for `key`, or None when no catalog has it."""
        for candidate in self._candidates(locale):
            catalog = self._catalogs.get(candidate)
            if catalog and key in catalog:
                return catalog[key]
        return None

    def get_message(self, key: str, *params: Any, locale: str | None = None) -> str:
        """
        Return the localized message for `key`, with `{0}`-style params filled in.

        `locale` defaults to the request locale (set by LocaleMiddleware), then to
        the default locale.
        """
        effective = locale or get_locale()
        template = self.resolve(key, effective)
        if template is None:
            logger.warning(
                "i18n.missing_translation",
                extra={"key": key, "locale": effective or self.default_locale},
            )
            return key

        if not params:
            return template

        try:
            return template.format(*params)
        except (IndexError, KeyError, ValueError):
            logger.warning("i18n.bad_params", extra={"key": key, "param_count": len(params)})
            return template

    def has_message(self, key: str, locale: str | None = None) -> bool:
        return self.resolve(key, locale) is not None


__all__ = ["MessageService", "normalize_locale", "DEFAULT_LOCALES_DIR"]
