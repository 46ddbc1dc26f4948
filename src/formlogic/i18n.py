"""
Translated strings for questionnaire text and error messages.

A Translations descriptor maps each locale to a source (URL or file
path) holding a flat key -> string map. Locales are loaded lazily,
cached, and resolved with fallback:

    requested locale -> default locale -> the key itself

Nothing here raises to the caller: load failures come back as a
TranslationResult, and resolve() always returns a string.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx
import yaml

from formlogic.config import Settings
from formlogic.model import Translations

logger = logging.getLogger(__name__)


class TranslationLoader(Protocol):
    def load(self, source: str) -> Dict[str, str]:
        ...


def _as_string_map(data: Any, source: str) -> Dict[str, str]:
    if not isinstance(data, dict):
        raise ValueError(f"Translation source {source} is not a key/value map")
    return {str(k): str(v) for k, v in data.items()}


class FileTranslationLoader:
    """Reads a flat map from a local .json, .yaml or .yml file."""

    def load(self, source: str) -> Dict[str, str]:
        path = Path(source)
        content = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            return _as_string_map(yaml.safe_load(content), source)
        return _as_string_map(json.loads(content), source)


class HttpTranslationLoader:
    """Fetches a flat JSON map over HTTP."""

    def __init__(self, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self._timeout = timeout
        self._client = client

    def load(self, source: str) -> Dict[str, str]:
        if self._client is not None:
            response = self._client.get(source, timeout=self._timeout)
        else:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.get(source)
        response.raise_for_status()
        return _as_string_map(response.json(), source)


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of loading a locale: either a string map or the error."""

    value: Optional[Dict[str, str]] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Dict[str, str]) -> "TranslationResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "TranslationResult":
        return cls(error=error)


class TranslationCache:
    def __init__(self) -> None:
        self._cache: Dict[str, Dict[str, str]] = {}

    def get(self, locale: str) -> Optional[Dict[str, str]]:
        return self._cache.get(locale)

    def put(self, locale: str, translations: Dict[str, str]) -> None:
        self._cache[locale] = translations

    def contains(self, locale: str) -> bool:
        return locale in self._cache

    def clear(self) -> None:
        self._cache.clear()


class TranslationManager:
    """
    Loads, caches and resolves translations for one questionnaire.

    Properties:
        translations: The questionnaire's Translations descriptor
        loader: Injectable fetch capability. Defaults to HTTP for
                http(s) sources and local files otherwise.
    """

    def __init__(
        self,
        translations: Translations,
        loader: Optional[TranslationLoader] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or Settings()
        self.translations = translations
        self._loader = loader
        self._http_loader = HttpTranslationLoader(timeout=settings.translation_timeout_seconds)
        self._file_loader = FileTranslationLoader()
        self._cache = TranslationCache()
        self._current_locale = translations.default_locale

    @property
    def current_locale(self) -> str:
        return self._current_locale

    def _loader_for(self, source: str) -> TranslationLoader:
        if self._loader is not None:
            return self._loader
        if source.startswith(("http://", "https://")):
            return self._http_loader
        return self._file_loader

    def load_locale(self, locale: str) -> TranslationResult:
        cached = self._cache.get(locale)
        if cached is not None:
            return TranslationResult.success(cached)

        source = self.translations.sources.get(locale)
        if source is None:
            return TranslationResult.failure(LookupError(f"No translation source for locale: {locale}"))

        try:
            translation_map = self._loader_for(source).load(source)
        except Exception as e:
            logger.warning("Failed to load translations for %s from %s: %s", locale, source, e)
            return TranslationResult.failure(e)

        self._cache.put(locale, translation_map)
        return TranslationResult.success(translation_map)

    def set_locale(self, locale: str) -> TranslationResult:
        """Switch locale; the current locale is unchanged if loading fails."""
        result = self.load_locale(locale)
        if result.ok:
            self._current_locale = locale
        return result

    def _strings(self, locale: str) -> Mapping[str, str]:
        result = self.load_locale(locale)
        return result.value if result.ok and result.value is not None else {}

    def resolve(self, key: str, locale: Optional[str] = None, use_fallback: bool = True) -> str:
        locale = locale or self._current_locale

        value = self._strings(locale).get(key)
        if value is not None:
            return value

        if use_fallback and locale != self.translations.default_locale:
            return self._strings(self.translations.default_locale).get(key, key)

        return key

    @staticmethod
    def interpolate(template: str, values: Mapping[str, Any]) -> str:
        """Replace {name} placeholders; None becomes an empty string."""
        result = template
        for key, value in values.items():
            result = result.replace("{" + key + "}", "" if value is None else str(value))
        return result

    def resolve_and_interpolate(self, key: str, values: Mapping[str, Any], locale: Optional[str] = None) -> str:
        return self.interpolate(self.resolve(key, locale), values)
