"""Mapping of requested languages onto the locales the engine ships."""

from __future__ import annotations

from collections.abc import Iterable, Mapping


__all__ = ["AVAILABLE_LOCALES", "DEFAULT_LOCALE", "PRIMARY_DIALECTS", "LocaleTable"]


DEFAULT_LOCALE = "en-US"

PRIMARY_DIALECTS: dict[str, str] = {
    "af": "af-ZA",
    "ar": "ar",
    "bg": "bg-BG",
    "ca": "ca-AD",
    "cs": "cs-CZ",
    "cy": "cy-GB",
    "da": "da-DK",
    "de": "de-DE",
    "el": "el-GR",
    "en": "en-US",
    "es": "es-ES",
    "et": "et-EE",
    "eu": "eu",
    "fa": "fa-IR",
    "fi": "fi-FI",
    "fr": "fr-FR",
    "he": "he-IL",
    "hr": "hr-HR",
    "hu": "hu-HU",
    "id": "id-ID",
    "is": "is-IS",
    "it": "it-IT",
    "ja": "ja-JP",
    "km": "km-KH",
    "ko": "ko-KR",
    "lt": "lt-LT",
    "lv": "lv-LV",
    "mn": "mn-MN",
    "nb": "nb-NO",
    "nl": "nl-NL",
    "nn": "nn-NO",
    "pl": "pl-PL",
    "pt": "pt-PT",
    "ro": "ro-RO",
    "ru": "ru-RU",
    "sk": "sk-SK",
    "sl": "sl-SI",
    "sr": "sr-RS",
    "sv": "sv-SE",
    "th": "th-TH",
    "tr": "tr-TR",
    "uk": "uk-UA",
    "vi": "vi-VN",
    "zh": "zh-CN",
}

AVAILABLE_LOCALES: frozenset[str] = frozenset(PRIMARY_DIALECTS.values()) | {
    "de-AT",
    "de-CH",
    "en-GB",
    "es-CL",
    "es-MX",
    "fr-CA",
    "pt-BR",
    "zh-TW",
}


def _canonical(locale_id: str) -> str:
    parts = locale_id.strip().replace("_", "-").split("-")
    language = parts[0].lower()
    if len(parts) == 1:
        return language
    return "-".join([language, *(part.upper() for part in parts[1:])])


class LocaleTable:
    """Resolve language codes to locale identifiers known to the engine."""

    def __init__(
        self,
        available: Iterable[str] = AVAILABLE_LOCALES,
        primary_dialects: Mapping[str, str] = PRIMARY_DIALECTS,
        default: str = DEFAULT_LOCALE,
    ) -> None:
        self._available = frozenset(available)
        self._primary = dict(primary_dialects)
        self.default = default

    def __contains__(self, locale_id: object) -> bool:
        return isinstance(locale_id, str) and _canonical(locale_id) in self._available

    def retrieve(self, locale_id: str | None) -> str:
        """Return the closest available locale, falling back to the default."""
        if not locale_id or not locale_id.strip():
            return self.default
        candidate = _canonical(locale_id)
        if candidate in self._available:
            return candidate
        language = candidate.split("-", 1)[0]
        dialect = self._primary.get(language)
        if dialect is not None and dialect in self._available:
            return dialect
        return self.default
