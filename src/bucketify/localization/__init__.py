"""Human-readable failure messages for display.

:func:`failure_text` renders a :class:`~bucketify.errors.FailureKind` (or
a failure instance) as a short sentence in one of the supported locales.
Lookup is purely presentational and keyed by the closed failure
taxonomy, so every table covers every kind.

Usage::

    from bucketify.localization import failure_text

    result = client.create_image(file_id="avatar-42", path="me.png")
    if result.is_error:
        show_toast(failure_text(result.failure, locale="pt-BR"))
"""

from __future__ import annotations

import re

from bucketify.errors import FailureKind, StorageFailure

from . import en, es, pt

DEFAULT_LOCALE = "en"

_TABLES: dict[str, dict[FailureKind, str]] = {
    "en": en.MESSAGES,
    "es": es.MESSAGES,
    "pt": pt.MESSAGES,
}

SUPPORTED_LOCALES: tuple[str, ...] = tuple(_TABLES)
"""Primary language tags with a message table."""

_TAG_SEPARATOR_RE = re.compile(r"[-_]")


def _resolve_locale(locale: str | None) -> str:
    """Reduce a tag such as ``pt-BR`` or ``es_MX`` to a supported language."""
    if not locale:
        return DEFAULT_LOCALE
    language = _TAG_SEPARATOR_RE.split(locale.strip(), maxsplit=1)[0].lower()
    return language if language in _TABLES else DEFAULT_LOCALE


def failure_text(
    failure: FailureKind | StorageFailure,
    locale: str | None = DEFAULT_LOCALE,
) -> str:
    """Return the display sentence for *failure* in *locale*.

    Parameters
    ----------
    failure:
        A failure instance or its kind.
    locale:
        A language tag.  Region subtags are ignored; unsupported or empty
        tags fall back to English.
    """
    kind = failure.kind if isinstance(failure, StorageFailure) else FailureKind(failure)
    return _TABLES[_resolve_locale(locale)][kind]


__all__ = [
    "DEFAULT_LOCALE",
    "SUPPORTED_LOCALES",
    "failure_text",
]
