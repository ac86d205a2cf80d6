"""Locale identifiers: validation, case normalisation and display names.

Android names locale directories ``values-es`` or ``values-pt-rBR``; users
tend to type ``pt-BR`` or ``pt_br``.  ``normalize_locale()`` folds all of
these to one canonical directory name (``pt-BR``) so lookups are
case-insensitive, and ``android_qualifier()`` renders the upstream form.
Validation and display names come from the CLDR data shipped with Babel.
"""

from __future__ import annotations

import re

from babel import Locale, localedata

DEFAULT_LOCALE = "default"

_ENGLISH = Locale("en")

_LOCALE_CODE = re.compile(
    r"^(?P<lang>[a-zA-Z]{2,3})(?:[-_](?P<r>[rR])?(?P<region>[a-zA-Z]{2}|[0-9]{3}))?$"
)


class InvalidLocaleError(ValueError):
    """Raised for identifiers that are not a known language[-region]."""


def normalize_locale(code: str) -> str:
    """Canonical directory name for *code*.

    ``PT-rbr``, ``pt-rBR`` and ``pt_br`` all become ``pt-BR``; ``ES``
    becomes ``es``.  ``default`` and unrecognised shapes are returned
    stripped and otherwise unchanged.
    """
    code = code.strip()
    if code.lower() == DEFAULT_LOCALE:
        return DEFAULT_LOCALE
    match = _LOCALE_CODE.match(code)
    if match is None:
        return code
    result = match.group("lang").lower()
    if match.group("region"):
        result += f"-{match.group('region').upper()}"
    return result


def android_qualifier(code: str) -> str:
    """Resource directory qualifier for *code*: ``pt-BR`` gives ``pt-rBR``.

    Numeric regions have no ``-r`` form and use the BCP 47 qualifier
    (``es-419`` gives ``b+es+419``).
    """
    code = normalize_locale(code)
    match = _LOCALE_CODE.match(code)
    if match is None or not match.group("region"):
        return code
    language, region = match.group("lang"), match.group("region")
    if region.isdigit():
        return f"b+{language}+{region}"
    return f"{language}-r{region}"


def _split(code: str) -> tuple[str, str | None] | None:
    """``(language, region)`` for a code CLDR knows, else ``None``."""
    match = _LOCALE_CODE.match(code.strip())
    if match is None:
        return None
    language = match.group("lang").lower()
    if not localedata.exists(language):
        return None
    region = match.group("region")
    if region is None:
        return (language, None)
    region = region.upper()
    if region not in _ENGLISH.territories:
        return None
    return (language, region)


def validate_locale(code: str) -> tuple[bool, str]:
    """
    Validate a translation target locale.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or the reserved ``default`` name
        - Must look like ``ll``, ``ll-CC`` or ``ll-rCC``
        - Language (and region, when given) must be known to CLDR
    """
    if not code or not code.strip():
        return (False, "Locale cannot be empty")
    if code.strip().lower() == DEFAULT_LOCALE:
        return (False, f"Locale '{DEFAULT_LOCALE}' is reserved")
    if _LOCALE_CODE.match(code.strip()) is None:
        return (
            False,
            f"Locale '{code}' must look like 'es', 'pt-BR' or 'pt-rBR'",
        )
    if _split(code) is None:
        return (False, f"Unknown locale '{code}'")
    return (True, "")


def display_name(code: str, in_locale: str = "en") -> str:
    """Human readable name for *code*, falling back to the code itself."""
    if code == DEFAULT_LOCALE:
        return "Default"
    parts = _split(code)
    if parts is None:
        return code
    language, region = parts
    target = Locale.parse(in_locale)
    name = target.languages.get(language) or code
    if region:
        name += f" ({target.territories.get(region, region)})"
    return name


def sort_locales(codes: list[str]) -> list[str]:
    """Sort by display name, then by code for stable ordering."""
    return sorted(codes, key=lambda code: (display_name(code).lower(), code))
