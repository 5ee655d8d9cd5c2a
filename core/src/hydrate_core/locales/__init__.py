from __future__ import annotations

from hydrate_core.locales.bundle import (
    LocaleBundle,
    LocaleDocument,
    LocaleRegistry,
    UnknownLocaleError,
    builtin_locale_bundles,
    load_locale_registry,
)
from hydrate_core.locales.negotiate import negotiate_locale_key

__all__ = [
    "LocaleBundle",
    "LocaleDocument",
    "LocaleRegistry",
    "UnknownLocaleError",
    "builtin_locale_bundles",
    "load_locale_registry",
    "negotiate_locale_key",
]
