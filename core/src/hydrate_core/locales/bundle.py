from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class LocaleDocument(BaseModel):
    """On-disk shape of one locale bundle (``<key>.json``)."""

    locale: str = Field(min_length=1)
    messages: dict[str, str] = Field(default_factory=dict)
    format_locale: dict[str, Any] = Field(
        default_factory=dict,
        description="Regional formatting config handed to visual components.",
    )


class UnknownLocaleError(KeyError):
    """A request carried a locale key with no preloaded bundle.

    Locale negotiation must only ever hand out configured keys, so this is a
    deployment error rather than something to recover from per request.
    """


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class LocaleBundle:
    key: str
    locale: str
    messages: Mapping[str, str]
    format_locale: Mapping[str, Any]

    @classmethod
    def from_document(cls, key: str, doc: LocaleDocument) -> LocaleBundle:
        return cls(
            key=key,
            locale=doc.locale,
            messages=MappingProxyType(dict(doc.messages)),
            format_locale=_freeze(doc.format_locale),
        )

    def format_message(self, message_id: str, default: str | None = None, **values: Any) -> str:
        """Look up a message and fill ``{name}`` placeholders.

        Unknown ids fall back to ``default`` and then to the id itself; unknown
        placeholders are left as written.
        """

        template = self.messages.get(message_id)
        if template is None:
            template = default if default is not None else message_id

        def _sub(m: re.Match[str]) -> str:
            name = m.group(1)
            if name in values:
                return str(values[name])
            return m.group(0)

        return _PLACEHOLDER.sub(_sub, template)

    def intl_config(self) -> dict[str, Any]:
        """Client-side intl payload embedded next to the hydration state."""

        return {"key": self.key, "messages": dict(self.messages), "locale": self.locale}


class LocaleRegistry(Mapping[str, LocaleBundle]):
    """Read-only set of locale bundles, built once at startup."""

    def __init__(self, bundles: Mapping[str, LocaleBundle]) -> None:
        self._bundles = MappingProxyType(dict(bundles))

    def __getitem__(self, key: str) -> LocaleBundle:
        return self._bundles[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bundles)

    def __len__(self) -> int:
        return len(self._bundles)

    def resolve(self, key: str) -> LocaleBundle:
        try:
            return self._bundles[key]
        except KeyError:
            raise UnknownLocaleError(key) from None


def _read_document(raw: str) -> LocaleDocument:
    return LocaleDocument.model_validate(json.loads(raw))


def builtin_locale_bundles() -> dict[str, LocaleBundle]:
    out: dict[str, LocaleBundle] = {}
    data_dir = resources.files("hydrate_core.locales") / "data"
    for entry in sorted(data_dir.iterdir(), key=lambda e: e.name):
        if not entry.name.endswith(".json"):
            continue
        key = entry.name.removesuffix(".json")
        out[key] = LocaleBundle.from_document(key, _read_document(entry.read_text("utf-8")))
    return out


def load_locale_registry(locales_dir: Path | None = None) -> LocaleRegistry:
    """Built-in bundles, overridden or extended by ``<locales_dir>/<key>.json``.

    Override files are validated strictly: a broken bundle fails startup.
    """

    bundles = builtin_locale_bundles()

    if locales_dir is not None and locales_dir.is_dir():
        for path in sorted(locales_dir.glob("*.json")):
            key = path.stem
            bundles[key] = LocaleBundle.from_document(
                key, _read_document(path.read_text(encoding="utf-8"))
            )
            logger.info(f"Loaded locale bundle '{key}' from {path}")

    return LocaleRegistry(bundles)
