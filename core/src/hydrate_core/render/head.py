from __future__ import annotations

from dataclasses import dataclass, field

from markupsafe import Markup, escape


def _attrs(pairs: dict[str, str]) -> str:
    return " ".join(f'{escape(k)}="{escape(v)}"' for k, v in pairs.items())


@dataclass
class HeadCollector:
    """Document head state collected while a page renders.

    Templates call ``head.title(...)``, ``head.meta(...)`` and
    ``head.html_attrs(...)``; later calls win, so the deepest component that
    sets a title decides it. Every call returns an empty string so it can be
    used inline in a template.
    """

    _title: str | None = None
    _meta: dict[str, dict[str, str]] = field(default_factory=dict)
    _html_attrs: dict[str, str] = field(default_factory=dict)

    def title(self, text: str) -> str:
        self._title = str(text)
        return ""

    def meta(self, **attrs: str) -> str:
        # name/property/http-equiv identify a tag; a second call replaces it.
        key_attr = next(
            (a for a in ("name", "property", "http_equiv", "charset") if a in attrs), None
        )
        normalized = {k.replace("_", "-"): str(v) for k, v in attrs.items()}
        key = f"{key_attr}:{attrs[key_attr]}" if key_attr else f"#{len(self._meta)}"
        self._meta[key] = normalized
        return ""

    def html_attrs(self, **attrs: str) -> str:
        self._html_attrs.update({k.replace("_", "-"): str(v) for k, v in attrs.items()})
        return ""

    @property
    def title_text(self) -> str | None:
        return self._title

    def render_title(self) -> str:
        return str(Markup("<title>{}</title>").format(self._title or ""))

    def render_meta(self) -> str:
        return "".join(f"<meta {_attrs(attrs)}>" for attrs in self._meta.values())

    def render_html_attrs(self) -> str:
        return _attrs(self._html_attrs)
