"""Textual composition of the final HTML document.

The shell template comes from the client build and has a fixed shape: one
``<html>`` tag, one ``<title>`` element, a ``</head>`` and a single empty
``<div id="root"></div>`` mount point. Fragments are substituted into it;
nothing else in the shell is touched.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Final

HTML_TAG: Final[str] = "<html>"
HEAD_CLOSE: Final[str] = "</head>"
ROOT_PLACEHOLDER: Final[str] = '<div id="root"></div>'
STATE_GLOBAL: Final[str] = "window.__PRELOADED_STATE__"
INTL_GLOBAL: Final[str] = "window.__INTL_CONFIG__"

_TITLE_RE = re.compile(r"<title>.*?</title>", re.DOTALL)


@dataclass(frozen=True)
class Fragments:
    body: str
    state: str
    intl: str
    html_attrs: str = ""
    title: str = "<title></title>"
    meta: str = ""
    scripts: Sequence[str] = field(default_factory=tuple)


def serialize_state(value: Any) -> str:
    """JSON for embedding inside a ``<script>`` element.

    Every ``<`` is written as its unicode escape so no value can close the
    script element or open a new tag; the result still parses as the same JSON.
    """

    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    # U+2028/U+2029 are valid JSON but end a line in pre-ES2019 JavaScript.
    return (
        text.replace("<", "\\u003c")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def missing_markers(template: str) -> list[str]:
    """Shell markers absent from ``template``; empty when the shape is right."""

    missing: list[str] = []
    if HTML_TAG not in template:
        missing.append(HTML_TAG)
    if _TITLE_RE.search(template) is None:
        missing.append("<title>...</title>")
    if HEAD_CLOSE not in template:
        missing.append(HEAD_CLOSE)
    if ROOT_PLACEHOLDER not in template:
        missing.append(ROOT_PLACEHOLDER)
    return missing


def compose(template: str, fragments: Fragments) -> str:
    data = template
    if fragments.html_attrs:
        data = data.replace(HTML_TAG, f"<html {fragments.html_attrs}>", 1)
    # Callable replacements: fragment text must never be read as a regex template.
    data = _TITLE_RE.sub(lambda _m: fragments.title, data)
    data = data.replace(HEAD_CLOSE, f"{fragments.meta}{HEAD_CLOSE}", 1)
    mount = (
        f'<div id="root">{fragments.body}</div>'
        f"<script>{STATE_GLOBAL} = {fragments.state}</script>"
        f"<script>{INTL_GLOBAL} = {fragments.intl}</script>"
        f"{''.join(fragments.scripts)}"
    )
    return data.replace(ROOT_PLACEHOLDER, mount, 1)
