from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from starlette.requests import Request

from hydrate_core.locales import (
    UnknownLocaleError,
    builtin_locale_bundles,
    load_locale_registry,
    negotiate_locale_key,
)


def _request(
    *, query: str = "", cookie: str | None = None, accept_language: str | None = None
) -> Request:
    headers: list[tuple[bytes, bytes]] = []
    if cookie is not None:
        headers.append((b"cookie", cookie.encode()))
    if accept_language is not None:
        headers.append((b"accept-language", accept_language.encode()))
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": query.encode(),
            "headers": headers,
        }
    )


def test_builtin_bundles_cover_en_and_zh() -> None:
    bundles = builtin_locale_bundles()
    assert bundles["en"].locale == "en-US"
    assert bundles["zh"].locale == "zh-CN"
    assert bundles["en"].format_locale["locale"] == "en_US"


def test_registry_resolve_unknown_key_raises() -> None:
    registry = load_locale_registry()
    with pytest.raises(UnknownLocaleError):
        registry.resolve("fr")


def test_bundles_are_read_only() -> None:
    bundle = load_locale_registry().resolve("en")
    with pytest.raises(TypeError):
        bundle.messages["app.title"] = "changed"  # type: ignore[index]
    with pytest.raises(TypeError):
        bundle.format_locale["Pagination"]["jump_to"] = "x"  # type: ignore[index]


def test_format_message_fills_placeholders_and_falls_back() -> None:
    bundle = load_locale_registry().resolve("en")
    assert bundle.format_message("home.greeting", name="alice") == "Hello, alice!"
    assert bundle.format_message("home.greeting") == "Hello, {name}!"
    assert bundle.format_message("missing.id") == "missing.id"
    assert bundle.format_message("missing.id", "Fallback {x}", x=1) == "Fallback 1"


def test_intl_config_shape() -> None:
    bundle = load_locale_registry().resolve("en")
    intl = bundle.intl_config()
    assert intl["key"] == "en"
    assert intl["locale"] == "en-US"
    assert intl["messages"]["nav.home"] == "Home"


def test_locale_dir_overrides_and_extends(tmp_path: Path) -> None:
    (tmp_path / "fr.json").write_text(
        json.dumps({"locale": "fr-FR", "messages": {"nav.home": "Accueil"}}),
        encoding="utf-8",
    )
    (tmp_path / "en.json").write_text(
        json.dumps({"locale": "en-GB", "messages": {}}),
        encoding="utf-8",
    )

    registry = load_locale_registry(tmp_path)
    assert registry.resolve("fr").messages["nav.home"] == "Accueil"
    assert registry.resolve("en").locale == "en-GB"
    assert "zh" in registry


def test_locale_dir_invalid_bundle_fails(tmp_path: Path) -> None:
    (tmp_path / "de.json").write_text(json.dumps({"messages": {}}), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_locale_registry(tmp_path)


def test_negotiate_prefers_query_then_cookie_then_header() -> None:
    supported = {"en", "zh"}
    assert (
        negotiate_locale_key(
            _request(query="locale=zh", cookie="locale=en", accept_language="en"), supported, "en"
        )
        == "zh"
    )
    assert negotiate_locale_key(_request(cookie="locale=zh"), supported, "en") == "zh"
    assert (
        negotiate_locale_key(_request(accept_language="fr;q=0.9, zh-CN"), supported, "en") == "zh"
    )


def test_negotiate_falls_back_to_default() -> None:
    supported = {"en", "zh"}
    assert negotiate_locale_key(_request(), supported, "en") == "en"
    assert negotiate_locale_key(_request(query="locale=xx"), supported, "en") == "en"
    assert negotiate_locale_key(_request(accept_language="fr, de;q=0.5"), supported, "en") == "en"
