from __future__ import annotations

import json
import logging
import re
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hydrate_core.app import create_app
from hydrate_core.home import HydratePaths
from hydrate_core.render import PreloadContext
from hydrate_core.store import Action, create_reducer
from hydrate_core.tree import Component, Route, ViewTree

STATE_RE = re.compile(r"<script>window\.__PRELOADED_STATE__ = (.*?)</script>", re.DOTALL)
INTL_RE = re.compile(r"<script>window\.__INTL_CONFIG__ = (.*?)</script>", re.DOTALL)
SCRIPT_RE = re.compile(r'<script type="text/javascript" src="([^"]+)"></script>')


def _state(html: str) -> dict:
    m = STATE_RE.search(html)
    assert m is not None
    return json.loads(m.group(1))


def _intl(html: str) -> dict:
    m = INTL_RE.search(html)
    assert m is not None
    return json.loads(m.group(1))


def test_home_logged_out_english(hydrate_home: HydratePaths) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/")

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")

    state = _state(r.text)
    assert state["auth"] == {"is_authenticated": False, "current_user": None}
    assert state["router"]["location"]["pathname"] == "/"

    intl = _intl(r.text)
    assert intl["locale"] == "en-US"
    assert intl["key"] == "en"
    assert intl["messages"]["nav.home"] == "Home"

    assert '<html lang="en-US">' in r.text
    assert "<title>My Website</title>" in r.text
    assert '<meta name="description" content="A server-rendered website."></head>' in r.text
    assert "You are browsing as a guest." in r.text
    assert SCRIPT_RE.findall(r.text) == [
        "/static/js/main.1c2d.js",
        "/static/js/home.3e4f.chunk.js",
    ]


def test_profile_with_cookie_but_missing_shell_is_404(hydrate_home: HydratePaths) -> None:
    (hydrate_home.build_dir / "view" / "index.html").unlink()

    with TestClient(create_app()) as client:
        r = client.get("/profile", headers={"Cookie": "mywebsite=alice"})

    assert r.status_code == 404
    assert r.content == b""


def test_profile_without_cookie_redirects_to_login(hydrate_home: HydratePaths) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/profile", follow_redirects=False)

    assert r.status_code == 302
    assert r.headers["location"] == "/login"
    assert r.content == b""


def test_redirect_route_is_302(hydrate_home: HydratePaths) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/home", follow_redirects=False)

    assert r.status_code == 302
    assert r.headers["location"] == "/"


def test_profile_authenticated_preloads_and_escapes_state(hydrate_home: HydratePaths) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/profile", headers={"Cookie": "mywebsite=alice"})

    assert r.status_code == 200
    state = _state(r.text)
    assert state["auth"] == {"is_authenticated": True, "current_user": "alice"}
    assert state["profile"]["data"]["bio"] == "Writes <b>bold</b> code."

    block = STATE_RE.search(r.text).group(1)  # type: ignore[union-attr]
    assert "<" not in block
    assert "\\u003cb>bold\\u003c/b>" in block

    # Rendered markup escapes the same value.
    assert "Writes &lt;b&gt;bold&lt;/b&gt; code." in r.text
    assert "<title>Profile of alice | My Website</title>" in r.text
    assert SCRIPT_RE.findall(r.text) == [
        "/static/js/main.1c2d.js",
        "/static/js/profile.5a6b.chunk.js",
        "/static/js/profile-card.7c8d.chunk.js",
    ]


def test_failed_preload_still_renders(hydrate_home: HydratePaths) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/profile", headers={"Cookie": "mywebsite=carol"})

    assert r.status_code == 200
    assert "Profile details are unavailable right now." in r.text
    assert _state(r.text)["profile"] == {"data": None}
    assert "/static/js/profile-card.7c8d.chunk.js" not in r.text


def test_locale_negotiation_switches_bundle(hydrate_home: HydratePaths) -> None:
    with TestClient(create_app()) as client:
        by_query = client.get("/?locale=zh")
        by_header = client.get("/", headers={"Accept-Language": "zh-CN,zh;q=0.9"})

    for r in (by_query, by_header):
        assert r.status_code == 200
        assert _intl(r.text)["locale"] == "zh-CN"
        assert '<html lang="zh-CN">' in r.text
        assert "<title>我的网站</title>" in r.text


def test_unknown_path_renders_not_found_view(hydrate_home: HydratePaths) -> None:
    with TestClient(create_app()) as client:
        r = client.get("/no/such/page")

    assert r.status_code == 200
    assert '<meta name="robots" content="noindex">' in r.text
    assert "/no/such/page" in r.text


def _custom_tree(templates: Path) -> ViewTree:
    templates.mkdir(parents=True, exist_ok=True)
    (templates / "dash.html").write_text(
        "{{ component('Chart') }}{{ component('Feed') }}{{ component('Chart') }}",
        encoding="utf-8",
    )
    (templates / "chart.html").write_text("<canvas></canvas>", encoding="utf-8")
    (templates / "feed.html").write_text("<ol></ol>", encoding="utf-8")
    (templates / "broken.html").write_text("{{ nope() }}", encoding="utf-8")

    # Chart renders first but its chunk comes later in the manifest.
    chart = Component(name="Chart", template="chart.html", chunk="profile-card")
    feed = Component(name="Feed", template="feed.html", chunk="home")
    return ViewTree(
        routes=(
            Route("/dash", Component(name="Dash", template="dash.html", children=(chart, feed))),
            Route("/broken", Component(name="Broken", template="broken.html")),
        ),
        template_dirs=(templates,),
    )


def test_two_code_split_components_yield_two_scripts_in_manifest_order(
    hydrate_home: HydratePaths, tmp_path: Path
) -> None:
    with TestClient(create_app(tree=_custom_tree(tmp_path / "views"))) as client:
        r = client.get("/dash")

    assert r.status_code == 200
    assert SCRIPT_RE.findall(r.text) == [
        "/static/js/home.3e4f.chunk.js",
        "/static/js/profile-card.7c8d.chunk.js",
    ]


def test_render_failure_is_404_without_details(hydrate_home: HydratePaths, tmp_path: Path) -> None:
    with TestClient(create_app(tree=_custom_tree(tmp_path / "views"))) as client:
        r = client.get("/broken")

    assert r.status_code == 404
    assert r.content == b""


def test_identity_cookie_name_is_configurable(hydrate_home: HydratePaths) -> None:
    hydrate_home.core_config_path.write_text(
        json.dumps({"auth": {"identity_cookie": "session_user"}}), encoding="utf-8"
    )

    with TestClient(create_app()) as client:
        r = client.get("/", headers={"Cookie": "session_user=bob"})

    assert _state(r.text)["auth"] == {"is_authenticated": True, "current_user": "bob"}
    assert "Hello, bob!" in r.text


def test_static_build_assets_are_served(hydrate_home: HydratePaths) -> None:
    js_dir = hydrate_home.static_dir / "js"
    js_dir.mkdir(parents=True)
    (js_dir / "main.1c2d.js").write_text("console.log('hi')", encoding="utf-8")

    with TestClient(create_app()) as client:
        r = client.get("/static/js/main.1c2d.js")

    assert r.status_code == 200
    assert "console.log" in r.text


def _item_tree(templates: Path, reducer) -> ViewTree:
    templates.mkdir(parents=True, exist_ok=True)
    (templates / "item.html").write_text("<p>item {{ match.item_id }}</p>", encoding="utf-8")

    async def load_item(ctx: PreloadContext) -> None:
        ctx.dispatch(Action("item_loaded", ctx.params))

    item = Component(name="Item", template="item.html", preload=load_item)
    return ViewTree(
        routes=(Route("/items/{item_id}", item),),
        reducers={"item": reducer},
        template_dirs=(templates,),
    )


def test_route_params_dispatched_by_preload_reach_state(
    hydrate_home: HydratePaths, tmp_path: Path
) -> None:
    reducer = create_reducer(None, {"item_loaded": lambda s, a: a.payload})

    with TestClient(create_app(tree=_item_tree(tmp_path / "views", reducer))) as client:
        r = client.get("/items/7")

    assert r.status_code == 200
    assert _state(r.text)["item"] == {"item_id": "7"}


def test_unserializable_state_is_404_not_500(hydrate_home: HydratePaths, tmp_path: Path) -> None:
    reducer = create_reducer(None, {"item_loaded": lambda s, a: {"tags": {"a", "b"}}})

    with TestClient(create_app(tree=_item_tree(tmp_path / "views", reducer))) as client:
        r = client.get("/items/7")

    assert r.status_code == 404
    assert r.content == b""


def _rewrite_shell(paths: HydratePaths, old: str, new: str) -> None:
    shell = paths.build_dir / "view" / "index.html"
    shell.write_text(shell.read_text(encoding="utf-8").replace(old, new), encoding="utf-8")


def test_shell_without_root_placeholder_is_404(hydrate_home: HydratePaths) -> None:
    _rewrite_shell(hydrate_home, '<div id="root"></div>', "<main></main>")

    with TestClient(create_app()) as client:
        r = client.get("/")

    assert r.status_code == 404
    assert r.content == b""


def test_shell_without_head_close_still_renders(
    hydrate_home: HydratePaths, caplog: pytest.LogCaptureFixture
) -> None:
    _rewrite_shell(hydrate_home, "</head>", "")

    with caplog.at_level(logging.WARNING, logger="hydrate_core.handler"):
        with TestClient(create_app()) as client:
            r = client.get("/")

    assert r.status_code == 200
    assert "You are browsing as a guest." in r.text
    assert any("</head>" in rec.getMessage() for rec in caplog.records)
