from __future__ import annotations

import json
from pathlib import Path

import pytest

from hydrate_core.home import HydratePaths, ensure_hydrate_layout

SHELL_HTML = """<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>React App</title>
</head>
<body>
<noscript>You need to enable JavaScript to run this app.</noscript>
<div id="root"></div>
</body>
</html>
"""

ASSET_MANIFEST = {
    "main.css": "/static/css/main.0a1b.css",
    "main.js": "/static/js/main.1c2d.js",
    "home.js": "static/js/home.3e4f.chunk.js",
    "profile.js": "/static/js/profile.5a6b.chunk.js",
    "profile-card.js": "/static/js/profile-card.7c8d.chunk.js",
    "login.js": "/static/js/login.9e0f.chunk.js",
}


def write_build(paths: HydratePaths, *, shell: str | None = SHELL_HTML) -> None:
    if shell is not None:
        view_dir = paths.build_dir / "view"
        view_dir.mkdir(parents=True, exist_ok=True)
        (view_dir / "index.html").write_text(shell, encoding="utf-8")
    (paths.build_dir / "asset-manifest.json").write_text(
        json.dumps(ASSET_MANIFEST), encoding="utf-8"
    )


@pytest.fixture
def hydrate_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> HydratePaths:
    monkeypatch.setenv("HYDRATE_HOME", str(tmp_path))
    paths = ensure_hydrate_layout(tmp_path)
    write_build(paths)
    return paths
