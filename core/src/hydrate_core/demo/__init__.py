"""Demo view tree served when no application tree is configured.

Routes: ``/`` (home), ``/profile`` (needs the identity cookie, otherwise it
navigates to ``/login``), ``/login``, ``/home`` (redirects to ``/``) and a
catch-all not-found page.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from hydrate_core.demo.data import fetch_profile
from hydrate_core.render.preload import PreloadContext
from hydrate_core.store import Action, create_reducer
from hydrate_core.tree import Component, RedirectRoute, Route, ViewTree

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

PROFILE_LOADED = "profile/LOADED"

profile_reducer = create_reducer(
    {"data": None},
    {PROFILE_LOADED: lambda state, action: {"data": action.payload}},
)


def profile_loaded(profile: dict[str, Any]) -> Action:
    return Action(PROFILE_LOADED, profile)


async def load_profile(ctx: PreloadContext) -> None:
    auth = ctx.store.get_state()["auth"]
    if not auth["is_authenticated"]:
        return
    ctx.dispatch(profile_loaded(await fetch_profile(auth["current_user"])))


profile_card = Component(name="ProfileCard", template="profile_card.html", chunk="profile-card")

home = Component(name="Home", template="home.html", chunk="home")
profile = Component(
    name="Profile",
    template="profile.html",
    chunk="profile",
    preload=load_profile,
    children=(profile_card,),
)
login = Component(name="Login", template="login.html", chunk="login")
not_found = Component(name="NotFound", template="not_found.html")

layout = Component(name="App", template="app.html", chunk="main")

tree = ViewTree(
    layout=layout,
    routes=(
        Route("/", home),
        RedirectRoute("/home", "/"),
        Route("/profile", profile),
        Route("/login", login),
        Route("/{path:path}", not_found),
    ),
    reducers={"profile": profile_reducer},
    template_dirs=(TEMPLATES_DIR,),
)
