from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from hydrate_core.store.core import Action, Store, create_reducer

SET_CURRENT_USER = "auth/SET_CURRENT_USER"
LOGOUT_USER = "auth/LOGOUT_USER"

# Neither logged in nor logged out until seed_auth runs.
INITIAL_AUTH_STATE: dict[str, Any] = {"is_authenticated": None, "current_user": None}

LOGGED_OUT_STATE: dict[str, Any] = {"is_authenticated": False, "current_user": None}


def set_current_user(identity: str) -> Action:
    return Action(SET_CURRENT_USER, identity)


def logout_user() -> Action:
    return Action(LOGOUT_USER)


auth_reducer = create_reducer(
    INITIAL_AUTH_STATE,
    {
        SET_CURRENT_USER: lambda state, action: {
            "is_authenticated": True,
            "current_user": action.payload,
        },
        LOGOUT_USER: lambda state, action: dict(LOGGED_OUT_STATE),
    },
)


def identity_from_cookies(cookies: Mapping[str, str], cookie_name: str) -> str | None:
    value = cookies.get(cookie_name)
    if not value:
        return None
    return value


def seed_auth(store: Store, cookies: Mapping[str, str], cookie_name: str) -> None:
    """Resolve the request to exactly one of: authenticated as X, logged out."""

    identity = identity_from_cookies(cookies, cookie_name)
    if identity:
        store.dispatch(set_current_user(identity))
    else:
        store.dispatch(logout_user())
