from __future__ import annotations

from collections.abc import Mapping

from hydrate_core.store.auth import (
    LOGOUT_USER,
    SET_CURRENT_USER,
    auth_reducer,
    logout_user,
    seed_auth,
    set_current_user,
)
from hydrate_core.store.core import Action, Reducer, Store, combine_reducers, create_reducer
from hydrate_core.store.history import (
    LOCATION_CHANGE,
    Location,
    MemoryHistory,
    location_changed,
    router_reducer,
)

RESERVED_SLICES = frozenset({"router", "auth"})


def create_store(url: str, reducers: Mapping[str, Reducer] | None = None) -> Store:
    """Build a fresh store whose memory history starts at ``url``.

    ``reducers`` are the application's own slices; ``router`` and ``auth`` are
    always provided here and cannot be overridden.
    """

    extra = dict(reducers or {})
    clash = RESERVED_SLICES.intersection(extra)
    if clash:
        raise ValueError(f"Reserved state slices cannot be overridden: {sorted(clash)}")

    history = MemoryHistory(url)
    root = combine_reducers({"router": router_reducer(history), "auth": auth_reducer, **extra})
    store = Store(root, history=history)
    history.listen(lambda location, action: store.dispatch(location_changed(location, action)))
    return store


__all__ = [
    "LOCATION_CHANGE",
    "LOGOUT_USER",
    "SET_CURRENT_USER",
    "Action",
    "Location",
    "MemoryHistory",
    "Reducer",
    "Store",
    "auth_reducer",
    "combine_reducers",
    "create_reducer",
    "create_store",
    "location_changed",
    "logout_user",
    "router_reducer",
    "seed_auth",
    "set_current_user",
]
