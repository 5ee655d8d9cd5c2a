"""In-memory profile directory standing in for a real backend API."""

from __future__ import annotations

import asyncio
from typing import Any

PROFILES: dict[str, dict[str, Any]] = {
    "alice": {"username": "alice", "display_name": "Alice", "bio": "Writes <b>bold</b> code."},
    "bob": {"username": "bob", "display_name": "Bob", "bio": "Ships on Fridays."},
}


async def fetch_profile(username: str) -> dict[str, Any]:
    # Yield once, as a network call would.
    await asyncio.sleep(0)
    try:
        return dict(PROFILES[username])
    except KeyError:
        raise LookupError(f"No profile for {username!r}") from None
