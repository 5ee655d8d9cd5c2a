from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any, Literal
from urllib.parse import urlsplit

from hydrate_core.store.core import Action, create_reducer

LOCATION_CHANGE = "@@router/LOCATION_CHANGE"

HistoryAction = Literal["POP", "PUSH", "REPLACE"]


@dataclass(frozen=True)
class Location:
    pathname: str
    search: str = ""
    hash: str = ""

    @classmethod
    def from_url(cls, url: str) -> Location:
        parts = urlsplit(url)
        return cls(
            pathname=parts.path or "/",
            search=f"?{parts.query}" if parts.query else "",
            hash=f"#{parts.fragment}" if parts.fragment else "",
        )

    @property
    def url(self) -> str:
        return f"{self.pathname}{self.search}{self.hash}"


class MemoryHistory:
    """Browser-less history stack used while rendering on the server."""

    def __init__(self, initial_url: str = "/") -> None:
        self._entries: list[Location] = [Location.from_url(initial_url)]
        self._index = 0
        self.action: HistoryAction = "POP"
        self._listeners: list[Callable[[Location, HistoryAction], None]] = []

    @property
    def location(self) -> Location:
        return self._entries[self._index]

    @property
    def length(self) -> int:
        return len(self._entries)

    def push(self, url: str) -> None:
        del self._entries[self._index + 1 :]
        self._entries.append(Location.from_url(url))
        self._index = len(self._entries) - 1
        self._notify("PUSH")

    def replace(self, url: str) -> None:
        self._entries[self._index] = Location.from_url(url)
        self._notify("REPLACE")

    def go(self, delta: int) -> None:
        target = max(0, min(len(self._entries) - 1, self._index + delta))
        if target == self._index:
            return
        self._index = target
        self._notify("POP")

    def listen(self, listener: Callable[[Location, HistoryAction], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unlisten() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unlisten

    def _notify(self, action: HistoryAction) -> None:
        self.action = action
        for listener in list(self._listeners):
            listener(self.location, action)


def location_changed(location: Location, action: HistoryAction) -> Action:
    return Action(LOCATION_CHANGE, {"location": asdict(location), "action": action})


def _on_location_change(state: dict[str, Any], action: Action) -> dict[str, Any]:
    return {"location": action.payload["location"], "action": action.payload["action"]}


def router_reducer(history: MemoryHistory):
    initial = {"location": asdict(history.location), "action": history.action}
    return create_reducer(initial, {LOCATION_CHANGE: _on_location_change})
