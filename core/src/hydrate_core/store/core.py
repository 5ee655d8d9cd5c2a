from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

State = Any


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


Reducer = Callable[[State, Action], State]
Listener = Callable[[], None]

INIT_ACTION_TYPE = "@@hydrate/INIT"


def create_reducer(
    initial_state: State, handlers: Mapping[str, Callable[[State, Action], State]]
) -> Reducer:
    """Build a reducer from a ``{action type: handler}`` table.

    ``None`` state is replaced by ``initial_state``; action types without a
    handler return the state unchanged.
    """

    table = dict(handlers)

    def reducer(state: State, action: Action) -> State:
        if state is None:
            state = initial_state
        handler = table.get(action.type)
        if handler is None:
            return state
        return handler(state, action)

    return reducer


def combine_reducers(reducers: Mapping[str, Reducer]) -> Reducer:
    slices = dict(reducers)

    def reducer(state: State, action: Action) -> State:
        current: dict[str, Any] = state or {}
        next_state: dict[str, Any] = {}
        changed = state is None
        for key, slice_reducer in slices.items():
            previous = current.get(key)
            updated = slice_reducer(previous, action)
            next_state[key] = updated
            changed = changed or updated is not previous
        return next_state if changed else current

    return reducer


class Store:
    """Minimal single-reducer state container.

    One instance per request; nothing here is safe to share between requests.
    """

    def __init__(
        self, reducer: Reducer, preloaded_state: State = None, *, history: Any = None
    ) -> None:
        self._reducer = reducer
        self.history = history
        self._listeners: list[Listener] = []
        self._dispatching = False
        self._state = reducer(preloaded_state, Action(INIT_ACTION_TYPE))

    def get_state(self) -> State:
        return self._state

    def dispatch(self, action: Action) -> Action:
        if self._dispatching:
            raise RuntimeError("Reducers may not dispatch actions")
        self._dispatching = True
        try:
            self._state = self._reducer(self._state, action)
        finally:
            self._dispatching = False

        for listener in list(self._listeners):
            listener()
        return action

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
