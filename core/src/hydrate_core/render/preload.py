"""Data-preload phase.

Components declare an async ``preload`` that fetches what they need into the
store. Before a page renders, every preload reachable from the matched route
runs concurrently and the render waits until all of them have settled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from hydrate_core.locales import LocaleBundle
from hydrate_core.store import Location, Store
from hydrate_core.tree import Component, Preload, Route, RouteMatch, ViewTree, walk_components

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreloadPolicy:
    continue_on_error: bool = True
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class PreloadContext:
    """What a preload function gets to work with."""

    store: Store
    location: Location
    params: Mapping[str, Any]
    locale: LocaleBundle
    cookies: Mapping[str, str] = field(default_factory=dict)

    def dispatch(self, action: Any) -> Any:
        return self.store.dispatch(action)


@dataclass(frozen=True)
class PreloadFailure:
    component: str
    error: BaseException


class PreloadError(RuntimeError):
    """A preload failed while the policy says failures abort the render."""

    def __init__(self, failure: PreloadFailure) -> None:
        super().__init__(f"Preload for component '{failure.component}' failed: {failure.error}")
        self.failure = failure


def collect_preloads(tree: ViewTree, match: RouteMatch | None) -> list[tuple[str, Preload]]:
    """Preloads of the layout and the matched route, recursively, in tree order."""

    roots: list[Component] = []
    if tree.layout is not None:
        roots.append(tree.layout)
    if match is not None and isinstance(match.route, Route):
        roots.append(match.route.component)

    out: list[tuple[str, Preload]] = []
    seen: set[int] = set()
    for root in roots:
        for comp in walk_components(root):
            if comp.preload is None or id(comp) in seen:
                continue
            seen.add(id(comp))
            out.append((comp.name, comp.preload))
    return out


async def run_preloads(
    preloads: list[tuple[str, Preload]],
    ctx: PreloadContext,
    policy: PreloadPolicy,
) -> list[PreloadFailure]:
    """Run preloads concurrently and wait for all of them to settle.

    Returns the failures that were swallowed. With ``continue_on_error`` off,
    the first failure cancels the rest and raises PreloadError. Preloads still
    running at the deadline are cancelled and reported as failures.
    """

    if not preloads:
        return []

    tasks: dict[asyncio.Task[None], str] = {
        asyncio.create_task(preload(ctx), name=f"preload:{name}"): name
        for name, preload in preloads
    }
    return_when = asyncio.ALL_COMPLETED if policy.continue_on_error else asyncio.FIRST_EXCEPTION

    try:
        done, pending = await asyncio.wait(
            tasks, timeout=policy.timeout_seconds, return_when=return_when
        )
    except asyncio.CancelledError:
        # The request went away; no preload may outlive it.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    failures: list[PreloadFailure] = []
    for task in tasks:
        if task not in done:
            continue
        err = asyncio.CancelledError() if task.cancelled() else task.exception()
        if err is not None:
            failures.append(PreloadFailure(component=tasks[task], error=err))

    if pending:
        for task in pending:
            task.cancel()
        # Let cancelled preloads unwind before the render reads the store.
        await asyncio.gather(*pending, return_exceptions=True)
        if not failures or policy.continue_on_error:
            for task in tasks:
                if task in pending:
                    failures.append(
                        PreloadFailure(
                            component=tasks[task],
                            error=TimeoutError(
                                f"Preload did not finish within {policy.timeout_seconds}s"
                            ),
                        )
                    )

    if failures and not policy.continue_on_error:
        raise PreloadError(failures[0])

    for failure in failures:
        logger.warning(
            f"Preload for component '{failure.component}' failed; continuing render",
            exc_info=failure.error,
        )
    return failures
