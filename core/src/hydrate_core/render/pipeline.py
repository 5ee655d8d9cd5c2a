"""Render pipeline: preload, then render the view tree to markup.

``render_view`` returns a tagged result instead of writing through shared
out-parameters: ``Rendered`` carries the markup together with the modules the
render touched and the collected head, ``Redirected`` carries the navigation
target when a route or template navigated away during the render.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from hydrate_core.locales import LocaleBundle
from hydrate_core.render.head import HeadCollector
from hydrate_core.render.preload import (
    PreloadContext,
    PreloadError,
    PreloadPolicy,
    collect_preloads,
    run_preloads,
)
from hydrate_core.store import Location, Store
from hydrate_core.tree import Component, RedirectRoute, Route, RouteMatch, ViewTree

logger = logging.getLogger(__name__)


class RenderError(RuntimeError):
    """Terminal render failure; the request is answered with a 404."""


class ModuleCollector:
    """Ordered set of code-split modules touched by one render."""

    def __init__(self) -> None:
        self._modules: dict[str, None] = {}

    def add(self, module: str) -> None:
        self._modules[module] = None

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __contains__(self, module: object) -> bool:
        return module in self._modules

    def __len__(self) -> int:
        return len(self._modules)


@dataclass(frozen=True)
class Rendered:
    markup: str
    modules: tuple[str, ...]
    head: HeadCollector


@dataclass(frozen=True)
class Redirected:
    url: str


RenderOutcome = Rendered | Redirected


def build_environment(tree: ViewTree) -> Environment:
    """Jinja2 environment for a view tree; shared read-only by all requests.

    Nothing request-scoped may be stored on it: per-request values are passed
    as render context only.
    """

    return Environment(
        loader=FileSystemLoader([str(p) for p in tree.template_dirs]),
        autoescape=select_autoescape(default=True, default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )


@dataclass
class _RenderScope:
    tree: ViewTree
    env: Environment
    store: Store
    bundle: LocaleBundle
    location: Location
    match: RouteMatch | None
    head: HeadCollector = field(default_factory=HeadCollector)
    modules: ModuleCollector = field(default_factory=ModuleCollector)
    redirect_to: str | None = None

    def navigate(self, to: str) -> str:
        if self.redirect_to is None:
            self.redirect_to = str(to)
        return ""

    def t(self, message_id: str, default: str | None = None, **values: Any) -> str:
        return self.bundle.format_message(message_id, default, **values)

    def outlet(self) -> Markup:
        if self.match is None or not isinstance(self.match.route, Route):
            return Markup("")
        return self.render_component(self.match.route.component, {})

    def component(self, name: str, **props: Any) -> Markup:
        return self.render_component(self.tree.get_component(name), props)

    def render_component(self, comp: Component, props: Mapping[str, Any]) -> Markup:
        if self.redirect_to is not None:
            return Markup("")
        if comp.chunk:
            self.modules.add(comp.chunk)
        template = self.env.get_template(comp.template)
        return Markup(template.render(self.context(props)))

    def context(self, props: Mapping[str, Any]) -> dict[str, Any]:
        # Props come first so they cannot shadow the render globals.
        return {
            **props,
            "state": self.store.get_state(),
            "location": self.location,
            "match": self.match.params if self.match is not None else {},
            "props": dict(props),
            "locale": self.bundle.locale,
            "locale_key": self.bundle.key,
            "format_locale": self.bundle.format_locale,
            "t": self.t,
            "head": self.head,
            "component": self.component,
            "outlet": self.outlet,
            "navigate": self.navigate,
        }


async def render_view(
    *,
    tree: ViewTree,
    env: Environment,
    store: Store,
    url: str,
    bundle: LocaleBundle,
    cookies: Mapping[str, str] | None = None,
    policy: PreloadPolicy | None = None,
) -> RenderOutcome:
    """Render ``url`` against ``tree`` into markup.

    All preloads reachable from the matched route settle before any markup is
    produced. Preload failures are swallowed unless the policy says otherwise;
    any other failure raises RenderError.
    """

    policy = policy or PreloadPolicy()
    location = Location.from_url(url)
    match = tree.match(location.pathname)

    if match is not None and isinstance(match.route, RedirectRoute):
        return Redirected(match.route.to)

    ctx = PreloadContext(
        store=store,
        location=location,
        params=dict(match.params) if match is not None else {},
        locale=bundle,
        cookies=dict(cookies or {}),
    )
    try:
        await run_preloads(collect_preloads(tree, match), ctx, policy)
    except PreloadError as e:
        raise RenderError(str(e)) from e

    scope = _RenderScope(
        tree=tree,
        env=env,
        store=store,
        bundle=bundle,
        location=location,
        match=match,
    )
    try:
        if tree.layout is not None:
            markup = str(scope.render_component(tree.layout, {}))
        else:
            markup = str(scope.outlet())
    except Exception as e:
        raise RenderError(f"Rendering {location.pathname} failed: {e}") from e

    if scope.redirect_to is not None:
        logger.info(f"Render of {location.url} navigated to {scope.redirect_to}")
        return Redirected(scope.redirect_to)

    return Rendered(markup=markup, modules=tuple(scope.modules), head=scope.head)
