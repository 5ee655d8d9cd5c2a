"""View tree model: components, routes and route matching.

A view tree is what the orchestrator renders. It is supplied by the
application (see ``render.view_tree`` in the config) and is read-only once the
app has started.
"""

from __future__ import annotations

import importlib
import re
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from starlette.routing import compile_path

from hydrate_core.store import Reducer

if TYPE_CHECKING:
    from hydrate_core.render.preload import PreloadContext

Preload = Callable[["PreloadContext"], Awaitable[None]]


@dataclass(frozen=True)
class Component:
    """A renderable unit backed by a Jinja2 template.

    ``chunk`` names the code-split module the client needs for this component;
    it is reported to the module collector whenever the component renders.
    ``children`` are the components this one may render through
    ``component()``; their preloads run as part of the parent's route.
    """

    name: str
    template: str
    preload: Preload | None = None
    chunk: str | None = None
    children: tuple[Component, ...] = ()


@dataclass(frozen=True)
class Route:
    path: str
    component: Component
    exact: bool = True


@dataclass(frozen=True)
class RedirectRoute:
    path: str
    to: str
    exact: bool = True


@dataclass(frozen=True)
class RouteMatch:
    route: Route | RedirectRoute
    path: str
    params: Mapping[str, Any]


def _compile(path: str, exact: bool):
    regex, _, convertors = compile_path(path)
    if not exact:
        # Prefix match on a segment boundary, like a non-exact router route.
        pattern = regex.pattern.removesuffix("$").rstrip("/")
        regex = re.compile(pattern + r"(?:/.*)?$")
    return regex, convertors


def walk_components(root: Component) -> Iterator[Component]:
    """Depth-first walk over ``root`` and its declared descendants."""

    stack = [root]
    seen: set[int] = set()
    while stack:
        comp = stack.pop()
        if id(comp) in seen:
            continue
        seen.add(id(comp))
        yield comp
        stack.extend(reversed(comp.children))


@dataclass(frozen=True)
class ViewTree:
    routes: tuple[Route | RedirectRoute, ...]
    layout: Component | None = None
    reducers: Mapping[str, Reducer] = field(default_factory=dict)
    template_dirs: tuple[Path, ...] = ()
    _compiled: tuple[Any, ...] = field(init=False, repr=False, compare=False)
    _registry: Mapping[str, Component] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        compiled = tuple(_compile(r.path, r.exact) for r in self.routes)
        object.__setattr__(self, "_compiled", compiled)

        registry: dict[str, Component] = {}
        roots = [r.component for r in self.routes if isinstance(r, Route)]
        if self.layout is not None:
            roots.insert(0, self.layout)
        for root in roots:
            for comp in walk_components(root):
                existing = registry.get(comp.name)
                if existing is not None and existing is not comp:
                    raise ValueError(f"Duplicate component name: {comp.name}")
                registry[comp.name] = comp
        object.__setattr__(self, "_registry", MappingProxyType(registry))
        object.__setattr__(self, "reducers", MappingProxyType(dict(self.reducers)))

    @property
    def components(self) -> Mapping[str, Component]:
        return self._registry

    def get_component(self, name: str) -> Component:
        try:
            return self._registry[name]
        except KeyError:
            raise LookupError(f"Unknown component: {name}") from None

    def match(self, pathname: str) -> RouteMatch | None:
        """First route whose path matches ``pathname`` (switch semantics)."""

        for route, (regex, convertors) in zip(self.routes, self._compiled, strict=True):
            m = regex.match(pathname)
            if m is None:
                continue
            params = {
                key: convertors[key].convert(value)
                for key, value in m.groupdict().items()
                if key in convertors
            }
            return RouteMatch(route=route, path=pathname, params=MappingProxyType(params))
        return None


def load_view_tree(import_string: str) -> ViewTree:
    """Resolve ``'package.module:attribute'`` to a ViewTree.

    The attribute may be a ViewTree or a zero-argument factory returning one.
    """

    module_name, sep, attr = import_string.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"View tree must be given as 'module:attribute', got {import_string!r}")

    module = importlib.import_module(module_name)
    value: Any = module
    for part in attr.split("."):
        value = getattr(value, part)

    if callable(value) and not isinstance(value, ViewTree):
        value = value()
    if not isinstance(value, ViewTree):
        raise TypeError(f"{import_string} is not a ViewTree")
    return value
