from __future__ import annotations

from hydrate_core.render.compositor import Fragments, compose, missing_markers, serialize_state
from hydrate_core.render.head import HeadCollector
from hydrate_core.render.pipeline import (
    ModuleCollector,
    Redirected,
    RenderError,
    Rendered,
    RenderOutcome,
    build_environment,
    render_view,
)
from hydrate_core.render.preload import (
    PreloadContext,
    PreloadError,
    PreloadFailure,
    PreloadPolicy,
    collect_preloads,
    run_preloads,
)

__all__ = [
    "Fragments",
    "HeadCollector",
    "ModuleCollector",
    "PreloadContext",
    "PreloadError",
    "PreloadFailure",
    "PreloadPolicy",
    "Redirected",
    "RenderError",
    "RenderOutcome",
    "Rendered",
    "build_environment",
    "collect_preloads",
    "compose",
    "missing_markers",
    "render_view",
    "run_preloads",
    "serialize_state",
]
