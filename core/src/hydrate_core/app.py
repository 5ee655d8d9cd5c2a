from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.routing import Mount
from starlette.staticfiles import StaticFiles

from hydrate_core import __version__
from hydrate_core.api.models import error_response, ok
from hydrate_core.config import load_core_config, resolve_configured_paths
from hydrate_core.handler import SSRRuntime, emit_response, render_page, render_request_from
from hydrate_core.home import ensure_hydrate_layout, resolve_hydrate_home
from hydrate_core.locales import load_locale_registry, negotiate_locale_key
from hydrate_core.manifest import load_asset_manifest
from hydrate_core.render import PreloadPolicy, build_environment
from hydrate_core.tree import ViewTree, load_view_tree

logger = logging.getLogger(__name__)


def _configure_logging(log_path: Path, *, max_size_mb: int, backup_count: int) -> None:
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    # Avoid adding duplicate handlers if reloaded
    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        root.addHandler(file_handler)


def create_app(tree: ViewTree | None = None) -> FastAPI:
    """Build the SSR app.

    ``tree`` overrides the view tree named by ``render.view_tree`` in the
    config, which is mostly useful for tests and embedding.
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_hydrate_home()
        paths = ensure_hydrate_layout(home)
        config = load_core_config(paths)
        paths = resolve_configured_paths(paths, config)

        _configure_logging(
            paths.logs_dir / "core.log",
            max_size_mb=config.logging.max_size_mb,
            backup_count=config.logging.backup_count,
        )

        logger.info("Hydrate Core starting up")
        logger.info(f"Build directory: {paths.build_dir}")

        view_tree = tree if tree is not None else load_view_tree(config.render.view_tree)
        locales = load_locale_registry(paths.locales_dir)
        if config.i18n.default_locale not in locales:
            raise RuntimeError(
                f"Default locale '{config.i18n.default_locale}' has no bundle "
                f"(available: {sorted(locales)})"
            )

        app.state.hydrate_home = home
        app.state.hydrate_paths = paths
        app.state.hydrate_config = config
        app.state.ssr_runtime = SSRRuntime(
            tree=view_tree,
            env=build_environment(view_tree),
            manifest=load_asset_manifest(config.asset_manifest_path(paths)),
            locales=locales,
            shell_path=config.shell_template_path(paths),
            identity_cookie=config.auth.identity_cookie,
            policy=PreloadPolicy(
                continue_on_error=config.render.continue_on_preload_error,
                timeout_seconds=config.render.preload_timeout_seconds,
            ),
        )

        # Built chunks; must be matched ahead of the catch-all page route.
        if paths.static_dir.is_dir() and not any(
            getattr(r, "name", None) == "build-static" for r in app.router.routes
        ):
            app.router.routes.insert(
                0,
                Mount(
                    config.build.static_url,
                    app=StaticFiles(directory=str(paths.static_dir)),
                    name="build-static",
                ),
            )
        elif not paths.static_dir.is_dir():
            logger.warning(
                f"Build static directory is missing ({paths.static_dir}); "
                f"{config.build.static_url} will not be served"
            )

        yield

    app = FastAPI(title="Hydrate Core", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(422, "Request validation failed", details=exc.errors())

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(
            exc.status_code,
            exc.detail if isinstance(exc.detail, str) else "HTTP error",
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
        return error_response(500, "Internal server error")

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/_ssr/info")
    async def ssr_info(request: Request) -> dict[str, Any]:
        runtime: SSRRuntime = request.app.state.ssr_runtime
        config = request.app.state.hydrate_config
        return ok(
            {
                "version": __version__,
                "build_dir": str(request.app.state.hydrate_paths.build_dir),
                "default_locale": config.i18n.default_locale,
                "locales": sorted(runtime.locales),
                "manifest_entries": len(runtime.manifest),
                "routes": [r.path for r in runtime.tree.routes],
            }
        ).model_dump(mode="json")

    @app.get("/{full_path:path}", include_in_schema=False)
    async def render(request: Request, full_path: str) -> Response:
        runtime: SSRRuntime = request.app.state.ssr_runtime
        config = request.app.state.hydrate_config
        locale_key = negotiate_locale_key(
            request,
            runtime.locales,
            config.i18n.default_locale,
            cookie_name=config.i18n.locale_cookie,
            query_param=config.i18n.locale_query_param,
        )
        outcome = await render_page(render_request_from(request, locale_key), runtime)
        return emit_response(outcome)

    return app
