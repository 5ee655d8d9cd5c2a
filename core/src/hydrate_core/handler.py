"""Per-request SSR orchestration.

``render_page`` turns a RenderRequest into one of four outcomes and
``emit_response`` maps the outcome onto an HTTP response. Everything created
here (store, render scope, collected modules) lives for one request only; the
runtime it reads from is shared and read-only.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment
from starlette.requests import Request
from starlette.responses import HTMLResponse, RedirectResponse, Response

from hydrate_core.locales import LocaleRegistry
from hydrate_core.manifest import resolve_scripts
from hydrate_core.render import (
    Fragments,
    PreloadPolicy,
    Redirected,
    RenderError,
    RenderOutcome,
    compose,
    missing_markers,
    render_view,
    serialize_state,
)
from hydrate_core.render.compositor import ROOT_PLACEHOLDER
from hydrate_core.store import create_store, seed_auth
from hydrate_core.tree import ViewTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderRequest:
    url: str
    cookies: Mapping[str, str]
    locale_key: str


@dataclass(frozen=True)
class SSRRuntime:
    """Process-wide, read-only inputs shared by every render."""

    tree: ViewTree
    env: Environment
    manifest: Mapping[str, str]
    locales: LocaleRegistry
    shell_path: Path
    identity_cookie: str = "mywebsite"
    policy: PreloadPolicy = PreloadPolicy()


@dataclass(frozen=True)
class TemplateMissing:
    path: Path


@dataclass(frozen=True)
class RenderFailed:
    error: Exception


@dataclass(frozen=True)
class Redirect:
    url: str


@dataclass(frozen=True)
class Page:
    html: str


PageOutcome = TemplateMissing | RenderFailed | Redirect | Page


def read_shell(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Read error for HTML shell {path}: {e}")
        return None


def check_redirect(outcome: RenderOutcome) -> str | None:
    if isinstance(outcome, Redirected):
        return outcome.url
    return None


def render_request_from(
    request: Request,
    locale_key: str,
) -> RenderRequest:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return RenderRequest(url=url, cookies=dict(request.cookies), locale_key=locale_key)


async def render_page(req: RenderRequest, runtime: SSRRuntime) -> PageOutcome:
    shell = read_shell(runtime.shell_path)
    if shell is None:
        return TemplateMissing(runtime.shell_path)
    missing = missing_markers(shell)
    if missing:
        logger.warning(f"HTML shell {runtime.shell_path} lacks {', '.join(missing)}")
        # Without the mount point there is nowhere to put the page.
        if ROOT_PLACEHOLDER in missing:
            return TemplateMissing(runtime.shell_path)

    store = create_store(req.url, reducers=runtime.tree.reducers)
    seed_auth(store, req.cookies, runtime.identity_cookie)

    bundle = runtime.locales.resolve(req.locale_key)

    try:
        outcome = await render_view(
            tree=runtime.tree,
            env=runtime.env,
            store=store,
            url=req.url,
            bundle=bundle,
            cookies=req.cookies,
            policy=runtime.policy,
        )
    except RenderError as e:
        logger.error(f"Render error for {req.url}", exc_info=e)
        return RenderFailed(e)

    redirect_url = check_redirect(outcome)
    if redirect_url is not None:
        return Redirect(redirect_url)

    scripts = resolve_scripts(runtime.manifest, outcome.modules)
    head = outcome.head
    logger.debug(f"Rendered title for {req.url}: {head.title_text}")

    try:
        state = serialize_state(store.get_state())
        intl = serialize_state(bundle.intl_config())
    except (TypeError, ValueError) as e:
        logger.error(f"Store state for {req.url} is not JSON serializable", exc_info=e)
        return RenderFailed(e)

    html = compose(
        shell,
        Fragments(
            html_attrs=head.render_html_attrs(),
            title=head.render_title(),
            meta=head.render_meta(),
            body=outcome.markup,
            scripts=scripts,
            state=state,
            intl=intl,
        ),
    )
    return Page(html)


def emit_response(outcome: PageOutcome) -> Response:
    if isinstance(outcome, (TemplateMissing, RenderFailed)):
        return Response(status_code=404)
    if isinstance(outcome, Redirect):
        return RedirectResponse(url=outcome.url, status_code=302)
    return HTMLResponse(content=outcome.html, status_code=200)
