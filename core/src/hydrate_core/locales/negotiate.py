from __future__ import annotations

from collections.abc import Collection

from starlette.requests import Request


def _accept_language_keys(header: str) -> list[str]:
    """Primary language subtags from Accept-Language, highest quality first."""

    weighted: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        token, _, params = part.strip().partition(";")
        tag = token.strip().lower()
        if not tag or tag == "*":
            continue
        q = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                q = float(params[2:])
            except ValueError:
                q = 0.0
        if q <= 0:
            continue
        weighted.append((-q, index, tag))

    out: list[str] = []
    for _, _, tag in sorted(weighted):
        out.append(tag)
        primary = tag.split("-", 1)[0]
        if primary != tag:
            out.append(primary)
    return out


def negotiate_locale_key(
    request: Request,
    supported: Collection[str],
    default: str,
    *,
    cookie_name: str = "locale",
    query_param: str = "locale",
) -> str:
    """Pick the locale key for a request.

    Order: ``?locale=`` query param, ``locale`` cookie, Accept-Language, default.
    Only keys in ``supported`` are ever returned (besides ``default``).
    """

    candidates: list[str] = []

    query_value = request.query_params.get(query_param)
    if query_value:
        candidates.append(query_value.strip().lower())

    cookie_value = request.cookies.get(cookie_name)
    if cookie_value:
        candidates.append(cookie_value.strip().lower())

    header = request.headers.get("accept-language")
    if header:
        candidates.extend(_accept_language_keys(header))

    lookup = {k.lower(): k for k in supported}
    for key in candidates:
        if key in lookup:
            return lookup[key]
    return default
