"""Asset manifest loading and code-split script resolution.

The manifest is produced by the client build and maps chunk file names
(``"profile.js"``) to the physical, content-hashed path the browser should load
(``"/static/js/profile.3f9a1c.chunk.js"``). It is read once at startup and only
ever exposed as a read-only mapping.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final

from jsonschema import Draft202012Validator
from markupsafe import escape

logger = logging.getLogger(__name__)

SCRIPT_EXTENSION: Final[str] = ".js"

_FLAT_MANIFEST_SCHEMA: Final[dict[str, Any]] = {
    "type": "object",
    "additionalProperties": {"type": "string"},
}

# Newer CRA builds nest the chunk map under "files" next to "entrypoints".
_NESTED_MANIFEST_SCHEMA: Final[dict[str, Any]] = {
    "type": "object",
    "required": ["files"],
    "properties": {
        "files": _FLAT_MANIFEST_SCHEMA,
        "entrypoints": {"type": "array", "items": {"type": "string"}},
    },
}

EMPTY_MANIFEST: Final[Mapping[str, str]] = MappingProxyType({})


class ManifestError(ValueError):
    pass


def _schema_errors(schema: dict[str, Any], doc: Any) -> list[str]:
    v = Draft202012Validator(schema)
    errors: list[str] = []
    for e in v.iter_errors(doc):
        p = ".".join(str(x) for x in e.path)
        errors.append(f"{p}: {e.message}" if p else e.message)
    return errors


def parse_asset_manifest(doc: Any) -> Mapping[str, str]:
    """Validate a decoded manifest document and return a read-only chunk map."""

    if isinstance(doc, dict) and "files" in doc:
        errors = _schema_errors(_NESTED_MANIFEST_SCHEMA, doc)
        files = doc.get("files")
    else:
        errors = _schema_errors(_FLAT_MANIFEST_SCHEMA, doc)
        files = doc

    if errors:
        raise ManifestError("Invalid asset manifest: " + "; ".join(errors))

    # dict preserves document order, which is the order scripts are emitted in.
    return MappingProxyType(dict(files))


def load_asset_manifest(path: Path) -> Mapping[str, str]:
    """Load ``asset-manifest.json`` from the build output.

    A missing file yields an empty manifest: pages still render, they just ship
    no code-split chunks. A malformed file is a build error and raises.
    """

    if not path.exists():
        logger.warning(f"Asset manifest not found at {path}; no chunk scripts will be emitted")
        return EMPTY_MANIFEST

    try:
        with path.open("r", encoding="utf-8") as f:
            doc = json.load(f)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Asset manifest at {path} is not valid JSON: {e}") from e

    manifest = parse_asset_manifest(doc)
    logger.info(f"Loaded asset manifest with {len(manifest)} entries from {path}")
    return manifest


def logical_name(asset: str) -> str:
    if asset.endswith(SCRIPT_EXTENSION):
        return asset[: -len(SCRIPT_EXTENSION)]
    return asset


def script_tag(physical_path: str) -> str:
    src = "/" + physical_path.lstrip("/")
    return f'<script type="text/javascript" src="{escape(src)}"></script>'


def resolve_scripts(manifest: Mapping[str, str], touched_modules: Iterable[str]) -> list[str]:
    """Script tags for the manifest entries the render actually touched.

    Output follows manifest order; modules without a manifest entry are
    silently skipped.
    """

    touched = set(touched_modules)
    return [
        script_tag(physical)
        for asset, physical in manifest.items()
        if logical_name(asset) in touched
    ]
