from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from hydrate_core.home import HydratePaths


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000, ge=1, le=65535)


class PathOverrides(BaseModel):
    build_dir: str | None = None
    logs_dir: str | None = None


class BuildConfig(BaseModel):
    """Where the client build output lives, relative to the build dir."""

    shell_template: str = Field(default="view/index.html")
    asset_manifest: str = Field(default="asset-manifest.json")
    static_url: str = Field(
        default="/static",
        description="URL prefix for <build>/static; mounted only when the directory exists.",
    )


class AuthConfig(BaseModel):
    identity_cookie: str = Field(
        default="mywebsite",
        min_length=1,
        description="Cookie whose value is adopted as the current user identity.",
    )


class I18nConfig(BaseModel):
    default_locale: str = Field(default="en", min_length=1)
    locale_cookie: str = Field(default="locale")
    locale_query_param: str = Field(default="locale")


class RenderConfig(BaseModel):
    continue_on_preload_error: bool = Field(
        default=True,
        description="Swallow preload failures and keep rendering (one global toggle).",
    )
    preload_timeout_seconds: float | None = Field(
        default=10.0,
        gt=0,
        description="Deadline for the whole preload phase; null disables it.",
    )
    view_tree: str = Field(
        default="hydrate_core.demo:tree",
        description="Import string 'module:attribute' of the ViewTree to serve.",
    )


class LoggingConfig(BaseModel):
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    paths: PathOverrides = Field(default_factory=PathOverrides)
    build: BuildConfig = Field(default_factory=BuildConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def shell_template_path(self, paths: HydratePaths) -> Path:
        return paths.build_dir / self.build.shell_template

    def asset_manifest_path(self, paths: HydratePaths) -> Path:
        return paths.build_dir / self.build.asset_manifest


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_core_config(paths: HydratePaths) -> CoreConfig:
    """Load config from ${HYDRATE_HOME}/config/core.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    config_path = paths.core_config_path
    if not config_path.exists():
        return CoreConfig()

    raw = _read_json(config_path)
    return CoreConfig.model_validate(raw)


def write_core_config(paths: HydratePaths, config: CoreConfig) -> None:
    """Persist config to ${HYDRATE_HOME}/config/core.json."""

    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.core_config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def resolve_configured_paths(paths: HydratePaths, config: CoreConfig) -> HydratePaths:
    """Apply user-configurable path overrides from config.

    config/ itself is not configurable.
    """

    def _resolve_dir(raw: str | None, default: Path) -> Path:
        if raw is None or not str(raw).strip():
            return default
        candidate = Path(raw).expanduser()
        if not candidate.is_absolute():
            candidate = (paths.home / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    build_dir = _resolve_dir(config.paths.build_dir, paths.build_dir)
    logs_dir = _resolve_dir(config.paths.logs_dir, paths.logs_dir)

    for p in (build_dir, logs_dir):
        p.mkdir(parents=True, exist_ok=True)

    return HydratePaths(
        home=paths.home,
        config_dir=paths.config_dir,
        logs_dir=logs_dir,
        build_dir=build_dir,
    )
