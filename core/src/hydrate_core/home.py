from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class HydratePaths:
    home: Path
    config_dir: Path
    logs_dir: Path
    build_dir: Path

    @property
    def core_config_path(self) -> Path:
        return self.config_dir / "core.json"

    @property
    def locales_dir(self) -> Path:
        return self.build_dir / "locales"

    @property
    def static_dir(self) -> Path:
        return self.build_dir / "static"


def resolve_hydrate_home(environ: dict[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ

    raw = (env.get("HYDRATE_HOME") or "").strip()
    if raw:
        candidate = Path(raw).expanduser()
        # Relative values are anchored at the user's home, never the CWD.
        if not candidate.is_absolute():
            candidate = (Path.home() / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    def default_home() -> Path:
        if sys.platform.startswith("win"):
            base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
            if base:
                return Path(base) / "Hydrate"
            return Path.home() / "AppData" / "Local" / "Hydrate"

        if sys.platform == "darwin":
            return Path.home() / "Library" / "Application Support" / "Hydrate"

        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            return Path(xdg) / "hydrate"
        return Path.home() / ".local" / "share" / "hydrate"

    return default_home().resolve()


def ensure_hydrate_layout(home: Path) -> HydratePaths:
    home.mkdir(parents=True, exist_ok=True)

    config_dir = home / "config"
    logs_dir = home / "logs"
    build_dir = home / "build"

    for path in (config_dir, logs_dir, build_dir):
        path.mkdir(parents=True, exist_ok=True)

    return HydratePaths(
        home=home,
        config_dir=config_dir,
        logs_dir=logs_dir,
        build_dir=build_dir,
    )
