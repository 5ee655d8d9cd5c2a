from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

import uvicorn

from hydrate_core.app import create_app
from hydrate_core.config import load_core_config, resolve_configured_paths
from hydrate_core.home import ensure_hydrate_layout, resolve_hydrate_home


def main() -> None:
    home = resolve_hydrate_home()
    paths = ensure_hydrate_layout(home)
    config = load_core_config(paths)
    paths = resolve_configured_paths(paths, config)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            RotatingFileHandler(
                paths.logs_dir / "core.log",
                maxBytes=config.logging.max_size_mb * 1024 * 1024,
                backupCount=config.logging.backup_count,
            ),
            logging.StreamHandler(),
        ],
    )

    host = os.environ.get("HYDRATE_BIND") or config.network.bind_host

    env_port = os.environ.get("HYDRATE_PORT")
    port = int(env_port) if env_port else config.network.port

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
