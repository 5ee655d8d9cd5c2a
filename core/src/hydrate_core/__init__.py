from hydrate_core.config import CoreConfig, load_core_config
from hydrate_core.home import HydratePaths, ensure_hydrate_layout, resolve_hydrate_home

__version__ = "0.1.0"

__all__ = [
    "CoreConfig",
    "HydratePaths",
    "__version__",
    "ensure_hydrate_layout",
    "load_core_config",
    "resolve_hydrate_home",
]
