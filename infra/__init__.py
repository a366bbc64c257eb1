from .paths import PROJECT_ROOT, SCENARIO_STORAGE_DIR, STORAGE_DIR
from .logger import configure_from_settings, configure_logging, get_logger
from .settings import TacticsSettings, load_settings

__all__ = [
    "PROJECT_ROOT",
    "STORAGE_DIR",
    "SCENARIO_STORAGE_DIR",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "TacticsSettings",
    "load_settings",
]
