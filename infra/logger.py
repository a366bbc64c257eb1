from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Union

from infra.paths import LOG_DIR

if TYPE_CHECKING:
    from infra.settings import TacticsSettings

# Centralized logging setup for the simulator, the tactics layer and the backend.
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"
JSON_FORMAT = (
    '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","line":%(lineno)d,"msg":"%(message)s"}'
)

# Chatty third-party loggers kept at WARNING unless overridden.
QUIET_LOGGERS = ("httpx", "uvicorn.access")

LevelName = Union[str, int]


def configure_logging(
    level: LevelName = "INFO",
    *,
    json: bool = False,
    logfile: str | Path | None = LOG_DIR / "tactics.log",
    levels: Mapping[str, LevelName] | None = None,
) -> None:
    """
    Configure the root logger with stdout + optional file handler.

    Args:
        level: Root level name or int (e.g., "DEBUG", logging.INFO).
        json: Emit JSON lines when True; otherwise a human-friendly format.
        logfile: File path to append logs; set to None to disable file output.
        levels: Per-logger overrides, e.g. {"tactics": "DEBUG"} to trace
            matching and retreat transitions without flooding the rest.
    """
    formatter = logging.Formatter(JSON_FORMAT if json else DEFAULT_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if logfile is not None:
        log_path = Path(logfile)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        root.addHandler(handler)

    overrides = {name: logging.WARNING for name in QUIET_LOGGERS}
    overrides.update(levels or {})
    for name, value in overrides.items():
        logging.getLogger(name).setLevel(value.upper() if isinstance(value, str) else value)

    logging.captureWarnings(True)


def configure_from_settings(settings: TacticsSettings) -> None:
    """Apply the log_* fields of TacticsSettings."""
    levels = {"tactics": settings.tactics_log_level} if settings.tactics_log_level else None
    configure_logging(
        settings.log_level.upper(),
        json=settings.log_json,
        logfile=settings.log_file,
        levels=levels,
    )


def get_logger(name: str) -> logging.Logger:
    """Return a namespaced logger; configure_logging() should be called once on startup."""
    return logging.getLogger(name)
