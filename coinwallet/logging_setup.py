from __future__ import annotations

import logging
import os
from pathlib import Path

from concurrent_log_handler import ConcurrentRotatingFileHandler

DEFAULT_LOG_LEVEL_NAME = "INFO"
ALLOWED_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"})
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_FILE = "logs/coinwallet.log"
DEFAULT_LOG_MAX_FILES_ROTATION = 4
DEFAULT_LOG_MAX_BYTES_ROTATION = 25 * 1024 * 1024
_SERVICE_NAME_WIDTH = 28


def normalize_log_level_name(log_level: str | None) -> str:
    name = str(log_level or "").strip().upper()
    return name if name in ALLOWED_LOG_LEVELS else DEFAULT_LOG_LEVEL_NAME


def cast_log_level(level_name: str) -> int:
    level = getattr(logging, level_name, None)
    return level if isinstance(level, int) else logging.INFO


def coerce_log_level(log_level: str | None) -> int:
    return cast_log_level(normalize_log_level_name(log_level))


def log_file_path(home_dir: str | Path) -> Path:
    return (Path(home_dir).expanduser() / DEFAULT_LOG_FILE).resolve()


def create_rotating_file_handler(*, service_name: str, home_dir: str | Path) -> ConcurrentRotatingFileHandler:
    path = log_file_path(home_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    name_width = max(8, _SERVICE_NAME_WIDTH - len(service_name))
    handler = ConcurrentRotatingFileHandler(
        os.fspath(path),
        "a",
        maxBytes=DEFAULT_LOG_MAX_BYTES_ROTATION,
        backupCount=DEFAULT_LOG_MAX_FILES_ROTATION,
        use_gzip=False,
    )
    handler.setFormatter(
        logging.Formatter(
            fmt=f"%(asctime)s.%(msecs)03d {service_name} %(name)-{name_width}s: %(levelname)-8s %(message)s",
            datefmt=DEFAULT_LOG_DATE_FORMAT,
        )
    )
    return handler


def apply_level_to_root(*, effective_level: int, logger: logging.Logger, handler: logging.Handler | None) -> None:
    root_logger = logging.getLogger()
    if handler is not None:
        handler.setLevel(effective_level)
    for existing in root_logger.handlers:
        existing.setLevel(effective_level)
    root_logger.setLevel(effective_level)
    logger.setLevel(effective_level)
