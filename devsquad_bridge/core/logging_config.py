"""
Logging Configuration Module.

Centralized logging configuration for the DevSquad bridge. The hosting process
calls `setup_logging()` once at start-up; library modules only ever ask for
`logging.getLogger(__name__)`.

Features:
- Configurable log level (argument or VIBE_DEVSQUAD_LOG_LEVEL)
- Console and optional file logging
- simple / detailed / json formats
- Module-specific levels to keep websocket noise down
"""

import logging
import os
from pathlib import Path
from typing import Optional

LOG_LEVEL = os.getenv("VIBE_DEVSQUAD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("VIBE_DEVSQUAD_LOG_FORMAT", "detailed")
LOG_FILE_DIR = os.getenv("VIBE_DEVSQUAD_LOG_FILE_DIR", "logs")
ENABLE_FILE_LOGGING = os.getenv("VIBE_DEVSQUAD_ENABLE_FILE_LOGGING", "false").lower() in ("true", "1", "yes")

LOG_FILE_NAME = "devsquad_bridge.log"

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

MODULE_LOG_LEVELS = {
    "devsquad_bridge": "DEBUG",
    "devsquad_bridge.bridge": "DEBUG",
    "devsquad_bridge.bridge.transport": "INFO",
    "devsquad_bridge.tools": "DEBUG",
    # Third-party libraries (reduce noise)
    "websockets": "WARNING",
    "websockets.client": "WARNING",
    "asyncio": "WARNING",
}


def _format_string(fmt: str) -> str:
    if fmt == "json":
        return JSON_FORMAT
    if fmt == "simple":
        return SIMPLE_FORMAT
    return DETAILED_FORMAT


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = ENABLE_FILE_LOGGING,
    log_file_dir: Optional[str] = None,
) -> None:
    """
    Configure logging for the bridge process.

    Args:
        log_level: Override default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override default format (simple, detailed, json)
        enable_file: Whether to also write a DEBUG-level log file
        log_file_dir: Directory for the log file (defaults to VIBE_DEVSQUAD_LOG_FILE_DIR)
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT

    formatter = logging.Formatter(_format_string(fmt), datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # filter at handler level

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if enable_file:
        directory = Path(log_file_dir or LOG_FILE_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / LOG_FILE_NAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={enable_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A logger instance
    """
    return logging.getLogger(name)
