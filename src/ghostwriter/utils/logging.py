"""Logging configuration for the edit engine and its command-line tools.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed by applications through :func:`setup_logging` or
:func:`configure_from_settings`.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:  # pragma: no cover
    from ..services.settings import EngineSettings

__all__ = [
    "configure_from_settings",
    "get_log_path",
    "log_telemetry_events",
    "resolve_level",
    "setup_logging",
]

LOG_DIR_ENV = "GHOSTWRITER_LOG_DIR"
LOG_FILE_NAME = "ghostwriter.log"
_DEFAULT_LOG_DIR = Path.home() / ".ghostwriter" / "logs"
_NOISY_LOGGERS: tuple[str, ...] = ("markdown_it", "mdit_py_plugins")
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False
_log_path: Path | None = None


def resolve_level(value: int | str | None, default: int = logging.INFO) -> int:
    """Turn ``"debug"``, ``"WARNING"``, ``"10"`` or an int into a logging level."""

    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


def setup_logging(
    level: int | str = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    log_to_file: bool = True,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path | None:
    """Install root handlers: a rotating log file and/or a stderr console.

    Console output goes to stderr so command-line tools can keep stdout for
    their results. Returns the log file path, or None when file logging is off.
    """

    global _configured, _log_path
    if _configured and not force:
        return _log_path

    numeric_level = resolve_level(level)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = []

    log_path: Path | None = None
    if log_to_file:
        target_dir = _resolve_log_dir(log_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        log_path = target_dir / LOG_FILE_NAME
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handlers.append(file_handler)

    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=numeric_level, handlers=handlers or [logging.NullHandler()], force=True)
    logging.captureWarnings(True)
    _quiet_dependencies(numeric_level)

    _configured = True
    _log_path = log_path
    return log_path


def configure_from_settings(
    settings: "EngineSettings",
    *,
    log_dir: Path | str | None = None,
    log_to_file: bool = True,
    console: bool = True,
) -> Path | None:
    """Configure logging from :class:`EngineSettings` (``debug_logging`` wins over ``log_level``)."""

    level = logging.DEBUG if settings.debug_logging else resolve_level(settings.log_level)
    return setup_logging(level, log_dir=log_dir, log_to_file=log_to_file, console=console, force=True)


def log_telemetry_events(event_names: Iterable[str], *, level: int = logging.DEBUG) -> None:
    """Mirror telemetry bus events into the ``ghostwriter.telemetry`` logger."""

    from ..services.telemetry import register_event_listener

    logger = logging.getLogger("ghostwriter.telemetry")

    def _log(payload: dict[str, Any]) -> None:
        logger.log(level, "%s %s", payload.get("event"), {k: v for k, v in payload.items() if k != "event"})

    for name in event_names:
        register_event_listener(name, _log)


def get_log_path() -> Path | None:
    """Return the configured log file, if file logging is active."""

    return _log_path


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    env_override = os.environ.get(LOG_DIR_ENV)
    return Path(log_dir or env_override or _DEFAULT_LOG_DIR).expanduser()


def _quiet_dependencies(root_level: int) -> None:
    quiet_level = max(root_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)
