"""Logging setup for the FormKit builder.

Records from the ``formkit`` package and from Qt (routed through the
``PySide6`` logger) go to ``~/.formkit/logs/formkit.log`` and, optionally,
to stderr. ``FORMKIT_LOG_DIR`` moves the log directory.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__all__ = ["setup_logging", "get_logger", "get_log_path", "route_qt_messages"]

_APP_LOGGER = "formkit"
_QT_LOGGER = "PySide6"
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_ROTATE_BYTES = 512_000
_ROTATE_BACKUPS = 2

_log_path: Path | None = None
_installed: list[logging.Handler] = []


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    force: bool = False,
) -> Path:
    """Attach the builder's handlers and return the log file path.

    Calling again is a no-op unless ``force`` is set, in which case the
    previously installed handlers are replaced.
    """
    global _log_path
    if _log_path is not None and not force:
        return _log_path

    directory = Path(log_dir or os.environ.get("FORMKIT_LOG_DIR") or Path.home() / ".formkit" / "logs")
    directory = directory.expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "formkit.log"

    _remove_installed()
    formatter = logging.Formatter(_LOG_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(path, maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_BACKUPS, encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)

    app_logger = logging.getLogger(_APP_LOGGER)
    app_logger.setLevel(level)
    # Qt chatter stays at WARNING and above even in debug sessions.
    qt_logger = logging.getLogger(_QT_LOGGER)
    qt_logger.setLevel(max(level, logging.WARNING))
    for logger in (app_logger, qt_logger):
        for handler in handlers:
            logger.addHandler(handler)
    _installed.extend(handlers)

    _log_path = path
    app_logger.debug("Logging to %s (level=%s)", path, logging.getLevelName(level))
    return path


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_log_path() -> Path | None:
    return _log_path


def route_qt_messages() -> bool:
    """Send Qt's qDebug/qWarning output to the ``PySide6`` logger.

    Returns ``False`` when PySide6 is not installed.
    """
    try:
        from PySide6.QtCore import QtMsgType, qInstallMessageHandler
    except ImportError:
        return False

    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }
    qt_logger = logging.getLogger(_QT_LOGGER)

    def _forward(kind, context, message):  # type: ignore[no-untyped-def]
        del context
        qt_logger.log(levels.get(kind, logging.INFO), message)

    qInstallMessageHandler(_forward)
    return True


def _remove_installed() -> None:
    for logger_name in (_APP_LOGGER, _QT_LOGGER):
        logger = logging.getLogger(logger_name)
        for handler in _installed:
            logger.removeHandler(handler)
    for handler in _installed:
        handler.close()
    _installed.clear()
