"""restgrid package logger.

Only configuration decisions and SQL statements are logged; row data and
query parameter values never are.

Usage:
    from restgrid.log import enable_debug

    enable_debug()  # or RESTGRID_LOG__LEVEL=DEBUG
"""

from __future__ import annotations

import logging
import sys

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from .config import LogSettings


LOGGER_NAME = "restgrid"

DEFAULT_FORMAT = "%(name)s - %(levelname)s - %(message)s"


class _LoggerHolder:
    """Keeps the configured restgrid logger."""

    instance: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Return the restgrid logger, attaching a stderr handler on first use.

    Returns
    -------
    logging.Logger
        Logger named ``restgrid``, at WARNING unless configured otherwise.
    """
    if _LoggerHolder.instance is None:
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.WARNING)

        # Host applications that configured the logger keep their handlers
        if not logger.handlers:
            stream = logging.StreamHandler(sys.stderr)
            stream.setLevel(logging.DEBUG)
            stream.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            logger.addHandler(stream)

        _LoggerHolder.instance = logger

    return _LoggerHolder.instance


def debug(msg: str) -> None:
    """Log ``msg`` at DEBUG."""
    get_logger().debug(msg)


def info(msg: str) -> None:
    """Log ``msg`` at INFO."""
    get_logger().info(msg)


def warn(msg: str) -> None:
    """Log ``msg`` at WARNING."""
    get_logger().warning(msg)


def error(msg: str) -> None:
    """Log ``msg`` at ERROR."""
    get_logger().error(msg)


def exception(msg: str) -> None:
    """Log ``msg`` at ERROR with the active traceback.

    Only meaningful inside an ``except`` block.
    """
    get_logger().exception(msg)


def log_query(provider: str, sql: str, params: Any = None) -> None:
    """Log a statement a data provider is about to execute.

    Parameters
    ----------
    provider : str
        Name of the data provider class.
    sql : str
        The statement, with ORDER BY and LIMIT already applied.
    params : Any
        Bound parameters. Only their count (or names) is logged.
    """
    logger = get_logger()
    if not logger.isEnabledFor(logging.DEBUG):
        return
    if isinstance(params, dict):
        bound = f"params={sorted(params)}"
    else:
        bound = f"{len(params or ())} param(s)"
    logger.debug(f"{provider}: {sql} [{bound}]")


def set_level(level: int | str) -> None:
    """Change the logger level.

    Parameters
    ----------
    level : int or str
        A ``logging`` level or its name, e.g. ``"DEBUG"``.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    get_logger().setLevel(level)


def enable_debug() -> None:
    """Log grid initialization, guessed columns, layout fallbacks and SQL."""
    set_level(logging.DEBUG)


def configure_from_settings(settings: LogSettings) -> None:
    """Apply the ``[log]`` settings section to the restgrid logger."""
    set_level(settings.level)
    formatter = logging.Formatter(settings.format)
    for handler in get_logger().handlers:
        handler.setFormatter(formatter)
