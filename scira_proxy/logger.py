"""Levelled, coloured console logging."""

from __future__ import annotations

import sys
from datetime import datetime
from enum import IntEnum

from termcolor import colored


class Level(IntEnum):
    """Log levels in increasing order of severity."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4


_COLORS = {
    Level.DEBUG: ("blue", None),
    Level.INFO: ("green", None),
    Level.WARN: ("yellow", None),
    Level.ERROR: ("red", None),
    Level.FATAL: ("light_red", ["bold"]),
}

_level = Level.INFO


def set_level(level: int) -> None:
    """Set the minimum level that is printed; out-of-range values are ignored."""
    global _level
    if Level.DEBUG <= level <= Level.FATAL:
        _level = Level(level)


def get_level() -> Level:
    """Return the current minimum level."""
    return _level


def get_level_name(level: int) -> str:
    """Return the name of a level, or ``UNKNOWN``."""
    try:
        return Level(level).name
    except ValueError:
        return "UNKNOWN"


def _timestamp() -> str:
    now = datetime.now()
    return now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}"


def _log(level: Level, fmt: str, args: tuple) -> None:
    if level < _level:
        return
    content = fmt % args if args else fmt
    color, attrs = _COLORS[level]
    prefix = f"[{_timestamp()}] [{level.name}] "
    print(prefix + colored(content, color, attrs=attrs), file=sys.stdout, flush=True)
    if level == Level.FATAL:
        sys.exit(1)


def debug(fmt: str, *args) -> None:
    """Log a debug message."""
    _log(Level.DEBUG, fmt, args)


def info(fmt: str, *args) -> None:
    """Log an informational message."""
    _log(Level.INFO, fmt, args)


def warn(fmt: str, *args) -> None:
    """Log a warning."""
    _log(Level.WARN, fmt, args)


def error(fmt: str, *args) -> None:
    """Log an error."""
    _log(Level.ERROR, fmt, args)


def fatal(fmt: str, *args) -> None:
    """Log a fatal error and exit with status 1."""
    _log(Level.FATAL, fmt, args)