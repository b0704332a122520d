"""
Logging for the devsetup CLI.

main.py calls ``setup_logging`` once; modules log through
``logging.getLogger(__name__)``.

The console is the progress stream. At INFO it carries bare messages;
at DEBUG it also carries the ``+ sudo apt-get ...`` trace written
before every command, tagged with the emitting module and line. A log
file, when requested, always gets timestamps so a failed run can be
replayed step by step.
"""

from __future__ import annotations

import logging
import sys

PLAIN_FORMAT = "%(message)s"
TRACE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"

_CONSOLE_DATEFMT = "%H:%M:%S"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if level <= logging.DEBUG:
        handler.setFormatter(logging.Formatter(TRACE_FORMAT, datefmt=_CONSOLE_DATEFMT))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(TRACE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with the devsetup console (and file).

    *log_file_level* defaults to *level*. The root logger is set to the
    lower of the two, so a DEBUG log file still records the command
    trace while the console stays at INFO.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown or empty names mean INFO."""
    numeric = getattr(logging, level.upper(), None) if level else None
    return numeric if isinstance(numeric, int) else logging.INFO
