"""Logging setup for tile rendering entrypoints.

Library modules only call logging.getLogger(__name__) and log at DEBUG;
the CLI (or a service embedding the renderer) installs handlers once with
setup_logging().

Provides:
    - setup_logging(): stderr and/or file handler, text or JSON lines
    - log_context(): scoped contextual fields, e.g. the tile being rendered
    - push_context() / pop_context(): unscoped variants
    - install_excepthook(): log uncaught exceptions before exiting

Context lives in a contextvars.ContextVar, so concurrent renders running as
asyncio tasks each see their own tile field.

Format examples:
    Text: 2025-10-28T13:45:12.345Z | INFO     | app=render_tile tile=5/0/0 | Saved tile
    JSON: {"t": "2025-10-28T13:45:12.345Z", "lvl": "INFO", "app": "render_tile", "tile": "5/0/0", ...}
"""

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

_context_var: contextvars.ContextVar = contextvars.ContextVar('heatmap_log_context', default={})

_configured = False


class ContextFormatter(logging.Formatter):
    """Formatter appending the current contextual fields.

    Parameters
    ----------
    fmt_mode : str
        "human" (pipe-separated text) or "json" (one object per line)
    use_color : bool
        Colorize the level name; ignored unless stderr is a TTY
    """

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[1;31m',
    }

    def __init__(self, fmt_mode: str = "human", use_color: bool = True):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown log format: {fmt_mode}. Use 'human' or 'json'.")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        stamp_str = stamp.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'
        fields = _context_var.get()

        if self.fmt_mode == "json":
            payload = {
                't': stamp_str,
                'lvl': record.levelname,
                'logger': record.name,
                'pid': os.getpid(),
                **fields,
                'msg': record.getMessage(),
            }
            if record.exc_info:
                payload['exc'] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}\033[0m"
        parts = [stamp_str, level]
        if fields:
            parts.append(' '.join(f"{k}={v}" for k, v in fields.items()))
        parts.append(record.getMessage())
        text = ' | '.join(parts)
        if record.exc_info:
            text += '\n' + self.formatException(record.exc_info)
        return text


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    max_bytes: int = 0,
    backup_count: int = 5,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Install handlers on the root logger.

    Calling it again replaces the handlers installed by the previous call,
    so entrypoints and tests can reconfigure freely.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
    log_file : str, optional
        Also log to this file (parent directories are created)
    json : bool
        JSON lines instead of text, for both handlers
    color : bool
        Colored level names on a TTY
    to_stderr : bool
        Log to stderr, default True
    max_bytes : int
        Rotate the log file at this size; 0 disables rotation
    backup_count : int
        Rotated files kept when max_bytes > 0
    quiet_libs : list[str], optional
        Loggers raised to WARNING (e.g., ["PIL"], whose PNG plugin logs chunks at DEBUG)
    context : dict, optional
        Initial contextual fields (e.g., {"app": "render_tile"})

    Returns
    -------
    list[logging.Handler]
        Handlers now installed
    """
    global _configured

    root = logging.getLogger()
    if _configured:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    root.setLevel(level)

    fmt_mode = "json" if json else "human"
    handlers: List[logging.Handler] = []
    if to_stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(ContextFormatter(fmt_mode, use_color=color))
        handlers.append(stream_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        if max_bytes > 0:
            file_handler: logging.Handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count
            )
        else:
            file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(ContextFormatter(fmt_mode, use_color=False))
        handlers.append(file_handler)

    for handler in handlers:
        root.addHandler(handler)

    for lib in quiet_libs or []:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if context:
        push_context(**context)

    logging.captureWarnings(True)
    _configured = True
    return handlers


def get_logger(name: str) -> logging.Logger:
    """Same as logging.getLogger(name); kept for symmetry with setup_logging."""
    return logging.getLogger(name)


def push_context(**fields) -> None:
    """Add contextual fields to every following record in this context."""
    _context_var.set({**_context_var.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove contextual fields; all of them if ``keys`` is None."""
    if keys is None:
        _context_var.set({})
        return
    remaining = {k: v for k, v in _context_var.get().items() if k not in keys}
    _context_var.set(remaining)


@contextmanager
def log_context(**fields) -> Iterator[None]:
    """Scoped push_context(); previous fields are restored on exit.

    Examples
    --------
    >>> with log_context(tile="5/16/10"):
    ...     logger.info("Saved tile")  # → "... | app=render_tile tile=5/16/10 | Saved tile"
    """
    token = _context_var.set({**_context_var.get(), **fields})
    try:
        yield
    finally:
        _context_var.reset(token)


def install_excepthook() -> None:
    """Route uncaught exceptions (except Ctrl+C) through logging."""
    previous = sys.excepthook

    def hook(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            previous(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger("uncaught").critical(
            "Uncaught %s", exc_type.__name__,
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = hook
