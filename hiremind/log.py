"""Logging setup shared by the API server, scripts and tests.

Root handlers are installed lazily by the first ``get_logger`` call: stdout
always, plus a daily file under ``LOG_DIR`` (``logs/`` by default) unless
``LOG_TO_FILE`` is off.  uvicorn is told to propagate into the same handlers
via ``uvicorn_log_config``.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any

_LOG_DIR = Path(os.environ.get("LOG_DIR", Path(__file__).resolve().parent.parent / "logs"))
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def _level() -> int:
    return getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)


def _file_logging_enabled() -> bool:
    return os.environ.get("LOG_TO_FILE", "true").strip().lower() in ("1", "true", "yes")


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    try:
        _LOG_DIR.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(_LOG_DIR / f"hiremind_{date.today():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        print(f"File logging disabled ({_LOG_DIR}: {exc})", file=sys.stderr)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def configure() -> None:
    root = logging.getLogger()
    root.setLevel(_level())
    if root.handlers:
        # pytest / an embedding app already owns the handlers
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_level())
    console.setFormatter(formatter)
    root.addHandler(console)

    if _file_logging_enabled():
        handler = _file_handler(formatter)
        if handler is not None:
            root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configures root handlers on first call."""
    global _configured
    if not _configured:
        configure()
        _configured = True
    return logging.getLogger(name)


def uvicorn_log_config() -> dict[str, Any]:
    """dictConfig for uvicorn that defers to the root handlers above."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "loggers": {
            name: {"handlers": [], "level": logging.getLevelName(_level()), "propagate": True}
            for name in ("uvicorn", "uvicorn.error", "uvicorn.access")
        },
    }
