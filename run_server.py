#!/usr/bin/env python3
"""Entry point to run the HireMind API server."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import uvicorn

from hiremind.config import ensure_dirs, get_env
from hiremind.log import get_logger, uvicorn_log_config

log = get_logger(__name__)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the HireMind API")
    parser.add_argument("--host", default=get_env("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(get_env("PORT", "5000")))
    parser.add_argument("--reload", action="store_true", help="restart on code changes")
    args = parser.parse_args()

    ensure_dirs()
    log.info("Starting HireMind API on %s:%d", args.host, args.port)
    uvicorn.run(
        "hiremind.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=uvicorn_log_config(),
    )
