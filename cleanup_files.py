#!/usr/bin/env python3
"""Remove uploaded resume files that no resume record references.

Run: python cleanup_files.py [--stats] [--dry-run]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from hiremind.config import database_url, upload_dir
from hiremind.db import init_db, session_scope
from hiremind.file_cleanup import cleanup_orphaned_files, get_file_stats
from hiremind.log import get_logger
from hiremind.stores import ResumeStore

log = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--stats", action="store_true", help="only report file counts")
    parser.add_argument("--dry-run", action="store_true", help="list orphans without deleting")
    args = parser.parse_args(argv)

    init_db(database_url())
    with session_scope() as session:
        known = ResumeStore(session).all_file_paths()

    target = upload_dir()
    log.info("Upload directory: %s (%d resume record(s))", target, len(known))
    if args.stats:
        stats = get_file_stats(target, known)
        log.info(
            "Files: %d total, %d orphaned (directory exists: %s)",
            stats["total_files"], stats["orphaned_files"], stats["directory_exists"],
        )
        return 0

    result = cleanup_orphaned_files(target, known, dry_run=args.dry_run)
    return 1 if result["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
