"""Find and remove uploaded resume files that no resume record references."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable

from hiremind.log import get_logger

log = get_logger(__name__)

RESUME_PREFIX = "resume-"
RESUME_SUFFIXES = (".pdf", ".doc", ".docx", ".txt")


def _resume_files(upload_dir: Path) -> list[Path]:
    return sorted(
        p for p in upload_dir.iterdir()
        if p.is_file() and p.name.startswith(RESUME_PREFIX) and p.suffix.lower() in RESUME_SUFFIXES
    )


def _normalize(paths: Iterable[str]) -> set[str]:
    return {str(Path(p).resolve()) for p in paths if p}


def find_orphans(upload_dir: Path, known_paths: Iterable[str]) -> list[Path]:
    known = _normalize(known_paths)
    return [p for p in _resume_files(upload_dir) if str(p.resolve()) not in known]


def cleanup_orphaned_files(upload_dir: Path, known_paths: Iterable[str], dry_run: bool = False) -> dict[str, int]:
    """Delete orphaned resume files; returns ``{"deleted", "errors"}`` counts."""
    if not upload_dir.is_dir():
        log.info("Upload directory %s does not exist, nothing to clean up", upload_dir)
        return {"deleted": 0, "errors": 0}

    deleted = errors = 0
    for path in find_orphans(upload_dir, known_paths):
        if dry_run:
            log.info("Would delete orphaned file: %s", path.name)
            deleted += 1
            continue
        try:
            path.unlink()
            deleted += 1
            log.info("Deleted orphaned file: %s", path.name)
        except OSError as exc:
            errors += 1
            log.error("Error deleting orphaned file %s: %s", path.name, exc)

    log.info("Cleanup completed: %d file(s) deleted, %d error(s)", deleted, errors)
    return {"deleted": deleted, "errors": errors}


def get_file_stats(upload_dir: Path, known_paths: Iterable[str]) -> dict[str, int | bool]:
    if not upload_dir.is_dir():
        return {"total_files": 0, "orphaned_files": 0, "directory_exists": False}
    return {
        "total_files": len(_resume_files(upload_dir)),
        "orphaned_files": len(find_orphans(upload_dir, known_paths)),
        "directory_exists": True,
    }
