"""Upload-directory maintenance endpoints (admin-only in production)."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from hiremind.config import upload_dir
from hiremind.db import User
from hiremind.file_cleanup import cleanup_orphaned_files, get_file_stats
from hiremind.stores import ResumeStore
from hiremind.api.deps import get_resumes, require_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/cleanup")
def cleanup(
    dry_run: bool = Query(False),
    user: User = Depends(require_admin),
    resumes: ResumeStore = Depends(get_resumes),
) -> Dict[str, Any]:
    result = cleanup_orphaned_files(upload_dir(), resumes.all_file_paths(), dry_run=dry_run)
    return {"success": True, "message": "File cleanup completed", "data": result}


@router.get("/file-stats")
def file_stats(
    user: User = Depends(require_admin),
    resumes: ResumeStore = Depends(get_resumes),
) -> Dict[str, Any]:
    return {"success": True, "data": get_file_stats(upload_dir(), resumes.all_file_paths())}
