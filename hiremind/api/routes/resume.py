"""Resume upload, listing, deletion and re-parsing endpoints."""

from __future__ import annotations

import secrets
import time
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Request, UploadFile

from hiremind.config import upload_dir
from hiremind.db import Resume, User
from hiremind.errors import HireMindError, NotFoundError, ValidationFailed
from hiremind.log import get_logger
from hiremind.orchestrator import llm_key_for
from hiremind.resume_parser import SUPPORTED_EXTENSIONS
from hiremind.stores import ResumeStore
from hiremind.api.deps import get_current_user, get_resumes

log = get_logger(__name__)

router = APIRouter(prefix="/resume", tags=["resume"])


def _parse(request: Request, user: User, path: Path) -> Dict[str, Any]:
    settings = request.app.state.settings
    return request.app.state.parse_resume(
        path,
        api_key=llm_key_for(user),
        model=settings["llm_model"],
        base_url=settings["llm_base_url"],
    )


def _owned(resumes: ResumeStore, resume_id: int, user: User) -> Resume:
    resume = resumes.find_by_id(resume_id, user.id)
    if resume is None:
        raise NotFoundError("Resume not found")
    return resume


def _payload(resume: Resume) -> Dict[str, Any]:
    return {
        "resume_id": resume.id,
        "file_name": resume.file_name,
        "uploaded_at": resume.uploaded_at.isoformat() if resume.uploaded_at else None,
        "extracted_data": resume.extracted_data,
    }


@router.post("/upload")
def upload_resume(
    request: Request,
    resume: UploadFile = File(...),
    user: User = Depends(get_current_user),
    resumes: ResumeStore = Depends(get_resumes),
) -> Dict[str, Any]:
    original = Path(resume.filename or "").name
    ext = Path(original).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValidationFailed(f"Unsupported file type: {ext or 'none'} (allowed: {', '.join(SUPPORTED_EXTENSIONS)})")

    max_bytes = request.app.state.settings["max_upload_mb"] * 1024 * 1024
    content = resume.file.read(max_bytes + 1)
    if not content:
        raise ValidationFailed("No resume file uploaded")
    if len(content) > max_bytes:
        raise ValidationFailed(f"File too large (limit {request.app.state.settings['max_upload_mb']} MB)")

    target_dir = upload_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"resume-{int(time.time() * 1000)}-{secrets.token_hex(4)}{ext}"
    path.write_bytes(content)

    try:
        extracted = _parse(request, user, path)
    except Exception as exc:
        log.error("Resume processing failed for %s: %s", original, exc)
        path.unlink(missing_ok=True)
        raise HireMindError("Failed to process resume", details=str(exc)) from exc

    record = resumes.create(user.id, original, str(path), extracted)
    return {"success": True, "message": "Resume processed successfully", "data": _payload(record)}


@router.get("")
def list_resumes(user: User = Depends(get_current_user), resumes: ResumeStore = Depends(get_resumes)) -> Dict[str, Any]:
    return {"success": True, "data": [r.to_dict() for r in resumes.list_for_user(user.id)]}


@router.get("/{resume_id}")
def get_resume(
    resume_id: int,
    user: User = Depends(get_current_user),
    resumes: ResumeStore = Depends(get_resumes),
) -> Dict[str, Any]:
    return {"success": True, "data": _owned(resumes, resume_id, user).to_dict()}


@router.delete("/{resume_id}")
def delete_resume(
    resume_id: int,
    user: User = Depends(get_current_user),
    resumes: ResumeStore = Depends(get_resumes),
) -> Dict[str, Any]:
    resume = _owned(resumes, resume_id, user)
    try:
        Path(resume.file_path).unlink()
    except OSError as exc:
        # the record goes regardless; orphan cleanup handles leftovers
        log.warning("Error deleting file %s from storage: %s", resume.file_path, exc)
    resumes.delete(resume)
    return {"success": True, "message": "Resume deleted successfully"}


@router.post("/{resume_id}/reparse")
def reparse_resume(
    resume_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    resumes: ResumeStore = Depends(get_resumes),
) -> Dict[str, Any]:
    resume = _owned(resumes, resume_id, user)
    path = Path(resume.file_path)
    if not path.is_file():
        raise NotFoundError("Resume file not found on server")

    try:
        extracted = _parse(request, user, path)
    except Exception as exc:
        log.error("Re-parse failed for resume id=%d: %s", resume.id, exc)
        raise HireMindError("Failed to re-parse resume", details=str(exc)) from exc

    resumes.update_extracted_data(resume, extracted)
    return {"success": True, "message": "Resume re-parsed successfully", "data": _payload(resume)}
