"""Job search, listing detail and recommendation endpoints."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool

from hiremind.db import User
from hiremind.log import get_logger
from hiremind.models import ListingQuery
from hiremind.orchestrator import RecommendationService
from hiremind.stores import ResumeStore
from hiremind.api.deps import get_current_user, get_resumes, get_service

log = get_logger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])

DISCONNECT_POLL_SECONDS = 0.5


async def recommend_until_disconnect(
    request: Request,
    service: RecommendationService,
    user: User,
    resumes: ResumeStore,
    resume_id: Optional[int],
    limit: Optional[int],
    offset: Optional[int],
) -> Dict[str, Any]:
    """Run the blocking aggregation off the event loop.

    A watcher polls the connection and sets the cancel event once the client
    goes away, so no further listing queries are started for it.
    """
    cancel = threading.Event()

    async def watch() -> None:
        while not cancel.is_set():
            if await request.is_disconnected():
                log.info("Client disconnected; cancelling recommendation run")
                cancel.set()
                return
            await asyncio.sleep(DISCONNECT_POLL_SECONDS)

    watcher = asyncio.create_task(watch())
    try:
        return await run_in_threadpool(service.recommend, user, resumes, resume_id, limit, offset, cancel)
    finally:
        watcher.cancel()


@router.get("/search")
def search_jobs(
    resume_id: Optional[int] = None,
    keywords: Optional[str] = None,
    location: Optional[str] = None,
    experience_level: Optional[str] = None,
    job_type: Optional[str] = None,
    work_schedule: Optional[str] = None,
    posted_within: Optional[str] = None,
    start: int = Query(0, ge=0),
    simplified_application: bool = False,
    less_than_10_applicants: bool = False,
    user: User = Depends(get_current_user),
    resumes: ResumeStore = Depends(get_resumes),
    service: RecommendationService = Depends(get_service),
) -> Dict[str, Any]:
    query = ListingQuery(
        keywords=(keywords or "").strip(),
        location=(location or "").strip(),
        start=start,
        work_schedule=work_schedule or None,
        experience_level=experience_level or None,
        job_type=job_type or None,
        posted_within=posted_within or None,
        simplified_application=simplified_application,
        less_than_10_applicants=less_than_10_applicants,
    )
    data = service.search(user, resumes, query, resume_id=resume_id)
    return {"success": True, "message": "Jobs fetched successfully", "data": data}


@router.get("/recommendations")
async def recommendations(
    request: Request,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    user: User = Depends(get_current_user),
    resumes: ResumeStore = Depends(get_resumes),
    service: RecommendationService = Depends(get_service),
) -> Dict[str, Any]:
    data = await recommend_until_disconnect(request, service, user, resumes, None, limit, offset)
    return {"success": True, "data": data}


@router.get("/recommendations/{resume_id}")
async def recommendations_for_resume(
    request: Request,
    resume_id: int,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    user: User = Depends(get_current_user),
    resumes: ResumeStore = Depends(get_resumes),
    service: RecommendationService = Depends(get_service),
) -> Dict[str, Any]:
    data = await recommend_until_disconnect(request, service, user, resumes, resume_id, limit, offset)
    return {"success": True, "data": data}


@router.get("/{job_id}/details")
def job_details(
    job_id: str,
    user: User = Depends(get_current_user),
    service: RecommendationService = Depends(get_service),
) -> Dict[str, Any]:
    return {"success": True, "data": service.details(job_id)}
