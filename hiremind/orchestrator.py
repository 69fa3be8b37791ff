"""
Request orchestration for job search and recommendations.

Loads the caller's resume, resolves their LLM key, drives the aggregation
engine and shapes the response payloads.
"""
from __future__ import annotations

import threading
from dataclasses import asdict, replace
from typing import Any, Callable

from hiremind.aggregator import AggregationEngine
from hiremind.clusterer import SkillClusterer
from hiremind.config import get_env
from hiremind.db import Resume, User
from hiremind.errors import HireMindError, NotFoundError, ValidationFailed
from hiremind.log import get_logger
from hiremind.models import ListingQuery
from hiremind.security import decrypt_secret
from hiremind.sources import ListingSource
from hiremind.stores import ResumeStore

log = get_logger(__name__)

ClustererFactory = Callable[[str], Any]


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def camelize(data: dict[str, Any]) -> dict[str, Any]:
    return {_camel(k): v for k, v in data.items()}


def llm_key_for(user: User) -> str:
    """The user's own stored key, else the service-wide key."""
    try:
        key = decrypt_secret(user.llm_api_key_encrypted)
    except HireMindError:
        log.warning("Could not decrypt stored LLM key for user id=%d; using service key", user.id)
        key = ""
    return key or get_env("GROQ_API_KEY")


class RecommendationService:
    """Holds the shared, stateless listing source for all requests."""

    def __init__(
        self,
        source: ListingSource,
        settings: dict[str, Any],
        clusterer_factory: ClustererFactory | None = None,
    ) -> None:
        self.source = source
        self.settings = settings
        self.clusterer_factory = clusterer_factory or self._default_clusterer

    def _default_clusterer(self, api_key: str) -> SkillClusterer:
        return SkillClusterer(
            api_key,
            model=self.settings["llm_model"],
            base_url=self.settings["llm_base_url"],
            max_size=self.settings["max_cluster_size"],
        )

    def engine_for(self, user: User) -> AggregationEngine:
        clusterer = self.clusterer_factory(llm_key_for(user))
        return AggregationEngine.from_settings(self.source, clusterer, self.settings)

    # ── Recommendations ─────────────────────────────────────────────────

    @staticmethod
    def load_resume(resumes: ResumeStore, user_id: int, resume_id: int | None) -> Resume:
        if resume_id is not None:
            resume = resumes.find_by_id(resume_id, user_id)
        else:
            resume = resumes.find_latest_for_user(user_id)
        if resume is None or not resume.extracted_data:
            raise NotFoundError("No resume with extracted data found")
        return resume

    def recommend(
        self,
        user: User,
        resumes: ResumeStore,
        resume_id: int | None = None,
        limit: int | None = None,
        offset: int | None = None,
        cancel: threading.Event | None = None,
    ) -> dict[str, Any]:
        resume = self.load_resume(resumes, user.id, resume_id)
        data = resume.extracted_data
        skills = [s for s in (data.get("skills") or []) if isinstance(s, str)]
        if not skills:
            return {"jobs": [], "totalRecommendations": 0}

        result = self.engine_for(user).recommend(
            skills,
            location=data.get("location"),
            location_city=data.get("location_city"),
            location_country=data.get("location_country"),
            limit=limit if limit is not None else self.settings["default_limit"],
            offset=offset,
            cancel=cancel,
        )
        if result.clusters_used == 0:
            return {"jobs": [], "totalRecommendations": 0}

        log.info(
            "Recommendations for user id=%d resume id=%d: %d total, %d returned",
            user.id, resume.id, result.total, len(result.jobs),
        )
        return {
            "jobs": [camelize(entry.to_dict()) for entry in result.jobs],
            "totalRecommendations": result.total,
            "basedOnResume": resume_id if resume_id is not None else "Most recent resume",
            "clustersUsed": result.clusters_used,
            "avgJobsPerCluster": result.avg_jobs_per_cluster,
            "failedQueries": result.failed_queries,
        }

    # ── Manual search / details ─────────────────────────────────────────

    def search(
        self,
        user: User,
        resumes: ResumeStore,
        query: ListingQuery,
        resume_id: int | None = None,
    ) -> dict[str, Any]:
        keywords, location = query.keywords, query.location
        if resume_id is not None:
            resume = resumes.find_by_id(resume_id, user.id)
            if resume is None:
                raise NotFoundError("Resume not found")
            data = resume.extracted_data or {}
            skills = data.get("skills") or []
            if not keywords and skills:
                keywords = ", ".join(skills[:5])
            if not location and data.get("location"):
                location = data["location"]

        if not keywords and not location:
            raise ValidationFailed(
                "Either keywords or location must be provided, or a resume id with extracted data"
            )

        resolved = replace(query, keywords=keywords or "", location=location or "", start=max(query.start, 0))
        listings = self.source.search(resolved)
        return {
            "jobs": [camelize(listing.to_dict()) for listing in listings],
            "searchParams": camelize(asdict(resolved)),
            "totalResults": len(listings),
        }

    def details(self, listing_id: str) -> dict[str, Any]:
        if not listing_id.strip():
            raise ValidationFailed("Job ID is required")
        return camelize(self.source.fetch_details(listing_id.strip()).to_dict())
