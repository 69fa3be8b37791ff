"""
Job-recommendation aggregation engine.

Runs: skills → clusters → (cluster × context × page) searches → dedup/merge
→ rank by match count → paginate.
"""
from __future__ import annotations

import math
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from hiremind.contexts import expand_contexts
from hiremind.log import get_logger
from hiremind.models import (
    AggregatedListing,
    Listing,
    ListingQuery,
    RecommendationResult,
    SearchContext,
    SkillCluster,
)
from hiremind.sources import REMOTE_WORK_SCHEDULE, ListingSource

log = get_logger(__name__)

DEFAULT_LIMIT = 50
PAGE_SIZE = 10
MAX_CLUSTER_SIZE = 5


class Clusterer(Protocol):
    def cluster(self, skills: list[str]) -> list[SkillCluster]: ...


@dataclass(frozen=True)
class _Pair:
    cluster_index: int
    context_index: int
    keywords: str
    context: SearchContext


@dataclass
class _PairOutcome:
    pair: _Pair
    pages: list[list[Listing]] = field(default_factory=list)
    issued: int = 0
    failed: int = 0


def cluster_keywords(cluster: Sequence[str], max_size: int = MAX_CLUSTER_SIZE) -> str:
    """Query keyword string for a cluster; also the token recorded on matches."""
    return " ".join(cluster[:max_size])


def clamp(value: int | None, default: int) -> int:
    if value is None:
        return default
    return max(int(value), 0)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def merge_pages(outcomes: list[_PairOutcome]) -> dict[str, AggregatedListing]:
    """Merge results in (cluster, context, page, position) order.

    Dict insertion order is the first-discovery order used to break ranking
    ties, so the result does not depend on which search finished first.
    """
    merged: dict[str, AggregatedListing] = {}
    for outcome in sorted(outcomes, key=lambda o: (o.pair.cluster_index, o.pair.context_index)):
        keywords = outcome.pair.keywords
        for page in outcome.pages:
            for listing in page:
                entry = merged.get(listing.id)
                if entry is None:
                    merged[listing.id] = AggregatedListing.first_seen(listing, keywords, outcome.pair.context.kind)
                else:
                    entry.add_match(keywords)
    return merged


def rank(entries: list[AggregatedListing]) -> list[AggregatedListing]:
    # sorted() is stable: equal counts keep first-discovery order
    return sorted(entries, key=lambda e: e.match_count, reverse=True)


class AggregationEngine:
    def __init__(
        self,
        source: ListingSource,
        clusterer: Clusterer,
        *,
        pages_per_context: int = 1,
        page_size: int = PAGE_SIZE,
        max_cluster_size: int = MAX_CLUSTER_SIZE,
        max_workers: int = 1,
    ) -> None:
        self.source = source
        self.clusterer = clusterer
        self.pages_per_context = max(pages_per_context, 0)
        self.page_size = max(page_size, 1)
        self.max_cluster_size = max_cluster_size
        self.max_workers = max(max_workers, 1)

    @classmethod
    def from_settings(cls, source: ListingSource, clusterer: Clusterer, settings: dict) -> "AggregationEngine":
        return cls(
            source,
            clusterer,
            pages_per_context=settings.get("pages_per_context", 1),
            page_size=settings.get("page_size", PAGE_SIZE),
            max_cluster_size=settings.get("max_cluster_size", MAX_CLUSTER_SIZE),
            max_workers=settings.get("max_workers", 1),
        )

    def _query(self, pair: _Pair, page: int) -> ListingQuery:
        return ListingQuery(
            keywords=pair.keywords,
            location=pair.context.location,
            start=page * self.page_size,
            work_schedule=REMOTE_WORK_SCHEDULE if pair.context.is_remote else None,
        )

    def _run_pair(self, pair: _Pair, cancel: threading.Event | None) -> _PairOutcome:
        outcome = _PairOutcome(pair)
        for page in range(self.pages_per_context):
            if cancel is not None and cancel.is_set():
                break
            outcome.issued += 1
            try:
                listings = self.source.search(self._query(pair, page))
            except Exception as exc:
                outcome.failed += 1
                log.warning(
                    "Search failed for cluster [%s] context [%s] page %d: %s",
                    pair.keywords, pair.context.kind.value, page, exc,
                )
                continue
            outcome.pages.append(listings)
            if len(listings) < self.page_size:
                break
        return outcome

    def _run_pairs(self, pairs: list[_Pair], cancel: threading.Event | None) -> list[_PairOutcome]:
        if self.max_workers == 1 or len(pairs) <= 1:
            return [self._run_pair(p, cancel) for p in pairs]

        outcomes: list[_PairOutcome] = []
        workers = min(self.max_workers, len(pairs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="listing-search") as pool:
            futures = {pool.submit(self._run_pair, p, cancel): p for p in pairs}
            for future in as_completed(futures):
                outcomes.append(future.result())
        return outcomes

    def recommend(
        self,
        skills: Sequence[str],
        location: str | None = None,
        location_city: str | None = None,
        location_country: str | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None,
        cancel: threading.Event | None = None,
    ) -> RecommendationResult:
        limit = clamp(limit, DEFAULT_LIMIT)
        offset = clamp(offset, 0)

        skills = [s for s in (skills or []) if s]
        if not skills:
            log.info("No skills on resume; returning empty recommendations")
            return RecommendationResult.empty()

        clusters = self.clusterer.cluster(list(skills))
        if not clusters:
            log.info("Clusterer returned no clusters; returning empty recommendations")
            return RecommendationResult.empty()

        # local searches use the full resume location ("Pune, Maharashtra, India")
        contexts = expand_contexts(bool(location_city), location or location_city or "", location_country or "")
        pairs = [
            _Pair(ci, xi, cluster_keywords(cluster, self.max_cluster_size), ctx)
            for ci, cluster in enumerate(clusters)
            for xi, ctx in enumerate(contexts)
        ]
        log.info("Aggregating %d cluster(s) x %d context(s)", len(clusters), len(contexts))

        outcomes = self._run_pairs(pairs, cancel)
        ranked = rank(list(merge_pages(outcomes).values()))

        issued = sum(o.issued for o in outcomes)
        failed = sum(o.failed for o in outcomes)
        cancelled = cancel is not None and cancel.is_set()
        log.info(
            "Aggregation complete: %d unique listings from %d queries (%d failed)%s",
            len(ranked), issued, failed, " [cancelled]" if cancelled else "",
        )

        return RecommendationResult(
            jobs=ranked[offset: offset + limit],
            total=len(ranked),
            clusters_used=len(clusters),
            avg_jobs_per_cluster=round_half_up(len(ranked) / len(clusters)),
            failed_queries=failed,
            queries_issued=issued,
            cancelled=cancelled,
        )
