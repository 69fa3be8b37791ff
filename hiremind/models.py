"""Data models for listings, search queries and recommendation results."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

SkillCluster = tuple[str, ...]


class ContextKind(str, Enum):
    LOCAL = "local"
    NATIONAL = "national"
    REMOTE = "remote"


@dataclass(frozen=True)
class SearchContext:
    kind: ContextKind
    location: str = ""

    @property
    def is_remote(self) -> bool:
        return self.kind is ContextKind.REMOTE


@dataclass(frozen=True)
class ListingQuery:
    """Parameters of one search against the listing provider.

    Empty strings and ``None`` mean "not sent"; the client only puts
    non-empty fields on the wire.
    """

    keywords: str = ""
    location: str = ""
    start: int = 0
    work_schedule: str | None = None
    experience_level: str | None = None
    job_type: str | None = None
    posted_within: str | None = None
    simplified_application: bool = False
    less_than_10_applicants: bool = False


@dataclass
class Listing:
    id: str
    title: str
    company: str
    location: str
    post_time: str
    job_url: str
    application_url: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ListingDetail:
    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    requirements: list[str] = field(default_factory=list)
    benefits: str = ""
    application_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AggregatedListing:
    """A listing plus the distinct cluster keyword strings that found it."""

    listing: Listing
    cluster_source: str
    context: ContextKind
    _matched: dict[str, None] = field(default_factory=dict, repr=False)

    @classmethod
    def first_seen(cls, listing: Listing, keywords: str, context: ContextKind) -> "AggregatedListing":
        entry = cls(listing=listing, cluster_source=keywords, context=context)
        entry.add_match(keywords)
        return entry

    def add_match(self, keywords: str) -> None:
        self._matched.setdefault(keywords, None)

    @property
    def matched_clusters(self) -> list[str]:
        return list(self._matched)

    @property
    def match_count(self) -> int:
        return len(self._matched)

    @property
    def key(self) -> str:
        return self.listing.id

    def to_dict(self) -> dict[str, Any]:
        data = self.listing.to_dict()
        data.update(
            matched_clusters=self.matched_clusters,
            match_count=self.match_count,
            cluster_source=self.cluster_source,
            context=self.context.value,
        )
        return data


@dataclass
class RecommendationResult:
    jobs: list[AggregatedListing]
    total: int
    clusters_used: int = 0
    avg_jobs_per_cluster: int = 0
    failed_queries: int = 0
    queries_issued: int = 0
    cancelled: bool = False

    @classmethod
    def empty(cls) -> "RecommendationResult":
        return cls(jobs=[], total=0)
