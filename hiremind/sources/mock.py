"""Offline listing source for local development without network access."""
from __future__ import annotations

import hashlib

from hiremind.log import get_logger
from hiremind.models import Listing, ListingDetail, ListingQuery
from hiremind.sources.base import ListingSource

log = get_logger(__name__)

_COMPANIES = ["TechCorp India", "CloudScale SaaS", "Enterprise Platform Inc", "DataWorks", "Finlytics"]
_TITLES = ["Engineer", "Developer", "Senior Engineer", "Consultant", "Lead"]


def _mock_id(*parts: str) -> str:
    digest = hashlib.sha256("|".join(parts).encode()).hexdigest()
    return str(int(digest[:10], 16))


class MockSource(ListingSource):
    """Deterministic listings derived from the query's keywords.

    Each keyword yields one listing, so overlapping clusters share listings
    and exercise the same dedup path as live data.  Only the first page has
    results.
    """

    def __init__(self, per_page: int = 10) -> None:
        self.per_page = per_page

    def search(self, query: ListingQuery) -> list[Listing]:
        if query.start:
            return []
        where = query.location or ("Remote" if query.work_schedule else "Anywhere")
        listings: list[Listing] = []
        for i, word in enumerate(query.keywords.replace(",", " ").split()[: self.per_page]):
            listing_id = _mock_id(word.lower(), where)
            url = f"https://example.com/jobs/view/{word.lower()}-{listing_id}"
            listings.append(
                Listing(
                    id=listing_id,
                    title=f"{word} {_TITLES[i % len(_TITLES)]}",
                    company=_COMPANIES[i % len(_COMPANIES)],
                    location=where,
                    post_time="1 day ago",
                    job_url=url,
                    application_url=url,
                )
            )
        log.info("MockSource generated %d listings for %r", len(listings), query.keywords)
        return listings

    def fetch_details(self, listing_id: str) -> ListingDetail:
        return ListingDetail(
            title="Sample role",
            company=_COMPANIES[0],
            location="Remote",
            description=f"Offline sample posting {listing_id}.",
            requirements=["Mid-Senior level", "Full-time"],
        )
