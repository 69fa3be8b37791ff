"""Shared fixtures: offline fakes for the listing source and the clusterer."""
from __future__ import annotations

import os

# before any hiremind import configures logging
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("APP_ENV", "development")

import threading

import pytest

from hiremind.errors import SourceUnavailable
from hiremind.models import Listing, ListingDetail, ListingQuery
from hiremind.sources.base import ListingSource


def make_listing(listing_id: str, title: str = "") -> Listing:
    url = f"https://www.linkedin.com/jobs/view/{title.lower().replace(' ', '-') or 'role'}-{listing_id}?trk=x"
    return Listing(
        id=listing_id,
        title=title or f"Role {listing_id}",
        company="Acme",
        location="Anywhere",
        post_time="1 day ago",
        job_url=url,
        application_url=url,
    )


class FakeSource(ListingSource):
    """Scripted listing source.

    *pages* maps ``(keywords, location, start)`` to a list of listing ids or
    to an exception instance that the search raises.  Unknown queries return
    no listings.  Every query is recorded.
    """

    def __init__(self, pages: dict | None = None) -> None:
        self.pages = pages or {}
        self.calls: list[ListingQuery] = []
        self._lock = threading.Lock()

    def search(self, query: ListingQuery) -> list[Listing]:
        with self._lock:
            self.calls.append(query)
        result = self.pages.get((query.keywords, query.location, query.start), [])
        if isinstance(result, Exception):
            raise result
        return [make_listing(i) for i in result]

    def fetch_details(self, listing_id: str) -> ListingDetail:
        if listing_id == "missing":
            raise SourceUnavailable("LinkedIn returned status 404")
        return ListingDetail(title=f"Role {listing_id}", company="Acme", description="Build things.")


class FakeClusterer:
    def __init__(self, clusters) -> None:
        self.clusters = [tuple(c) for c in clusters]
        self.calls: list[list[str]] = []

    def cluster(self, skills: list[str]):
        self.calls.append(list(skills))
        return list(self.clusters)


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    """Retry backoff must never slow the suite down."""
    monkeypatch.setattr("time.sleep", lambda _s: None)
