"""LinkedIn guest job search over the public "see more jobs" fragments.

No API key required.  The endpoints return HTML fragments without any
schema guarantee, so every field is extracted defensively.
"""
from __future__ import annotations

import warnings
from urllib.parse import urlencode, urlsplit

import requests
from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from hiremind.errors import MalformedListingBlock, SourceUnavailable
from hiremind.log import get_logger
from hiremind.models import Listing, ListingDetail, ListingQuery
from hiremind.retry import retry
from hiremind.sources.base import ListingSource

warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

log = get_logger(__name__)

SEARCH_URL = "https://www.linkedin.com/jobs-guest/jobs/api/seeMoreJobPostings/search"
DETAILS_URL = "https://www.linkedin.com/jobs-guest/jobs/api/jobPosting/{listing_id}"

# f_WT codes: 1 on-site, 2 remote, 3 hybrid
REMOTE_WORK_SCHEDULE = "2"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
}

_TRANSIENT = (requests.ConnectionError, requests.Timeout)


def listing_key(url: str) -> str:
    """Stable identity key for a listing URL.

    Query string and fragment are dropped.  When the final path segment ends
    in a numeric posting id (``.../python-developer-at-acme-3912345678``) the
    id is the key; otherwise the whole segment is.  Tracking parameters
    differ between result pages, the posting path does not.
    """
    path = urlsplit(url.strip()).path.rstrip("/")
    segment = path.rsplit("/", 1)[-1]
    tail = segment.rsplit("-", 1)[-1]
    return tail if tail.isdigit() else segment


def build_search_params(query: ListingQuery) -> dict[str, str]:
    """Map a query onto provider parameters; absent fields are not sent."""
    params: dict[str, str] = {}
    if query.keywords:
        params["keywords"] = query.keywords
    if query.location:
        params["location"] = query.location
    if query.experience_level:
        params["f_E"] = str(query.experience_level)
    if query.job_type:
        params["f_JT"] = str(query.job_type)
    if query.work_schedule:
        params["f_WT"] = str(query.work_schedule)
    if query.posted_within:
        params["f_TPR"] = str(query.posted_within)
    if query.start:
        params["start"] = str(query.start)
    if query.simplified_application:
        params["f_AL"] = "true"
    if query.less_than_10_applicants:
        params["f_JIYN"] = "true"
    return params


def build_search_url(query: ListingQuery) -> str:
    params = build_search_params(query)
    return f"{SEARCH_URL}?{urlencode(params)}" if params else SEARCH_URL


def _text(card, selector: str) -> str:
    node = card.select_one(selector)
    return node.get_text(" ", strip=True) if node else ""


def _parse_card(card) -> Listing:
    title = _text(card, '[class*="_title"]')
    link = card.select_one('[class*="_full-link"]')
    url = (link.get("href") or "").strip() if link else ""
    if not title or not url:
        raise MalformedListingBlock("listing block without title or URL")

    return Listing(
        id=listing_key(url),
        title=title,
        company=_text(card, '[class*="_subtitle"]') or "Unknown Company",
        location=_text(card, '[class*="_location"]') or "Location not specified",
        post_time=_text(card, '[class*="listdate"]') or "Time not specified",
        job_url=url,
        # guest posting URLs lead straight to the apply page
        application_url=url,
    )


def parse_listings(html: str) -> list[Listing]:
    """Extract listings from a search fragment; bad blocks are skipped."""
    soup = BeautifulSoup(html or "", "html.parser")
    listings: list[Listing] = []
    for card in soup.select("li > div.base-card"):
        try:
            listings.append(_parse_card(card))
        except MalformedListingBlock:
            continue
        except Exception as exc:
            log.warning("Skipping unparseable listing block: %s", exc)
    return listings


def parse_details(html: str) -> ListingDetail:
    soup = BeautifulSoup(html or "", "html.parser")

    def first(*selectors: str) -> str:
        for sel in selectors:
            value = _text(soup, sel)
            if value:
                return value
        return ""

    apply_link = soup.select_one(
        ".job-details-jobs-unified-top-card__apply-button, a.apply-button, [data-tracking-control-name*='apply']"
    )
    return ListingDetail(
        title=first(".job-details-jobs-unified-top-card__job-title", ".top-card-layout__title"),
        company=first(
            ".job-details-jobs-unified-top-card__company-name",
            ".topcard__org-name-link",
        ),
        location=first(
            ".job-details-jobs-unified-top-card__bullet",
            ".topcard__flavor--bullet",
        ),
        description=first(
            ".job-details-jobs-unified-top-card__job-description",
            ".show-more-less-html__markup",
            ".description__text",
        ),
        requirements=[
            node.get_text(" ", strip=True)
            for node in soup.select(
                ".job-details-jobs-unified-top-card__job-criteria-item, .description__job-criteria-item"
            )
            if node.get_text(strip=True)
        ],
        benefits=first(".job-details-jobs-unified-top-card__benefits"),
        application_url=apply_link.get("href") if apply_link else None,
    )


class LinkedInGuestSource(ListingSource):
    """Stateless client; one instance is shared across requests."""

    def __init__(self, timeout: float = 10.0, attempts: int = 2, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.attempts = attempts
        self.session = session or requests.Session()

    @retry(max_attempts=lambda self: self.attempts, base_delay=1.0, retryable=_TRANSIENT)
    def _get(self, url: str, params: dict[str, str] | None = None) -> str:
        r = self.session.get(url, params=params, headers=_HEADERS, timeout=self.timeout)
        if r.status_code != 200:
            raise SourceUnavailable(f"LinkedIn returned status {r.status_code}")
        return r.text

    def _fetch(self, url: str, params: dict[str, str] | None = None) -> str:
        try:
            return self._get(url, params)
        except requests.RequestException as exc:
            raise SourceUnavailable(f"LinkedIn request failed: {exc}") from exc

    def search(self, query: ListingQuery) -> list[Listing]:
        params = build_search_params(query)
        log.debug("LinkedIn search %s", params)
        listings = parse_listings(self._fetch(SEARCH_URL, params))
        log.debug("LinkedIn keywords=%r location=%r start=%d returned %d listings",
                  query.keywords, query.location, query.start, len(listings))
        return listings

    def fetch_details(self, listing_id: str) -> ListingDetail:
        return parse_details(self._fetch(DETAILS_URL.format(listing_id=listing_id)))
