from .base import ListingSource
from .linkedin import LinkedInGuestSource, REMOTE_WORK_SCHEDULE
from .mock import MockSource

from hiremind.log import get_logger

log = get_logger(__name__)

__all__ = [
    "ListingSource", "LinkedInGuestSource", "MockSource",
    "REMOTE_WORK_SCHEDULE", "get_source",
]


def get_source(settings: dict) -> ListingSource:
    name = str(settings.get("listing_source", "linkedin")).lower()

    if name == "mock":
        log.info("Registered listing source: MockSource (offline)")
        return MockSource(per_page=settings.get("page_size", 10))

    if name != "linkedin":
        raise ValueError(f"Unknown listing_source: {name!r}")

    log.info("Registered listing source: LinkedIn guest search")
    return LinkedInGuestSource(
        timeout=settings.get("request_timeout", 10.0),
        attempts=settings.get("fetch_attempts", 2),
    )
