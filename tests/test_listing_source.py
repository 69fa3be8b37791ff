"""LinkedIn guest client: parameter mapping, fragment parsing, transport errors."""
from __future__ import annotations

from unittest import mock

import pytest
import requests

from hiremind.errors import SourceUnavailable
from hiremind.models import ListingQuery
from hiremind.sources import LinkedInGuestSource, MockSource, get_source
from hiremind.sources.linkedin import (
    SEARCH_URL,
    build_search_params,
    build_search_url,
    listing_key,
    parse_details,
    parse_listings,
)

SEARCH_FRAGMENT = """
<li>
  <div class="base-card relative base-search-card job-search-card">
    <a class="base-card__full-link" href="https://in.linkedin.com/jobs/view/python-developer-at-acme-3912345678?refId=abc&amp;trk=public_jobs">
      <span class="sr-only">Python Developer</span>
    </a>
    <div class="base-search-card__info">
      <h3 class="base-search-card__title">Python Developer</h3>
      <h4 class="base-search-card__subtitle"><a>Acme Corp</a></h4>
      <div class="base-search-card__metadata">
        <span class="job-search-card__location">Pune, Maharashtra, India</span>
        <time class="job-search-card__listdate">2 days ago</time>
      </div>
    </div>
  </div>
</li>
<li>
  <div class="base-card base-search-card">
    <a class="base-card__full-link" href="https://in.linkedin.com/jobs/view/data-engineer-at-globex-3900000001?trk=x"></a>
    <h3 class="base-search-card__title">Data Engineer</h3>
  </div>
</li>
<li>
  <div class="base-card base-search-card">
    <h3 class="base-search-card__title">No link here</h3>
  </div>
</li>
<li>
  <div class="base-card base-search-card">
    <a class="base-card__full-link" href="https://in.linkedin.com/jobs/view/untitled-3900000002"></a>
  </div>
</li>
"""

DETAILS_FRAGMENT = """
<section>
  <h2 class="top-card-layout__title">Python Developer</h2>
  <a class="topcard__org-name-link">Acme Corp</a>
  <span class="topcard__flavor--bullet">Pune, Maharashtra, India</span>
  <div class="show-more-less-html__markup">Build APIs with Django.</div>
  <ul>
    <li class="description__job-criteria-item">Mid-Senior level</li>
    <li class="description__job-criteria-item">Full-time</li>
  </ul>
</section>
"""


def _response(status: int, text: str = "") -> mock.Mock:
    return mock.Mock(status_code=status, text=text)


# ── Identity key ─────────────────────────────────────────────────────────


@pytest.mark.parametrize("url, key", [
    ("https://in.linkedin.com/jobs/view/python-developer-at-acme-3912345678?refId=abc&trk=x", "3912345678"),
    ("https://www.linkedin.com/jobs/view/python-developer-at-acme-3912345678/", "3912345678"),
    ("https://www.linkedin.com/jobs/view/3912345678#apply", "3912345678"),
    ("https://www.linkedin.com/jobs/view/senior-engineer-at-acme?trk=a", "senior-engineer-at-acme"),
    ("https://www.linkedin.com/jobs/view/junior-engineer-at-acme/", "junior-engineer-at-acme"),
])
def test_listing_key_ignores_tracking_parameters(url, key):
    assert listing_key(url) == key


def test_postings_without_numeric_id_keep_distinct_keys():
    fragment = "".join(
        f'<li><div class="base-card"><a class="base-card__full-link" href="{href}"></a>'
        f'<h3 class="base-search-card__title">{title}</h3></div></li>'
        for href, title in [
            ("https://in.linkedin.com/jobs/view/senior-engineer-at-acme?trk=a", "Senior Engineer"),
            ("https://in.linkedin.com/jobs/view/junior-engineer-at-acme?trk=b", "Junior Engineer"),
        ]
    )
    senior, junior = parse_listings(fragment)
    assert senior.id != junior.id
    assert senior.id == "senior-engineer-at-acme"


# ── Query mapping ────────────────────────────────────────────────────────


def test_absent_fields_are_not_sent():
    params = build_search_params(ListingQuery(keywords="Python Django"))
    assert params == {"keywords": "Python Django"}


def test_all_fields_map_to_provider_parameters():
    query = ListingQuery(
        keywords="SQL",
        location="India",
        start=20,
        work_schedule="2",
        experience_level="4",
        job_type="F",
        posted_within="r604800",
        simplified_application=True,
        less_than_10_applicants=True,
    )
    assert build_search_params(query) == {
        "keywords": "SQL",
        "location": "India",
        "start": "20",
        "f_WT": "2",
        "f_E": "4",
        "f_JT": "F",
        "f_TPR": "r604800",
        "f_AL": "true",
        "f_JIYN": "true",
    }


def test_search_url_encodes_parameters():
    assert build_search_url(ListingQuery()) == SEARCH_URL
    url = build_search_url(ListingQuery(keywords="C++ Qt", location="Pune, India"))
    assert url.startswith(SEARCH_URL + "?")
    assert "keywords=C%2B%2B+Qt" in url
    assert "location=Pune%2C+India" in url


# ── Parsing ──────────────────────────────────────────────────────────────


def test_parse_listings_extracts_fields_and_skips_bad_blocks():
    listings = parse_listings(SEARCH_FRAGMENT)

    assert [l.id for l in listings] == ["3912345678", "3900000001"]
    first = listings[0]
    assert first.title == "Python Developer"
    assert first.company == "Acme Corp"
    assert first.location == "Pune, Maharashtra, India"
    assert first.post_time == "2 days ago"
    assert first.job_url.startswith("https://in.linkedin.com/jobs/view/python-developer-at-acme-3912345678")
    assert first.application_url == first.job_url


def test_missing_optional_fields_get_placeholders():
    second = parse_listings(SEARCH_FRAGMENT)[1]
    assert second.company == "Unknown Company"
    assert second.location == "Location not specified"
    assert second.post_time == "Time not specified"


def test_parse_listings_on_empty_fragment():
    assert parse_listings("") == []
    assert parse_listings("<html><body>No jobs</body></html>") == []


def test_parse_details():
    detail = parse_details(DETAILS_FRAGMENT)
    assert detail.title == "Python Developer"
    assert detail.company == "Acme Corp"
    assert detail.location == "Pune, Maharashtra, India"
    assert detail.description == "Build APIs with Django."
    assert detail.requirements == ["Mid-Senior level", "Full-time"]
    assert detail.application_url is None


# ── Transport ────────────────────────────────────────────────────────────


def test_search_sends_params_and_timeout():
    session = mock.Mock()
    session.get.return_value = _response(200, SEARCH_FRAGMENT)
    source = LinkedInGuestSource(timeout=4.0, session=session)

    listings = source.search(ListingQuery(keywords="Python", location="India"))

    assert len(listings) == 2
    args, kwargs = session.get.call_args
    assert args[0] == SEARCH_URL
    assert kwargs["params"] == {"keywords": "Python", "location": "India"}
    assert kwargs["timeout"] == 4.0


def test_non_200_status_is_source_unavailable():
    session = mock.Mock()
    session.get.return_value = _response(429)
    source = LinkedInGuestSource(session=session)

    with pytest.raises(SourceUnavailable):
        source.search(ListingQuery(keywords="Python"))
    assert session.get.call_count == 1


def test_timeouts_are_retried_then_reported():
    session = mock.Mock()
    session.get.side_effect = requests.Timeout("read timed out")
    source = LinkedInGuestSource(attempts=3, session=session)

    with pytest.raises(SourceUnavailable):
        source.search(ListingQuery(keywords="Python"))
    assert session.get.call_count == 3


def test_transient_error_then_success():
    session = mock.Mock()
    session.get.side_effect = [requests.ConnectionError("reset"), _response(200, SEARCH_FRAGMENT)]
    source = LinkedInGuestSource(attempts=2, session=session)

    assert len(source.search(ListingQuery(keywords="Python"))) == 2


def test_fetch_details_uses_posting_endpoint():
    session = mock.Mock()
    session.get.return_value = _response(200, DETAILS_FRAGMENT)
    source = LinkedInGuestSource(session=session)

    detail = source.fetch_details("3912345678")

    assert detail.title == "Python Developer"
    assert session.get.call_args[0][0].endswith("/jobPosting/3912345678")


# ── Registry / offline source ────────────────────────────────────────────


def test_get_source_by_name():
    assert isinstance(get_source({"listing_source": "mock"}), MockSource)
    assert isinstance(get_source({"listing_source": "linkedin"}), LinkedInGuestSource)
    with pytest.raises(ValueError):
        get_source({"listing_source": "indeed"})


def test_mock_source_is_deterministic_and_single_page():
    source = MockSource()
    a = source.search(ListingQuery(keywords="Python Django", location="India"))
    b = source.search(ListingQuery(keywords="Python SQL", location="India"))

    assert [l.title.split()[0] for l in a] == ["Python", "Django"]
    assert a[0].id == b[0].id
    assert source.search(ListingQuery(keywords="Python", start=10)) == []
