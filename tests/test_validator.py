from datetime import date, datetime, timezone

import pytest

from showfinder.show_ingest.models import ShowStatus
from showfinder.show_ingest.validator import (
    INVALID,
    STALE,
    VALID,
    filter_candidates,
    normalize_payload,
    validate_candidate,
)

SOURCE = "https://example.com/shows"
TODAY = date(2025, 6, 1)
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _validate(raw):
    return validate_candidate(raw, SOURCE, today=TODAY, extracted_at=NOW)


def test_payload_keeps_known_fields_and_fills_defaults():
    payload = normalize_payload(
        {"name": "  Summer Show ", "startDate": "2025-07-01", "entryFee": 5, "venueName": "", "bogus": "x"},
        SOURCE,
        NOW,
    )

    assert payload["name"] == "Summer Show"
    assert payload["endDate"] == "2025-07-01"
    assert payload["url"] == SOURCE
    assert payload["entryFee"] == 5
    assert payload["venueName"] is None
    assert payload["extractedAt"] == "2025-06-01T12:00:00+00:00"
    assert "bogus" not in payload


def test_extracted_url_is_kept():
    payload = normalize_payload({"name": "A", "url": "https://example.com/a"}, SOURCE, NOW)
    assert payload["url"] == "https://example.com/a"


def test_upcoming_show_is_valid():
    result = _validate({"name": "Summer Show", "startDate": "2025-07-01", "city": "Austin", "state": "TX"})

    assert result.status == VALID
    assert result.ok
    cand = result.candidate
    assert cand.status == ShowStatus.PENDING
    assert cand.start_date == date(2025, 7, 1)
    assert cand.end_date == date(2025, 7, 1)
    assert cand.payload["city"] == "Austin"


def test_past_start_without_end_is_stale():
    result = _validate({"name": "Old Show", "startDate": "2025-05-01"})
    assert result.status == STALE
    assert result.candidate is None


def test_show_running_through_today_is_kept():
    result = _validate({"name": "Long Weekend", "startDate": "2025-05-30", "endDate": "2025-06-02"})
    assert result.status == VALID
    assert result.candidate.end_date == date(2025, 6, 2)


def test_show_ending_today_is_kept():
    assert _validate({"name": "Last Day", "startDate": "2025-05-31", "endDate": "2025-06-01"}).status == VALID


def test_missing_name_is_invalid():
    assert _validate({"name": "   ", "startDate": "2025-07-01"}).status == INVALID
    assert _validate({"startDate": "2025-07-01"}).status == INVALID


def test_unparseable_start_is_invalid():
    assert _validate({"name": "Mystery Show", "startDate": "TBD"}).status == INVALID
    assert _validate({"name": "No Dates"}).status == INVALID


def test_filter_counts_each_drop_once():
    raws = [
        {"name": "Keep 1", "startDate": "2025-07-01"},
        {"name": "Keep 2", "startDate": "Aug 23-24, 2025"},
        {"name": "Stale", "startDate": "2025-01-15"},
        {"name": "", "startDate": "2025-07-01"},
        {"name": "Bad Date", "startDate": "soon"},
    ]

    kept, invalid, stale = filter_candidates(raws, SOURCE, today=TODAY, extracted_at=NOW)

    assert [c.payload["name"] for c in kept] == ["Keep 1", "Keep 2"]
    assert kept[1].end_date == date(2025, 8, 24)
    assert invalid == 2
    assert stale == 1


@pytest.mark.parametrize("start", ["10am-4pm", "TBA 2026", "Every 2nd Saturday", "$5"])
def test_start_without_a_calendar_date_is_invalid(start):
    result = _validate({"name": "Monthly Show", "startDate": start})
    assert result.status == INVALID
    assert result.candidate is None


def test_show_spanning_months_is_kept():
    result = _validate({"name": "Big Show", "startDate": "June 28 - July 1, 2025"})

    assert result.status == VALID
    assert (result.candidate.start_date, result.candidate.end_date) == (date(2025, 6, 28), date(2025, 7, 1))
