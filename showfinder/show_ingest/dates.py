"""
Best-effort calendar parsing for show dates as they appear on promoter sites.

Handles the usual suspects:
  "2025-06-07", "6/7/25", "June 7, 2025", "Sat June 7th", "7 June 2025",
  "January 5-6, 2025", "Aug 23-24", "June 28 - July 1, 2025", "Dec 31-Jan 1",
  "Aug 2 AL", "June 7 (doors 9am)", "Saturday, June 14, 2025 9-3"

A date needs both a month and a day in the text. Anything else ("10am-4pm",
"TBA 2026", "$5"), or that dateutil cannot make sense of, is None.
Dates written without a year take the run year, rolled to next year when
they have already passed (promoter pages list the *next* occurrence).
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Tuple

from dateutil import parser as dtparser

_STATE_ABBRS = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA", "HI", "ID", "IL", "IN", "IA",
    "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC", "SD", "TN", "TX", "UT", "VT",
    "VA", "WA", "WV", "WI", "WY", "DC",
)

# Case-sensitive: "or", "me", "in" are words, "OR", "ME", "IN" are states.
_STATE_SUFFIX_RE = re.compile(r"\s+(?:%s)\b" % "|".join(_STATE_ABBRS))
_PAREN_RE = re.compile(r"\(.*?\)")
_WS_RE = re.compile(r"\s{2,}")
_ORDINAL_RE = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.I)

# "January 5-6, 2025" / "Aug 23 - 24" / "Aug 23–24 2025"
_DAY_RANGE_RE = re.compile(r"^(.*?)([A-Za-z]+\.?)\s+(\d{1,2})\s*[-–—]\s*(\d{1,2})\b(.*)$")

# "June 28 - July 1, 2025" / "Dec 31-Jan 1" / "6/28/2025 - 7/1/2025"
_CROSS_RANGE_RE = re.compile(r"^(.+?)(?:\s+[-–—]\s+|\s*[-–—]\s*(?=[A-Za-z]))(.+)$")

# Opening hours: "10am-4pm", "9 a.m. - 3 p.m.", and bare "9-3" right after a year
_HOURS_RE = re.compile(r"\b\d{1,2}(?::\d{2})?\s*(?:[ap]\.?m\.?)?\s*[-–—]\s*\d{1,2}(?::\d{2})?\s*[ap]\.?m\.?(?![a-z])", re.I)
_YEAR_HOURS_RE = re.compile(r"(\b\d{4}),?\s+\d{1,2}(?::\d{2})?\s*[-–—]\s*\d{1,2}(?::\d{2})?\s*$")

_YEAR_RE = re.compile(r"\b\d{4}\b")
_SLASH_YEAR_RE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b")


def clean_date_string(raw: str) -> str:
    s = (raw or "").strip()
    s = _PAREN_RE.sub(" ", s)
    s = _HOURS_RE.sub(" ", s)
    s = _YEAR_HOURS_RE.sub(r"\1", s)
    s = _STATE_SUFFIX_RE.sub(" ", s)
    s = _ORDINAL_RE.sub(r"\1", s)
    s = _WS_RE.sub(" ", s)
    return s.strip(" ,")


def _has_explicit_year(s: str) -> bool:
    return bool(_YEAR_RE.search(s) or _SLASH_YEAR_RE.search(s))


def _parse_single(s: str, today: date) -> Optional[date]:
    if not s or not any(ch.isdigit() for ch in s):
        return None

    try:
        parsed = dtparser.parse(s, default=datetime(today.year, 1, 1), fuzzy=True, ignoretz=True).date()
        alt = dtparser.parse(s, default=datetime(today.year, 2, 2), fuzzy=True, ignoretz=True).date()
    except (ValueError, OverflowError):
        return None

    # month or day filled in from the default: the text holds no calendar date
    if (parsed.month, parsed.day) != (alt.month, alt.day):
        return None

    if not _has_explicit_year(s) and parsed < today:
        try:
            parsed = parsed.replace(year=parsed.year + 1)
        except ValueError:
            # Feb 29 rolled into a non-leap year
            return None
    return parsed


def _parse_cross_range(s: str, today: date) -> Optional[Tuple[date, date]]:
    """Ranges whose ends are full dates of their own, e.g. across a month."""
    m = _CROSS_RANGE_RE.match(s)
    if not m:
        return None
    left, right = m.group(1).strip(" ,"), m.group(2).strip(" ,")

    # "June 28 - July 1, 2025": the year is written once, on the right
    inherited = False
    year = _YEAR_RE.search(right)
    if year and not _has_explicit_year(left):
        left = f"{left} {year.group(0)}"
        inherited = True

    start = _parse_single(left, today)
    end = _parse_single(right, today)
    if start is None or end is None:
        return None

    if end < start:
        try:
            if inherited:
                # "Dec 31-Jan 1, 2026" starts the year before
                start = start.replace(year=start.year - 1)
            else:
                end = end.replace(year=end.year + 1)
        except ValueError:
            return None
    return start, end


def parse_date_span(raw: Optional[str], today: date) -> Optional[Tuple[date, date]]:
    """
    Parse one free-text date field into (first_day, last_day).

    A plain date gives (d, d); a day range like "Jan 5-6, 2025" gives
    (Jan 5, Jan 6), and "June 28 - July 1, 2025" gives (June 28, July 1).
    Unparseable input gives None.
    """
    if raw is None:
        return None
    s = clean_date_string(str(raw))
    if not s:
        return None

    m = _DAY_RANGE_RE.match(s)
    if m:
        prefix, month, start_day, end_day, rest = m.groups()
        start = _parse_single(f"{prefix}{month} {start_day}{rest}", today)
        end = _parse_single(f"{prefix}{month} {end_day}{rest}", today)
        if start is None:
            return None
        if end is None or end < start:
            end = start
        return start, end

    span = _parse_cross_range(s, today)
    if span is not None:
        return span

    d = _parse_single(s, today)
    if d is None:
        return None
    return d, d


def resolve_show_range(
    start_raw: Optional[str],
    end_raw: Optional[str],
    today: date,
) -> Optional[Tuple[date, date]]:
    """
    Resolve a candidate's (start, end) dates from its two raw fields.

    - start: first day of the start field, else first day of the end field
    - end:   last day of the end field, else last day of the start field
    - end never precedes start
    Returns None when neither field parses.
    """
    start_span = parse_date_span(start_raw, today)
    end_span = parse_date_span(end_raw, today)

    if start_span is None and end_span is None:
        return None

    start = start_span[0] if start_span else end_span[0]  # type: ignore[index]
    end = end_span[1] if end_span else start_span[1]  # type: ignore[index]
    if end < start:
        end = start
    return start, end
