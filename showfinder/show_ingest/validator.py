from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .dates import resolve_show_range
from .models import SHOW_FIELDS, CandidateShow

logger = logging.getLogger(__name__)

VALID = "valid"
INVALID = "invalid"  # missing name, or no parseable date
STALE = "stale"      # parsed fine, but the whole show is before the run date


@dataclass
class ValidationResult:
    status: str
    reason: str
    candidate: Optional[CandidateShow] = None

    @property
    def ok(self) -> bool:
        return self.status == VALID


def _clean_value(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, str):
        s = v.strip()
        return s or None
    if isinstance(v, (bool, int, float)):
        return v
    return str(v)


def normalize_payload(raw: Dict[str, Any], source_url: str, extracted_at: datetime) -> Dict[str, Any]:
    """
    Shape a raw candidate into the queue's raw_payload.

    Only the known keys survive. endDate falls back to startDate and url to
    the source page.
    """
    payload = {k: _clean_value(raw.get(k)) for k in SHOW_FIELDS}
    if payload["name"] is not None and not isinstance(payload["name"], str):
        payload["name"] = str(payload["name"])
    if payload["endDate"] is None:
        payload["endDate"] = payload["startDate"]
    if payload["url"] is None:
        payload["url"] = source_url
    payload["extractedAt"] = extracted_at.astimezone(timezone.utc).isoformat()
    return payload


def validate_candidate(
    raw: Dict[str, Any],
    source_url: str,
    *,
    today: date,
    extracted_at: datetime,
) -> ValidationResult:
    """
    Turn one raw candidate into a typed CandidateShow, or say why not.

    invalid: no name, or neither startDate nor endDate parses
    stale:   the resolved show range ends before `today`
    A show that started in the past but ends today or later is kept.
    """
    payload = normalize_payload(raw, source_url, extracted_at)

    if not payload["name"]:
        return ValidationResult(INVALID, "missing name")

    span: Optional[Tuple[date, date]] = resolve_show_range(
        _as_text(payload["startDate"]), _as_text(_clean_value(raw.get("endDate"))), today
    )
    if span is None:
        return ValidationResult(INVALID, f"no parseable date (startDate={payload['startDate']!r})")

    start, end = span
    if end < today:
        return ValidationResult(STALE, f"past event ({start.isoformat()}..{end.isoformat()})")

    return ValidationResult(
        VALID,
        f"upcoming ({start.isoformat()}..{end.isoformat()})",
        CandidateShow(source_url=source_url, payload=payload, start_date=start, end_date=end),
    )


def _as_text(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


def filter_candidates(
    raws: List[Dict[str, Any]],
    source_url: str,
    *,
    today: date,
    extracted_at: datetime,
) -> Tuple[List[CandidateShow], int, int]:
    """
    Validate and date-filter a source's raw candidates.

    Returns (kept, invalid_count, stale_count). Each drop is logged at INFO as
    a structured `show_ingest_candidate_filtered` line with its outcome, so
    missing-field drops and stale drops can be told apart downstream.
    """
    kept: List[CandidateShow] = []
    invalid = 0
    stale = 0

    for raw in raws:
        result = validate_candidate(raw, source_url, today=today, extracted_at=extracted_at)
        if result.ok and result.candidate is not None:
            kept.append(result.candidate)
            continue

        if result.status == STALE:
            stale += 1
        else:
            invalid += 1

        logger.info(
            json.dumps(
                {
                    "event": "show_ingest_candidate_filtered",
                    "source_url": source_url,
                    "outcome": result.status,
                    "reason": result.reason,
                    "name": _as_text(raw.get("name")),
                },
                sort_keys=True,
            )
        )

    return kept, invalid, stale
