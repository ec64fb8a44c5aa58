"""
Source feedback: how one run's outcome moves a source's priority.

  success, shows > 0   error_streak=0, last_success_at=now, priority += min(shows, 5)
  success, shows == 0  error_streak=0, last_success_at=now, priority unchanged
  failure              error_streak += 1, last_error_at=now, priority -= 1

No floor on priority_score: a source that keeps failing sinks below the
rest of the list, but stays enabled.
"""

from __future__ import annotations

import logging
from datetime import datetime

from .models import RunOutcome
from .store import IngestStore

logger = logging.getLogger(__name__)

MAX_PRIORITY_BUMP = 5
FAILURE_PENALTY = 1


def priority_delta(outcome: RunOutcome) -> int:
    if not outcome.success:
        return -FAILURE_PENALTY
    return min(max(int(outcome.show_count), 0), MAX_PRIORITY_BUMP)


def apply_run_outcome(store: IngestStore, url: str, outcome: RunOutcome, *, now: datetime) -> bool:
    """
    Apply exactly one state transition to the source row. Best-effort: a
    failed write is logged and reported as False, never raised.
    """
    delta = priority_delta(outcome)
    try:
        updated = store.apply_outcome(url, success=outcome.success, priority_delta=delta, now=now)
    except Exception:
        logger.exception("[%s] failed to update scraping source stats", url)
        return False

    if not updated:
        logger.warning("[%s] no scraping_sources row to update (success=%s)", url, outcome.success)
    else:
        logger.info(
            "[%s] feedback applied: success=%s shows=%d priority_delta=%+d",
            url,
            outcome.success,
            outcome.show_count,
            delta,
        )
    return updated
