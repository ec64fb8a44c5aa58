from __future__ import annotations

import logging
from typing import Sequence, Tuple

from .models import CandidateShow
from .store import IngestStore

logger = logging.getLogger(__name__)


def write_pending(store: IngestStore, source_url: str, candidates: Sequence[CandidateShow]) -> Tuple[int, int]:
    """
    Stage each candidate as a PENDING row for human review.

    Inserts are independent: one failing row is logged and skipped, the rest
    still go in. No dedupe against earlier runs; reviewers handle repeats.

    Returns (inserted, failed).
    """
    inserted = 0
    failed = 0
    for cand in candidates:
        try:
            store.insert_pending(source_url, cand.payload)
        except Exception:
            failed += 1
            logger.exception("[%s] failed to insert pending show %r", source_url, cand.payload.get("name"))
            continue
        inserted += 1

    if candidates:
        logger.info("[%s] inserted %d of %d candidate(s)", source_url, inserted, len(candidates))
    return inserted, failed
