from __future__ import annotations

import logging
from typing import List

from .models import ScrapingSource
from .store import IngestStore

logger = logging.getLogger(__name__)


def select_sources(store: IngestStore, batch_size: int) -> List[ScrapingSource]:
    """
    Pick this run's sources: the `batch_size` enabled sources with the highest
    priority_score, ties going to the one that succeeded least recently
    (never-succeeded first).

    Read-only. An empty list means there is nothing to do this run.
    """
    if batch_size <= 0:
        return []

    sources = store.top_sources(batch_size)
    if not sources:
        logger.info("No enabled scraping sources; nothing to schedule.")
    else:
        logger.info(
            "Scheduled %d source(s): %s",
            len(sources),
            ", ".join(f"{s.url} (p={s.priority_score})" for s in sources),
        )
    return sources
