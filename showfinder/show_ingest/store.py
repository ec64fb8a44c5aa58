"""
Data access for the show ingest job.

Everything the pipeline reads or writes goes through an IngestStore that is
constructed once and passed in, so tests can hand the pipeline an in-memory
SQLite engine (or a fake) instead of the production database.

Every write is a single-row statement in its own transaction. Feedback is one
UPDATE that adjusts counters in SQL (no read-then-write), so two runners
touching the same source cannot lose an increment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.types import JSON, Boolean, DateTime

from .models import ScrapingSource, ShowStatus, source_from_row


class IngestStore(ABC):
    @abstractmethod
    def top_sources(self, limit: int) -> List[ScrapingSource]:
        raise NotImplementedError

    @abstractmethod
    def insert_pending(self, source_url: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def apply_outcome(self, url: str, *, success: bool, priority_delta: int, now: datetime) -> bool:
        """Apply one run outcome to a source row. Returns False if no row matched."""
        raise NotImplementedError

    @abstractmethod
    def recent_pending(self, limit: int) -> List[Dict[str, Any]]:
        raise NotImplementedError


# -----------------------------
# SQL
# -----------------------------
_TOP_SOURCES_SQL = text(
    """
    SELECT
        url,
        enabled,
        priority_score,
        error_streak,
        last_success_at,
        last_error_at
    FROM scraping_sources
    WHERE enabled = :enabled
    ORDER BY priority_score DESC, last_success_at ASC NULLS FIRST, url ASC
    LIMIT :lim
    """
).columns(
    enabled=Boolean(),
    last_success_at=DateTime(timezone=True),
    last_error_at=DateTime(timezone=True),
)

_INSERT_PENDING_SQL = text(
    """
    INSERT INTO scraped_shows_pending (source_url, raw_payload, status, created_at)
    VALUES (:source_url, :raw_payload, :status, :created_at)
    """
).bindparams(
    bindparam("raw_payload", type_=JSON()),
    bindparam("created_at", type_=DateTime(timezone=True)),
)

_APPLY_SUCCESS_SQL = text(
    """
    UPDATE scraping_sources
    SET
        error_streak = 0,
        last_success_at = :now,
        priority_score = priority_score + :delta,
        updated_at = :now
    WHERE url = :url
    """
).bindparams(bindparam("now", type_=DateTime(timezone=True)))

_APPLY_FAILURE_SQL = text(
    """
    UPDATE scraping_sources
    SET
        error_streak = error_streak + 1,
        last_error_at = :now,
        priority_score = priority_score + :delta,
        updated_at = :now
    WHERE url = :url
    """
).bindparams(bindparam("now", type_=DateTime(timezone=True)))

_RECENT_PENDING_SQL = text(
    """
    SELECT id, source_url, raw_payload, status, created_at
    FROM scraped_shows_pending
    WHERE status = :status
    ORDER BY created_at DESC, id DESC
    LIMIT :lim
    """
).columns(raw_payload=JSON(), created_at=DateTime(timezone=True))


class SqlIngestStore(IngestStore):
    """IngestStore over a SQLAlchemy engine (PostgreSQL in production, SQLite in tests)."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def top_sources(self, limit: int) -> List[ScrapingSource]:
        with self.engine.begin() as conn:
            rows = conn.execute(_TOP_SOURCES_SQL, {"enabled": True, "lim": limit}).mappings().all()
        return [source_from_row(dict(r)) for r in rows]

    def insert_pending(self, source_url: str, payload: Dict[str, Any], created_at: Optional[datetime] = None) -> None:
        params = {
            "source_url": source_url,
            "raw_payload": payload,
            "status": ShowStatus.PENDING.value,
            "created_at": created_at or datetime.now(timezone.utc),
        }
        with self.engine.begin() as conn:
            conn.execute(_INSERT_PENDING_SQL, params)

    def apply_outcome(self, url: str, *, success: bool, priority_delta: int, now: datetime) -> bool:
        stmt = _APPLY_SUCCESS_SQL if success else _APPLY_FAILURE_SQL
        with self.engine.begin() as conn:
            res = conn.execute(stmt, {"url": url, "delta": int(priority_delta), "now": now})
            return int(res.rowcount or 0) > 0

    def recent_pending(self, limit: int) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                _RECENT_PENDING_SQL, {"status": ShowStatus.PENDING.value, "lim": limit}
            ).mappings().all()
        return [dict(r) for r in rows]
