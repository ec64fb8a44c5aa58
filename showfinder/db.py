"""
showfinder.db

Single source of truth for database connectivity.

Contracts this module provides:
- get_engine() helper (lazy; safe to import without DATABASE_URL)
- engine_from_url() for callers that build their own engine (tests, CLI)

Notes:
- DATABASE_URL is expected to be provided via environment (or a local .env).
- We normalize common scheme/driver variants to reduce footguns.
"""

from __future__ import annotations

import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine


def _normalize_database_url(raw: str) -> str:
    """
    Normalize DATABASE_URL variants to something SQLAlchemy can reliably use.

    We prefer psycopg2 (declared as psycopg2-binary).

    Normalizations:
    - postgres://  -> postgresql://
    - postgresql+psycopg:// -> postgresql+psycopg2://
    """
    url = (raw or "").strip()

    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]

    if url.startswith("postgresql+psycopg://"):
        url = "postgresql+psycopg2://" + url[len("postgresql+psycopg://") :]

    return url


_engine: Optional[Engine] = None


def engine_from_url(raw_url: str, **kwargs) -> Engine:
    return create_engine(_normalize_database_url(raw_url), future=True, **kwargs)


def get_engine() -> Engine:
    """Return the shared SQLAlchemy engine, creating it on first use."""
    global _engine
    if _engine is None:
        raw = os.environ.get("DATABASE_URL", "")
        if not raw:
            # Keep this loud and explicit: the job cannot do anything without it.
            raise RuntimeError(
                "DATABASE_URL is not set in environment. "
                "Export it (or add it to .env) before running the ingest job."
            )
        _engine = engine_from_url(raw)
    return _engine
