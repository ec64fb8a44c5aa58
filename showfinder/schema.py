from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, BigInteger, Boolean, Index, Integer, String, Text, func, true
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from showfinder.show_ingest.models import ShowStatus


def utcnow():
    return datetime.now(tz=timezone.utc)


# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
PayloadJSON = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class ScrapingSourceRow(Base):
    __tablename__ = "scraping_sources"

    url: Mapped[str] = mapped_column(Text(), primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean(), default=True, server_default=true())
    priority_score: Mapped[int] = mapped_column(Integer(), default=0, server_default="0")
    error_streak: Mapped[int] = mapped_column(Integer(), default=0, server_default="0")
    last_success_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    last_error_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (
        Index("ix_scraping_sources_enabled_priority", "enabled", "priority_score"),
    )


class PendingShowRow(Base):
    __tablename__ = "scraped_shows_pending"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer(), "sqlite"), primary_key=True, autoincrement=True)
    source_url: Mapped[str] = mapped_column(Text(), index=True)
    raw_payload: Mapped[Dict[str, Any]] = mapped_column(PayloadJSON)
    # PENDING on insert; APPROVED/REJECTED are written by the review tooling only
    status: Mapped[str] = mapped_column(String(16), default=ShowStatus.PENDING.value, server_default=ShowStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (
        Index("ix_scraped_shows_pending_status_created_at", "status", "created_at"),
    )


def ensure_schema(engine) -> None:
    """Create the ingest tables if missing. Idempotent; never alters existing tables."""
    Base.metadata.create_all(engine, checkfirst=True)
