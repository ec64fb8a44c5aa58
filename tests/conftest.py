from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
import requests
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from showfinder.db import engine_from_url
from showfinder.integrations.llm_provider import LLMProvider
from showfinder.schema import ScrapingSourceRow, ensure_schema
from showfinder.show_ingest.errors import ExtractionServiceError
from showfinder.show_ingest.store import SqlIngestStore

RUN_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    eng = engine_from_url(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return SqlIngestStore(engine)


def add_source(engine, url: str, **fields: Any) -> None:
    with Session(engine) as s:
        s.add(ScrapingSourceRow(url=url, **fields))
        s.commit()


def get_source(engine, url: str) -> Optional[ScrapingSourceRow]:
    with Session(engine) as s:
        row = s.get(ScrapingSourceRow, url)
        if row is not None:
            s.expunge(row)
        return row


class FakeResponse:
    def __init__(self, body: str = "", status_code: int = 200, reason: str = "OK", chunks=None):
        self.status_code = status_code
        self.reason = reason
        self.encoding = "utf-8"
        self.apparent_encoding = "utf-8"
        self.headers = {"Content-Type": "text/html; charset=utf-8"}
        self._chunks = chunks if chunks is not None else [body.encode("utf-8")]
        self.closed = False
        self.text = body

    def iter_content(self, chunk_size: int = 1):
        for c in self._chunks:
            yield c

    def json(self):
        return json.loads(self.text)

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Maps URL -> FakeResponse or an exception to raise."""

    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes
        self.calls: List[str] = []

    def get(self, url: str, **kwargs: Any):
        self.calls.append(url)
        target = self.routes[url]
        if isinstance(target, Exception):
            raise target
        return target


class CannedProvider(LLMProvider):
    """Returns canned text keyed by a substring of the prompt (usually the source URL)."""

    def __init__(self, replies: Dict[str, Any]):
        self.replies = replies
        self.prompts: List[str] = []

    def generate(self, prompt: str, *, timeout_s: float, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        for key, reply in self.replies.items():
            if key in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        raise ExtractionServiceError("no canned reply")


@pytest.fixture
def page_html():
    return "<html><body>" + ("<p>card show calendar</p>" * 20) + "</body></html>"


@pytest.fixture
def timeout_error():
    return requests.Timeout("read timed out")
