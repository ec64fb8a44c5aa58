"""
Core orchestration for the show ingest job.

Prefect-free; the Prefect wrapper lives in flows/show_ingest_flow.py
and the operator CLI in showfinder/show_ingest/cli.py.

One invocation = one batch:
  select sources -> for each source, strictly in order:
      fetch -> chunk -> extract per chunk -> validate/date-filter -> queue
      -> feedback(success, inserted count)
  -> run report

Design goals:
- Batch stability: a bad page, a bad chunk or a bad row never aborts the run.
- Cost-bound: at most max_chunks extraction calls per source.
- Politeness: fixed delay between sources, one request per source.
- Only missing configuration is fatal (RunReport.error is set, nothing runs).
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from showfinder.db import get_engine
from showfinder.integrations.llm_provider import build_provider

from .config import IngestSettings
from .crawler.chunker import chunk_document
from .crawler.fetcher import PageFetcher
from .errors import ConfigError, FetchError
from .extraction import ShowExtractor
from .feedback import apply_run_outcome
from .models import RunReport, SourceResult
from .queue_writer import write_pending
from .scheduler import select_sources
from .store import IngestStore, SqlIngestStore
from .validator import filter_candidates

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShowIngestJob:
    """
    Wires the pipeline stages together. Every collaborator is injected so a
    test can run the whole job against SQLite and canned HTTP/LLM fakes.
    """

    def __init__(
        self,
        settings: IngestSettings,
        store: IngestStore,
        fetcher: PageFetcher,
        extractor: ShowExtractor,
        *,
        clock: Clock = _utcnow,
        sleep: Callable[[float], None] = time.sleep,
        dry_run: bool = False,
    ) -> None:
        self.settings = settings
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor
        self.clock = clock
        self.sleep = sleep
        self.dry_run = dry_run

    # -----------------------------
    # Per source
    # -----------------------------
    def process_source(self, url: str) -> SourceResult:
        result = SourceResult(url=url, success=False)
        logger.info("[%s] processing...", url)

        try:
            page = self.fetcher.fetch(url)
        except FetchError as e:
            logger.error("[%s] fetch failed (%s): %s", url, e.reason, e)
            result.error = f"fetch:{e.reason}"
            return result

        windows = chunk_document(page.body, self.settings.max_chunk_chars, self.settings.max_chunks)
        logger.info("[%s] fetched %d chars; extracting from %d chunk(s)", url, len(page.body), len(windows))

        raws = self.extractor.extract(windows, url)
        result.success = True
        result.extracted = len(raws)

        now = self.clock()
        kept, result.invalid, result.stale = filter_candidates(raws, url, today=now.date(), extracted_at=now)

        if self.dry_run:
            # nothing is written; report what would have been queued
            result.show_count = len(kept)
            return result

        result.show_count, result.insert_failed = write_pending(self.store, url, kept)
        return result

    def _process_guarded(self, url: str) -> SourceResult:
        try:
            return self.process_source(url)
        except Exception as e:
            logger.exception("[%s] processing failed", url)
            return SourceResult(url=url, success=False, error=f"{type(e).__name__}: {str(e)[:200]}")

    # -----------------------------
    # Per run
    # -----------------------------
    def run(self, urls: Optional[Sequence[str]] = None, batch_size: Optional[int] = None) -> RunReport:
        """
        Run one batch. With `urls`, those URLs are processed in the given order
        instead of asking the scheduler.
        """
        started = time.monotonic()

        if urls is None:
            n = self.settings.batch_size if batch_size is None else batch_size
            try:
                urls = [s.url for s in select_sources(self.store, n)]
            except Exception as e:
                logger.exception("Could not load scraping sources")
                err = f"{type(e).__name__}: {str(e)[:500]}"
                return RunReport(message=f"Scraper failed: {err}", error=err)

        if not urls:
            return RunReport(message="No sources to process. Check the scraping_sources table.")

        logger.info("Processing %d URL(s): %s", len(urls), ", ".join(urls))

        results: List[SourceResult] = []
        for i, url in enumerate(urls):
            res = self._process_guarded(url)
            results.append(res)

            if not self.dry_run:
                apply_run_outcome(self.store, url, res.outcome, now=self.clock())

            logger.info(
                json.dumps(
                    {
                        "event": "show_ingest_source_done",
                        "dry_run": self.dry_run,
                        **res.to_dict(),
                    },
                    sort_keys=True,
                )
            )

            if i < len(urls) - 1 and self.settings.source_delay_s > 0:
                self.sleep(self.settings.source_delay_s)

        report = RunReport(message="", elapsed_s=time.monotonic() - started, results=results)
        report.message = (
            f"Scraper completed in {report.elapsed_s:.2f}s. Processed {report.processed} URLs "
            f"with {report.successful} successful scrapes. Found {report.total_shows} shows."
        )
        if self.dry_run:
            report.message = "[dry run] " + report.message
        return report


def build_job(
    settings: Optional[IngestSettings] = None,
    store: Optional[IngestStore] = None,
    *,
    dry_run: bool = False,
) -> ShowIngestJob:
    """
    Build a job from the environment. Raises ConfigError when the run cannot
    start (no extraction credential, no database).
    """
    settings = settings or IngestSettings.from_env()
    settings.validate()

    if store is None:
        try:
            store = SqlIngestStore(get_engine())
        except RuntimeError as e:
            raise ConfigError(str(e)) from e

    provider = build_provider(
        settings.extraction_provider,
        api_key=settings.extraction_api_key or "",
        model=settings.extraction_model,
        endpoint=settings.extraction_endpoint,
    )
    return ShowIngestJob(
        settings=settings,
        store=store,
        fetcher=PageFetcher(timeout_s=settings.fetch_timeout_s, min_body_chars=settings.min_body_chars),
        extractor=ShowExtractor(
            provider,
            timeout_s=settings.extract_timeout_s,
            state_heading_hosts=settings.state_heading_hosts,
        ),
        dry_run=dry_run,
    )


def run_ingest(
    settings: Optional[IngestSettings] = None,
    store: Optional[IngestStore] = None,
    *,
    urls: Optional[Sequence[str]] = None,
    batch_size: Optional[int] = None,
    dry_run: bool = False,
) -> RunReport:
    """
    Run one batch end to end.
    NEVER raises for per-source trouble; a fatal configuration problem comes
    back as a RunReport with `error` set and no results.
    """
    try:
        job = build_job(settings, store, dry_run=dry_run)
    except ConfigError as e:
        logger.error("Show ingest cannot start: %s", e)
        return RunReport(message=f"Scraper failed: {e}", error=str(e))

    return job.run(urls=urls, batch_size=batch_size)


if __name__ == "__main__":
    from pprint import pprint

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    pprint(run_ingest().to_dict())
