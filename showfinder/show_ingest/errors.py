from __future__ import annotations


class ShowIngestError(Exception):
    """Base class for show ingest failures."""


class ConfigError(ShowIngestError):
    """Required run configuration is missing or malformed. Fatal for the run."""


class FetchError(ShowIngestError):
    """A source page could not be retrieved (or was too small to be useful)."""

    def __init__(self, url: str, reason: str, detail: str = "") -> None:
        self.url = url
        self.reason = reason
        self.detail = detail
        msg = f"{reason}: {url}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class ExtractionServiceError(ShowIngestError):
    """The extraction service call failed, timed out or returned nothing usable."""
