from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

# Keys the extraction prompt asks for, in prompt order.
SHOW_FIELDS = (
    "name",
    "startDate",
    "endDate",
    "venueName",
    "address",
    "city",
    "state",
    "entryFee",
    "description",
    "url",
    "contactInfo",
)


class ShowStatus(str, Enum):
    """Review status of a pending-queue row. Only the reviewer moves it off PENDING."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass
class ScrapingSource:
    url: str
    enabled: bool = True
    priority_score: int = 0
    error_streak: int = 0
    last_success_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None


@dataclass
class RunOutcome:
    """Per-source result handed to the feedback updater exactly once."""

    success: bool
    show_count: int = 0


@dataclass
class ContentWindow:
    text: str
    note: str
    offset: int = 0


@dataclass
class CandidateShow:
    """
    A raw candidate that passed validation and the date filter.

    `payload` is the normalized raw_payload written to the pending queue
    (camelCase keys, as consumed by the review tooling).
    """

    source_url: str
    payload: Dict[str, Any]
    start_date: date
    end_date: date
    status: ShowStatus = ShowStatus.PENDING


@dataclass
class SourceResult:
    url: str
    success: bool
    show_count: int = 0
    extracted: int = 0
    invalid: int = 0
    stale: int = 0
    insert_failed: int = 0
    error: Optional[str] = None

    @property
    def outcome(self) -> RunOutcome:
        return RunOutcome(success=self.success, show_count=self.show_count)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "url": self.url,
            "success": self.success,
            "showCount": self.show_count,
            "extracted": self.extracted,
            "invalid": self.invalid,
            "stale": self.stale,
            "insertFailed": self.insert_failed,
        }
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class RunReport:
    message: str
    elapsed_s: float = 0.0
    results: List[SourceResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def total_shows(self) -> int:
        return sum(r.show_count for r in self.results if r.success)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "message": self.message,
            "elapsed_s": round(self.elapsed_s, 2),
            "processed": self.processed,
            "successful": self.successful,
            "total_shows": self.total_shows,
            "results": [r.to_dict() for r in self.results],
        }
        if self.error:
            d["error"] = self.error
        return d


def source_from_row(row: Dict[str, Any]) -> ScrapingSource:
    known = {k: row[k] for k in asdict(ScrapingSource(url="")).keys() if k in row}
    return ScrapingSource(**known)
