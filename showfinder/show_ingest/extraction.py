"""
LLM extraction of show listings from page windows.

One call per window, each under its own deadline. The service is asked for a
bare JSON array, but what comes back is treated as untrusted text:

  1) strip ``` / ```json fences
  2) if it does not start with '[', slice from the first '[' to the last ']'
  3) json.loads, keep only dict elements

A failed call or an undecodable response costs that window only (zero
records, logged); sibling windows and sources carry on.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.parse
from typing import Any, Dict, Iterable, List, Optional, Sequence

from showfinder.integrations.llm_provider import LLMProvider

from .errors import ExtractionServiceError
from .models import ContentWindow

logger = logging.getLogger(__name__)

RawCandidate = Dict[str, Any]

_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*\n?|```")


# -----------------------------
# Prompts
# -----------------------------
def build_generic_prompt(html: str, source_url: str) -> str:
    return f"""
You are a specialized card show event extractor. Your task is to analyze the HTML content from {source_url} and extract all trading card show events into a valid JSON array.

Each event object MUST have these keys (use null if information is missing):
{{
  "name": "Full event name/title",
  "startDate": "Start date in any format you find (will be normalized later)",
  "endDate": "End date if multi-day event, otherwise same as start date",
  "venueName": "Name of venue/location",
  "address": "Full address if available",
  "city": "City name",
  "state": "State abbreviation (2 letters) or full name",
  "entryFee": "Entry fee as number or text",
  "description": "Event description if available",
  "url": "Direct link to event details if available, otherwise use source URL",
  "contactInfo": "Promoter/contact information if available"
}}

IMPORTANT RULES:
1. Only extract ACTUAL CARD SHOW EVENTS. Ignore unrelated content.
2. For tables or lists of events, extract EACH event separately.
3. If dates appear as ranges like "January 5-6, 2025", create a single event with proper start/end dates.
4. If multiple shows occur at same venue on different dates, create separate entries for each date.
5. Normalize state names to standard 2-letter codes when possible.
6. Extract as much detail as possible, but it's better to return partial information than nothing.
7. ONLY output the valid JSON array of events. No explanations or markdown.

HTML CONTENT:
{html}
"""


def build_state_heading_prompt(html: str, source_url: str, window_note: str = "") -> str:
    note = f"NOTE: This chunk is the {window_note.lower()} of the page." if window_note else ""
    return f"""
You are a specialized card-show event extractor. The HTML is from {source_url}.
The calendar is organised by STATE headings in UPPERCASE (e.g. ALABAMA, ARIZONA).
Extract EVERY show listing beneath those headings.
{note}

Output ONLY a JSON array, each object with:
  name, startDate, endDate, venueName, address, city, state, entryFee,
  description, url, contactInfo

Important:
- Use the state heading when populating "state".
- If a date is a range like "Jan 5-6 2025" set startDate / endDate accordingly.
- One list/bullet/paragraph = one event.
- Use null for anything missing.
- No markdown, no extra text.

HTML:
{html}
"""


def uses_state_headings(source_url: str, hosts: Iterable[str]) -> bool:
    try:
        netloc = urllib.parse.urlparse(source_url).netloc.lower()
    except Exception:
        netloc = ""
    haystack = netloc or (source_url or "").lower()
    return any(h and h in haystack for h in hosts)


# -----------------------------
# Parsing
# -----------------------------
def parse_extraction_output(raw_text: Optional[str]) -> List[RawCandidate]:
    """
    Decode the service output into a list of raw candidate dicts.

    Raises ValueError when nothing array-shaped can be decoded; callers count
    that as zero records for the window.
    """
    if raw_text is not None and not isinstance(raw_text, str):
        raise ValueError(f"extraction output is {type(raw_text).__name__}, not text")
    text = (raw_text or "").strip()
    if text.startswith("```"):
        text = _FENCE_RE.sub("", text).strip()

    if not text.startswith("["):
        first = text.find("[")
        last = text.rfind("]")
        if first == -1 or last <= first:
            raise ValueError(f"no JSON array in extraction output: {text[:100]!r}")
        text = text[first : last + 1]

    # json.JSONDecodeError is a ValueError
    decoded = json.loads(text)
    if not isinstance(decoded, list):
        raise ValueError(f"extraction output decoded to {type(decoded).__name__}, not a list")

    return [item for item in decoded if isinstance(item, dict)]


class ShowExtractor:
    """Runs the prompt -> service -> parse loop for each window of one source."""

    def __init__(
        self,
        provider: LLMProvider,
        timeout_s: float = 30.0,
        state_heading_hosts: Sequence[str] = ("sportscollectorsdigest",),
    ) -> None:
        self.provider = provider
        self.timeout_s = float(timeout_s)
        self.state_heading_hosts = tuple(state_heading_hosts)

    def build_prompt(self, window: ContentWindow, source_url: str) -> str:
        if uses_state_headings(source_url, self.state_heading_hosts):
            return build_state_heading_prompt(window.text, source_url, window.note)
        return build_generic_prompt(window.text, source_url)

    def extract_window(self, window: ContentWindow, source_url: str, index: int = 0) -> List[RawCandidate]:
        prompt = self.build_prompt(window, source_url)
        try:
            raw_text = self.provider.generate(prompt, timeout_s=self.timeout_s)
        except ExtractionServiceError as e:
            logger.warning("[%s] extraction failed on chunk %d (%s): %s", source_url, index + 1, window.note, e)
            return []
        except Exception:
            logger.exception("[%s] extraction crashed on chunk %d (%s)", source_url, index + 1, window.note)
            return []

        try:
            records = parse_extraction_output(raw_text)
        except ValueError as e:
            logger.warning("[%s] could not decode chunk %d (%s): %s", source_url, index + 1, window.note, e)
            return []

        logger.info("[%s] chunk %d (%s) => %d candidate(s)", source_url, index + 1, window.note, len(records))
        return records

    def extract(self, windows: Sequence[ContentWindow], source_url: str) -> List[RawCandidate]:
        """Concatenate per-window candidates in window order (no dedupe)."""
        out: List[RawCandidate] = []
        for i, window in enumerate(windows):
            out.extend(self.extract_window(window, source_url, index=i))
        return out
