from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

import requests
from charset_normalizer import from_bytes

from ..errors import FetchError

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "close",
}

_READ_CHUNK = 64 * 1024
_CHARSET_RE = re.compile(r"""charset\s*=\s*["']?([\w.:-]+)""", re.I)


@dataclass
class PageSnapshot:
    url: str
    status: int
    content_type: str
    body: str


def decode_body(data: bytes, content_type: str) -> str:
    """
    Decode a page body.

    Only a charset named in Content-Type is trusted (requests reports
    ISO-8859-1 for any text/* without one). Otherwise UTF-8, then whatever
    charset_normalizer detects in the bytes.
    """
    m = _CHARSET_RE.search(content_type or "")
    if m:
        try:
            return data.decode(m.group(1), errors="replace")
        except LookupError:
            pass

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        best = from_bytes(data).best()
        if best is not None:
            return str(best)
        return data.decode("utf-8", errors="replace")


class PageFetcher:
    """
    Fetch one page under an absolute wall-clock deadline.

    requests' own timeout only bounds each socket operation, so the body is
    streamed and the deadline is checked between reads. A slow-drip server
    cannot hold a source past `timeout_s`.

    Every failure (non-2xx, transport error, deadline, undersized body) raises
    FetchError; callers treat them all the same.
    """

    def __init__(
        self,
        timeout_s: float = 25.0,
        min_body_chars: int = 100,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_s = float(timeout_s)
        self.min_body_chars = int(min_body_chars)
        self.session = session or requests.Session()

    def fetch(self, url: str) -> PageSnapshot:
        deadline = time.monotonic() + self.timeout_s

        try:
            resp = self.session.get(
                url,
                headers=_DEFAULT_HEADERS,
                timeout=self.timeout_s,
                stream=True,
                allow_redirects=True,
            )
        except requests.Timeout as e:
            raise FetchError(url, "timeout", str(e)[:200]) from e
        except requests.RequestException as e:
            raise FetchError(url, "transport", f"{type(e).__name__}: {str(e)[:200]}") from e

        try:
            status = int(resp.status_code or 0)
            if status < 200 or status >= 300:
                raise FetchError(url, "http_status", f"{status} {resp.reason or ''}".strip())

            raw = bytearray()
            try:
                for chunk in resp.iter_content(chunk_size=_READ_CHUNK):
                    if chunk:
                        raw.extend(chunk)
                    if time.monotonic() > deadline:
                        raise FetchError(url, "timeout", f"deadline {self.timeout_s:.0f}s exceeded while reading")
            except requests.RequestException as e:
                raise FetchError(url, "transport", f"{type(e).__name__}: {str(e)[:200]}") from e

            ctype = (resp.headers.get("Content-Type") or "").lower()
            body = decode_body(bytes(raw), ctype)

            if len(body) < self.min_body_chars:
                raise FetchError(url, "too_small", f"{len(body)} chars")

            logger.debug("Fetched %s status=%s len=%d ctype=%s", url, status, len(body), ctype[:60])
            return PageSnapshot(url=url, status=status, content_type=ctype, body=body)
        finally:
            resp.close()
