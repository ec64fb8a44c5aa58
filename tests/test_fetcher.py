import io

import pytest
import requests

from showfinder.show_ingest.crawler.fetcher import PageFetcher, decode_body
from showfinder.show_ingest.errors import FetchError

from conftest import FakeResponse, FakeSession

URL = "https://example.com/shows"


def _fetcher(target, **kwargs):
    session = FakeSession({URL: target})
    return PageFetcher(session=session, **kwargs), session


def test_ok_page_returns_decoded_body(page_html):
    resp = FakeResponse(page_html)
    fetcher, session = _fetcher(resp)

    page = fetcher.fetch(URL)

    assert page.body == page_html
    assert page.status == 200
    assert page.content_type.startswith("text/html")
    assert session.calls == [URL]
    assert resp.closed


def test_non_2xx_is_a_fetch_error(page_html):
    resp = FakeResponse(page_html, status_code=404, reason="Not Found")
    fetcher, _ = _fetcher(resp)

    with pytest.raises(FetchError) as exc:
        fetcher.fetch(URL)

    assert exc.value.reason == "http_status"
    assert "404" in str(exc.value)
    assert resp.closed


def test_timeout_is_a_fetch_error():
    fetcher, _ = _fetcher(requests.Timeout("read timed out"))

    with pytest.raises(FetchError) as exc:
        fetcher.fetch(URL)

    assert exc.value.reason == "timeout"


def test_transport_error_is_a_fetch_error():
    fetcher, _ = _fetcher(requests.ConnectionError("connection refused"))

    with pytest.raises(FetchError) as exc:
        fetcher.fetch(URL)

    assert exc.value.reason == "transport"


def test_undersized_body_is_rejected():
    fetcher, _ = _fetcher(FakeResponse("<html></html>"), min_body_chars=100)

    with pytest.raises(FetchError) as exc:
        fetcher.fetch(URL)

    assert exc.value.reason == "too_small"


def test_body_at_minimum_size_is_accepted():
    fetcher, _ = _fetcher(FakeResponse("x" * 100), min_body_chars=100)
    assert len(fetcher.fetch(URL).body) == 100


def test_deadline_is_enforced_while_streaming(page_html):
    chunks = [page_html.encode("utf-8")] * 3
    fetcher, _ = _fetcher(FakeResponse(chunks=chunks), timeout_s=-1)

    with pytest.raises(FetchError) as exc:
        fetcher.fetch(URL)

    assert exc.value.reason == "timeout"


def _real_response(body: bytes, content_type: str) -> requests.Response:
    resp = requests.Response()
    resp.status_code = 200
    resp.reason = "OK"
    resp.headers["Content-Type"] = content_type
    resp.raw = io.BytesIO(body)
    # what requests' adapter sets from the headers
    resp.encoding = requests.utils.get_encoding_from_headers(resp.headers)
    return resp


def test_utf8_page_without_charset_is_not_garbled():
    text = "Café Card Show at Señor Frog's. " * 5
    fetcher, _ = _fetcher(_real_response(text.encode("utf-8"), "text/html"), min_body_chars=10)

    body = fetcher.fetch(URL).body

    assert body == text
    assert "Ã" not in body


def test_declared_charset_is_honoured():
    text = "Café Card Show at Señor Frog's. " * 5
    fetcher, _ = _fetcher(
        _real_response(text.encode("latin-1"), "text/html; charset=ISO-8859-1"), min_body_chars=10
    )

    assert fetcher.fetch(URL).body == text


def test_decode_body_falls_back_to_detection_for_non_utf8_bytes():
    data = ("Café Card Show at Señor Frog's, entrée gratuite. " * 20).encode("cp1252")
    body = decode_body(data, "text/html")

    assert "Card Show" in body
    assert "�" not in body
