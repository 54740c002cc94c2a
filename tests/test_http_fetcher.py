from __future__ import annotations

import http.client
import io
import urllib.error

import pytest

from adapters import http_fetcher
from adapters.http_fetcher import UrllibFetcher
from core.autolink import Autolink
from core.errors import LookupFetchError, LookupReadError
from core.titles import TitleResolver


class FakeResponse(io.BytesIO):
    pass


class BrokenResponse:
    def __enter__(self) -> "BrokenResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def read(self, amount: int) -> bytes:
        raise http.client.IncompleteRead(b"partial")


def test_fetch_reads_at_most_max_bytes(monkeypatch) -> None:
    calls = []

    def fake_urlopen(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(b"<title>x</title>" + b"a" * 100)

    monkeypatch.setattr(http_fetcher.urllib.request, "urlopen", fake_urlopen)

    body = UrllibFetcher(timeout=3, max_bytes=16).fetch("https://example.test/T1")

    assert body == b"<title>x</title>"
    assert calls == [("https://example.test/T1", 3)]


def test_fetch_wraps_http_errors(monkeypatch) -> None:
    def fake_urlopen(url, timeout):
        raise urllib.error.HTTPError(url, 404, "Not Found", {}, None)

    monkeypatch.setattr(http_fetcher.urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(LookupFetchError) as excinfo:
        UrllibFetcher().fetch("https://example.test/missing")
    assert excinfo.value.reason == "HTTP 404"


def test_fetch_wraps_connection_errors(monkeypatch) -> None:
    def fake_urlopen(url, timeout):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(http_fetcher.urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(LookupFetchError):
        UrllibFetcher().fetch("https://example.test/")


def test_fetch_rejects_invalid_urls() -> None:
    with pytest.raises(LookupFetchError):
        UrllibFetcher().fetch("not a url")


def test_fetch_wraps_read_errors(monkeypatch) -> None:
    monkeypatch.setattr(http_fetcher.urllib.request, "urlopen", lambda url, timeout: BrokenResponse())

    with pytest.raises(LookupReadError):
        UrllibFetcher().fetch("https://example.test/")


def test_fetch_wraps_bad_status_line(monkeypatch) -> None:
    def fake_urlopen(url, timeout):
        raise http.client.BadStatusLine("GARBAGE")

    monkeypatch.setattr(http_fetcher.urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(LookupFetchError) as excinfo:
        TitleResolver(UrllibFetcher()).resolve("http://127.0.0.1:9/T1")
    assert "BadStatusLine" in excinfo.value.reason


def test_fetch_wraps_urls_with_spaces() -> None:
    # http.client refuses the request line before any connection is made.
    with pytest.raises(LookupFetchError):
        UrllibFetcher(timeout=1).fetch("http://127.0.0.1:9/browse/MM 12")


def test_replace_survives_invalid_lookup_url() -> None:
    link = Autolink(
        pattern=r"(?P<key>MM)[ -](?P<id>\d+)",
        template="$0",
        lookup_url_template="http://127.0.0.1:9/browse/$0",
    ).compile()
    resolver = TitleResolver(UrllibFetcher(timeout=1))

    assert link.replace("see MM 12 and T1", resolver) == "see MM 12 and T1"


def test_replace_continues_after_bad_status_line(monkeypatch) -> None:
    def fake_urlopen(url, timeout):
        if url.endswith("/T1"):
            raise http.client.BadStatusLine("GARBAGE")
        return FakeResponse(b"<title>Second</title>")

    monkeypatch.setattr(http_fetcher.urllib.request, "urlopen", fake_urlopen)
    link = Autolink(
        pattern=r"(?P<task>T\d+)",
        template="$task",
        lookup_url_template="https://example.test/$task",
    ).compile()

    result = link.replace("see T1 now, then T2", TitleResolver(UrllibFetcher()))

    assert result == "see T1 now, then [Second](https://example.test/T2)"
