import gzip
import io
import os
from email.message import Message
from urllib.error import HTTPError, URLError

import pytest

from toughfeed import FeedFetchError, FeedKind
from toughfeed import fetch as fetch_module
from toughfeed.fetch import cache_path, fetch, fetch_feed

FEED = b"<rss><channel><title>Fetched</title></channel></rss>"


class FakeResponse(io.BytesIO):
    def __init__(self, body, headers=None):
        super().__init__(body)
        self.headers = Message()
        for key, value in (headers or {}).items():
            self.headers[key] = value


class FakeOpener:
    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []

    def open(self, request, timeout=None):
        self.requests.append(request)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def opener(monkeypatch):
    def install(outcome):
        fake = FakeOpener(outcome)
        monkeypatch.setattr(fetch_module, "build_opener", lambda *handlers: fake)
        return fake

    return install


def test_fetch_returns_body(opener):
    fake = opener(FakeResponse(FEED))
    assert fetch("https://example.com/feed") == FEED
    assert fake.requests[0].get_header("If-modified-since") is None


def test_fetch_decompresses_gzip(opener):
    opener(FakeResponse(gzip.compress(FEED), {"Content-Encoding": "gzip"}))
    assert fetch("https://example.com/feed") == FEED


def test_fetch_stores_and_revalidates_cache(opener, tmp_path):
    url = "https://example.com/feed"
    opener(FakeResponse(FEED))
    fetch(url, cache_dir=str(tmp_path))
    cached = cache_path(str(tmp_path), url)
    assert os.path.basename(cached) == "https___example.com_feed"
    with open(cached, "rb") as f:
        assert f.read() == FEED

    not_modified = HTTPError(url, 304, "Not Modified", Message(), None)
    fake = opener(not_modified)
    assert fetch(url, cache_dir=str(tmp_path)) == FEED
    assert fake.requests[0].get_header("If-modified-since") is not None


def test_fetch_http_error(opener):
    url = "https://example.com/missing"
    opener(HTTPError(url, 404, "Not Found", Message(), None))
    with pytest.raises(FeedFetchError) as excinfo:
        fetch(url)
    assert excinfo.value.reason == "HTTP 404"


def test_fetch_network_error(opener):
    opener(URLError("no route to host"))
    with pytest.raises(FeedFetchError):
        fetch("https://example.com/feed")


def test_fetch_feed_parses(opener):
    opener(FakeResponse(FEED))
    feed = fetch_feed("https://example.com/feed")
    assert feed.kind is FeedKind.RSS
    assert feed.title == "Fetched"
