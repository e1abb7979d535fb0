from __future__ import annotations

import gzip
import logging
import os
import zlib
from email.utils import formatdate
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.request import (
    HTTPErrorProcessor,
    HTTPRedirectHandler,
    Request,
    build_opener,
)

from .exceptions import FeedFetchError
from .main import parse
from .model import Feed

logger = logging.getLogger(__name__)

USER_AGENT = "toughfeed (+https://pypi.org/project/toughfeed/)"


def cache_path(cache_dir: str, url: str) -> str:
    return os.path.join(cache_dir, url.replace(":", "_").replace("/", "_"))


def _decompress(content: bytes, content_encoding: Optional[str]) -> bytes:
    if content_encoding == "gzip":
        return gzip.decompress(content)
    if content_encoding == "deflate":
        return zlib.decompress(content, -zlib.MAX_WBITS)
    return content


def fetch(
    url: str, *, cache_dir: Optional[str] = None, timeout: float = 30.0
) -> bytes:
    """Download a feed, revalidating a cached copy when there is one.

    With ``cache_dir`` set, the body of every successful response is stored
    there and an existing copy is offered to the server through
    ``If-Modified-Since``; a ``304`` answer returns the stored bytes.
    """
    headers = {"Accept-Encoding": "gzip, deflate", "User-Agent": USER_AGENT}
    cached = cache_path(cache_dir, url) if cache_dir else None
    if cached and os.path.exists(cached):
        headers["If-Modified-Since"] = formatdate(
            os.path.getmtime(cached), usegmt=True
        )

    request = Request(url, method="GET", headers=headers)
    opener = build_opener(HTTPRedirectHandler(), HTTPErrorProcessor())
    try:
        with opener.open(request, timeout=timeout) as response:
            content = _decompress(
                response.read(), response.headers.get("Content-Encoding")
            )
    except HTTPError as e:
        if e.code == 304 and cached and os.path.exists(cached):
            logger.debug("%s not modified, using %s", url, cached)
            with open(cached, "rb") as f:
                return f.read()
        raise FeedFetchError(url, f"HTTP {e.code}") from e
    except (URLError, OSError, zlib.error) as e:
        raise FeedFetchError(url, str(e)) from e

    if cached:
        os.makedirs(cache_dir, exist_ok=True)
        with open(cached, "wb") as f:
            f.write(content)
    return content


def fetch_feed(
    url: str,
    *,
    cache_dir: Optional[str] = None,
    timeout: float = 30.0,
    **parse_options: Any,
) -> Feed:
    return parse(fetch(url, cache_dir=cache_dir, timeout=timeout), **parse_options)
