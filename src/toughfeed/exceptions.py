from __future__ import annotations


class FeedParserError(ValueError):
    """Base class for errors that abort parsing a whole document."""


class UnknownFeedTypeError(FeedParserError):
    """The document root is neither an RSS channel nor an Atom feed."""


class FeedSyntaxError(FeedParserError):
    """The document is not well-formed XML, even after repair."""


class UnknownFieldError(ValueError):
    """An item field name outside the recognized set was requested."""


class FeedFetchError(Exception):
    """Fetching a feed over HTTP failed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
