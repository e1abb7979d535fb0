import logging

from .content import extract
from .dates import resolve as resolve_date
from .encoding import CANONICAL_ENCODING, normalize
from .exceptions import (
    FeedFetchError,
    FeedParserError,
    FeedSyntaxError,
    UnknownFeedTypeError,
    UnknownFieldError,
)
from .main import detect_feed_kind, parse, repair_ampersands
from .model import (
    ITEM_FIELDS,
    AtomItem,
    Enclosure,
    Feed,
    FeedKind,
    Item,
    RSSItem,
    group_items,
    item_accessor,
    sort_items,
)
from .text import TextKind, classify, html_to_text, to_html, trim_ws

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CANONICAL_ENCODING",
    "ITEM_FIELDS",
    "AtomItem",
    "Enclosure",
    "Feed",
    "FeedFetchError",
    "FeedKind",
    "FeedParserError",
    "FeedSyntaxError",
    "Item",
    "RSSItem",
    "TextKind",
    "UnknownFeedTypeError",
    "UnknownFieldError",
    "classify",
    "detect_feed_kind",
    "extract",
    "group_items",
    "html_to_text",
    "item_accessor",
    "normalize",
    "parse",
    "repair_ampersands",
    "resolve_date",
    "sort_items",
    "to_html",
    "trim_ws",
]
