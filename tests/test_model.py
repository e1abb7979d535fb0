import datetime

import pytest

from toughfeed import (
    ITEM_FIELDS,
    Feed,
    FeedKind,
    RSSItem,
    UnknownFieldError,
    group_items,
    item_accessor,
    parse,
    sort_items,
)


def _items():
    return [
        RSSItem(title="b", category="news", date=datetime.datetime(2024, 1, 2)),
        RSSItem(title="a", category=None, date=None),
        RSSItem(title="c", category="news", date=datetime.datetime(2024, 1, 1)),
    ]


def test_item_accessor_known_fields():
    assert set(ITEM_FIELDS) == {
        "title",
        "link",
        "content",
        "date",
        "creator",
        "subject",
        "category",
    }
    assert item_accessor("title")(RSSItem(title="x")) == "x"


def test_item_accessor_rejects_unknown_fields():
    with pytest.raises(UnknownFieldError):
        item_accessor("enclosures")
    with pytest.raises(UnknownFieldError):
        sort_items([], "__class__")


def test_sort_items_puts_missing_values_last():
    ordered = sort_items(_items(), "date")
    assert [item.title for item in ordered] == ["c", "b", "a"]
    ordered = sort_items(_items(), "date", reverse=True)
    assert [item.title for item in ordered] == ["b", "c", "a"]


def test_sort_items_limit():
    assert [item.title for item in sort_items(_items(), "title", limit=2)] == ["a", "b"]
    assert sort_items(_items(), "title", limit=0) == []


def test_group_items_keeps_document_order():
    groups = group_items(_items(), "category")
    assert [item.title for item in groups["news"]] == ["b", "c"]
    assert [item.title for item in groups[None]] == ["a"]


def test_feed_binds_items():
    item = RSSItem(title="x")
    feed = Feed(kind=FeedKind.RSS, items=(item,))
    assert item.feed is feed
    assert feed.encoding == "UTF-8"
    assert "feed=" not in repr(item)


def test_sort_items_mixes_naive_and_aware_dates():
    feed = parse(
        "<rss><channel>"
        "<item><title>aware</title><pubDate>Tue, 10 Jun 2003 09:41:01 GMT</pubDate></item>"
        "<item><title>naive</title><pubDate>2003-06-10</pubDate></item>"
        "</channel></rss>"
    )
    assert feed.items[1].date.tzinfo is None
    ordered = sort_items(feed.items, "date")
    assert [item.title for item in ordered] == ["naive", "aware"]
    ordered = sort_items(feed.items, "date", reverse=True)
    assert [item.title for item in ordered] == ["aware", "naive"]


def test_item_cannot_move_to_another_feed():
    item = RSSItem(title="x")
    first = Feed(kind=FeedKind.RSS, items=(item,))
    with pytest.raises(ValueError):
        Feed(kind=FeedKind.RSS, items=(item,))
    assert item.feed is first
