"""Plain-text and simple HTML transcripts of a parsed feed."""
from __future__ import annotations

from html import escape

from .model import Feed, Item
from .text import html_to_text

_ITEM_SEPARATOR_TEXT = "\n" + "*" * 40 + "\n"
_ITEM_SEPARATOR_HTML = "\n<hr/><!-- *********************************** -->\n"


def _or_empty(value: object) -> str:
    return "" if value is None else str(value)


def item_to_text(item: Item) -> str:
    feed = item.feed
    lines = []
    header = "Feed: "
    if feed is not None and feed.title:
        header += feed.title + " "
    if feed is not None and feed.link:
        header += f"<{feed.link}>"
    lines.append(header.rstrip())

    header = "Item: "
    if item.title:
        header += item.title + " "
    if item.link:
        header += f"<{item.link}>"
    lines.append(header.rstrip())

    details = []
    if item.date is not None:
        details.append(f"Date: {item.date}")
    if item.creator:
        details.append(f"Author: {item.creator}")
    if item.subject:
        details.append(f"Subject: {item.subject}")
    if item.category:
        details.append(f"Category: {item.category}")
    if details:
        lines.append("")
        lines.extend(details)

    text = "\n".join(lines) + "\n\n"
    if item.content:
        text += html_to_text(item.content)
    return text


def feed_to_text(feed: Feed) -> str:
    description = html_to_text(feed.description) if feed.description else ""
    text = (
        f"Type: {feed.kind.value}\n"
        f"Encoding: {feed.encoding}\n"
        f"Title: {_or_empty(feed.title)}\n"
        f"Link: {_or_empty(feed.link)}\n"
        f"Description: {description}\n"
        f"Creator: {_or_empty(feed.creator)}\n"
        "\n"
    )
    for item in feed.items:
        text += _ITEM_SEPARATOR_TEXT + item_to_text(item)
    return text


def item_to_html(item: Item) -> str:
    feed = item.feed
    html = "<p>Feed: "
    if feed is not None:
        if feed.link:
            html += f'<a href="{escape(feed.link)}">\n'
        if feed.title:
            html += f"{escape(feed.title)}\n"
        if feed.link:
            html += "</a>\n"
    html += "<br/>\nItem: "
    if item.link:
        html += f'<a href="{escape(item.link)}">\n'
    if item.title:
        html += f"{escape(item.title)}\n"
    if item.link:
        html += "</a>\n"
    html += "\n"
    if item.date is not None:
        html += f"<br/>Date: {escape(str(item.date))}\n"
    if item.creator:
        html += f"<br/>Author: {escape(item.creator)}\n"
    if item.subject:
        html += f"<br/>Subject: {escape(item.subject)}\n"
    if item.category:
        html += f"<br/>Category: {escape(item.category)}\n"
    html += "</p>\n"
    if item.content:
        html += item.content
    return html


def feed_to_html(feed: Feed) -> str:
    html = (
        '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01 Transitional//EN">\n'
        "<html>\n<body>\n"
        f"<p>Type: {feed.kind.value}<br>\n"
        f"Encoding: {escape(feed.encoding)}<br>\n"
        f"Title: {escape(_or_empty(feed.title))}<br>\n"
        f"Link: {escape(_or_empty(feed.link))}<br>\n"
        f"Description: {_or_empty(feed.description)}<br>\n"
        f"Creator: {escape(_or_empty(feed.creator))}</p>\n"
        "\n"
    )
    for item in feed.items:
        html += _ITEM_SEPARATOR_HTML + item_to_html(item)
    return html + "</body></html>\n"
