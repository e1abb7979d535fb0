from __future__ import annotations

import enum
import re

import lxml.html
from lxml import etree
from rfc3987 import get_compiled_pattern


class TextKind(enum.Enum):
    HTML = "html"
    ESCAPED_HTML = "escaped_html"
    PLAIN = "plain"


_RE_HTML_SIGNATURE = re.compile(
    r"<p>|</p>|<br\s*/?\s*>|</a>|<img.*>", re.IGNORECASE
)
_RE_ESCAPED_HTML_SIGNATURE = re.compile(
    r"&lt;img|&lt;a href=|&lt;br|&lt;p&gt;", re.IGNORECASE
)
_RE_PARAGRAPH_BREAK = re.compile(r"\s*\n(?:\s*\n)+\s*")
# RFC 3986 URI production, anchored on the schemes we autolink
_RE_URI = get_compiled_pattern(
    r"(?<![\w.+-])(?=(?:https?|ftp)://[^\s/<])%(URI)s", re.IGNORECASE
)

# &amp; goes last so "&amp;lt;" is unescaped only once
_HTML_ESCAPES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&apos;", "'"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&#039;", "'"),
    ("&#38;", "&"),
    ("&#038;", "&"),
    ("&amp;", "&"),
)

_BLOCK_TAGS = (
    "p",
    "div",
    "blockquote",
    "pre",
    "ul",
    "ol",
    "li",
    "dl",
    "dt",
    "dd",
    "table",
    "tr",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "hr",
)
_RE_SPACES_BEFORE_NEWLINE = re.compile(r"[ \t]*\n")
_RE_SPACES_AFTER_NEWLINE = re.compile(r"\n[ \t]*")
_RE_BLANK_LINES = re.compile(r"\n\n+")


def trim_ws(text: str) -> str:
    """Remove leading and trailing whitespace, newlines included."""
    return text.strip()


def classify(text: str) -> TextKind:
    if _RE_HTML_SIGNATURE.search(text):
        return TextKind.HTML
    if _RE_ESCAPED_HTML_SIGNATURE.search(text):
        return TextKind.ESCAPED_HTML
    return TextKind.PLAIN


def unescape_html(text: str) -> str:
    for entity, char in _HTML_ESCAPES:
        text = text.replace(entity, char)
    return text


def _autolink(match: re.Match) -> str:
    uri = match.group(0)
    return f'<a href="{uri}">{uri}</a>'


def to_html(text: str) -> str:
    """Turn a fragment of unknown flavour into HTML.

    HTML passes through untouched and over-escaped HTML is unescaped. Plain
    text is split into paragraphs on blank lines and bare URIs become links.
    Plain text is not idempotent here: call this exactly once per fragment.
    """
    kind = classify(text)
    if kind is TextKind.HTML:
        return text
    if kind is TextKind.ESCAPED_HTML:
        return unescape_html(text)

    html = f"<p>{trim_ws(text)}</p>"
    html = _RE_PARAGRAPH_BREAK.sub("</p>\n<p>", html)
    return _RE_URI.sub(_autolink, html)


def html_to_text(markup: str) -> str:
    """Render an HTML fragment as readable plain text."""
    if not markup or not markup.strip():
        return ""
    try:
        root = lxml.html.fragment_fromstring(markup, create_parent="div")
    except (etree.ParserError, etree.ParseError):
        return trim_ws(markup)

    for anchor in root.iter("a"):
        href = anchor.get("href")
        if href and href.strip() != anchor.text_content().strip():
            anchor.tail = f" <{href.strip()}>" + (anchor.tail or "")
    for br in root.iter("br"):
        br.tail = "\n" + (br.tail or "")
    for block in root.iter(*_BLOCK_TAGS):
        block.tail = "\n\n" + (block.tail or "")

    text = trim_ws(root.text_content())
    text = _RE_SPACES_BEFORE_NEWLINE.sub("\n", text)
    text = _RE_SPACES_AFTER_NEWLINE.sub("\n", text)
    return _RE_BLANK_LINES.sub("\n\n", text)
