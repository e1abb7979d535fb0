from __future__ import annotations

import datetime
import html.entities
import logging
import re
from typing import TYPE_CHECKING, Iterator, NamedTuple, Optional, Sequence

from lxml import etree

from .content import Normalizer, extract
from .dates import resolve
from .encoding import decode_document, normalize
from .exceptions import FeedSyntaxError, UnknownFeedTypeError
from .model import AtomItem, Enclosure, Feed, FeedKind, RSSItem
from .text import trim_ws

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger(__name__)

_RSS_NAMESPACES = (
    "http://purl.org/rss/1.0/",
    "http://my.netscape.com/rdf/simple/0.9/",
)
_ATOM_NAMESPACES = (
    "http://purl.org/atom/ns#",
    "http://www.w3.org/2005/Atom",
    "https://www.w3.org/2005/Atom",
)
_DC_NS = "http://purl.org/dc/elements/1.1/"
_CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"

_HTML_LINK_TYPES = frozenset({"text/html", "application/xhtml", "application/xhtml+xml"})
_XML_PREDEFINED_ENTITIES = frozenset({"lt", "gt", "amp", "quot", "apos"})

_RE_AMPERSAND = re.compile(
    r"(<!\[CDATA\[.*?\]\]>|<!--.*?-->)"
    r"|&(?:(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9._-]*);)?",
    re.DOTALL,
)
_RE_XML_DECL_ENCODING = re.compile(
    r'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)
_XML_START_MARKERS = ("<?xml", "<rss", "<feed", "<rdf:rdf")

_NON_FEED_MESSAGES: dict[str, str] = {
    "html": "Received HTML page instead of feed",
    "body": "Received HTML fragment instead of feed",
    "opml": "Received OPML document instead of feed",
    "urlset": "Received XML sitemap instead of feed",
    "sitemapindex": "Received XML sitemap instead of feed",
}

Path = Sequence[Sequence[str]]


def _rss(local: str) -> tuple[str, ...]:
    """Names of an RSS element in the RSS 1.0/0.90 namespaces or under a bare ``rss:`` prefix."""
    return tuple(f"{{{ns}}}{local}" for ns in _RSS_NAMESPACES) + (f"rss:{local}",)


def _atom(local: str) -> tuple[str, ...]:
    return tuple(f"{{{ns}}}{local}" for ns in _ATOM_NAMESPACES) + (local,)


def _dc(local: str) -> tuple[str, ...]:
    return (f"{{{_DC_NS}}}{local}", f"dc:{local}")


_CHANNEL = ("channel",)
_RSS_CHANNEL = _rss("channel")
_RSS_ITEM_PATHS: tuple[Path, ...] = (
    (_CHANNEL, ("item",)),
    (("item",),),
    (_RSS_CHANNEL, _rss("item")),
    (_rss("item"),),
)
_CONTENT_ENCODED = (f"{{{_CONTENT_NS}}}encoded", "content:encoded")
_ATOM_DATES = _atom("issued") + _atom("created") + _atom("published") + _atom(
    "updated"
) + _atom("modified")


class _Context(NamedTuple):
    encoding: str
    normalizer: Normalizer

    def clean(self, raw: Optional[str]) -> Optional[str]:
        """Normalize and trim raw text, or None when nothing is left."""
        if raw is None or not raw.strip():
            return None
        return trim_ws(self.normalizer(raw, self.encoding)) or None


# ---------------------------------------------------------------------------
# Document preparation
# ---------------------------------------------------------------------------


def _replace_ampersand(match: re.Match) -> str:
    if match.group(1):
        return match.group(1)
    ref = match.group(2)
    if ref is None:
        return "&amp;"
    if ref.startswith("#") or ref in _XML_PREDEFINED_ENTITIES:
        return match.group(0)
    codepoint = html.entities.name2codepoint.get(ref)
    if codepoint is not None:
        return f"&#{codepoint};"
    return f"&amp;{ref};"


def repair_ampersands(text: str) -> str:
    """Escape every ``&`` that does not start a usable reference.

    Producers routinely emit bare ampersands and HTML-only entities, either of
    which aborts an XML parser. HTML entities are turned into numeric
    references; CDATA sections and comments are left alone.
    """
    if "&" not in text:
        return text
    return _RE_AMPERSAND.sub(_replace_ampersand, text)


def _strip_leading_junk(text: str) -> str:
    stripped = text.lstrip("\ufeff \t\r\n")
    preview = stripped[:2000].lower()
    if preview.startswith(("<!doctype html", "<html")):
        raise UnknownFeedTypeError(_NON_FEED_MESSAGES["html"])
    if stripped.startswith("<"):
        return stripped

    search_chunk = stripped[:8192].lower()
    positions = [search_chunk.find(marker) for marker in _XML_START_MARKERS]
    positions = [pos for pos in positions if pos != -1]
    if positions:
        return stripped[min(positions) :]
    return stripped


def _prepare_document(document: str | bytes) -> tuple[bytes, str]:
    text, encoding = decode_document(document)
    text = _strip_leading_junk(text)
    if not text.strip():
        raise FeedSyntaxError("Empty content")
    text = repair_ampersands(text)
    # The text is handed to lxml as UTF-8, whatever the source said
    text = _RE_XML_DECL_ENCODING.sub(r"\1utf-8\3", text, count=1)
    return text.encode("utf-8", errors="replace"), encoding


def _make_parser(recover: bool) -> etree.XMLParser:
    return etree.XMLParser(
        ns_clean=True,
        recover=recover,
        collect_ids=False,
        resolve_entities=False,
        no_network=True,
    )


def _parse_xml_root(xml_content: bytes, recover: bool) -> _Element:
    try:
        root = etree.fromstring(xml_content, parser=_make_parser(recover))
    except etree.XMLSyntaxError as e:
        raise FeedSyntaxError(f"Failed to parse XML content: {e}") from e
    if root is None:
        raise FeedSyntaxError("Failed to parse XML: no root element")
    return root


# ---------------------------------------------------------------------------
# Element lookup
# ---------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> Optional[str]:
    return tag[1:].split("}", 1)[0] if tag.startswith("{") else None


def _children(parent: _Element, names: Sequence[str]) -> Iterator[_Element]:
    """Children of ``parent`` whose tag is one of ``names``, in document order."""
    for child in parent:
        if isinstance(child.tag, str) and child.tag in names:
            yield child


def _child(parent: _Element, names: Sequence[str]) -> Optional[_Element]:
    """First child matching ``names``, trying the names in order."""
    for name in names:
        for child in _children(parent, (name,)):
            return child
    return None


def _walk(root: _Element, path: Path) -> list[_Element]:
    current = [root]
    for names in path:
        current = [child for element in current for child in _children(element, names)]
        if not current:
            break
    return current


def _child_text(ctx: _Context, parent: _Element, names: Sequence[str]) -> Optional[str]:
    """Cleaned text of the first child, by name order, that has some."""
    for name in names:
        for child in _children(parent, (name,)):
            value = ctx.clean(child.text)
            if value is not None:
                return value
    return None


def _path_text(ctx: _Context, root: _Element, *paths: Path) -> Optional[str]:
    for path in paths:
        for element in _walk(root, path):
            value = ctx.clean(element.text)
            if value is not None:
                return value
    return None


def _attr(element: _Element, name: str) -> Optional[str]:
    value = element.get(name)
    return value.strip() if value is not None else None


def _resolve_first_date(item: _Element, names: Sequence[str]) -> Optional[datetime.datetime]:
    for name in names:
        for child in _children(item, (name,)):
            parsed = resolve(child.text)
            if parsed is not None:
                return parsed
    return None


# ---------------------------------------------------------------------------
# Type detection
# ---------------------------------------------------------------------------


def detect_feed_kind(root: _Element) -> FeedKind:
    """Tell RSS from Atom by the shape of the document root."""
    if _child(root, _CHANNEL + _RSS_CHANNEL) is not None:
        logger.debug("Detected RSS feed by its channel element")
        return FeedKind.RSS

    tag = root.tag if isinstance(root.tag, str) else ""
    local = _local_name(tag).lower()
    if local == "feed" and (
        _namespace(tag) is None or _namespace(tag) in _ATOM_NAMESPACES
    ):
        logger.debug("Detected Atom feed by its %s root", tag)
        return FeedKind.ATOM

    message = _NON_FEED_MESSAGES.get(local)
    if message is not None:
        raise UnknownFeedTypeError(message)
    raise UnknownFeedTypeError(f"Unknown feed type: {tag or root!r}")


# ---------------------------------------------------------------------------
# RSS
# ---------------------------------------------------------------------------


def _channel_paths(*locals_: str) -> tuple[Path, ...]:
    plain = tuple((_CHANNEL, (local,)) for local in locals_)
    prefixed = tuple((_RSS_CHANNEL, _rss(local)) for local in locals_)
    return plain + prefixed


def _parse_enclosure(element: _Element) -> Enclosure:
    return Enclosure(
        url=_attr(element, "url"),
        length=_attr(element, "length"),
        type=_attr(element, "type"),
    )


def _rss_item_link(ctx: _Context, item: _Element) -> Optional[str]:
    link = _child_text(ctx, item, ("link",) + _rss("link"))
    if link is not None:
        return link
    guid = _child(item, ("guid",) + _rss("guid"))
    # Only the exact string "false" disqualifies a guid
    if guid is None or guid.get("isPermaLink") == "false":
        return None
    return trim_ws(guid.text) if guid.text and guid.text.strip() else None


def _rss_item_content(ctx: _Context, item: _Element) -> Optional[str]:
    for names in (_CONTENT_ENCODED, ("description",) + _rss("description")):
        element = _child(item, names)
        if element is None:
            continue
        content = extract(element, ctx.encoding, ctx.normalizer)
        if content is not None:
            return content
    return None


def _parse_rss_item(
    ctx: _Context, item: _Element, feed_creator: Optional[str]
) -> RSSItem:
    title = _child_text(ctx, item, ("title",) + _rss("title"))
    if title is None:
        title = _child_text(ctx, item, ("pubDate",) + _rss("pubDate"))

    creator = _child_text(ctx, item, _dc("creator") + ("author",) + _rss("author"))

    return RSSItem(
        title=title,
        link=_rss_item_link(ctx, item),
        content=_rss_item_content(ctx, item),
        date=_resolve_first_date(item, _dc("date") + ("pubDate",) + _rss("pubDate")),
        creator=creator if creator is not None else feed_creator,
        subject=_child_text(ctx, item, _dc("subject")),
        category=_child_text(
            ctx, item, _dc("category") + ("category",) + _rss("category")
        ),
        enclosures=tuple(
            _parse_enclosure(element) for element in _children(item, ("enclosure",))
        ),
    )


def _find_rss_items(root: _Element) -> list[_Element]:
    # Paths are tried in priority order and never merged
    for path in _RSS_ITEM_PATHS:
        items = _walk(root, path)
        if items:
            logger.debug(
                "Found %d RSS items under %s",
                len(items),
                "/".join(names[0] for names in path),
            )
            return items
    return []


def _build_rss(root: _Element, ctx: _Context) -> Feed:
    creator = _path_text(
        ctx,
        root,
        (_CHANNEL + _RSS_CHANNEL, _dc("creator")),
        *_channel_paths("author"),
        *_channel_paths("managingEditor"),
    )
    items = [_parse_rss_item(ctx, item, creator) for item in _find_rss_items(root)]
    return Feed(
        kind=FeedKind.RSS,
        encoding=ctx.encoding,
        title=_path_text(ctx, root, *_channel_paths("title")),
        link=_path_text(ctx, root, *_channel_paths("link")),
        description=_path_text(ctx, root, *_channel_paths("description")),
        creator=creator,
        items=tuple(items),
    )


# ---------------------------------------------------------------------------
# Atom
# ---------------------------------------------------------------------------


def _atom_link(element: _Element) -> Optional[str]:
    """Pick the HTML link of a feed or entry.

    Typed links are scanned in document order and each match replaces the
    previous one, so the last qualifying link wins. Without any, the first
    untyped alternate link is used.
    """
    link: Optional[str] = None
    alternate: Optional[str] = None
    for candidate in _children(element, _atom("link")):
        href = _attr(candidate, "href")
        if not href:
            continue
        if candidate.get("type") in _HTML_LINK_TYPES:
            link = href
        elif alternate is None and candidate.get("rel") in (None, "alternate"):
            alternate = href
    return link if link is not None else alternate


def _atom_description(ctx: _Context, root: _Element) -> Optional[str]:
    info = _child(root, _atom("info"))
    if info is None:
        return _child_text(ctx, root, _atom("tagline") + _atom("subtitle"))
    source = info
    for child in info:
        if isinstance(child.tag, str) and _local_name(child.tag) == "div":
            source = child
            break
    return ctx.clean(etree.tostring(source, encoding="unicode", with_tail=False))


def _atom_author(ctx: _Context, element: _Element) -> Optional[str]:
    for author in _children(element, _atom("author")):
        name = _child_text(ctx, author, _atom("name"))
        if name is not None:
            return name
    return None


def _atom_item_content(ctx: _Context, entry: _Element) -> Optional[str]:
    for names in (_atom("content"), _atom("summary")):
        element = _child(entry, names)
        if element is None:
            continue
        if element.get("mode") == "escaped" and element.text:
            content = ctx.clean(element.text)
        else:
            content = extract(element, ctx.encoding, ctx.normalizer)
        if content is not None:
            return content
    return None


def _parse_atom_item(
    ctx: _Context, entry: _Element, feed_creator: Optional[str]
) -> AtomItem:
    creator = _atom_author(ctx, entry)
    return AtomItem(
        title=_child_text(ctx, entry, _atom("title")),
        link=_atom_link(entry),
        content=_atom_item_content(ctx, entry),
        date=_resolve_first_date(entry, _ATOM_DATES),
        creator=creator if creator is not None else feed_creator,
    )


def _build_atom(root: _Element, ctx: _Context) -> Feed:
    creator = _atom_author(ctx, root)
    items = [
        _parse_atom_item(ctx, entry, creator)
        for entry in _children(root, _atom("entry"))
    ]
    return Feed(
        kind=FeedKind.ATOM,
        encoding=ctx.encoding,
        title=_child_text(ctx, root, _atom("title")),
        link=_atom_link(root),
        description=_atom_description(ctx, root),
        creator=creator,
        items=tuple(items),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse(
    document: str | bytes,
    *,
    recover: bool = False,
    normalizer: Normalizer = normalize,
) -> Feed:
    """Parse an RSS (0.9x/1.0/2.0) or Atom (0.3/1.0) document.

    Args:
        document: the complete XML document, as text or raw bytes
        recover: let lxml recover from syntax errors such as undeclared
            namespace prefixes instead of failing
        normalizer: called as ``normalizer(text, encoding)`` on every piece of
            text taken out of the document

    Returns:
        The parsed Feed. Fields no element supplied are None.

    Raises:
        UnknownFeedTypeError: if the document is neither RSS nor Atom
        FeedSyntaxError: if the document is empty or not well-formed XML
    """
    xml_content, encoding = _prepare_document(document)
    root = _parse_xml_root(xml_content, recover)
    kind = detect_feed_kind(root)
    ctx = _Context(encoding, normalizer)
    feed = _build_rss(root, ctx) if kind is FeedKind.RSS else _build_atom(root, ctx)
    logger.debug(
        "Parsed %s feed %r (%s) with %d items",
        feed.kind.value,
        feed.title,
        feed.encoding,
        len(feed.items),
    )
    return feed

