from __future__ import annotations

import html as _html_mod
from typing import TYPE_CHECKING, Callable, Optional, Union

from lxml import etree

from .encoding import normalize
from .text import to_html, trim_ws

if TYPE_CHECKING:
    from lxml.etree import _Element

Normalizer = Callable[[Union[str, bytes], Optional[str]], str]
_Node = Union[str, "_Element"]


def _is_markup(node: _Node) -> bool:
    return not isinstance(node, str)


def meaningful_children(element: _Element) -> list[_Node]:
    """Child nodes of ``element`` in document order, text included.

    lxml keeps character data in ``text``/``tail`` rather than as nodes, so
    the sequence is rebuilt from them. Whitespace-only text, comments and
    processing instructions are dropped.
    """
    nodes: list[_Node] = []
    if element.text and element.text.strip():
        nodes.append(element.text)
    for child in element:
        if isinstance(child.tag, str):
            nodes.append(child)
        if child.tail and child.tail.strip():
            nodes.append(child.tail)
    return nodes


def direct_text(element: _Element) -> str:
    """All character data directly inside ``element``, child markup excluded."""
    parts = [element.text or ""]
    parts.extend(child.tail or "" for child in element)
    return "".join(parts)


def serialize_node(node: _Node) -> str:
    if isinstance(node, str):
        return _html_mod.escape(node, quote=False)
    return etree.tostring(node, encoding="unicode", with_tail=False)


def inner_markup(element: _Element) -> str:
    """Serialized content of ``element`` without its own start and end tags."""
    parts = [serialize_node(element.text)] if element.text else []
    for child in element:
        if isinstance(child.tag, str):
            parts.append(serialize_node(child))
        if child.tail:
            parts.append(serialize_node(child.tail))
    return "".join(parts)


def extract(
    element: _Element,
    encoding: Optional[str],
    normalizer: Normalizer = normalize,
) -> Optional[str]:
    """Extract the body of an item from a description/content element.

    Handles the three shapes seen in the wild: plain text, CDATA-wrapped
    HTML (indistinguishable from text once parsed) and inline XHTML.
    """
    children = meaningful_children(element)
    if len(children) > 1:
        raw = "".join(serialize_node(child) for child in children)
        return to_html(trim_ws(normalizer(raw, encoding)))
    if not children:
        return None

    child = children[0]
    if not _is_markup(child):
        return to_html(trim_ws(normalizer(direct_text(element), encoding)))

    if len(child):
        embedded = inner_markup(child)
    else:
        embedded = child.text or ""
    if not embedded.strip():
        return None
    return to_html(normalizer(embedded, encoding))
