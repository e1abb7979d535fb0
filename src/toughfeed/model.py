from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, field
from itertools import islice
from operator import attrgetter
from typing import Any, Callable, Iterable, NamedTuple, Optional

from .exceptions import UnknownFieldError


class FeedKind(str, enum.Enum):
    RSS = "rss"
    ATOM = "atom"


class Enclosure(NamedTuple):
    """A media attachment of an RSS item, as given by its attributes."""

    url: Optional[str] = None
    length: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class Item:
    title: Optional[str] = None
    link: Optional[str] = None
    content: Optional[str] = None
    date: Optional[datetime.datetime] = None
    creator: Optional[str] = None
    subject: Optional[str] = None
    category: Optional[str] = None
    # Bound by the owning Feed when it is constructed.
    feed: Optional[Feed] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class RSSItem(Item):
    enclosures: tuple[Enclosure, ...] = ()


@dataclass(frozen=True)
class AtomItem(Item):
    pass


@dataclass(frozen=True)
class Feed:
    """One parsed RSS or Atom document.

    The feed owns its items; constructing it points every item's ``feed``
    attribute back at it. Neither record changes afterwards.
    """

    kind: FeedKind
    encoding: str = "UTF-8"
    title: Optional[str] = None
    link: Optional[str] = None
    description: Optional[str] = None
    creator: Optional[str] = None
    items: tuple[Item, ...] = ()

    def __post_init__(self) -> None:
        for item in self.items:
            if item.feed is not None and item.feed is not self:
                raise ValueError(f"Item {item.title!r} already belongs to another feed")
            object.__setattr__(item, "feed", self)


ITEM_FIELDS: dict[str, Callable[[Item], Any]] = {
    name: attrgetter(name)
    for name in ("title", "link", "content", "date", "creator", "subject", "category")
}


def item_accessor(name: str) -> Callable[[Item], Any]:
    """Return the accessor for an item field, rejecting unknown names."""
    try:
        return ITEM_FIELDS[name]
    except KeyError:
        raise UnknownFieldError(
            f"Unknown item field {name!r}; expected one of {', '.join(ITEM_FIELDS)}"
        ) from None


def _sort_key(value: Any) -> Any:
    # naive dates order as if they were UTC
    if isinstance(value, datetime.datetime) and value.utcoffset() is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def sort_items(
    items: Iterable[Item],
    field_name: str,
    *,
    reverse: bool = False,
    limit: Optional[int] = None,
) -> list[Item]:
    """Sort items by one field. Items lacking the field always come last."""
    getter = item_accessor(field_name)
    present: list[Item] = []
    missing: list[Item] = []
    for item in items:
        (missing if getter(item) is None else present).append(item)
    present.sort(key=lambda item: _sort_key(getter(item)), reverse=reverse)
    ordered = present + missing
    if limit is not None:
        return list(islice(ordered, max(limit, 0)))
    return ordered


def group_items(items: Iterable[Item], field_name: str) -> dict[Any, list[Item]]:
    """Group items by the value of one field, keeping document order."""
    getter = item_accessor(field_name)
    groups: dict[Any, list[Item]] = {}
    for item in items:
        groups.setdefault(getter(item), []).append(item)
    return groups
