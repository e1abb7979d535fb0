from __future__ import annotations

import datetime
import re
from email.utils import parsedate_to_datetime
from functools import lru_cache
from typing import Optional

from dateutil import parser as dateutil_parser

_RE_WHITESPACE = re.compile(r"\s+")
_RE_FEB29 = re.compile(r"(\d{4})-02-29")
_RE_HOUR24 = re.compile(r"(\d{4}-\d{2}-\d{2})[T ]24:(\d{2}):(\d{2})")
_RE_ISO_TZ_NO_COLON = re.compile(r"([+-]\d{2})(\d{2})$")
_RE_ISO_TZ_HOUR_ONLY = re.compile(r"([+-]\d{2})$")
_RE_ISO_FRACTION = re.compile(r"\.(\d{7,})(?=(?:[+-]\d{2}:?\d{2}|Z|$))", re.IGNORECASE)

# Offsets in seconds for zone names that show up in feeds
_TZINFOS: dict[str, int] = {
    "UTC": 0,
    "UT": 0,
    "GMT": 0,
    "Z": 0,
    "WET": 0,
    "WEST": 3600,
    "BST": 3600,
    "CET": 3600,
    "CEST": 7200,
    "MET": 3600,
    "MEST": 7200,
    "EET": 7200,
    "EEST": 10800,
    "MSK": 10800,
    "IST": 19800,
    "PST": -28800,
    "PDT": -25200,
    "MST": -25200,
    "MDT": -21600,
    "CST": -21600,
    "CDT": -18000,
    "EST": -18000,
    "EDT": -14400,
    "AKST": -32400,
    "AKDT": -28800,
    "HST": -36000,
    "AEST": 36000,
    "AEDT": 39600,
    "ACST": 34200,
    "ACDT": 37800,
    "AWST": 28800,
    "NZST": 43200,
    "NZDT": 46800,
    "JST": 32400,
    "KST": 32400,
    "SGT": 28800,
}


def _is_iso_like(value: str) -> bool:
    return len(value) >= 10 and value[4] == "-" and value[0:4].isdigit()


def _normalize_iso_datetime_string(value: str) -> str:
    """Coerce flexible ISO-8601 inputs into a form datetime.fromisoformat can parse."""
    cleaned = value.strip()

    upper_cleaned = cleaned.upper()
    for suffix in (" UTC", " GMT", " Z"):
        if upper_cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)].rstrip() + "+00:00"
            break

    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"

    if " " in cleaned and "T" not in cleaned[:11]:
        date_part, rest = cleaned.split(" ", 1)
        if rest and rest[0].isdigit():
            cleaned = f"{date_part}T{rest}"

    match = _RE_ISO_TZ_NO_COLON.search(cleaned)
    if match and "T" in cleaned:
        cleaned = cleaned[:-5] + f"{match.group(1)}:{match.group(2)}"
    else:
        match = _RE_ISO_TZ_HOUR_ONLY.search(cleaned)
        if match and "T" in cleaned:
            cleaned = cleaned[:-3] + f"{match.group(1)}:00"

    return _RE_ISO_FRACTION.sub(lambda m: "." + m.group(1)[:6], cleaned, count=1)


def _repair(value: str) -> str:
    """Fix impossible dates that broken generators emit."""
    if "-02-29" in value:
        year_match = _RE_FEB29.match(value)
        if year_match:
            year = int(year_match.group(1))
            if not ((year % 4 == 0 and year % 100 != 0) or (year % 400 == 0)):
                value = value.replace(f"{year}-02-29", f"{year}-02-28")

    if "T24:" in value or " 24:" in value:
        m24 = _RE_HOUR24.search(value)
        if m24:
            try:
                base = datetime.date.fromisoformat(m24.group(1))
            except ValueError:
                return value
            next_day = base + datetime.timedelta(days=1)
            value = (
                value[: m24.start()]
                + f"{next_day}T00:{m24.group(2)}:{m24.group(3)}"
                + value[m24.end() :]
            )
    return value


def parse_iso8601(value: str) -> Optional[datetime.datetime]:
    """Structured timestamp (ISO-8601 / W3C-DTF / RFC 3339)."""
    if not _is_iso_like(value):
        return None
    try:
        return datetime.datetime.fromisoformat(_normalize_iso_datetime_string(value))
    except ValueError:
        return None


def parse_rfc2822(value: str) -> Optional[datetime.datetime]:
    """Mail-style timestamp, e.g. ``Tue, 10 Jun 2003 09:41:01 GMT``."""
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def parse_freeform(value: str) -> Optional[datetime.datetime]:
    try:
        return dateutil_parser.parse(value, tzinfos=_TZINFOS)
    except (ValueError, TypeError, OverflowError):
        return None


_STRATEGIES = (parse_iso8601, parse_rfc2822, parse_freeform)


@lru_cache(maxsize=4096)
def resolve(text: Optional[str]) -> Optional[datetime.datetime]:
    """Parse a feed date, trying ISO-8601, then RFC 2822, then anything goes.

    Returns None rather than raising when no strategy succeeds. The offset
    given by the source is kept as is; dates without one stay naive.
    """
    if not text:
        return None
    candidate = text.strip()
    if not candidate:
        return None
    if "\n" in candidate or "\r" in candidate or "\t" in candidate or "  " in candidate:
        candidate = _RE_WHITESPACE.sub(" ", candidate)
    candidate = _repair(candidate)

    for strategy in _STRATEGIES:
        parsed = strategy(candidate)
        if parsed is not None:
            return parsed
    return None
