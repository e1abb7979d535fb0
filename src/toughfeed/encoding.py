from __future__ import annotations

import codecs
import logging
import re
from typing import Optional, Union

logger = logging.getLogger(__name__)

CANONICAL_ENCODING = "utf-8"
FALLBACK_ENCODING = "ISO-8859-1"

_CANONICAL_ALIASES = frozenset({"utf-8", "utf8"})

_RE_XML_DECL_ENCODING = re.compile(
    r'<\?xml[^>]*encoding=["\']([^"\']+)["\'][^>]*\?>', re.IGNORECASE
)
_RE_XML_DECL_ENCODING_BYTES = re.compile(
    rb'<\?xml[^>]*encoding=["\']([^"\']+)["\'][^>]*\?>', re.IGNORECASE
)


def is_canonical(encoding: Optional[str]) -> bool:
    return encoding is not None and encoding.strip().lower() in _CANONICAL_ALIASES


def normalize(text: Union[str, bytes], claimed_encoding: Optional[str]) -> str:
    """Coerce text claimed to be in ``claimed_encoding`` into canonical text.

    Feeds regularly lie about their encoding. When the claim is not UTF-8 the
    underlying bytes are first tried as UTF-8: if they decode and re-encode to
    the identical bytes, they were UTF-8 all along. Otherwise every byte is
    promoted to the code point of the same value. A ``str`` is handled through
    its single-byte image; a ``str`` that has none is already decoded Unicode.

    Never raises; the input comes back unchanged when nothing else works.
    """
    if isinstance(text, str):
        if is_canonical(claimed_encoding):
            return text
        try:
            raw = text.encode("latin-1")
        except UnicodeEncodeError:
            return text
    else:
        raw = bytes(text)
        if is_canonical(claimed_encoding):
            return raw.decode(CANONICAL_ENCODING, errors="replace")

    try:
        decoded = raw.decode(CANONICAL_ENCODING)
        if decoded.encode(CANONICAL_ENCODING) == raw:
            return decoded
    except UnicodeError:
        pass

    try:
        return raw.decode("latin-1")
    except UnicodeError:
        if isinstance(text, str):
            return text
        return raw.decode(CANONICAL_ENCODING, errors="replace")


def detect_declared_encoding(data: Union[str, bytes]) -> Optional[str]:
    """Return the encoding announced by a BOM or the XML declaration."""
    if isinstance(data, bytes):
        if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
            return "UTF-16"
        if data.startswith(codecs.BOM_UTF8):
            return "UTF-8"
        match = _RE_XML_DECL_ENCODING_BYTES.search(data[:2000])
        if match:
            return match.group(1).decode("ascii", errors="replace").strip()
        return None

    match = _RE_XML_DECL_ENCODING.search(data[:2000])
    if match:
        return match.group(1).strip()
    return None


def decode_document(data: Union[str, bytes]) -> tuple[str, str]:
    """Decode a raw document, returning its text and the resolved encoding.

    ``str`` input is taken as already decoded and keeps its declared label.
    For ``bytes`` the declared codec is used; when it is unknown or cannot
    decode the buffer, bytes are promoted one-to-one and the resolved
    encoding becomes ISO-8859-1 so later per-field normalization can still
    recover UTF-8 runs.
    """
    declared = detect_declared_encoding(data) or "UTF-8"
    if isinstance(data, str):
        return data, declared

    if declared.lower().startswith("utf-16") and b"\x00" not in data[:200]:
        # UTF-16 declaration left on a document that was re-encoded as 8-bit
        declared = "UTF-8"
    try:
        text = data.decode(declared)
    except LookupError:
        logger.warning(
            "Unknown declared encoding %r, promoting bytes as %s",
            declared,
            FALLBACK_ENCODING,
        )
        return data.decode("latin-1"), FALLBACK_ENCODING
    except UnicodeDecodeError as e:
        logger.warning(
            "Document is not valid %s (%s), promoting bytes as %s",
            declared,
            e.reason,
            FALLBACK_ENCODING,
        )
        return data.decode("latin-1"), FALLBACK_ENCODING
    return text, declared
