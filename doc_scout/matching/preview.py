"""Decoder for ``onlinePreview`` viewer links.

Document viewers of the kkFileView family wrap the real file location in a
query parameter::

    https://viewer.example.com/onlinePreview?url=aHR0cHM6Ly9hLmNvbS9zLnBwdA==

:func:`decode_preview_url` recovers ``https://a.com/s.ppt`` from such a link
and returns ``None`` for anything else; a ``None`` is "not applicable",
never an error.
"""
from __future__ import annotations

import base64
import binascii
import re
from typing import Optional
from urllib.parse import parse_qs, urljoin, urlsplit

from doc_scout.utils import try_normalize_url

PREVIEW_MARKER = "/onlinePreview"
PREVIEW_PARAM = "url"

_MARKER_RE = re.compile(re.escape(PREVIEW_MARKER), re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"[\t\n\f\r ]")


def _b64decode(value: str) -> Optional[bytes]:
    # query decoding turns "+" into " "; base64 never contains spaces
    data = _WHITESPACE_RE.sub("", value.replace(" ", "+"))
    if len(data) % 4 == 1:
        return None
    data += "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None


def decode_preview_url(raw: Optional[str], base: Optional[str] = None) -> Optional[str]:
    """Return the normalized target of a preview link, or ``None``."""
    if not raw:
        return None
    try:
        parts = urlsplit(urljoin(base, raw.strip()) if base else raw.strip())
    except ValueError:
        return None
    if not _MARKER_RE.search(parts.path):
        return None

    values = parse_qs(parts.query, keep_blank_values=True).get(PREVIEW_PARAM)
    if not values or not values[0]:
        return None

    payload = _b64decode(values[0])
    if payload is None:
        return None
    try:
        decoded = payload.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return try_normalize_url(decoded, base)
