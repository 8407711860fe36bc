# File: doc_scout/utils.py
"""doc_scout.utils: URL helpers shared by the discovery channels and the actions."""

from __future__ import annotations

import re
from typing import Optional, Sequence
from urllib.parse import quote, unquote, urljoin, urlsplit, urlunsplit

from doc_scout.logger import get_logger

__all__: Sequence[str] = (
    "NormalizationFailed",
    "normalize_url",
    "try_normalize_url",
    "file_name_from_url",
    "host_of",
    "DEFAULT_FILE_NAME",
)

logger = get_logger("utils")

DEFAULT_FILE_NAME = "slide.ppt"

# Schemes that must carry a host and get "/" as their empty path.
_SPECIAL_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss", "file"})
_DEFAULT_PORTS = {"http": 80, "https": 443, "ftp": 21, "ws": 80, "wss": 443}

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")
_FORBIDDEN_HOST_RE = re.compile(r"[\s<>^|\"'`{}\\]")
# Leading/trailing C0 controls and spaces are dropped before parsing.
_TRIM_RE = re.compile(r"^[\x00-\x20]+|[\x00-\x20]+$")
_TAB_NEWLINE_RE = re.compile(r"[\t\n\r]")

_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"


class NormalizationFailed(ValueError):
    """Raised when a candidate string does not resolve to a valid absolute URL."""


def normalize_url(raw: str, base: Optional[str] = None) -> str:
    """Resolve *raw* against *base* and return a canonical absolute URL.

    Scheme and host are lower-cased, default ports dropped, unsafe characters
    percent-encoded (existing ``%XX`` escapes are kept as they are).
    """
    if not raw or not isinstance(raw, str):
        raise NormalizationFailed("empty candidate")

    candidate = _TAB_NEWLINE_RE.sub("", _TRIM_RE.sub("", raw))
    if not candidate:
        raise NormalizationFailed("blank candidate")

    try:
        joined = urljoin(base, candidate) if base else candidate
        parts = urlsplit(joined)
        port = parts.port
    except ValueError as exc:
        raise NormalizationFailed(f"unparseable URL {raw!r}: {exc}") from exc

    scheme = parts.scheme.lower()
    if not scheme or not _SCHEME_RE.match(scheme):
        raise NormalizationFailed(f"no scheme in {raw!r}")

    if scheme not in _SPECIAL_SCHEMES:
        # opaque URLs (mailto:, javascript:, data:) are kept verbatim
        return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))

    host = (parts.hostname or "").lower()
    if scheme != "file" and not host:
        raise NormalizationFailed(f"no host in {raw!r}")
    if _FORBIDDEN_HOST_RE.search(host):
        raise NormalizationFailed(f"invalid host in {raw!r}")

    netloc = host
    if ":" in host:
        netloc = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    path = quote(parts.path or "/", safe=_PATH_SAFE)
    query = quote(parts.query, safe=_QUERY_SAFE)
    fragment = quote(parts.fragment, safe=_QUERY_SAFE + "#")
    return urlunsplit((scheme, netloc, path, query, fragment))


def try_normalize_url(raw: str, base: Optional[str] = None) -> Optional[str]:
    """:func:`normalize_url` that returns ``None`` instead of raising."""
    try:
        return normalize_url(raw, base)
    except NormalizationFailed as exc:
        logger.debug("Dropped candidate: %s", exc)
        return None


def file_name_from_url(url: str) -> str:
    """Display/download name: last path segment, percent-decoded."""
    clean = re.split(r"[?#]", url, maxsplit=1)[0]
    try:
        name = unquote(clean[clean.rfind("/") + 1:], errors="strict")
    except UnicodeDecodeError:
        return DEFAULT_FILE_NAME
    return name or DEFAULT_FILE_NAME


def host_of(value: str) -> str:
    """Hostname of a URL, or the value itself (lower-cased) if it is a bare host."""
    value = value.strip()
    if "://" in value:
        return (urlsplit(value).hostname or "").lower()
    return value.split("/", 1)[0].split(":", 1)[0].lower()
