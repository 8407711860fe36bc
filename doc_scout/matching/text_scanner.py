"""Free-text scanner for absolute document URLs (inline scripts, API bodies)."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterator, Optional

from doc_scout.matching.classifier import is_document_url
from doc_scout.utils import try_normalize_url

if TYPE_CHECKING:
    from doc_scout.store import ItemStore, Source

DOCUMENT_URL_RE = re.compile(
    r"""https?://[^\s"'<>]+?\.(?:pptx?|ppsx?|potx?|pdf)(?:\?[^\s"'<>]*)?""",
    re.IGNORECASE,
)


def find_document_urls(text: Optional[str]) -> Iterator[str]:
    """Yield every raw document URL found in *text*, in order of appearance."""
    if not text:
        return
    for match in DOCUMENT_URL_RE.finditer(text):
        yield match.group(0)


def scan_text(
    text: Optional[str],
    store: "ItemStore",
    source: "Source",
    base: Optional[str] = None,
) -> int:
    """Submit every document URL in *text* to *store*; return how many were new."""
    added = 0
    for raw in find_document_urls(text):
        url = try_normalize_url(raw, base)
        if url is None or not is_document_url(url):
            continue
        if store.add(url, source):
            added += 1
    return added
