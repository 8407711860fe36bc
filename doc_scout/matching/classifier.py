"""Extension classifier: is a URL a document of interest?

Only the path counts; query string and fragment are stripped first, so
``/view?file=a.pdf`` is *not* a document while ``/a.pdf?v=2`` is.
"""
from __future__ import annotations

import re
from typing import Tuple
from urllib.parse import urlsplit

DOCUMENT_EXTENSIONS: Tuple[str, ...] = ("ppt", "pptx", "pps", "ppsx", "pot", "potx", "pdf")

_SUFFIXES = tuple(f".{ext}" for ext in DOCUMENT_EXTENSIONS)


def _path_of(url: str) -> str:
    try:
        return urlsplit(url).path
    except ValueError:
        return re.split(r"[?#]", url, maxsplit=1)[0]


def is_document_url(url: str) -> bool:
    """Check if the path of *url* ends with one of the document extensions."""
    if not url:
        return False
    return _path_of(url.strip()).lower().endswith(_SUFFIXES)
