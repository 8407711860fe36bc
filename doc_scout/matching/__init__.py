"""doc_scout.matching: deciding which strings are document links."""

from .classifier import DOCUMENT_EXTENSIONS, is_document_url
from .preview import PREVIEW_MARKER, decode_preview_url
from .text_scanner import DOCUMENT_URL_RE, find_document_urls, scan_text

__all__ = [
    "DOCUMENT_EXTENSIONS",
    "DOCUMENT_URL_RE",
    "PREVIEW_MARKER",
    "decode_preview_url",
    "find_document_urls",
    "is_document_url",
    "scan_text",
]
