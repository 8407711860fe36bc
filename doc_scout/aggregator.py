# File: doc_scout/aggregator.py
"""doc_scout.aggregator: turns a page's item store into a serialisable report."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, TypedDict

from doc_scout.store import Item
from doc_scout.utils import file_name_from_url


class DocumentInfo(TypedDict):
    """One discovered document as it appears in reports."""

    index: int
    name: str
    url: str
    source: str
    discovered_at: float


@dataclass(slots=True)
class ScanReport:
    """Result of scanning one page."""

    page_url: str
    host: str
    enabled: bool = True
    deep_mode: bool = False
    documents: List[DocumentInfo] = field(default_factory=list)
    by_source: Dict[str, int] = field(default_factory=dict)

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, indent=2 if pretty else None)


def _document_info(index: int, item: Item) -> DocumentInfo:
    return {
        "index": index,
        "name": file_name_from_url(item.url),
        "url": item.url,
        "source": item.source.value,
        "discovered_at": item.discovered_at,
    }


def aggregate_results(
    page_url: str,
    host: str,
    items: Iterable[Item],
    *,
    enabled: bool = True,
    deep_mode: bool = False,
) -> ScanReport:
    """Build a :class:`ScanReport`; documents keep discovery order."""
    report = ScanReport(page_url=page_url, host=host, enabled=enabled, deep_mode=deep_mode)
    for index, item in enumerate(items, start=1):
        report.documents.append(_document_info(index, item))
        report.by_source[item.source.value] = report.by_source.get(item.source.value, 0) + 1
    return report
