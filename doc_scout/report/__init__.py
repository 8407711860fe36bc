"""doc_scout.report: views of the discovered documents (console, JSON, HTML)."""

from __future__ import annotations

from typing import Iterable, Sequence

from doc_scout.store import Item
from doc_scout.utils import file_name_from_url

EMPTY_TEXT = "No document links found yet"


def render_list(items: Iterable[Item]) -> str:
    """Numbered list ``index. name  url``; a fixed text when there is nothing."""
    lines: Sequence[str] = [
        f"{index}. {file_name_from_url(item.url)}  {item.url}"
        for index, item in enumerate(items, start=1)
    ]
    if not lines:
        return EMPTY_TEXT
    return "\n".join(lines)


__all__ = ["EMPTY_TEXT", "render_list"]
