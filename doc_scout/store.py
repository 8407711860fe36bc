# File: doc_scout/store.py
"""doc_scout.store: ordered, de-duplicated collection of discovered documents."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from doc_scout.logger import get_logger

__all__ = ["Source", "Item", "ItemStore"]

logger = get_logger("store")


class Source(str, Enum):
    """Discovery channel that saw a URL first."""

    DOM = "dom"
    INLINE = "inline"
    RESOURCE = "resource"
    FETCH = "fetch"
    XHR = "xhr"
    PREVIEW = "preview"


@dataclass(frozen=True, slots=True)
class Item:
    """A discovered document link."""

    url: str
    source: Source
    discovered_at: float

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        return data


class ItemStore:
    """Insertion-ordered map ``url -> Item``; the first sighting of a URL wins.

    *on_change* is called with the store after every successful insertion
    (this is how views re-render). There is no removal: items live as long
    as the page view that owns the store.
    """

    def __init__(
        self,
        on_change: Optional[Callable[["ItemStore"], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._items: Dict[str, Item] = {}
        self._on_change = on_change
        self._clock = clock

    def add(self, url: Optional[str], source: Source) -> bool:
        """Insert *url* unless it is empty or already known; return True if inserted."""
        if not url or url in self._items:
            return False
        self._items[url] = Item(url=url, source=Source(source), discovered_at=self._clock())
        logger.debug("Found %s via %s", url, Source(source).value)
        if self._on_change is not None:
            self._on_change(self)
        return True

    def all(self) -> List[Item]:
        return list(self._items.values())

    def urls(self) -> List[str]:
        return list(self._items)

    def get(self, url: str) -> Optional[Item]:
        return self._items.get(url)

    def __contains__(self, url: object) -> bool:
        return url in self._items

    def __iter__(self) -> Iterator[Item]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._items)
