# File: doc_scout/channels.py
"""doc_scout.channels: the discovery channels.

* :class:`DomSweeper` – throttled sweep over link-bearing elements and
  inline script/``<pre>`` text;
* :class:`ResourceSweeper` – one pass over the resource-timing log;
* :class:`TrafficInterceptor` – wrappers around the page's ``fetch`` and
  ``PageRequest`` entry points that scan response bodies on the side.

All channels feed the same :class:`~doc_scout.store.ItemStore`; the store's
de-duplication makes the order in which channels run irrelevant for the
final set of URLs.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Optional, Set

from bs4.element import Tag

from doc_scout.logger import get_logger
from doc_scout.matching import decode_preview_url, is_document_url, scan_text
from doc_scout.page.document import LiveDocument
from doc_scout.page.models import FetchResponse
from doc_scout.page.network import (
    FetchFunc,
    OpenFunc,
    PageNetwork,
    PageRequest,
    ResourceTimingUnavailable,
    SendFunc,
)
from doc_scout.store import ItemStore, Source
from doc_scout.utils import try_normalize_url

__all__ = [
    "LINK_SELECTOR",
    "TEXT_SELECTOR",
    "consider_url",
    "DomSweeper",
    "ResourceSweeper",
    "TrafficInterceptor",
]

logger = get_logger("channels")

LINK_SELECTOR = "a[href], iframe[src], embed[src], object[data]"
TEXT_SELECTOR = "script, pre"
_LINK_ATTRS = ("href", "src", "data")
_TEXT_CONTENT_MARKERS = ("application/json", "text")


def consider_url(raw: Optional[str], store: ItemStore, source: Source, base: Optional[str]) -> bool:
    """Classify *raw*, normalize it and add it to *store*; True if it was new."""
    if not raw or not is_document_url(raw):
        return False
    url = try_normalize_url(raw, base)
    if url is None:
        return False
    return store.add(url, source)


def _link_of(tag: Tag) -> Optional[str]:
    for attr in _LINK_ATTRS:
        value = tag.get(attr)
        if isinstance(value, str) and value:
            return value
    return None


class DomSweeper:
    """One-shot DOM sweep with a cooperative rate limit.

    A call that starts less than *interval* seconds after the previous
    sweep started is a no-op.
    """

    def __init__(
        self,
        document: LiveDocument,
        store: ItemStore,
        *,
        base: Optional[str] = None,
        interval: float = 0.8,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.document = document
        self.store = store
        self.base = base or document.url
        self.interval = interval
        self._clock = clock
        self.last_scan_at: Optional[float] = None
        self.sweeps = 0

    def scan_dom(self) -> bool:
        """Sweep the document unless throttled; return True if a sweep ran."""
        now = self._clock()
        # compared in whole milliseconds
        if (
            self.last_scan_at is not None
            and round((now - self.last_scan_at) * 1000) < round(self.interval * 1000)
        ):
            return False
        self.last_scan_at = now
        self.sweeps += 1

        before = len(self.store)
        for tag in self.document.select(LINK_SELECTOR):
            raw = _link_of(tag)
            decoded = decode_preview_url(raw, self.base)
            if decoded:
                self.store.add(decoded, Source.PREVIEW)
                continue
            consider_url(raw, self.store, Source.DOM, self.base)

        for tag in self.document.select(TEXT_SELECTOR):
            scan_text(tag.get_text(), self.store, Source.INLINE, self.base)

        logger.debug("DOM sweep #%d added %d item(s)", self.sweeps, len(self.store) - before)
        return True


class ResourceSweeper:
    """Reads the resource-timing log once per call."""

    def __init__(self, network: PageNetwork, store: ItemStore, *, base: Optional[str] = None) -> None:
        self.network = network
        self.store = store
        self.base = base or network.base_url

    def scan_resources(self) -> int:
        try:
            entries = self.network.get_entries_by_type("resource")
        except ResourceTimingUnavailable as exc:
            logger.debug("Resource sweep skipped: %s", exc)
            return 0
        added = 0
        for entry in entries:
            if consider_url(entry.name, self.store, Source.RESOURCE, self.base):
                added += 1
        return added


class TrafficInterceptor:
    """Wraps the page's request entry points and scans what comes back.

    Each wrapper keeps the externally observable behaviour of the function it
    wraps: same arguments, same return value, same exceptions. Body
    inspection happens on the side and its failures are only logged.
    """

    def __init__(self, store: ItemStore, *, base: Optional[str] = None) -> None:
        self.store = store
        self.base = base
        self._pending: Set[asyncio.Task[None]] = set()

    # -- fetch --------------------------------------------------------------

    def wrap_fetch(self, real_fetch: FetchFunc) -> FetchFunc:
        async def fetch(*args: Any, **kwargs: Any) -> FetchResponse:
            response = await real_fetch(*args, **kwargs)
            try:
                if any(marker in response.content_type for marker in _TEXT_CONTENT_MARKERS):
                    task = asyncio.get_running_loop().create_task(
                        self._inspect_fetch(response.clone())
                    )
                    self._pending.add(task)
                    task.add_done_callback(self._pending.discard)
            except Exception as exc:  # never break the page's own request
                logger.debug("Could not schedule inspection of %s: %s", response.url, exc)
            return response

        fetch.__wrapped__ = real_fetch  # type: ignore[attr-defined]
        return fetch

    async def _inspect_fetch(self, clone: FetchResponse) -> None:
        try:
            text = await clone.text()
            scan_text(text, self.store, Source.FETCH, self.base)
        except Exception as exc:
            logger.debug("Inspection of %s failed: %s", clone.url, exc)

    async def drain(self) -> None:
        """Wait for all scheduled body inspections."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    @property
    def pending(self) -> int:
        return len(self._pending)

    # -- PageRequest ----------------------------------------------------------

    def wrap_open(self, real_open: OpenFunc) -> OpenFunc:
        def open_request(request: PageRequest, method: str, url: str) -> None:
            request.tags["doc_scout.traced_url"] = url
            return real_open(request, method, url)

        open_request.__wrapped__ = real_open  # type: ignore[attr-defined]
        return open_request

    def wrap_send(self, real_send: SendFunc) -> SendFunc:
        async def send_request(request: PageRequest, body: Optional[Any] = None) -> None:
            request.add_event_listener("load", self._on_request_load)
            return await real_send(request, body)

        send_request.__wrapped__ = real_send  # type: ignore[attr-defined]
        return send_request

    def _on_request_load(self, request: PageRequest) -> None:
        try:
            if isinstance(request.response_text, str):
                scan_text(request.response_text, self.store, Source.XHR, self.base)
        except Exception as exc:
            logger.debug(
                "Inspection of %s failed: %s", request.tags.get("doc_scout.traced_url"), exc
            )

    def install(self, network: PageNetwork) -> None:
        """Swap the wrappers into *network*."""
        if self.base is None:
            self.base = network.base_url
        network.fetch = self.wrap_fetch(network.fetch)
        network.open_request = self.wrap_open(network.open_request)
        network.send_request = self.wrap_send(network.send_request)
        logger.info("Request interception installed for %s", network.base_url)
