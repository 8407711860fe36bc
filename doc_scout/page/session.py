# doc_scout/page/session.py
"""
Page loading: navigation with retry/backoff, sub-resource loading and
background requests.

Usage::

    async with PageSession(config) as session:
        page = await session.open("https://example.com/course/1")
        ...                      # instrument the page
        await session.load_subresources(page)
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlsplit

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4.element import Tag

from doc_scout.config import ScoutConfig
from doc_scout.logger import get_logger
from doc_scout.page.document import LiveDocument
from doc_scout.page.network import PageNetwork, PageRequest

__all__ = ("LivePage", "PageLoadError", "PageSession")

logger = get_logger("session")

# (selector, attribute, initiator type) of what a browser loads on its own
_SUBRESOURCES: Tuple[Tuple[str, str, str], ...] = (
    ("script[src]", "src", "script"),
    ("link[rel~=stylesheet][href]", "href", "link"),
    ("link[rel~=preload][href]", "href", "link"),
    ("iframe[src]", "src", "iframe"),
)


class PageLoadError(RuntimeError):
    """Navigation to the page failed."""


@dataclass(slots=True)
class LivePage:
    """A loaded top-level page."""

    url: str
    document: LiveDocument
    network: PageNetwork

    @property
    def host(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()


class PageSession:
    """Opens pages with a shared aiohttp session."""
    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(self, config: ScoutConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> PageSession:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def open(self, url: str) -> LivePage:
        """Navigate to *url*; retry 5xx/429 and network errors with backoff."""
        if not self.session:
            raise RuntimeError("Session not initialized")
        attempts = 0
        while True:
            try:
                async with self.session.get(url) as resp:
                    if resp.status in self._RETRY_STATUS:
                        raise ClientError(f"retryable status {resp.status}")
                    if resp.status >= 400:
                        raise PageLoadError(f"{url} answered HTTP {resp.status}")
                    final_url = str(resp.url)
                    mime = resp.headers.get("Content-Type", "").split(";", 1)[0].lower()
                    html = await resp.text(errors="replace") if "html" in mime or not mime else ""
                    break
            except (ClientError, asyncio.TimeoutError) as e:
                attempts += 1
                if attempts > self.config.retry_times:
                    logger.warning("Failed %s: %s", url, e)
                    raise PageLoadError(f"could not load {url}: {e}") from e
                backoff = min(60, 2**attempts + random.random())
                logger.debug(
                    "Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff
                )
                await asyncio.sleep(backoff)

        logger.info("Loaded %s (%d chars)", final_url, len(html))
        network = PageNetwork(
            self.session, final_url, resource_timing=self.config.resource_timing
        )
        return LivePage(url=final_url, document=LiveDocument(html, final_url), network=network)

    def subresource_urls(self, page: LivePage) -> List[Tuple[str, str]]:
        """``(absolute url, initiator type)`` pairs in document order, capped."""
        found: List[Tuple[str, str]] = []
        seen = set()
        for selector, attr, initiator in _SUBRESOURCES:
            for tag in page.document.select(selector):
                value = tag.get(attr) if isinstance(tag, Tag) else None
                if not isinstance(value, str) or not value.strip():
                    continue
                absolute = urljoin(page.url, value.strip())
                if urlsplit(absolute).scheme not in ("http", "https") or absolute in seen:
                    continue
                seen.add(absolute)
                found.append((absolute, initiator))
        return found[: self.config.max_subresources]

    async def load_subresources(self, page: LivePage) -> int:
        """Fetch scripts, stylesheets and iframes through the page's ``fetch``."""
        if not self.config.load_subresources:
            return 0
        targets = self.subresource_urls(page)
        results = await asyncio.gather(
            *(self._load_one(page, url, initiator) for url, initiator in targets)
        )
        loaded = sum(1 for ok in results if ok)
        logger.info("Loaded %d/%d sub-resources of %s", loaded, len(targets), page.url)
        return loaded

    async def _load_one(self, page: LivePage, url: str, initiator: str) -> bool:
        try:
            response = await page.network.fetch(url, initiator_type=initiator)
        except (ClientError, asyncio.TimeoutError) as e:
            logger.debug("Sub-resource %s failed: %s", url, e)
            return False
        return response.ok

    async def issue_requests(self, page: LivePage, urls: Iterable[str]) -> List[PageRequest]:
        """Issue background requests (``PageRequest``) from the page, in order."""
        requests: List[PageRequest] = []
        for url in urls:
            request = page.network.new_request()
            request.open("GET", url)
            await request.send()
            requests.append(request)
        return requests
