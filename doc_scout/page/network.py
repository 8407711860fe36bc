# doc_scout/page/network.py
"""
Network stack of a live page.

``PageNetwork`` exposes three replaceable entry points, mirroring what page
code calls in a browser:

* ``fetch(url, ...)`` – high level request returning a :class:`FetchResponse`;
* ``open_request(request, method, url)`` / ``send_request(request, body)`` –
  the lifecycle behind :class:`PageRequest` (``open`` → ``send`` → ``load``).

Every request, whichever entry point issued it, lands in the resource-timing
log read by :meth:`PageNetwork.get_entries_by_type`.
"""
from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, List, Optional
from urllib.parse import urljoin

from aiohttp import ClientError, ClientSession

from doc_scout.logger import get_logger
from doc_scout.page.models import FetchResponse, ResourceEntry

logger = get_logger("network")

FetchFunc = Callable[..., Awaitable[FetchResponse]]
OpenFunc = Callable[["PageRequest", str, str], None]
SendFunc = Callable[["PageRequest", Optional[Any]], Awaitable[None]]
RequestListener = Callable[["PageRequest"], None]


class ResourceTimingUnavailable(RuntimeError):
    """The environment does not provide a resource-timing log."""


class PageRequest:
    """Callback-style request object (``open`` / ``send`` / ``load`` events).

    Listeners registered with :meth:`add_event_listener` receive the request
    itself. ``load`` fires after a response arrived, ``error`` after a
    network failure (``send`` never raises for those).
    """

    UNSENT = 0
    OPENED = 1
    DONE = 4

    def __init__(self, network: "PageNetwork") -> None:
        self._network = network
        self._listeners: DefaultDict[str, List[RequestListener]] = defaultdict(list)
        self.method: Optional[str] = None
        self.url: Optional[str] = None
        self.ready_state = self.UNSENT
        self.status = 0
        self.response_headers: dict[str, str] = {}
        self.response_text: Optional[str] = None
        self.error: Optional[BaseException] = None
        self.tags: dict[str, Any] = {}

    def add_event_listener(self, event: str, listener: RequestListener) -> None:
        self._listeners[event].append(listener)

    def open(self, method: str, url: str) -> None:
        self._network.open_request(self, method, url)

    async def send(self, body: Optional[Any] = None) -> None:
        if self.ready_state != self.OPENED:
            raise RuntimeError("open() must be called before send()")
        await self._network.send_request(self, body)

    def dispatch(self, event: str) -> None:
        for listener in list(self._listeners[event]):
            listener(self)


class PageNetwork:
    """aiohttp-backed transport plus the resource-timing log."""

    def __init__(
        self,
        session: Optional[ClientSession],
        base_url: str,
        *,
        resource_timing: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.base_url = base_url
        self.resource_timing = resource_timing
        self._clock = clock
        self._origin = clock()
        self._entries: List[ResourceEntry] = []
        # entry points page code goes through; instrumentation swaps them
        self.fetch: FetchFunc = self._fetch
        self.open_request: OpenFunc = self._open_request
        self.send_request: SendFunc = self._send_request

    # -- resource timing ----------------------------------------------------

    def get_entries_by_type(self, entry_type: str) -> List[ResourceEntry]:
        if not self.resource_timing:
            raise ResourceTimingUnavailable("resource timing is disabled for this page")
        return [e for e in self._entries if e.entry_type == entry_type]

    def _record(self, url: str, initiator_type: str, started: float) -> None:
        self._entries.append(
            ResourceEntry(
                name=url,
                initiator_type=initiator_type,
                start_time=(started - self._origin) * 1000,
                duration=(self._clock() - started) * 1000,
            )
        )

    # -- fetch --------------------------------------------------------------

    async def _fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        initiator_type: str = "fetch",
        **kwargs: Any,
    ) -> FetchResponse:
        if self.session is None:
            raise ClientError("page has no network session")
        target = urljoin(self.base_url, url)
        started = self._clock()
        try:
            async with self.session.request(method, target, **kwargs) as resp:
                body = await resp.read()
                return FetchResponse(
                    url=str(resp.url),
                    status=resp.status,
                    headers={k.lower(): v for k, v in resp.headers.items()},
                    body=body,
                    charset=resp.charset,
                )
        finally:
            self._record(target, initiator_type, started)

    # -- request lifecycle --------------------------------------------------

    def new_request(self) -> PageRequest:
        return PageRequest(self)

    def _open_request(self, request: PageRequest, method: str, url: str) -> None:
        request.method = method.upper()
        request.url = urljoin(self.base_url, url)
        request.ready_state = PageRequest.OPENED

    async def _send_request(self, request: PageRequest, body: Optional[Any] = None) -> None:
        if request.url is None or request.method is None:
            raise RuntimeError("open() must be called before send()")
        try:
            response = await self._fetch(
                request.url,
                method=request.method,
                initiator_type="xmlhttprequest",
                data=body,
            )
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.debug("Request %s %s failed: %s", request.method, request.url, exc)
            request.error = exc
            request.ready_state = PageRequest.DONE
            request.dispatch("error")
            return
        request.status = response.status
        request.response_headers = dict(response.headers)
        request.response_text = await response.text()
        request.ready_state = PageRequest.DONE
        request.dispatch("load")
