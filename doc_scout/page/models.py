# doc_scout/page/models.py
"""
Data models shared by the page network stack.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional


@dataclass(slots=True)
class ResourceEntry:
    """One resource-timing record: a URL the page requested."""

    name: str
    initiator_type: str
    start_time: float
    duration: float
    entry_type: str = "resource"


@dataclass(slots=True)
class FetchResponse:
    """Fully buffered response returned by ``PageNetwork.fetch``.

    The body is read once from the wire, so :meth:`clone` is cheap and both
    copies can be consumed independently.
    """

    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    charset: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        return self.header("content-type", "").lower()

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    def clone(self) -> FetchResponse:
        return replace(self, headers=dict(self.headers))

    async def text(self) -> str:
        return self.body.decode(self.charset or "utf-8", errors="replace")
