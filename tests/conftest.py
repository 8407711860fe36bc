# File: tests/conftest.py
from collections.abc import Callable

import pytest
from doc_scout.page.document import LiveDocument
from doc_scout.page.network import PageNetwork
from doc_scout.page.session import LivePage
from doc_scout.policy import SiteActivationPolicy
from doc_scout.storage import MemoryStorage

PAGE_URL = "https://school.example.edu/course/42/"


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage() -> MemoryStorage:
    """Fresh in-memory activation state (defaults: all / [] / False)."""
    return MemoryStorage()


@pytest.fixture()
def make_page() -> Callable[..., LivePage]:
    """
    Build a LivePage from HTML without touching the network.
    """

    def _make(html: str, url: str = PAGE_URL, *, resource_timing: bool = True) -> LivePage:
        network = PageNetwork(None, url, resource_timing=resource_timing)
        return LivePage(url=url, document=LiveDocument(html, url), network=network)

    return _make


@pytest.fixture()
def make_policy(storage) -> Callable[[str], SiteActivationPolicy]:
    def _make(host: str = "school.example.edu") -> SiteActivationPolicy:
        return SiteActivationPolicy(storage, host)

    return _make

