# File: doc_scout/engine.py
"""doc_scout.engine: per-page facade wiring store, channels, policy and deep mode."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import aiohttp

from doc_scout.actions import copy_all, download_url, system_clipboard
from doc_scout.aggregator import ScanReport, aggregate_results
from doc_scout.channels import DomSweeper, ResourceSweeper, TrafficInterceptor
from doc_scout.config import ScoutConfig
from doc_scout.deep_mode import DeepModeController
from doc_scout.logger import get_logger
from doc_scout.page.session import LivePage, PageSession
from doc_scout.policy import SiteActivationPolicy
from doc_scout.storage import KeyValueStorage
from doc_scout.store import ItemStore

__all__ = ["DocScout", "MenuCommand", "menu_names", "start_scan"]

logger = get_logger("engine")

MENU_LABELS: Dict[str, str] = {
    "copy": "Copy all document links",
    "status": "View current mode",
    "whitelist": "View whitelist",
    "clear-whitelist": "Clear whitelist",
    "enable-host": "Enable only on this site",
    "disable-host": "Remove this site",
    "enable-all": "Enable on all sites",
    "toggle-deep": "Toggle deep mode",
}
FULL_MENU: Tuple[str, ...] = tuple(MENU_LABELS)
REDUCED_MENU: Tuple[str, ...] = tuple(n for n in FULL_MENU if n not in ("copy", "disable-host"))


@dataclass(frozen=True, slots=True)
class MenuCommand:
    """A named action offered to the user."""

    name: str
    label: str
    action: Callable[[], object]


class DocScout:
    """Everything DocScout does for one page view.

    Call :meth:`start` once after the page loaded: it evaluates the
    activation policy (once, for the lifetime of this object) and, when the
    site is enabled and deep mode was requested, starts deep mode.
    """

    def __init__(
        self,
        page: LivePage,
        policy: SiteActivationPolicy,
        config: Optional[ScoutConfig] = None,
        *,
        notify: Callable[[str], None] = logger.info,
        on_render: Optional[Callable[[ItemStore], None]] = None,
        clipboard: Callable[[str], None] = system_clipboard,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.page = page
        self.policy = policy
        self.config = config or ScoutConfig()
        self.notify = notify
        self.clipboard = clipboard
        self.store = ItemStore(on_change=on_render)
        self.sweeper = DomSweeper(
            page.document,
            self.store,
            base=page.url,
            interval=self.config.throttle_interval,
            clock=clock,
        )
        self.resources = ResourceSweeper(page.network, self.store, base=page.url)
        self.interceptor = TrafficInterceptor(self.store, base=page.url)
        self.deep_mode = DeepModeController(
            page.document,
            page.network,
            self.sweeper,
            self.interceptor,
            policy,
            scan_once=self.scan_once,
            notify=notify,
        )
        self.enabled: Optional[bool] = None

    def start(self) -> bool:
        """Evaluate the policy for this page; return whether DocScout is active."""
        if self.enabled is not None:
            return self.enabled
        self.enabled = self.policy.is_enabled_for_host()
        if not self.enabled:
            logger.info("DocScout is not enabled for %s", self.policy.host)
            return False
        if self.policy.deep_mode_requested:
            self.deep_mode.enable()
        return True

    def scan_once(self) -> None:
        """Throttled DOM sweep followed by the resource-log sweep."""
        if not self.start():
            return
        self.sweeper.scan_dom()
        self.resources.scan_resources()

    async def settle(self) -> None:
        """Wait for background body inspections started by interception."""
        await self.interceptor.drain()

    def copy_all(self) -> str:
        return copy_all(self.store.all(), self.clipboard, self.notify)

    async def download(
        self, url: str, session: Optional[aiohttp.ClientSession] = None
    ) -> Optional[Path]:
        session = session if session is not None else self.page.network.session
        if session is not None and session.closed:
            session = None
        return await download_url(url, session, self.config.download_dir)

    # -- menu surface ---------------------------------------------------------

    def menu_commands(self) -> List[MenuCommand]:
        """Available actions; the reduced set when the site is not enabled."""
        p = self.policy
        actions: Dict[str, Callable[[], object]] = {
            "copy": self.copy_all,
            "status": lambda: self.notify(p.status_text()),
            "whitelist": lambda: self.notify(p.whitelist_text()),
            "clear-whitelist": lambda: self.notify(p.clear_whitelist()),
            "enable-host": lambda: self.notify(p.enable_only_this_host()),
            "disable-host": lambda: self.notify(p.disable_this_host()),
            "enable-all": lambda: self.notify(p.enable_all()),
            "toggle-deep": self.deep_mode.toggle,
        }
        return [
            MenuCommand(name, MENU_LABELS[name], actions[name])
            for name in menu_names(self.start())
        ]


def menu_names(enabled: bool) -> Tuple[str, ...]:
    return FULL_MENU if enabled else REDUCED_MENU


async def start_scan(
    config: ScoutConfig,
    url: str,
    storage: KeyValueStorage,
    *,
    extra_requests: Sequence[str] = (),
    notify: Callable[[str], None] = logger.info,
    on_render: Optional[Callable[[ItemStore], None]] = None,
    clipboard: Callable[[str], None] = system_clipboard,
) -> Tuple[ScanReport, DocScout]:
    """Load *url*, instrument it as allowed by the policy and sweep it.

    Order mirrors a browser: navigation, instrumentation (deep mode), page
    traffic (sub-resources, background requests), then the one-shot sweeps.
    """
    async with PageSession(config) as session:
        page = await session.open(url)
        policy = SiteActivationPolicy(storage, page.host)
        scout = DocScout(
            page, policy, config, notify=notify, on_render=on_render, clipboard=clipboard
        )
        if not scout.start():
            report = aggregate_results(page.url, page.host, [], enabled=False)
            return report, scout

        await session.load_subresources(page)
        await session.issue_requests(page, [*config.request_endpoints, *extra_requests])
        scout.scan_once()
        await scout.settle()

    report = aggregate_results(
        page.url, page.host, scout.store.all(), deep_mode=scout.deep_mode.active
    )
    logger.info("Scan of %s finished: %d document(s)", page.url, len(scout.store))
    return report, scout
