# File: doc_scout/deep_mode.py
"""doc_scout.deep_mode: switching the continuous channels on and off.

Deep mode adds two channels on top of the one-shot sweeps: request
interception and continuous DOM observation. Interception wrappers are
installed at most once per page and stay in place; turning deep mode off
only unsubscribes the DOM observer.

The persisted preference (policy) and the live state (:attr:`active`) are
reconciled at page load only; during a session they may differ, e.g. after
toggling on a host where the policy disables DocScout.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from doc_scout.channels import DomSweeper, TrafficInterceptor
from doc_scout.logger import get_logger
from doc_scout.page.document import LiveDocument, MutationRecord, Unsubscribe
from doc_scout.page.network import PageNetwork
from doc_scout.policy import SiteActivationPolicy

__all__ = ["DeepModeController"]

logger = get_logger("deep_mode")


class DeepModeController:
    """Two states, inactive and active."""

    def __init__(
        self,
        document: LiveDocument,
        network: PageNetwork,
        sweeper: DomSweeper,
        interceptor: TrafficInterceptor,
        policy: SiteActivationPolicy,
        *,
        scan_once: Callable[[], None],
        notify: Callable[[str], None] = logger.info,
    ) -> None:
        self.document = document
        self.network = network
        self.sweeper = sweeper
        self.interceptor = interceptor
        self.policy = policy
        self._scan_once = scan_once
        self._notify = notify
        self.active = False
        self.hooks_installed = False
        self._unsubscribe: Optional[Unsubscribe] = None

    def enable(self) -> bool:
        """Start the continuous channels; False if they were already running."""
        if self.active:
            return False
        self.active = True
        if not self.hooks_installed:
            self.interceptor.install(self.network)
            self.hooks_installed = True
        self._scan_once()
        self._unsubscribe = self.document.observe(self.document.root, self._on_mutation)
        self._notify("Deep mode enabled, reload the page to catch early requests")
        return True

    def disable(self) -> None:
        """Persist the off preference and stop observing the DOM."""
        self.policy.set_deep_mode(False)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.active = False
        self._notify("Deep mode disabled")

    def toggle(self) -> bool:
        """Flip the persisted preference; apply it live only where allowed."""
        requested = not self.policy.deep_mode_requested
        self.policy.set_deep_mode(requested)
        if not self.policy.is_enabled_for_host():
            self._notify(
                "Deep mode on (not enabled for this site)" if requested else "Deep mode disabled"
            )
            return requested
        if requested:
            self.enable()
        else:
            self.disable()
        return requested

    def _on_mutation(self, records: List[MutationRecord]) -> None:
        self.sweeper.scan_dom()
