# File: doc_scout/policy.py
"""doc_scout.policy: per-site activation policy.

Two modes:

* ``all`` – instrumentation runs on every host;
* ``whitelist`` – only on hosts listed in the whitelist.

State is read from the injected storage on every call, because other pages
(other CLI runs) may have changed it in the meantime. The empty-whitelist
rule is enforced when a host is removed: an empty whitelist in whitelist
mode switches the mode back to ``all``.
"""

from __future__ import annotations

from typing import List

from pydantic import ValidationError

from doc_scout.config import MODE_ALL, MODE_WHITELIST, Mode, SiteSettings
from doc_scout.logger import get_logger
from doc_scout.storage import KeyValueStorage

__all__ = ["SiteActivationPolicy", "KEY_MODE", "KEY_WHITELIST", "KEY_DEEP_MODE"]

logger = get_logger("policy")

KEY_MODE = "mode"
KEY_WHITELIST = "whitelist"
KEY_DEEP_MODE = "deepMode"


class SiteActivationPolicy:
    """Activation state machine for the host of the current page."""

    def __init__(self, storage: KeyValueStorage, host: str) -> None:
        self.storage = storage
        self.host = host.lower()

    # -- persisted record ---------------------------------------------------

    def settings(self) -> SiteSettings:
        """Current persisted state; unreadable values fall back to defaults."""
        raw = {
            KEY_MODE: self.storage.get(KEY_MODE, MODE_ALL),
            KEY_WHITELIST: self.storage.get(KEY_WHITELIST, []),
            KEY_DEEP_MODE: self.storage.get(KEY_DEEP_MODE, False),
        }
        try:
            return SiteSettings.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring invalid activation state %r: %s", raw, exc)
            return SiteSettings()

    @property
    def mode(self) -> Mode:
        return self.settings().mode

    @property
    def whitelist(self) -> List[str]:
        return list(self.settings().whitelist)

    def _set_mode(self, mode: Mode) -> None:
        self.storage.set(KEY_MODE, mode)

    def _set_whitelist(self, hosts: List[str]) -> None:
        self.storage.set(KEY_WHITELIST, hosts)

    # -- query --------------------------------------------------------------

    def is_enabled_for_host(self) -> bool:
        settings = self.settings()
        if settings.mode != MODE_WHITELIST:
            return True
        return self.host in settings.whitelist

    # -- transitions --------------------------------------------------------

    def enable_only_this_host(self) -> str:
        hosts = self.whitelist
        if self.host not in hosts:
            hosts.append(self.host)
            self._set_whitelist(hosts)
        self._set_mode(MODE_WHITELIST)
        logger.info("Whitelist mode, %s enabled", self.host)
        return f"Enabled only on {self.host}"

    def disable_this_host(self) -> str:
        hosts = [h for h in self.whitelist if h != self.host]
        self._set_whitelist(hosts)
        if not hosts:
            self._set_mode(MODE_ALL)
        logger.info("Removed %s from whitelist (%d left)", self.host, len(hosts))
        return f"Removed {self.host}"

    def enable_all(self) -> str:
        self._set_mode(MODE_ALL)
        logger.info("Enabled on all sites")
        return "Enabled on all sites"

    def clear_whitelist(self) -> str:
        self._set_whitelist([])
        self._set_mode(MODE_ALL)
        logger.info("Whitelist cleared")
        return "Whitelist cleared, enabled on all sites"

    # -- deep-mode preference -------------------------------------------------

    @property
    def deep_mode_requested(self) -> bool:
        return self.settings().deep_mode

    def set_deep_mode(self, enabled: bool) -> None:
        self.storage.set(KEY_DEEP_MODE, bool(enabled))

    # -- views ----------------------------------------------------------------

    def status_text(self) -> str:
        settings = self.settings()
        deep = "deep mode: on" if settings.deep_mode else "deep mode: off"
        if settings.mode == MODE_ALL:
            return f"Mode: all sites, {deep}"
        current = (
            "(current site enabled)"
            if self.host in settings.whitelist
            else "(current site not enabled)"
        )
        return f"Mode: whitelist only {current}, {deep}"

    def whitelist_text(self) -> str:
        hosts = self.whitelist
        if not hosts:
            return "Whitelist is empty"
        return f"Whitelist ({len(hosts)})\n\n" + "\n".join(hosts)
