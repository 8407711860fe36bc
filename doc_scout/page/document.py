# doc_scout/page/document.py
"""
Mutable page document with structural change notifications.

The tree is a BeautifulSoup document. Code that changes the page goes
through :meth:`LiveDocument.insert_html` / :meth:`LiveDocument.remove`, which
notify subscribers registered with :meth:`LiveDocument.observe` – the same
contract as a DOM mutation observer with ``childList`` + ``subtree``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import PageElement, Tag

MutationCallback = Callable[[List["MutationRecord"]], None]
Unsubscribe = Callable[[], None]


@dataclass(slots=True)
class MutationRecord:
    """A child-list change below *target*."""

    target: Union[Tag, BeautifulSoup]
    added: List[PageElement] = field(default_factory=list)
    removed: List[PageElement] = field(default_factory=list)
    type: str = "childList"


@dataclass(slots=True, eq=False)
class _Subscription:
    root: Union[Tag, BeautifulSoup]
    callback: MutationCallback
    subtree: bool

    def covers(self, target: PageElement) -> bool:
        if target is self.root:
            return True
        if not self.subtree:
            return False
        return any(parent is self.root for parent in target.parents)


class LiveDocument:
    """Parsed page plus a list of mutation subscribers."""

    def __init__(self, html: Union[str, bytes], url: str) -> None:
        self.url = url
        self.soup = BeautifulSoup(html, "html.parser")
        self._subscriptions: List[_Subscription] = []

    @property
    def root(self) -> Union[Tag, BeautifulSoup]:
        """The document element (``<html>``), or the soup for fragments."""
        html = self.soup.find("html")
        return html if isinstance(html, Tag) else self.soup

    def select(self, selector: str) -> List[Tag]:
        return list(self.soup.select(selector))

    def observe(
        self,
        root: Union[Tag, BeautifulSoup],
        callback: MutationCallback,
        *,
        subtree: bool = True,
    ) -> Unsubscribe:
        """Subscribe *callback* to child-list changes at (or below) *root*."""
        subscription = _Subscription(root=root, callback=callback, subtree=subtree)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    @property
    def observer_count(self) -> int:
        return len(self._subscriptions)

    def insert_html(self, html: str, parent: Optional[Tag] = None) -> List[PageElement]:
        """Parse *html* and append its nodes to *parent* (default ``<body>``)."""
        if parent is None:
            body = self.soup.find("body")
            parent = body if isinstance(body, Tag) else self.root
        fragment = BeautifulSoup(html, "html.parser")
        added = list(fragment.contents)
        for node in added:
            parent.append(node)
        self._notify(MutationRecord(target=parent, added=added))
        return added

    def remove(self, node: Tag) -> None:
        parent = node.parent
        node.extract()
        if parent is not None:
            self._notify(MutationRecord(target=parent, removed=[node]))

    def _notify(self, record: MutationRecord) -> None:
        for subscription in list(self._subscriptions):
            if subscription.covers(record.target):
                subscription.callback([record])
