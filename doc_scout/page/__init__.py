"""doc_scout.page: the live page DocScout instruments.

A :class:`LivePage` bundles a mutable document (:class:`LiveDocument`) with
the network stack the page talks through (:class:`PageNetwork`).
:class:`PageSession` navigates to a URL and builds one.
"""

from .document import LiveDocument, MutationRecord
from .models import FetchResponse, ResourceEntry
from .network import PageNetwork, PageRequest, ResourceTimingUnavailable
from .session import LivePage, PageLoadError, PageSession

__all__ = [
    "FetchResponse",
    "LiveDocument",
    "LivePage",
    "MutationRecord",
    "PageLoadError",
    "PageNetwork",
    "PageRequest",
    "PageSession",
    "ResourceEntry",
    "ResourceTimingUnavailable",
]
