"""Port definitions for push dispatch."""

from __future__ import annotations

from .adapter import IMultiPushAdapter, IPushAdapter
from .payload import IPushPayload
from .response import IBroadcastResponse, IDeferredResponse, IPushResponse

__all__ = [
    "IPushAdapter",
    "IMultiPushAdapter",
    "IPushPayload",
    "IPushResponse",
    "IBroadcastResponse",
    "IDeferredResponse",
]
