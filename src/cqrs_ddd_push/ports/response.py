"""Response ports.

Every adapter returns an ``IPushResponse``. Broadcast and deferred
confirmation are optional capabilities, checked with ``isinstance``::

    if isinstance(response, IDeferredResponse):
        tracking_id = response.get_tracking_id(endpoint)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..status import PushStatus


@runtime_checkable
class IPushResponse(Protocol):
    """Per-endpoint outcome of one adapter invocation."""

    def get_status(self, endpoint: str) -> PushStatus:
        """Return the status for an endpoint that was part of the push."""
        ...


@runtime_checkable
class IBroadcastResponse(Protocol):
    """Capability of responses to topic or condition pushes."""

    def get_broadcast_status(self) -> PushStatus:
        """Return the status of the broadcast as a whole."""
        ...


@runtime_checkable
class IDeferredResponse(Protocol):
    """Capability of responses from providers that confirm delivery later."""

    def get_tracking_id(self, endpoint: str) -> str | None:
        """Return the provider id used to fetch the delivery report, if any."""
        ...
