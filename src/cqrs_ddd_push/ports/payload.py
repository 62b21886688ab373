"""Payload port."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IPushPayload(Protocol):
    """Prepared, provider-specific message body.

    The dispatcher only asks whether the payload is a broadcast, i.e.
    addressed to a topic or condition instead of enumerated endpoints.
    """

    def is_broadcast(self) -> bool:
        """Return True if the payload is not addressed to specific endpoints."""
        ...
