"""Provider adapter ports."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .payload import IPushPayload
from .response import IPushResponse


@runtime_checkable
class IPushAdapter(Protocol):
    """
    Framework-agnostic port for delivering a payload through one provider.

    Adapters must convert transport and provider failures into a
    ``PushStatus`` on the returned response instead of raising. Raising is
    reserved for caller contract violations (wrong payload type).

    Adapters that only implement this protocol are invoked once per endpoint.
    """

    async def push(self, payload: IPushPayload, endpoints: list[str]) -> IPushResponse:
        """Send ``payload`` to ``endpoints`` and return the per-endpoint outcome."""
        ...


@runtime_checkable
class IMultiPushAdapter(IPushAdapter, Protocol):
    """
    Adapter capable of sending one payload to many endpoints in a single call.

    The dispatcher hands the whole group to ``push``; ``batch_size`` is the
    chunk size the adapter applies internally.
    """

    batch_size: int
