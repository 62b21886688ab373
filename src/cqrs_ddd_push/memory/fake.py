"""In-memory push adapter for test assertions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ..ports.adapter import IPushAdapter
from ..ports.payload import IPushPayload
from ..ports.response import IBroadcastResponse, IDeferredResponse, IPushResponse
from ..status import PushStatus

logger = logging.getLogger(__name__)


@dataclass
class PushCall:
    """Record of one ``push`` invocation for test assertions."""

    payload: IPushPayload
    endpoints: list[str]


class InMemoryResponse(IPushResponse):
    def __init__(self, statuses: Mapping[str, PushStatus]) -> None:
        self.statuses = dict(statuses)

    def get_status(self, endpoint: str) -> PushStatus:
        return self.statuses.get(endpoint, PushStatus.UNKNOWN)


class InMemoryBroadcastResponse(InMemoryResponse, IBroadcastResponse):
    def __init__(self, statuses: Mapping[str, PushStatus], broadcast_status: PushStatus) -> None:
        super().__init__(statuses)
        self.broadcast_status = broadcast_status

    def get_broadcast_status(self) -> PushStatus:
        return self.broadcast_status


class InMemoryDeferredResponse(InMemoryResponse, IDeferredResponse):
    def __init__(self, statuses: Mapping[str, PushStatus], tracking_ids: Mapping[str, str]) -> None:
        super().__init__(statuses)
        self.tracking_ids = dict(tracking_ids)

    def get_tracking_id(self, endpoint: str) -> str | None:
        return self.tracking_ids.get(endpoint)


class InMemoryPushAdapter(IPushAdapter):
    """
    Test double (Fake) that records pushes and answers from configured maps.

    Args:
        statuses: Status to report per endpoint.
        default: Status for endpoints missing from ``statuses``.
        batch: Expose ``batch_size`` so the dispatcher hands over whole groups.
        batch_size: Chunk size advertised when ``batch`` is set.
        tracking_ids: When given, responses carry these tracking ids
            (deferred confirmation).
        broadcast_status: When given, responses support broadcasts and
            report this status for them.
        error: Exception raised by every ``push`` call.
    """

    def __init__(
        self,
        statuses: Mapping[str, PushStatus] | None = None,
        default: PushStatus = PushStatus.SUCCESS,
        batch: bool = True,
        batch_size: int = 1000,
        tracking_ids: Mapping[str, str] | None = None,
        broadcast_status: PushStatus | None = None,
        error: Exception | None = None,
    ) -> None:
        self.statuses = dict(statuses or {})
        self.default = default
        self.tracking_ids = tracking_ids
        self.broadcast_status = broadcast_status
        self.error = error
        self.calls: list[PushCall] = []
        if batch:
            # Batch capability is detected from the presence of this attribute.
            self.batch_size = batch_size

    async def push(self, payload: IPushPayload, endpoints: list[str]) -> IPushResponse:
        self.calls.append(PushCall(payload, list(endpoints)))
        if self.error is not None:
            raise self.error

        statuses = {
            endpoint: self.statuses.get(endpoint, self.default) for endpoint in endpoints
        }
        if self.broadcast_status is not None and self.tracking_ids is not None:
            return _BroadcastDeferredResponse(statuses, self.broadcast_status, self.tracking_ids)
        if self.broadcast_status is not None:
            return InMemoryBroadcastResponse(statuses, self.broadcast_status)
        if self.tracking_ids is not None:
            return InMemoryDeferredResponse(statuses, self.tracking_ids)
        return InMemoryResponse(statuses)

    @property
    def pushed_endpoints(self) -> list[str]:
        return [endpoint for call in self.calls for endpoint in call.endpoints]

    def assert_pushed(self, endpoint: str, count: int = 1) -> None:
        """Helper for test assertions."""
        found = self.pushed_endpoints.count(endpoint)
        if found != count:
            raise AssertionError(
                f"Expected {count} pushes to {endpoint}, but found {found}."
            )

    def clear(self) -> None:
        """Clear all recorded calls."""
        self.calls.clear()


class _BroadcastDeferredResponse(InMemoryBroadcastResponse, IDeferredResponse):
    def __init__(
        self,
        statuses: Mapping[str, PushStatus],
        broadcast_status: PushStatus,
        tracking_ids: Mapping[str, str],
    ) -> None:
        super().__init__(statuses, broadcast_status)
        self.tracking_ids = dict(tracking_ids)

    def get_tracking_id(self, endpoint: str) -> str | None:
        return self.tracking_ids.get(endpoint)
