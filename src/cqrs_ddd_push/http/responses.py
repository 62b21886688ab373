"""Batch-response pattern shared by provider adapters.

A provider call covers a chunk of endpoints and yields a ``BatchResponse``;
the adapter merges its chunks into one ``MultiPushResponse`` (or one of its
capability subclasses) which is what the dispatcher reads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..ports.response import IBroadcastResponse, IDeferredResponse, IPushResponse
from ..status import PushStatus


class BatchResponse:
    """
    Outcome of one provider call over a list of endpoints.

    Endpoints the call never attempted still resolve to ``default_status``,
    so no endpoint of the batch is ever left without a definite status.
    """

    default_status: PushStatus = PushStatus.UNKNOWN
    provider: str = "push"

    def __init__(self, endpoints: Iterable[str], logger: logging.Logger | None = None) -> None:
        self.endpoints = list(endpoints)
        self._statuses: dict[str, PushStatus] = {}
        self._logger = logger or logging.getLogger(type(self).__module__)

    def get_status(self, endpoint: str) -> PushStatus:
        return self._statuses.get(endpoint, self.default_status)

    @property
    def statuses(self) -> dict[str, PushStatus]:
        """Status of every endpoint of the batch, defaults included."""
        return {endpoint: self.get_status(endpoint) for endpoint in self.endpoints}

    def mark(self, endpoints: Iterable[str], status: PushStatus) -> None:
        for endpoint in endpoints:
            self._statuses[endpoint] = status

    def report_batch_failure(self, status: PushStatus, reason: str) -> None:
        """Mark every endpoint of the batch with one status and log it once."""
        self.mark(self.endpoints, status)
        self._logger.warning(
            "Dispatching %s notification failed for %d endpoint(s): %s",
            self.provider,
            len(self.endpoints),
            reason,
        )

    def report_endpoint_failure(self, endpoint: str, status: PushStatus, reason: str) -> None:
        self._statuses[endpoint] = status
        self._logger.warning(
            "Dispatching %s notification failed for endpoint %s: %s",
            self.provider,
            endpoint,
            reason,
        )


class MultiPushResponse(IPushResponse):
    """Per-endpoint statuses merged from one or more batches."""

    def __init__(self) -> None:
        self._statuses: dict[str, PushStatus] = {}

    def add_batch_response(self, batch: BatchResponse, endpoints: Iterable[str]) -> None:
        for endpoint in endpoints:
            self._statuses[endpoint] = batch.get_status(endpoint)

    def get_status(self, endpoint: str) -> PushStatus:
        return self._statuses.get(endpoint, PushStatus.UNKNOWN)


class BroadcastPushResponse(MultiPushResponse, IBroadcastResponse):
    """Response of a provider that also accepts topic or condition pushes."""

    def __init__(self) -> None:
        super().__init__()
        self._broadcast_status: PushStatus | None = None

    def add_broadcast_response(self, batch: BroadcastBatchResponse) -> None:
        self._broadcast_status = batch.get_broadcast_status()

    def get_broadcast_status(self) -> PushStatus:
        return self._broadcast_status or PushStatus.UNKNOWN


class BroadcastBatchResponse(BatchResponse):
    """Batch response that can also carry the status of a broadcast."""

    def __init__(self, endpoints: Iterable[str], logger: logging.Logger | None = None) -> None:
        super().__init__(endpoints, logger)
        self._broadcast_status: PushStatus | None = None

    def get_broadcast_status(self) -> PushStatus:
        return self._broadcast_status or PushStatus.UNKNOWN


class DeferredBatchResponse(BatchResponse):
    """Batch response whose success is only an acknowledgement.

    Accepted endpoints resolve to ``DEFERRED``; ``tracking_id`` is the
    provider id to query the delivery report with.
    """

    default_status = PushStatus.DEFERRED

    def __init__(self, endpoints: Iterable[str], logger: logging.Logger | None = None) -> None:
        super().__init__(endpoints, logger)
        self.tracking_id: str | None = None


class DeferredPushResponse(MultiPushResponse, IDeferredResponse):
    """Response of a provider that confirms delivery out of band."""

    def __init__(self) -> None:
        super().__init__()
        self._tracking_ids: dict[str, str] = {}

    def add_batch_response(self, batch: BatchResponse, endpoints: Iterable[str]) -> None:
        endpoints = list(endpoints)
        super().add_batch_response(batch, endpoints)
        tracking_id = getattr(batch, "tracking_id", None)
        if tracking_id is None:
            return
        for endpoint in endpoints:
            self._tracking_ids[endpoint] = tracking_id

    def get_tracking_id(self, endpoint: str) -> str | None:
        return self._tracking_ids.get(endpoint)
