"""Status bucket store produced by one dispatch pass."""

from __future__ import annotations

from collections.abc import Iterable

from .ports.payload import IPushPayload
from .status import PushStatus
from .target import PushTarget

BroadcastStatuses = dict[PushStatus, dict[str, dict[str, IPushPayload]]]


class StatusBuckets:
    """
    Per-status lists of targets and per-status maps of broadcast payloads.

    Every ``PushStatus`` key is present from construction, so callers can
    index any bucket without checking for it first.
    """

    def __init__(self) -> None:
        self._statuses: dict[PushStatus, list[PushTarget]] = {
            status: [] for status in PushStatus
        }
        self._broadcast_statuses: BroadcastStatuses = {status: {} for status in PushStatus}

    def add(self, status: PushStatus, target: PushTarget) -> None:
        self._statuses[status].append(target)

    def extend(self, status: PushStatus, targets: Iterable[PushTarget]) -> None:
        self._statuses[status].extend(targets)

    def add_broadcast(
        self,
        status: PushStatus,
        provider: str,
        variant: str,
        payload: IPushPayload,
    ) -> None:
        self._broadcast_statuses[status].setdefault(provider, {})[variant] = payload

    def merge(self, other: StatusBuckets) -> None:
        """Append every entry of ``other`` after the entries already held."""
        for status, targets in other._statuses.items():
            self._statuses[status].extend(targets)
        for status, providers in other._broadcast_statuses.items():
            for provider, variants in providers.items():
                self._broadcast_statuses[status].setdefault(provider, {}).update(variants)

    def statuses(self) -> dict[PushStatus, list[PushTarget]]:
        """Return every status bucket, empty ones included."""
        return self._statuses

    def broadcast_statuses(self) -> BroadcastStatuses:
        """Return broadcast payloads keyed by status, provider and variant."""
        return self._broadcast_statuses

    def endpoints_with_status(self, statuses: Iterable[PushStatus]) -> list[PushTarget]:
        """Flatten the requested buckets in the order given, skipping empty ones."""
        endpoints: list[PushTarget] = []
        for status in statuses:
            endpoints.extend(self._statuses.get(status, ()))
        return endpoints

    def counts(self) -> dict[str, int]:
        """Return the number of targets per non-empty bucket, for logging."""
        return {
            status.value: len(targets) for status, targets in self._statuses.items() if targets
        }

    def __len__(self) -> int:
        return sum(len(targets) for targets in self._statuses.values())


# The result of a dispatch pass is the bucket store itself.
DispatchResult = StatusBuckets
