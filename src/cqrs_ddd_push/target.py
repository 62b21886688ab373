"""Delivery target value object."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

TRACKING_ID_FIELD = "tracking_id"

_ADDRESS_KEYS = ("address", "endpoint")
_PROVIDER_KEYS = ("provider", "platform")
_VARIANT_KEYS = ("variant", "payload_type", "payloadType")


def _pick(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    raise KeyError(f"Target record is missing one of {', '.join(keys)}")


@dataclass(frozen=True)
class PushTarget:
    """One delivery destination plus its routing information.

    ``metadata`` is opaque to the dispatcher and carried through unchanged.
    Identity is ``(provider, address)``.
    """

    address: str
    provider: str
    variant: str
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    tracking_id: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.provider, self.address)

    def with_tracking_id(self, tracking_id: object) -> PushTarget:
        """Return a copy carrying a provider tracking id."""
        return replace(self, tracking_id=str(tracking_id))

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> PushTarget:
        """Build a target from a flat record as produced by a job queue.

        Accepts ``address``/``endpoint``, ``provider``/``platform`` and
        ``variant``/``payload_type``; every other key becomes metadata.
        """
        routing = {*_ADDRESS_KEYS, *_PROVIDER_KEYS, *_VARIANT_KEYS, TRACKING_ID_FIELD}
        tracking_id = record.get(TRACKING_ID_FIELD)
        return cls(
            address=str(_pick(record, _ADDRESS_KEYS)),
            provider=str(_pick(record, _PROVIDER_KEYS)),
            variant=str(_pick(record, _VARIANT_KEYS)),
            metadata={k: v for k, v in record.items() if k not in routing},
            tracking_id=None if tracking_id is None else str(tracking_id),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten back into a single record, metadata first."""
        record: dict[str, Any] = dict(self.metadata)
        record.update(address=self.address, provider=self.provider, variant=self.variant)
        if self.tracking_id is not None:
            record[TRACKING_ID_FIELD] = self.tracking_id
        return record
