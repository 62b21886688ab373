"""Delivery status vocabulary shared by every adapter and the dispatcher."""

from __future__ import annotations

from enum import Enum


class PushStatus(Enum):
    """Outcome of delivering a notification to one endpoint or broadcast.

    Members are declared in bucket order; ``StatusBuckets`` iterates them
    as-is when it initialises its lists.
    """

    UNKNOWN = "unknown"
    """Provider response could not be classified."""

    SUCCESS = "success"
    """Provider accepted and, for synchronous providers, confirmed delivery."""

    TEMPORARY_ERROR = "temporary_error"
    """Transient or provider-side failure, worth a future retry."""

    INVALID_ENDPOINT = "invalid_endpoint"
    """Destination address is invalid or unregistered at the provider."""

    CLIENT_ERROR = "client_error"
    """Malformed request the caller must fix before retrying."""

    ERROR = "error"
    """Permanent failure not attributable to endpoint validity."""

    NOT_HANDLED = "not_handled"
    """No adapter or payload was available to attempt delivery."""

    DEFERRED = "deferred"
    """Accepted, but confirmation requires a follow-up report query."""
