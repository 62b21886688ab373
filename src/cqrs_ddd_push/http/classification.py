"""Rules translating HTTP and transport outcomes into ``PushStatus``.

Every HTTP adapter follows the same contract:

* transport failures (timeouts, resets, DNS) are ``TEMPORARY_ERROR``;
* 4xx codes meaning "bad address" are ``INVALID_ENDPOINT``;
* 5xx and rate limiting are ``TEMPORARY_ERROR``;
* every other 4xx code is ``ERROR``;
* anything else is ``UNKNOWN``, never dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from ..status import PushStatus


@dataclass(frozen=True)
class HttpStatusClassifier:
    """Maps an HTTP status code to a ``PushStatus``.

    Explicit code sets take precedence over the generic 4xx and 5xx rules,
    so a provider may declare e.g. 501 as a permanent ``ERROR``.
    """

    success_codes: frozenset[int] = field(default_factory=lambda: frozenset(range(200, 300)))
    invalid_endpoint_codes: frozenset[int] = frozenset({404, 410})
    error_codes: frozenset[int] = frozenset({400, 401, 403, 405, 413})
    temporary_codes: frozenset[int] = frozenset({429})

    def classify(self, status_code: int | None) -> PushStatus:
        # No response was received at all.
        if status_code is None:
            return PushStatus.TEMPORARY_ERROR
        if status_code in self.success_codes:
            return PushStatus.SUCCESS
        if status_code in self.invalid_endpoint_codes:
            return PushStatus.INVALID_ENDPOINT
        if status_code in self.error_codes:
            return PushStatus.ERROR
        if status_code in self.temporary_codes or 500 <= status_code < 600:
            return PushStatus.TEMPORARY_ERROR
        if 400 <= status_code < 500:
            return PushStatus.ERROR
        return PushStatus.UNKNOWN


default_classifier = HttpStatusClassifier()


def classify_transport_error(exc: BaseException) -> PushStatus:
    """Classify an exception raised while talking to a provider."""
    if isinstance(exc, (httpx.TransportError, OSError, TimeoutError)):
        return PushStatus.TEMPORARY_ERROR
    return PushStatus.UNKNOWN


def upstream_error(response: httpx.Response) -> tuple[str | None, object]:
    """Extract ``(message, code)`` from a JSON ``{"error": {...}}`` body.

    Returns ``(None, None)`` when the body is empty or not in that shape.
    """
    if not response.content:
        return None, None
    try:
        body = response.json()
    except ValueError:
        return None, None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        message = error.get("message")
        return (str(message) if message is not None else None), error.get("code")
    if isinstance(error, str):
        return error, None
    return None, None
