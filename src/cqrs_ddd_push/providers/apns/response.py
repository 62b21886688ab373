"""APNs response classification."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Union

import httpx

from ...http.classification import HttpStatusClassifier, classify_transport_error
from ...http.responses import BatchResponse, MultiPushResponse
from ...status import PushStatus

logger = logging.getLogger(__name__)

ApnsResult = Union[httpx.Response, Exception]

apns_classifier = HttpStatusClassifier(
    success_codes=frozenset({200}),
    invalid_endpoint_codes=frozenset({400, 410}),
    error_codes=frozenset({401, 403, 405, 413}),
    temporary_codes=frozenset({429}),
)

# The ``reason`` of an APNs error body overrides the status code.
_REASON_STATUS = {
    "TopicDisallowed": PushStatus.ERROR,
    "BadCertificate": PushStatus.ERROR,
    "BadCertificateEnvironment": PushStatus.ERROR,
    "InvalidProviderToken": PushStatus.ERROR,
    "IdleTimeout": PushStatus.TEMPORARY_ERROR,
    "ExpiredProviderToken": PushStatus.TEMPORARY_ERROR,
    "BadDeviceToken": PushStatus.INVALID_ENDPOINT,
    "DeviceTokenNotForTopic": PushStatus.INVALID_ENDPOINT,
}


def _reason(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    reason = body.get("reason") if isinstance(body, dict) else None
    return str(reason) if reason is not None else None


class ApnsBatchResponse(BatchResponse):
    """
    Classifies one chunk of APNs pushes.

    ``endpoints`` is the whole chunk; ``invalid_endpoints`` were rejected
    before sending and resolve to ``INVALID_ENDPOINT``. ``results`` maps
    every sent endpoint to its HTTP response or transport exception. When
    ``results`` is ``None`` nothing was sent and the remaining endpoints
    resolve to ``ERROR``.
    """

    provider = "APNS"

    def __init__(
        self,
        results: Mapping[str, ApnsResult] | None,
        endpoints: Iterable[str],
        invalid_endpoints: Iterable[str] = (),
    ) -> None:
        super().__init__(endpoints, logger)

        for endpoint in invalid_endpoints:
            self.report_endpoint_failure(
                endpoint, PushStatus.INVALID_ENDPOINT, "Invalid device token"
            )

        if results is None:
            self.mark(self.pending, PushStatus.ERROR)
            return

        for endpoint, result in results.items():
            self._statuses[endpoint] = self._classify(endpoint, result)

    @classmethod
    def precondition_failed(
        cls, endpoints: Iterable[str], invalid_endpoints: Iterable[str], reason: str
    ) -> ApnsBatchResponse:
        """Build a response for a chunk that could not be sent at all."""
        endpoints = list(endpoints)
        invalid_endpoints = list(invalid_endpoints)
        unsent = [endpoint for endpoint in endpoints if endpoint not in invalid_endpoints]
        logger.warning(
            "Dispatching APNS notification failed for %d endpoint(s): %s", len(unsent), reason
        )
        return cls(None, endpoints, invalid_endpoints)

    @property
    def pending(self) -> list[str]:
        """Endpoints of the chunk without a status yet."""
        return [endpoint for endpoint in self.endpoints if endpoint not in self._statuses]

    def _classify(self, endpoint: str, result: ApnsResult) -> PushStatus:
        if isinstance(result, Exception):
            self._logger.warning(
                "Dispatching APNS notification failed for endpoint %s: %s", endpoint, result
            )
            return classify_transport_error(result)

        status = apns_classifier.classify(result.status_code)
        if status is PushStatus.SUCCESS:
            return status

        reason = _reason(result)
        if reason is not None:
            status = _REASON_STATUS.get(reason, status)

        self._logger.warning(
            "Dispatching APNS notification failed for endpoint %s: %s",
            endpoint,
            reason or result.text or f"HTTP {result.status_code}",
        )
        return status


class ApnsResponse(MultiPushResponse):
    """Merged APNs response returned to the dispatcher."""
