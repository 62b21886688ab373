"""FCM response classification."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Union

import httpx

from ...http.classification import (
    HttpStatusClassifier,
    classify_transport_error,
    upstream_error,
)
from ...http.responses import BroadcastBatchResponse, BroadcastPushResponse
from ...status import PushStatus

logger = logging.getLogger(__name__)

FcmResult = Union[httpx.Response, Exception]

fcm_classifier = HttpStatusClassifier(
    success_codes=frozenset({200}),
    invalid_endpoint_codes=frozenset({403, 404}),
    error_codes=frozenset({400, 401}),
    temporary_codes=frozenset({429}),
)

_DEFAULT_REASONS = {
    400: "Invalid argument",
    401: "Error with authentication",
    403: "Mismatched sender",
    404: "Unregistered or missing token",
    429: "Exceeded quota",
    500: "Internal error",
    503: "Timeout",
}


def _error_code(body: Any) -> str | None:
    """Return the FCM ``errorCode`` from the ``details`` of an error body."""
    error = body.get("error") if isinstance(body, dict) else None
    details = error.get("details") if isinstance(error, dict) else None
    for detail in details or []:
        if isinstance(detail, dict) and "errorCode" in detail:
            return str(detail["errorCode"])
    return None


class FcmBatchResponse(BroadcastBatchResponse):
    """
    Classifies the HTTP results of one FCM batch.

    ``results`` maps each endpoint to the ``httpx.Response`` it received or
    the exception raised while sending it. A broadcast batch has no
    endpoints and a single result keyed by the empty string.
    """

    provider = "FCM"

    def __init__(
        self,
        results: Mapping[str, FcmResult],
        endpoints: Iterable[str],
        broadcast: bool = False,
    ) -> None:
        super().__init__(endpoints, logger)
        self.results = dict(results)

        if broadcast:
            result = next(iter(self.results.values()), None)
            self._broadcast_status = self._classify("broadcast", result)
            return

        for endpoint in self.endpoints:
            self._statuses[endpoint] = self._classify(endpoint, self.results.get(endpoint))

    @classmethod
    def precondition_failed(
        cls, endpoints: Iterable[str], status_code: int, reason: str
    ) -> FcmBatchResponse:
        """Build a response for a batch that could not be sent at all."""
        status = fcm_classifier.classify(status_code)
        batch = cls({}, endpoints)
        batch.report_batch_failure(status, reason)
        batch._broadcast_status = status
        return batch

    def _classify(self, endpoint: str, result: FcmResult | None) -> PushStatus:
        if result is None:
            return PushStatus.UNKNOWN

        if isinstance(result, Exception):
            self._logger.warning(
                "Dispatching FCM notification failed for endpoint %s: %s", endpoint, result
            )
            return classify_transport_error(result)

        status = fcm_classifier.classify(result.status_code)
        if status is PushStatus.SUCCESS:
            return status

        message, _ = upstream_error(result)
        if result.status_code == 400 and self._is_token_error(result, message):
            status = PushStatus.INVALID_ENDPOINT

        reason = message or _DEFAULT_REASONS.get(result.status_code, "Unknown error")
        self._logger.warning(
            "Dispatching FCM notification failed for endpoint %s: %s", endpoint, reason
        )
        return status

    @staticmethod
    def _is_token_error(response: httpx.Response, message: str | None) -> bool:
        if message and "registration token" in message.lower():
            return True
        try:
            return _error_code(response.json()) == "UNREGISTERED"
        except ValueError:
            return False


class FcmResponse(BroadcastPushResponse):
    """Merged FCM response returned to the dispatcher."""
