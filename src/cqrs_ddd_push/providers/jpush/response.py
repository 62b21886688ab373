"""JPush response classification."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx

from ...http.classification import (
    HttpStatusClassifier,
    classify_transport_error,
    upstream_error,
)
from ...http.responses import DeferredBatchResponse, DeferredPushResponse
from ...status import PushStatus

logger = logging.getLogger(__name__)

INVALID_REGISTRATION_CODE = 1011

# A JPush call is only successful when it yields a message id, so no HTTP
# code maps to SUCCESS here.
jpush_classifier = HttpStatusClassifier(
    success_codes=frozenset(),
    invalid_endpoint_codes=frozenset(),
    error_codes=frozenset({400, 401, 403}),
    temporary_codes=frozenset({429}),
)

_DEFAULT_REASONS = {
    400: "Invalid request",
    401: "Error with authentication",
    403: "Error with configuration",
    429: "Too many requests",
}


def failure_status(response: httpx.Response) -> tuple[PushStatus, str]:
    """Map a failed JPush HTTP response to ``(status, reason)``."""
    message, code = upstream_error(response)
    status = jpush_classifier.classify(response.status_code)

    if response.status_code == 400 and code == INVALID_REGISTRATION_CODE:
        status = PushStatus.INVALID_ENDPOINT

    if response.status_code >= 500:
        default = "Internal error"
    else:
        default = _DEFAULT_REASONS.get(response.status_code, "Unknown error")

    return status, message or default


class JPushBatchResponse(DeferredBatchResponse):
    """
    Outcome of one JPush ``/v3/push`` call.

    An accepted batch carries the ``msg_id`` JPush returned as
    ``tracking_id`` and leaves every endpoint ``DEFERRED``; any other outcome
    marks the whole batch with one failure status. A ``None`` result is a
    batch that was never sent and is left for the caller to classify.
    """

    provider = "JPush"

    def __init__(
        self, result: httpx.Response | Exception | None, endpoints: Iterable[str]
    ) -> None:
        super().__init__(endpoints, logger)

        if result is None:
            return

        if isinstance(result, Exception):
            self.report_batch_failure(classify_transport_error(result), str(result))
            return

        message_id = None
        if result.is_success:
            try:
                body = result.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message_id = body.get("msg_id")

        if message_id is None:
            self.report_batch_failure(*failure_status(result))
            return

        self.tracking_id = str(message_id)

    @classmethod
    def precondition_failed(cls, endpoints: Iterable[str], reason: str) -> JPushBatchResponse:
        """Build a response for a batch that could not be sent at all."""
        batch = cls(None, endpoints)
        batch.report_batch_failure(PushStatus.ERROR, reason)
        return batch


class JPushResponse(DeferredPushResponse):
    """Merged JPush response; accepted endpoints carry the batch ``msg_id``."""
