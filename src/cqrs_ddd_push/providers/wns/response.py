"""WNS response classification."""

from __future__ import annotations

import logging

import httpx

from ...http.classification import HttpStatusClassifier, classify_transport_error
from ...ports.response import IPushResponse
from ...status import PushStatus

logger = logging.getLogger(__name__)

wns_classifier = HttpStatusClassifier(
    success_codes=frozenset({200}),
    temporary_codes=frozenset({406}),
)

_NOTIFICATION_STATUSES = {
    "received": PushStatus.SUCCESS,
    "channelthrottled": PushStatus.TEMPORARY_ERROR,
}


class WnsResponse(IPushResponse):
    """
    Outcome of a single WNS push.

    A ``None`` result means the request was never sent (no token) and
    classifies as ``ERROR``. The status applies to the pushed channel URI
    only; any other endpoint is ``UNKNOWN``.
    """

    def __init__(self, endpoint: str, result: httpx.Response | Exception | None) -> None:
        self.endpoint = endpoint
        self.status = self._parse(result)

    def get_status(self, endpoint: str) -> PushStatus:
        if endpoint != self.endpoint:
            return PushStatus.UNKNOWN
        return self.status

    def _parse(self, result: httpx.Response | Exception | None) -> PushStatus:
        if result is None:
            return PushStatus.ERROR

        if isinstance(result, Exception):
            logger.warning(
                "Dispatching WNS notification to %s failed: %s", self.endpoint, result
            )
            return classify_transport_error(result)

        status = wns_classifier.classify(result.status_code)
        if status is PushStatus.SUCCESS:
            # 200 only means WNS answered; X-WNS-Status tells whether it took the push.
            status = _NOTIFICATION_STATUSES.get(
                result.headers.get("X-WNS-Status", ""), PushStatus.CLIENT_ERROR
            )

        if status is not PushStatus.SUCCESS:
            logger.warning(
                "Push notification delivery status for endpoint %s: %s, device %s, "
                "description %s, trace %s",
                self.endpoint,
                result.headers.get("X-WNS-Status"),
                result.headers.get("X-WNS-DeviceConnectionStatus"),
                result.headers.get("X-WNS-Error-Description"),
                result.headers.get("X-WNS-Debug-Trace"),
            )
        return status
