"""Delivery reports for deferred JPush pushes."""

from __future__ import annotations

import logging

import httpx

from ...status import PushStatus
from .adapter import JPushConfig
from .response import failure_status

logger = logging.getLogger(__name__)

# report status code -> (status, reason)
_REPORT_CODES: dict[int, tuple[PushStatus, str]] = {
    0: (PushStatus.SUCCESS, "Delivered"),
    1: (PushStatus.UNKNOWN, "Not delivered"),
    2: (PushStatus.INVALID_ENDPOINT, "Registration_id does not belong to the application"),
    3: (
        PushStatus.ERROR,
        "Registration_id belongs to the application, but it is not the target of the message",
    ),
    4: (PushStatus.TEMPORARY_ERROR, "The system is abnormal"),
}


class JPushReport:
    """
    Fetches the final delivery status of a JPush message.

    Use the tracking id reported for ``DEFERRED`` endpoints as
    ``message_id``.
    """

    def __init__(self, config: JPushConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    async def fetch(self, message_id: str | int, endpoints: list[str]) -> dict[str, PushStatus]:
        request = {"msg_id": message_id, "registration_ids": list(endpoints)}
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self.config.auth_token}",
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    self.config.report_url, json=request, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.post(
                        self.config.report_url, json=request, headers=headers
                    )
        except httpx.HTTPError as e:
            logger.warning("Getting JPush notification report failed: %s", e)
            return dict.fromkeys(endpoints, PushStatus.ERROR)

        if not response.is_success:
            status, reason = failure_status(response)
            logger.warning("Getting JPush notification report failed: %s", reason)
            return dict.fromkeys(endpoints, status)

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.warning("Getting JPush notification report failed: %s", response.text)
            return dict.fromkeys(endpoints, PushStatus.UNKNOWN)

        statuses = dict.fromkeys(endpoints, PushStatus.UNKNOWN)
        for endpoint, result in body.items():
            code = result.get("status") if isinstance(result, dict) else None
            statuses[endpoint] = self._endpoint_status(endpoint, code)
        return statuses

    @staticmethod
    def _endpoint_status(endpoint: str, code: object) -> PushStatus:
        default = (PushStatus.UNKNOWN, str(code))
        status, reason = _REPORT_CODES.get(code, default) if isinstance(code, int) else default
        if status is not PushStatus.SUCCESS:
            logger.warning(
                "Dispatching JPush notification failed for endpoint %s: %s", endpoint, reason
            )
        return status
