"""WNS adapter using httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from ...exceptions import InvalidPayloadError
from ...ports.adapter import IPushAdapter
from .payload import WnsPayload
from .response import WnsResponse

if TYPE_CHECKING:
    from ...ports.payload import IPushPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WnsConfig:
    oauth_token: str | None = None
    timeout: float = 15.0


class WnsAdapter(IPushAdapter):
    """
    Windows Push Notification Service adapter.

    WNS addresses each device by its channel URI, so the adapter pushes to
    exactly one endpoint per call and the dispatcher invokes it per target.
    """

    def __init__(self, config: WnsConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._oauth_token = config.oauth_token
        self._client = client

    def set_oauth_token(self, token: str) -> None:
        self._oauth_token = token

    async def push(self, payload: IPushPayload, endpoints: list[str]) -> WnsResponse:
        if not isinstance(payload, WnsPayload):
            raise InvalidPayloadError(f"WnsAdapter does not support {type(payload).__name__}")
        if len(endpoints) != 1:
            raise InvalidPayloadError("WnsAdapter pushes to exactly one channel URI per call")

        endpoint = endpoints[0]
        if self._oauth_token is None:
            logger.warning(
                "Tried to push WNS notification to %s but wasn't authenticated.", endpoint
            )
            return WnsResponse(endpoint, None)

        headers = {
            "X-WNS-Type": payload.wns_type,
            "Accept": "application/*",
            "Authorization": f"Bearer {self._oauth_token}",
            "X-WNS-RequestForStatus": "true",
            "Content-Type": payload.content_type,
        }

        try:
            if self._client is not None:
                result: httpx.Response | Exception = await self._client.post(
                    endpoint, content=payload.to_body(), headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    result = await client.post(endpoint, content=payload.to_body(), headers=headers)
        except httpx.HTTPError as e:
            result = e

        return WnsResponse(endpoint, result)
