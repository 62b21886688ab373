"""JPush v3 adapter using httpx."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from ...exceptions import InvalidPayloadError
from ...ports.adapter import IMultiPushAdapter
from .payload import JPushPayload
from .response import JPushBatchResponse, JPushResponse

if TYPE_CHECKING:
    from ...ports.payload import IPushPayload

logger = logging.getLogger(__name__)

JPUSH_PUSH_URL = "https://api.jpush.cn/v3/push"
JPUSH_REPORT_URL = "https://report.jpush.cn/v3/status/message"


@dataclass(frozen=True)
class JPushConfig:
    """Configuration for the JPush adapter and report client.

    ``auth_token`` is the base64 ``appKey:masterSecret`` pair used for HTTP
    Basic authentication.
    """

    auth_token: str | None = None
    timeout: float = 15.0
    batch_size: int = 1000
    push_url: str = JPUSH_PUSH_URL
    report_url: str = JPUSH_REPORT_URL

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")


class JPushAdapter(IMultiPushAdapter):
    """
    JPush adapter.

    Each chunk of up to ``batch_size`` registration ids is sent in one
    request. JPush only acknowledges the request, so accepted endpoints are
    reported ``DEFERRED`` with the ``msg_id`` as tracking id; delivery is
    confirmed later through ``JPushReport``.
    """

    def __init__(self, config: JPushConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.batch_size = config.batch_size
        self._auth_token = config.auth_token
        self._client = client

    def set_auth_token(self, token: str) -> None:
        self._auth_token = token

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self._auth_token}",
        }

    async def push(self, payload: IPushPayload, endpoints: list[str]) -> JPushResponse:
        if not isinstance(payload, JPushPayload):
            raise InvalidPayloadError(f"JPushAdapter does not support {type(payload).__name__}")

        response = JPushResponse()
        logger.debug("Pushing JPush %s to %d endpoint(s)", payload.kind, len(endpoints))

        if self._auth_token is None:
            batch = JPushBatchResponse.precondition_failed(
                endpoints, "Tried to push JPush notification but wasn't authenticated."
            )
            response.add_batch_response(batch, endpoints)
            return response

        async with self._http() as client:
            for start in range(0, len(endpoints), self.batch_size):
                chunk = endpoints[start : start + self.batch_size]
                response.add_batch_response(await self._push_batch(client, payload, chunk), chunk)

        return response

    async def _push_batch(
        self, client: httpx.AsyncClient, payload: JPushPayload, endpoints: list[str]
    ) -> JPushBatchResponse:
        try:
            result: httpx.Response | Exception = await client.post(
                self.config.push_url, json=payload.to_request(endpoints), headers=self.headers
            )
        except httpx.HTTPError as e:
            result = e
        return JPushBatchResponse(result, endpoints)

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            yield client
