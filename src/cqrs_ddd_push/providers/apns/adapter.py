"""APNs HTTP/2 adapter using httpx."""

from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from ...exceptions import InvalidPayloadError
from ...ports.adapter import IMultiPushAdapter
from .payload import ApnsPayload
from .response import ApnsBatchResponse, ApnsResponse, ApnsResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ...ports.payload import IPushPayload

logger = logging.getLogger(__name__)

APNS_PRODUCTION_URL = "https://api.push.apple.com"
APNS_SANDBOX_URL = "https://api.sandbox.push.apple.com"

_DEVICE_TOKEN = re.compile(r"^[0-9a-fA-F]{64,200}$")


def is_valid_device_token(token: str) -> bool:
    return bool(_DEVICE_TOKEN.match(token))


@dataclass(frozen=True)
class ApnsConfig:
    """Configuration for the APNs adapter.

    Attributes:
        auth_token: Provider authentication JWT; obtained by the caller.
        topic: Default ``apns-topic`` (usually the app bundle id).
        sandbox: Use the development environment.
        timeout: Per-request timeout in seconds.
        batch_size: Endpoints handled per chunk.
        max_concurrent_requests: Streams in flight at once within a chunk.
        base_url: Overrides the environment URL.
    """

    auth_token: str | None = None
    topic: str | None = None
    sandbox: bool = False
    timeout: float = 15.0
    batch_size: int = 100
    max_concurrent_requests: int = 50
    base_url: str | None = None

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be >= 1")

    @property
    def url(self) -> str:
        if self.base_url is not None:
            return self.base_url
        return APNS_SANDBOX_URL if self.sandbox else APNS_PRODUCTION_URL


class ApnsAdapter(IMultiPushAdapter):
    """
    Apple Push Notification service adapter.

    Tokens that are not hex strings are rejected before sending. The rest
    of a chunk is pushed one request per device token, multiplexed over a
    single HTTP/2 connection.
    """

    def __init__(self, config: ApnsConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.batch_size = config.batch_size
        self._auth_token = config.auth_token
        self._client = client

    def set_auth_token(self, token: str) -> None:
        self._auth_token = token

    async def push(self, payload: IPushPayload, endpoints: list[str]) -> ApnsResponse:
        if not isinstance(payload, ApnsPayload):
            raise InvalidPayloadError(f"ApnsAdapter does not support {type(payload).__name__}")
        if not endpoints:
            raise InvalidPayloadError("No target provided for APNS notification")

        response = ApnsResponse()
        logger.debug("Pushing APNS %s to %d endpoint(s)", payload.push_type, len(endpoints))

        reason = None
        if self._auth_token is None:
            reason = "Tried to push APNS notification but wasn't authenticated."
        elif payload.topic is None and self.config.topic is None:
            reason = "Tried to push APNS notification but no topic is provided."

        chunks = [
            endpoints[start : start + self.batch_size]
            for start in range(0, len(endpoints), self.batch_size)
        ]

        if reason is not None:
            for chunk in chunks:
                invalid = [endpoint for endpoint in chunk if not is_valid_device_token(endpoint)]
                batch = ApnsBatchResponse.precondition_failed(chunk, invalid, reason)
                response.add_batch_response(batch, chunk)
            return response

        async with self._http() as client:
            for chunk in chunks:
                invalid = [endpoint for endpoint in chunk if not is_valid_device_token(endpoint)]
                valid = [endpoint for endpoint in chunk if endpoint not in invalid]
                results = await self._push_batch(client, payload, valid)
                response.add_batch_response(ApnsBatchResponse(results, chunk, invalid), chunk)

        return response

    async def _push_batch(
        self, client: httpx.AsyncClient, payload: ApnsPayload, endpoints: list[str]
    ) -> dict[str, ApnsResult]:
        semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)
        headers = {
            **payload.headers(self.config.topic),
            "authorization": f"bearer {self._auth_token}",
        }
        body = payload.to_body()

        async def send_one(endpoint: str) -> ApnsResult:
            async with semaphore:
                try:
                    return await client.post(
                        f"{self.config.url}/3/device/{endpoint}", json=body, headers=headers
                    )
                except httpx.HTTPError as e:
                    return e

        results = await asyncio.gather(*(send_one(endpoint) for endpoint in endpoints))
        return dict(zip(endpoints, results))

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.config.timeout, http2=True) as client:
            yield client
