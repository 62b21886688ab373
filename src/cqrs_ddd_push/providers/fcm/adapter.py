"""FCM HTTP v1 adapter using httpx."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from ...exceptions import InvalidPayloadError
from ...ports.adapter import IMultiPushAdapter
from .payload import FcmPayload
from .response import FcmBatchResponse, FcmResponse, FcmResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ...ports.payload import IPushPayload

logger = logging.getLogger(__name__)

FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects"


@dataclass(frozen=True)
class FcmConfig:
    """Configuration for the FCM adapter.

    Attributes:
        project_id: Firebase project the messages are sent for.
        oauth_token: Bearer token for the FCM API; obtained by the caller.
        timeout: Per-request timeout in seconds.
        batch_size: Endpoints handled per chunk.
        max_concurrent_requests: Requests in flight at once within a chunk.
        base_url: FCM send endpoint prefix.
    """

    project_id: str | None = None
    oauth_token: str | None = None
    timeout: float = 30.0
    batch_size: int = 1000
    max_concurrent_requests: int = 50
    base_url: str = FCM_SEND_URL

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be >= 1")


class FcmAdapter(IMultiPushAdapter):
    """
    Firebase Cloud Messaging adapter.

    FCM v1 accepts one token per request, so a batch is sent as concurrent
    requests (bounded by ``max_concurrent_requests``). Topic and condition
    payloads are sent once, as a broadcast.
    """

    def __init__(self, config: FcmConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.batch_size = config.batch_size
        self._oauth_token = config.oauth_token
        self._client = client

    def set_oauth_token(self, token: str) -> None:
        """Replace the bearer token, e.g. after the caller refreshed it."""
        self._oauth_token = token

    @property
    def send_url(self) -> str:
        return f"{self.config.base_url}/{self.config.project_id}/messages:send"

    async def push(self, payload: IPushPayload, endpoints: list[str]) -> FcmResponse:
        if not isinstance(payload, FcmPayload):
            raise InvalidPayloadError(f"FcmAdapter does not support {type(payload).__name__}")
        if not endpoints and not payload.is_broadcast():
            raise InvalidPayloadError("No target provided for FCM notification")

        response = FcmResponse()
        logger.debug(
            "Pushing FCM notification to %d endpoint(s) (broadcast=%s)",
            len(endpoints),
            payload.is_broadcast(),
        )

        if self._oauth_token is None or self.config.project_id is None:
            if self._oauth_token is None:
                status_code = 401
                reason = "Tried to push FCM notification but wasn't authenticated."
            else:
                status_code = 400
                reason = "Tried to push FCM notification but project id is not provided."
            batch = FcmBatchResponse.precondition_failed(endpoints, status_code, reason)
            if payload.is_broadcast():
                response.add_broadcast_response(batch)
            else:
                response.add_batch_response(batch, endpoints)
            return response

        async with self._http() as client:
            if payload.is_broadcast():
                result = await self._send(client, payload.to_message())
                response.add_broadcast_response(
                    FcmBatchResponse({"": result}, [], broadcast=True)
                )
                return response

            for start in range(0, len(endpoints), self.batch_size):
                chunk = endpoints[start : start + self.batch_size]
                batch = await self._push_batch(client, payload, chunk)
                response.add_batch_response(batch, chunk)

        return response

    async def _push_batch(
        self, client: httpx.AsyncClient, payload: FcmPayload, endpoints: list[str]
    ) -> FcmBatchResponse:
        semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

        async def send_one(endpoint: str) -> FcmResult:
            async with semaphore:
                return await self._send(client, payload.to_message(endpoint))

        results = await asyncio.gather(*(send_one(endpoint) for endpoint in endpoints))
        return FcmBatchResponse(dict(zip(endpoints, results)), endpoints)

    async def _send(self, client: httpx.AsyncClient, body: dict[str, Any]) -> FcmResult:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._oauth_token}",
        }
        try:
            return await client.post(self.send_url, json=body, headers=headers)
        except httpx.HTTPError as e:
            return e

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            yield client
