"""FCM topic subscription management via the Instance ID API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from ...exceptions import ProviderRequestError

logger = logging.getLogger(__name__)

TOPIC_URL = "https://iid.googleapis.com/iid/v1"


class FcmTopicManager:
    """
    Subscribes and unsubscribes registration tokens to FCM topics.

    Tokens are sent in chunks of ``batch_size``. A failed request raises
    ``ProviderRequestError``; tokens rejected individually by FCM are
    logged and returned as ``{token: error}``.
    """

    batch_size = 1000

    def __init__(
        self,
        oauth_token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        base_url: str = TOPIC_URL,
    ) -> None:
        self._oauth_token = oauth_token
        self._timeout = timeout
        self._client = client
        self._base_url = base_url

    def set_oauth_token(self, token: str) -> None:
        self._oauth_token = token

    async def subscribe(self, topic: str, endpoints: list[str]) -> dict[str, str]:
        return await self._manage(topic, endpoints, subscribe=True)

    async def unsubscribe(self, topic: str, endpoints: list[str]) -> dict[str, str]:
        return await self._manage(topic, endpoints, subscribe=False)

    async def _manage(self, topic: str, endpoints: list[str], subscribe: bool) -> dict[str, str]:
        url = self._base_url + (":batchAdd" if subscribe else ":batchRemove")
        task = "Subscribing" if subscribe else "Unsubscribing"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._oauth_token}",
            "access_token_auth": "true",
        }
        failures: dict[str, str] = {}

        async with self._http() as client:
            for start in range(0, len(endpoints), self.batch_size):
                chunk = endpoints[start : start + self.batch_size]
                body = {"to": f"/topics/{topic}", "registration_tokens": chunk}

                try:
                    response = await client.post(url, json=body, headers=headers)
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    logger.warning(
                        "%s FCM endpoints to topic %s failed: %s", task, topic, e
                    )
                    raise ProviderRequestError("FCM", str(e)) from e

                try:
                    results = response.json()["results"]
                except (ValueError, KeyError, TypeError):
                    logger.warning(
                        "Invalid response from FCM when %s FCM endpoints to topic %s: %s",
                        task.lower(),
                        topic,
                        response.text,
                    )
                    continue

                for endpoint, result in zip(chunk, results):
                    if isinstance(result, dict) and "error" in result:
                        logger.warning(
                            "%s FCM endpoint %s to topic %s failed: %s",
                            task,
                            endpoint,
                            topic,
                            result["error"],
                        )
                        failures[endpoint] = str(result["error"])

        return failures

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client
