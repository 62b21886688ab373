"""Test configuration for cqrs-ddd-push."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from cqrs_ddd_push import HookRegistry, PushNotificationDispatcher, PushTarget

pytest_plugins = ["pytest_asyncio"]


class Payload:
    """Minimal payload satisfying ``IPushPayload``."""

    def __init__(self, name: str = "payload", broadcast: bool = False) -> None:
        self.name = name
        self.broadcast = broadcast

    def is_broadcast(self) -> bool:
        return self.broadcast

    def __repr__(self) -> str:
        return f"Payload({self.name!r}, broadcast={self.broadcast})"


@pytest.fixture
def payload() -> Payload:
    """Endpoint-addressed payload."""
    return Payload("alert")


@pytest.fixture
def broadcast_payload() -> Payload:
    """Topic-addressed payload."""
    return Payload("news", broadcast=True)


@pytest.fixture
def target() -> Callable[..., PushTarget]:
    """Factory for push targets."""

    def _target(address: str, provider: str = "p", variant: str = "v", **metadata: Any) -> PushTarget:
        return PushTarget(address=address, provider=provider, variant=variant, metadata=metadata)

    return _target


@pytest.fixture
def hook_registry() -> HookRegistry:
    """Isolated hook registry."""
    return HookRegistry()


@pytest.fixture
def dispatcher(hook_registry: HookRegistry) -> PushNotificationDispatcher:
    """Dispatcher with an isolated hook registry and no adapters."""
    return PushNotificationDispatcher(hook_registry=hook_registry)


class RecordingTransport:
    """Builds an ``httpx.AsyncClient`` whose requests are answered by a handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))


@pytest.fixture
def http_mock() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    """Factory for recording mock HTTP transports."""
    return RecordingTransport


@pytest.fixture
def make_payload() -> Callable[..., Payload]:
    """Factory for minimal payloads."""
    return Payload
