"""Instrumentation hooks around provider invocations.

The dispatcher runs every adapter call through the current ``HookRegistry``
as operation ``push.dispatch.<provider>``. Hooks wrap the call (tracing,
metrics, timing) and must await ``next_handler`` to let it proceed.
"""

from __future__ import annotations

import fnmatch
import logging
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

_MATCH_CACHE_MAX_SIZE = 2048


@runtime_checkable
class InstrumentationHook(Protocol):
    """Callable wrapped around one adapter push.

    Receives the ``push.dispatch.<provider>`` operation name and the group's
    attributes; returning without awaiting ``next_handler`` skips the push.
    """

    async def __call__(
        self,
        operation: str,
        attributes: dict[str, Any],
        next_handler: Callable[[], Awaitable[Any]],
    ) -> Any:
        ...


class HookRegistration:
    """A hook plus the operation patterns and providers it applies to."""

    def __init__(
        self,
        hook: InstrumentationHook,
        *,
        priority: int = 0,
        operations: list[str] | None = None,
        providers: list[str] | None = None,
        enabled: bool = True,
    ) -> None:
        self.hook = hook
        self.priority = priority
        self.operations = operations or []
        self.providers = providers or []
        self.enabled = enabled
        self._match_cache: dict[str, bool] = {}

    def matches(self, operation: str, attributes: dict[str, Any]) -> bool:
        """Whether this hook wraps ``operation`` for the given push attributes."""
        if not self.enabled:
            return False
        if self.providers and attributes.get("provider") not in self.providers:
            return False
        return self._matches_operation(operation)

    def _matches_operation(self, operation: str) -> bool:
        if not self.operations:
            return True
        if operation in self._match_cache:
            return self._match_cache[operation]
        matched = any(fnmatch.fnmatch(operation, pattern) for pattern in self.operations)
        if len(self._match_cache) >= _MATCH_CACHE_MAX_SIZE:
            self._match_cache.clear()
        self._match_cache[operation] = matched
        return matched


class HookRegistry:
    """Ordered set of hooks wrapped around every adapter push."""

    def __init__(self) -> None:
        self._registrations: list[HookRegistration] = []

    def register(
        self,
        hook: InstrumentationHook,
        *,
        priority: int = 0,
        operations: list[str] | None = None,
        providers: list[str] | None = None,
        enabled: bool = True,
    ) -> HookRegistration:
        """Add a hook; lower priority values wrap the push from further out.

        ``operations`` takes glob patterns such as ``push.dispatch.*``;
        ``providers`` restricts the hook to groups of those providers.
        """
        registration = HookRegistration(
            hook,
            priority=priority,
            operations=operations,
            providers=providers,
            enabled=enabled,
        )
        self._registrations.append(registration)
        self._registrations.sort(key=lambda r: r.priority)
        logger.debug("Registered instrumentation hook %s", type(hook).__name__)
        return registration

    async def execute_all(
        self,
        operation: str,
        attributes: dict[str, Any],
        next_handler: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run the push in ``next_handler`` inside every hook that matches it."""
        matching = [r for r in self._registrations if r.matches(operation, attributes)]
        if not matching:
            return await next_handler()

        async def pipeline(index: int = 0) -> Any:
            if index >= len(matching):
                return await next_handler()
            return await matching[index].hook(
                operation,
                attributes,
                lambda: pipeline(index + 1),
            )

        return await pipeline()

    def clear(self) -> None:
        """Drop every hook."""
        self._registrations.clear()


_hook_registry_var: ContextVar[HookRegistry | None] = ContextVar(
    "push_hook_registry", default=None
)


def get_hook_registry() -> HookRegistry:
    """Return the registry the dispatcher uses in the current context.

    Each context gets its own empty registry on first access.
    """
    registry = _hook_registry_var.get()
    if registry is None:
        registry = HookRegistry()
        _hook_registry_var.set(registry)
    return registry


def set_hook_registry(registry: HookRegistry) -> None:
    """Make ``registry`` the one dispatchers in this context fall back to."""
    _hook_registry_var.set(registry)
