"""PushNotificationDispatcher: fan a payload out to provider adapters.

Groups targets by ``(provider, variant)``, picks a strategy per group
(broadcast, batch or one call per endpoint), invokes the registered adapter and
sorts every target into exactly one status bucket.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from .buckets import BroadcastStatuses, DispatchResult, StatusBuckets
from .exceptions import AdapterRegistrationError
from .instrumentation import HookRegistry, get_hook_registry
from .ports.adapter import IMultiPushAdapter, IPushAdapter
from .ports.payload import IPushPayload
from .ports.response import IBroadcastResponse, IDeferredResponse, IPushResponse
from .status import PushStatus
from .target import PushTarget

logger = logging.getLogger(__name__)

TargetInput = Union[PushTarget, Mapping[str, Any]]
PayloadMap = Mapping[str, Mapping[str, IPushPayload]]
_Unit = Callable[[], Awaitable[StatusBuckets]]


@dataclass(frozen=True)
class DispatcherConfig:
    """Configuration for the dispatcher.

    Attributes:
        concurrent: Run independent ``(provider, variant)`` groups concurrently.
        max_concurrency: Upper bound on groups in flight at once.
    """

    concurrent: bool = True
    max_concurrency: int = 10

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")


class PushNotificationDispatcher:
    """
    Generic push notification dispatcher.

    Every call to ``dispatch`` builds a fresh ``StatusBuckets``; the most
    recent one stays readable through ``statuses()``,
    ``broadcast_statuses()`` and ``endpoints_with_status()`` until the next
    call.

    Usage::

        dispatcher = PushNotificationDispatcher()
        dispatcher.register("fcm", FcmAdapter(FcmConfig(project_id="p", oauth_token=t)))

        result = await dispatcher.dispatch(
            targets=[{"endpoint": "tok", "platform": "fcm", "payload_type": "alert"}],
            payloads={"fcm": {"alert": FcmPayload(title="Hi", body="There")}},
        )
        retry = result.endpoints_with_status([PushStatus.TEMPORARY_ERROR])
    """

    def __init__(
        self,
        config: DispatcherConfig | None = None,
        hook_registry: HookRegistry | None = None,
    ) -> None:
        self._config = config or DispatcherConfig()
        self._hook_registry = hook_registry
        self._adapters: dict[str, IPushAdapter] = {}
        self._result: DispatchResult = StatusBuckets()

    def register(self, provider: str, adapter: IPushAdapter) -> None:
        """Register the adapter responsible for ``provider``, replacing any previous one."""
        if not isinstance(adapter, IPushAdapter):
            raise AdapterRegistrationError(provider, adapter)
        self._adapters[provider] = adapter
        logger.debug("Registered push adapter: %s -> %s", provider, type(adapter).__name__)

    async def dispatch(
        self,
        targets: Iterable[TargetInput],
        payloads: PayloadMap,
    ) -> DispatchResult:
        """Push every payload to its targets and classify each outcome.

        Targets without a matching payload, or whose provider has no adapter,
        land in ``NOT_HANDLED``. An adapter exception is re-raised once the
        groups already running have finished; their outcomes stay readable
        through ``statuses()``.
        """
        registry = self._hook_registry or get_hook_registry()
        grouped = self._group(targets)
        units: list[_Unit] = []

        for provider, provider_payloads in payloads.items():
            groups = grouped.get(provider, {})
            broadcasts = {
                variant: payload
                for variant, payload in provider_payloads.items()
                if payload.is_broadcast()
            }

            if not groups and not broadcasts:
                continue

            adapter = self._adapters.get(provider)
            if adapter is None:
                units.append(
                    functools.partial(self._not_handled_provider, provider, groups, broadcasts)
                )
                continue

            for variant, payload in provider_payloads.items():
                group = groups.get(variant)
                if payload.is_broadcast():
                    units.append(
                        functools.partial(
                            self._dispatch_broadcast, registry, adapter, provider, variant, payload
                        )
                    )
                elif not group:
                    continue
                elif isinstance(adapter, IMultiPushAdapter):
                    units.append(
                        functools.partial(
                            self._dispatch_multiple, registry, adapter, provider, variant, payload, group
                        )
                    )
                else:
                    units.append(
                        functools.partial(
                            self._dispatch_single, registry, adapter, provider, variant, payload, group
                        )
                    )

        result = StatusBuckets()
        failure: BaseException | None = None
        for part in await self._run(units):
            if isinstance(part, BaseException):
                failure = failure or part
            else:
                result.merge(part)

        if failure is not None:
            # Outcomes of the groups that did finish stay readable.
            self._result = result
            logger.warning(
                "Push dispatch aborted by adapter error, partial result: %s", result.counts()
            )
            raise failure

        self._collect_unhandled(grouped, payloads, result)

        self._result = result
        logger.info("Push dispatch finished: %s", result.counts() or "no targets")
        return result

    def statuses(self) -> dict[PushStatus, list[PushTarget]]:
        """Return the status buckets of the most recent dispatch."""
        return self._result.statuses()

    def broadcast_statuses(self) -> BroadcastStatuses:
        """Return the broadcast buckets of the most recent dispatch."""
        return self._result.broadcast_statuses()

    def endpoints_with_status(self, statuses: Iterable[PushStatus]) -> list[PushTarget]:
        """Return the targets of the most recent dispatch in the given buckets."""
        return self._result.endpoints_with_status(statuses)

    # ── grouping & bookkeeping ──────────────────────────────────────

    @staticmethod
    def _group(targets: Iterable[TargetInput]) -> dict[str, dict[str, list[PushTarget]]]:
        grouped: dict[str, dict[str, list[PushTarget]]] = {}
        for item in targets:
            target = item if isinstance(item, PushTarget) else PushTarget.from_mapping(item)
            grouped.setdefault(target.provider, {}).setdefault(target.variant, []).append(target)
        return grouped

    def _collect_unhandled(
        self,
        grouped: dict[str, dict[str, list[PushTarget]]],
        payloads: PayloadMap,
        result: StatusBuckets,
    ) -> None:
        for provider, groups in grouped.items():
            provider_payloads = payloads.get(provider)
            registered = provider in self._adapters

            for variant, group in groups.items():
                if provider_payloads is not None and variant in provider_payloads:
                    # Endpoint groups sharing a variant with a broadcast payload
                    # were never addressed by it.
                    if registered and provider_payloads[variant].is_broadcast():
                        result.extend(PushStatus.NOT_HANDLED, group)
                    continue

                # Already classified together with the provider's payloads.
                if provider_payloads is not None and not registered:
                    continue

                logger.debug(
                    "No payload for %s/%s, %d target(s) not handled", provider, variant, len(group)
                )
                result.extend(PushStatus.NOT_HANDLED, group)

    async def _run(self, units: list[_Unit]) -> list[StatusBuckets | BaseException]:
        """Run every unit and return its buckets or the exception it raised.

        Sequential runs stop at the first failing unit. Concurrent runs let
        every unit finish, so no push is left running after ``dispatch``
        returns or raises.
        """
        if not self._config.concurrent or len(units) < 2:
            parts: list[StatusBuckets | BaseException] = []
            for unit in units:
                try:
                    parts.append(await unit())
                except Exception as e:
                    parts.append(e)
                    break
            return parts

        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def bounded(unit: _Unit) -> StatusBuckets:
            async with semaphore:
                return await unit()

        return list(
            await asyncio.gather(*(bounded(unit) for unit in units), return_exceptions=True)
        )

    # ── strategies ──────────────────────────────────────────────────

    async def _not_handled_provider(
        self,
        provider: str,
        groups: Mapping[str, list[PushTarget]],
        broadcasts: Mapping[str, IPushPayload],
    ) -> StatusBuckets:
        logger.debug("No push adapter registered for %s", provider)
        part = StatusBuckets()
        for group in groups.values():
            part.extend(PushStatus.NOT_HANDLED, group)
        for variant, payload in broadcasts.items():
            part.add_broadcast(PushStatus.NOT_HANDLED, provider, variant, payload)
        return part

    async def _dispatch_broadcast(
        self,
        registry: HookRegistry,
        adapter: IPushAdapter,
        provider: str,
        variant: str,
        payload: IPushPayload,
    ) -> StatusBuckets:
        response = await self._invoke(registry, adapter, provider, variant, payload, [], "broadcast")

        status = PushStatus.UNKNOWN
        if isinstance(response, IBroadcastResponse):
            status = response.get_broadcast_status()

        part = StatusBuckets()
        part.add_broadcast(status, provider, variant, payload)
        return part

    async def _dispatch_multiple(
        self,
        registry: HookRegistry,
        adapter: IPushAdapter,
        provider: str,
        variant: str,
        payload: IPushPayload,
        group: list[PushTarget],
    ) -> StatusBuckets:
        endpoints = [target.address for target in group]
        response = await self._invoke(registry, adapter, provider, variant, payload, endpoints, "batch")

        part = StatusBuckets()
        for target in group:
            part.add(*self._classify(response, target))
        return part

    async def _dispatch_single(
        self,
        registry: HookRegistry,
        adapter: IPushAdapter,
        provider: str,
        variant: str,
        payload: IPushPayload,
        group: list[PushTarget],
    ) -> StatusBuckets:
        part = StatusBuckets()
        for target in group:
            response = await self._invoke(
                registry, adapter, provider, variant, payload, [target.address], "single"
            )
            part.add(*self._classify(response, target))
        return part

    @staticmethod
    def _classify(response: IPushResponse, target: PushTarget) -> tuple[PushStatus, PushTarget]:
        status = response.get_status(target.address)
        if status is PushStatus.DEFERRED and isinstance(response, IDeferredResponse):
            tracking_id = response.get_tracking_id(target.address)
            if tracking_id is not None:
                target = target.with_tracking_id(tracking_id)
        return status, target

    @staticmethod
    async def _invoke(
        registry: HookRegistry,
        adapter: IPushAdapter,
        provider: str,
        variant: str,
        payload: IPushPayload,
        endpoints: list[str],
        strategy: str,
    ) -> IPushResponse:
        logger.debug(
            "Pushing %s/%s to %d endpoint(s) (%s)", provider, variant, len(endpoints), strategy
        )
        attributes: dict[str, Any] = {
            "provider": provider,
            "variant": variant,
            "endpoint_count": len(endpoints),
            "strategy": strategy,
        }

        async def _push() -> IPushResponse:
            return await adapter.push(payload, endpoints)

        response: IPushResponse = await registry.execute_all(
            f"push.dispatch.{provider}", attributes, _push
        )
        return response
