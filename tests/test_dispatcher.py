"""Tests for PushNotificationDispatcher."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from cqrs_ddd_push import (
    TRACKING_ID_FIELD,
    AdapterRegistrationError,
    DispatcherConfig,
    PushNotificationDispatcher,
    PushStatus,
    PushTarget,
)
from cqrs_ddd_push.memory import InMemoryPushAdapter


def _all_targets(result) -> list[PushTarget]:
    return [t for targets in result.statuses().values() for t in targets]


# ── registration ─────────────────────────────────────────────────


def test_register_rejects_non_adapter(dispatcher):
    """Registering an object without ``push`` raises."""
    with pytest.raises(AdapterRegistrationError) as exc_info:
        dispatcher.register("p", object())

    assert exc_info.value.provider == "p"
    assert "IPushAdapter" in str(exc_info.value)


@pytest.mark.asyncio
async def test_register_replaces_previous_adapter(dispatcher, target, payload):
    """The most recent registration for a provider wins."""
    first = InMemoryPushAdapter()
    second = InMemoryPushAdapter()
    dispatcher.register("p", first)
    dispatcher.register("p", second)

    await dispatcher.dispatch([target("e1")], {"p": {"v": payload}})

    assert first.calls == []
    second.assert_pushed("e1")


def test_config_rejects_zero_concurrency():
    with pytest.raises(ValueError):
        DispatcherConfig(max_concurrency=0)


# ── empty & unhandled ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_empty_dispatch_has_every_bucket(dispatcher):
    """``dispatch([], {})`` yields every status key with an empty list."""
    result = await dispatcher.dispatch([], {})

    assert set(result.statuses()) == set(PushStatus)
    assert all(targets == [] for targets in result.statuses().values())
    assert set(result.broadcast_statuses()) == set(PushStatus)
    assert all(cell == {} for cell in result.broadcast_statuses().values())
    assert len(result) == 0


@pytest.mark.asyncio
async def test_targets_without_payloads_are_not_handled(dispatcher, target):
    """A target with no payload at all lands in NOT_HANDLED."""
    e1 = target("e1")

    result = await dispatcher.dispatch([e1], {})

    assert result.statuses()[PushStatus.NOT_HANDLED] == [e1]
    assert all(
        targets == [] for status, targets in result.statuses().items()
        if status is not PushStatus.NOT_HANDLED
    )


@pytest.mark.asyncio
async def test_unregistered_provider_with_payload_is_not_handled(dispatcher, target, payload):
    """Targets of a provider with no adapter are NOT_HANDLED even when payloads exist."""
    e1, e2 = target("e1", variant="v"), target("e2", variant="other")

    result = await dispatcher.dispatch([e1, e2], {"p": {"v": payload}})

    assert result.statuses()[PushStatus.NOT_HANDLED] == [e1, e2]


@pytest.mark.asyncio
async def test_unregistered_provider_without_payload_is_not_handled(dispatcher, target, payload):
    e1 = target("e1", provider="q")
    dispatcher.register("p", InMemoryPushAdapter())

    result = await dispatcher.dispatch([e1], {"p": {"v": payload}})

    assert result.statuses()[PushStatus.NOT_HANDLED] == [e1]


@pytest.mark.asyncio
async def test_unaddressed_variant_is_not_handled(dispatcher, target, payload):
    """Only the variant without a payload is NOT_HANDLED; the other proceeds."""
    adapter = InMemoryPushAdapter()
    dispatcher.register("p", adapter)
    x1, y1 = target("x1", variant="x"), target("y1", variant="y")

    result = await dispatcher.dispatch([x1, y1], {"p": {"y": payload}})

    assert result.statuses()[PushStatus.NOT_HANDLED] == [x1]
    assert result.statuses()[PushStatus.SUCCESS] == [y1]
    assert adapter.pushed_endpoints == ["y1"]


@pytest.mark.asyncio
async def test_registered_provider_without_any_payload_is_not_handled(dispatcher, target):
    adapter = InMemoryPushAdapter()
    dispatcher.register("p", adapter)
    e1, e2 = target("e1", variant="a"), target("e2", variant="b")

    result = await dispatcher.dispatch([e1, e2], {})

    assert result.statuses()[PushStatus.NOT_HANDLED] == [e1, e2]
    assert adapter.calls == []


# ── strategy selection ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_batch_adapter_gets_one_call_per_group(dispatcher, target, payload):
    """A batch-capable adapter receives the whole group in a single call."""
    adapter = InMemoryPushAdapter(statuses={"e2": PushStatus.ERROR}, batch=True)
    dispatcher.register("p", adapter)
    e1, e2 = target("e1"), target("e2")

    result = await dispatcher.dispatch([e1, e2], {"p": {"v": payload}})

    assert len(adapter.calls) == 1
    assert adapter.calls[0].endpoints == ["e1", "e2"]
    assert adapter.calls[0].payload is payload
    assert result.statuses()[PushStatus.SUCCESS] == [e1]
    assert result.statuses()[PushStatus.ERROR] == [e2]


@pytest.mark.asyncio
async def test_single_adapter_gets_one_call_per_target(dispatcher, target, payload):
    adapter = InMemoryPushAdapter(statuses={"e1": PushStatus.INVALID_ENDPOINT}, batch=False)
    dispatcher.register("p", adapter)
    e1, e2, e3 = target("e1"), target("e2"), target("e3")

    result = await dispatcher.dispatch([e1, e2, e3], {"p": {"v": payload}})

    assert [call.endpoints for call in adapter.calls] == [["e1"], ["e2"], ["e3"]]
    assert result.statuses()[PushStatus.INVALID_ENDPOINT] == [e1]
    assert result.statuses()[PushStatus.SUCCESS] == [e2, e3]


@pytest.mark.asyncio
async def test_status_missing_from_response_is_unknown(dispatcher, target, payload):
    """An endpoint the response does not know about is bucketed UNKNOWN."""

    class ForgetfulResponse:
        def get_status(self, endpoint: str) -> PushStatus:
            return PushStatus.UNKNOWN

    class ForgetfulAdapter:
        batch_size = 10

        async def push(self, payload: Any, endpoints: list[str]) -> ForgetfulResponse:
            return ForgetfulResponse()

    dispatcher.register("p", ForgetfulAdapter())
    e1 = target("e1")

    result = await dispatcher.dispatch([e1], {"p": {"v": payload}})

    assert result.statuses()[PushStatus.UNKNOWN] == [e1]


@pytest.mark.asyncio
async def test_dict_targets_are_accepted(dispatcher, payload):
    """Flat records with ``endpoint``/``platform``/``payload_type`` keys are accepted."""
    dispatcher.register("p", InMemoryPushAdapter())
    record = {"endpoint": "e1", "platform": "p", "payload_type": "v", "user_id": 7}

    result = await dispatcher.dispatch([record], {"p": {"v": payload}})

    (success,) = result.statuses()[PushStatus.SUCCESS]
    assert success.address == "e1"
    assert success.metadata == {"user_id": 7}


# ── broadcasts ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_broadcast_without_adapter_is_not_handled(dispatcher, broadcast_payload):
    result = await dispatcher.dispatch([], {"p": {"v": broadcast_payload}})

    assert result.broadcast_statuses()[PushStatus.NOT_HANDLED] == {"p": {"v": broadcast_payload}}
    assert _all_targets(result) == []


@pytest.mark.asyncio
async def test_broadcast_status_comes_from_response(dispatcher, broadcast_payload):
    adapter = InMemoryPushAdapter(broadcast_status=PushStatus.TEMPORARY_ERROR)
    dispatcher.register("p", adapter)

    result = await dispatcher.dispatch([], {"p": {"v": broadcast_payload}})

    assert result.broadcast_statuses()[PushStatus.TEMPORARY_ERROR] == {
        "p": {"v": broadcast_payload}
    }
    assert adapter.calls[0].endpoints == []


@pytest.mark.asyncio
async def test_broadcast_without_broadcast_capability_is_unknown(dispatcher, broadcast_payload):
    """A response that cannot report a broadcast status yields UNKNOWN."""
    dispatcher.register("p", InMemoryPushAdapter())

    result = await dispatcher.dispatch([], {"p": {"v": broadcast_payload}})

    assert result.broadcast_statuses()[PushStatus.UNKNOWN] == {"p": {"v": broadcast_payload}}


@pytest.mark.asyncio
async def test_broadcasts_and_targets_stay_separate(
    dispatcher, target, payload, broadcast_payload
):
    """Broadcasts never appear in target buckets and targets never in broadcast buckets."""
    adapter = InMemoryPushAdapter(broadcast_status=PushStatus.SUCCESS)
    dispatcher.register("p", adapter)
    e1 = target("e1", variant="alert")

    result = await dispatcher.dispatch(
        [e1], {"p": {"alert": payload, "news": broadcast_payload}}
    )

    assert _all_targets(result) == [e1]
    assert result.statuses()[PushStatus.SUCCESS] == [e1]
    assert result.broadcast_statuses()[PushStatus.SUCCESS] == {"p": {"news": broadcast_payload}}


@pytest.mark.asyncio
async def test_targets_sharing_a_broadcast_variant_are_not_handled(
    dispatcher, target, broadcast_payload
):
    """Targets whose variant maps to a broadcast are never addressed by it."""
    adapter = InMemoryPushAdapter(broadcast_status=PushStatus.SUCCESS)
    dispatcher.register("p", adapter)
    e1 = target("e1", variant="news")

    result = await dispatcher.dispatch([e1], {"p": {"news": broadcast_payload}})

    assert result.statuses()[PushStatus.NOT_HANDLED] == [e1]
    assert result.broadcast_statuses()[PushStatus.SUCCESS] == {"p": {"news": broadcast_payload}}
    assert adapter.pushed_endpoints == []


# ── deferred confirmation ────────────────────────────────────────


@pytest.mark.asyncio
async def test_deferred_targets_carry_tracking_id(dispatcher, target, payload):
    adapter = InMemoryPushAdapter(default=PushStatus.DEFERRED, tracking_ids={"e1": "42"})
    dispatcher.register("p", adapter)
    e1, e2 = target("e1", user="a"), target("e2")

    result = await dispatcher.dispatch([e1, e2], {"p": {"v": payload}})

    deferred = result.statuses()[PushStatus.DEFERRED]
    assert [t.address for t in deferred] == ["e1", "e2"]
    assert deferred[0].tracking_id == "42"
    assert deferred[0].to_dict()[TRACKING_ID_FIELD] == "42"
    assert deferred[0].metadata == {"user": "a"}
    # No id exposed: bucketed unchanged.
    assert deferred[1] == e2


@pytest.mark.asyncio
async def test_deferred_single_push_carries_tracking_id(dispatcher, target, payload):
    adapter = InMemoryPushAdapter(
        default=PushStatus.DEFERRED, tracking_ids={"e1": "m-1"}, batch=False
    )
    dispatcher.register("p", adapter)

    result = await dispatcher.dispatch([target("e1")], {"p": {"v": payload}})

    (deferred,) = result.statuses()[PushStatus.DEFERRED]
    assert deferred.tracking_id == "m-1"


@pytest.mark.asyncio
async def test_tracking_id_ignored_for_non_deferred_status(dispatcher, target, payload):
    adapter = InMemoryPushAdapter(tracking_ids={"e1": "42"})
    dispatcher.register("p", adapter)

    result = await dispatcher.dispatch([target("e1")], {"p": {"v": payload}})

    (success,) = result.statuses()[PushStatus.SUCCESS]
    assert success.tracking_id is None


# ── coverage & ordering ──────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [True, False])
async def test_every_target_lands_in_exactly_one_bucket(
    hook_registry, target, make_payload, concurrent
):
    dispatcher = PushNotificationDispatcher(
        DispatcherConfig(concurrent=concurrent, max_concurrency=2), hook_registry=hook_registry
    )
    dispatcher.register("batch", InMemoryPushAdapter(statuses={"b2": PushStatus.ERROR}))
    dispatcher.register("single", InMemoryPushAdapter(batch=False, default=PushStatus.DEFERRED))
    dispatcher.register("topic", InMemoryPushAdapter(broadcast_status=PushStatus.SUCCESS))

    targets = [
        target("b1", provider="batch", variant="a"),
        target("b2", provider="batch", variant="a"),
        target("b3", provider="batch", variant="missing"),
        target("s1", provider="single", variant="a"),
        target("s2", provider="single", variant="b"),
        target("t1", provider="topic", variant="news"),
        target("u1", provider="unregistered", variant="a"),
    ]
    news = make_payload("news", broadcast=True)
    orphan = make_payload("orphan", broadcast=True)
    payloads = {
        "batch": {"a": make_payload("a")},
        "single": {"a": make_payload("a"), "b": make_payload("b")},
        "topic": {"news": news},
        "nobody": {"x": orphan},
    }

    result = await dispatcher.dispatch(targets, payloads)

    bucketed = sorted(t.address for t in _all_targets(result))
    assert bucketed == sorted(t.address for t in targets)
    broadcast_cells = [
        (provider, variant)
        for providers in result.broadcast_statuses().values()
        for provider, variants in providers.items()
        for variant in variants
    ]
    assert sorted(broadcast_cells) == [("nobody", "x"), ("topic", "news")]


@pytest.mark.asyncio
async def test_concurrent_and_sequential_dispatch_agree(hook_registry, target, make_payload):
    """Both execution modes produce identical buckets in identical order."""
    targets = [target(f"e{i}", provider=f"p{i % 3}", variant=f"v{i % 2}") for i in range(12)]
    payloads = {f"p{i}": {"v0": make_payload("v0"), "v1": make_payload("v1")} for i in range(3)}

    results = []
    for concurrent in (True, False):
        dispatcher = PushNotificationDispatcher(
            DispatcherConfig(concurrent=concurrent), hook_registry=hook_registry
        )
        dispatcher.register("p0", InMemoryPushAdapter(statuses={"e3": PushStatus.ERROR}))
        dispatcher.register("p1", InMemoryPushAdapter(batch=False))
        results.append(await dispatcher.dispatch(targets, payloads))

    concurrent_result, sequential_result = results
    assert concurrent_result.statuses() == sequential_result.statuses()


@pytest.mark.asyncio
async def test_last_result_is_exposed(dispatcher, target, payload):
    dispatcher.register("p", InMemoryPushAdapter(statuses={"e2": PushStatus.TEMPORARY_ERROR}))
    e1, e2 = target("e1"), target("e2")

    result = await dispatcher.dispatch([e1, e2], {"p": {"v": payload}})

    assert dispatcher.statuses() is result.statuses()
    assert dispatcher.broadcast_statuses() is result.broadcast_statuses()
    assert dispatcher.endpoints_with_status([PushStatus.TEMPORARY_ERROR, PushStatus.SUCCESS]) == [
        e2,
        e1,
    ]


@pytest.mark.asyncio
async def test_each_dispatch_starts_fresh(dispatcher, target, payload):
    dispatcher.register("p", InMemoryPushAdapter())

    await dispatcher.dispatch([target("e1")], {"p": {"v": payload}})
    second = await dispatcher.dispatch([target("e2")], {"p": {"v": payload}})

    assert [t.address for t in second.statuses()[PushStatus.SUCCESS]] == ["e2"]


# ── errors, logging & hooks ──────────────────────────────────────


@pytest.mark.asyncio
async def test_adapter_exceptions_propagate(dispatcher, target, payload):
    dispatcher.register("p", InMemoryPushAdapter(error=RuntimeError("boom")))

    with pytest.raises(RuntimeError, match="boom"):
        await dispatcher.dispatch([target("e1")], {"p": {"v": payload}})


class _SlowAdapter(InMemoryPushAdapter):
    """Completes its push only after the sibling group has already failed."""

    def __init__(self) -> None:
        super().__init__()
        self.done = False

    async def push(self, payload, endpoints):
        await asyncio.sleep(0.05)
        self.done = True
        return await super().push(payload, endpoints)


@pytest.mark.asyncio
async def test_failing_group_waits_for_running_groups(dispatcher, target, payload):
    """No push is still running once ``dispatch`` raises, and its outcome is kept."""
    slow = _SlowAdapter()
    dispatcher.register("bad", InMemoryPushAdapter(error=RuntimeError("boom")))
    dispatcher.register("slow", slow)

    with pytest.raises(RuntimeError, match="boom"):
        await dispatcher.dispatch(
            [target("e1", provider="bad"), target("e2", provider="slow")],
            {"bad": {"v": payload}, "slow": {"v": payload}},
        )

    assert slow.done is True
    assert [t.address for t in dispatcher.statuses()[PushStatus.SUCCESS]] == ["e2"]


@pytest.mark.asyncio
async def test_sequential_dispatch_stops_at_failing_group(hook_registry, target, payload):
    dispatcher = PushNotificationDispatcher(
        DispatcherConfig(concurrent=False), hook_registry=hook_registry
    )
    ok = InMemoryPushAdapter()
    later = InMemoryPushAdapter()
    dispatcher.register("ok", ok)
    dispatcher.register("bad", InMemoryPushAdapter(error=RuntimeError("boom")))
    dispatcher.register("later", later)

    with pytest.raises(RuntimeError, match="boom"):
        await dispatcher.dispatch(
            [target("e1", provider="ok"), target("e2", provider="bad"), target("e3", provider="later")],
            {"ok": {"v": payload}, "bad": {"v": payload}, "later": {"v": payload}},
        )

    assert later.calls == []
    assert [t.address for t in dispatcher.statuses()[PushStatus.SUCCESS]] == ["e1"]


@pytest.mark.asyncio
async def test_dispatch_logs_summary(dispatcher, target, payload, caplog):
    dispatcher.register("p", InMemoryPushAdapter())

    with caplog.at_level("INFO", logger="cqrs_ddd_push.dispatcher"):
        await dispatcher.dispatch([target("e1")], {"p": {"v": payload}})

    assert "Push dispatch finished: {'success': 1}" in caplog.text


@pytest.mark.asyncio
async def test_hooks_wrap_each_adapter_call(dispatcher, hook_registry, target, payload):
    """Hooks observe one ``push.dispatch.<provider>`` operation per adapter call."""
    seen: list[tuple[str, dict[str, Any]]] = []

    async def hook(operation, attributes, next_handler):
        seen.append((operation, dict(attributes)))
        return await next_handler()

    hook_registry.register(hook, operations=["push.dispatch.*"])
    dispatcher.register("p", InMemoryPushAdapter(batch=False))
    dispatcher.register("q", InMemoryPushAdapter())

    await dispatcher.dispatch(
        [target("e1"), target("e2"), target("e3", provider="q")],
        {"p": {"v": payload}, "q": {"v": payload}},
    )

    operations = sorted(op for op, _ in seen)
    assert operations == ["push.dispatch.p", "push.dispatch.p", "push.dispatch.q"]
    q_attributes = next(attrs for op, attrs in seen if op == "push.dispatch.q")
    assert q_attributes == {
        "provider": "q",
        "variant": "v",
        "endpoint_count": 1,
        "strategy": "batch",
    }


@pytest.mark.asyncio
async def test_hook_filtered_by_provider(dispatcher, hook_registry, target, payload):
    calls: list[str] = []

    async def hook(operation, attributes, next_handler):
        calls.append(attributes["provider"])
        return await next_handler()

    hook_registry.register(hook, providers=["q"])
    dispatcher.register("p", InMemoryPushAdapter())
    dispatcher.register("q", InMemoryPushAdapter())

    await dispatcher.dispatch(
        [target("e1"), target("e2", provider="q")], {"p": {"v": payload}, "q": {"v": payload}}
    )

    assert calls == ["q"]
