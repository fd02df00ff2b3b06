"""
Worker pool, notifier and listeners.
"""
import asyncio
import json
import logging

import pytest

from inventory_service.core.config import get_settings
from inventory_service.core.worker_pool import BoundedWorkerPool
from inventory_service.events.listeners import (
    RedisStockBridge,
    build_listeners,
    low_stock_alert,
    significant_adjustment_alert,
)
from inventory_service.events.notifier import StockChangeNotifier
from inventory_service.events.stock_events import OperationKind, StockChangeEvent


def event(product_id=1, before=10, after=7, operation=OperationKind.PURCHASE):
    return StockChangeEvent(product_id=product_id, quantity_before=before,
                            quantity_after=after, operation=operation)


def test_event_derived_fields():
    e = event(before=10, after=7)
    assert e.delta == -3
    assert e.decreased and not e.increased
    assert event(before=0, after=5, operation=OperationKind.CREATION).increased

    payload = e.to_dict()
    assert payload["operation"] == "PURCHASE"
    assert payload["delta"] == -3


@pytest.mark.asyncio
async def test_pool_keeps_per_key_order():
    pool = BoundedWorkerPool(workers=3, queue_capacity=50)
    await pool.start()
    seen: dict[int, list[int]] = {1: [], 2: []}

    def job(key, n):
        async def run():
            await asyncio.sleep(0)
            seen[key].append(n)
        return run

    for n in range(10):
        await pool.submit(1, job(1, n))
        await pool.submit(2, job(2, n))
    await pool.drain()
    await pool.stop()

    assert seen[1] == list(range(10))
    assert seen[2] == list(range(10))


@pytest.mark.asyncio
async def test_pool_runs_on_caller_when_saturated_after_queued_jobs():
    pool = BoundedWorkerPool(workers=1, queue_capacity=1)
    await pool.start()
    gate = asyncio.Event()
    order = []

    async def blocker():
        await gate.wait()
        order.append("blocker")

    async def queued():
        order.append("queued")

    async def overflow():
        order.append("overflow")

    assert await pool.submit("k", blocker) is True
    await asyncio.sleep(0.01)  # worker picks up blocker, queue is empty again
    assert await pool.submit("k", queued) is True

    overflowing = asyncio.create_task(pool.submit("k", overflow))
    await asyncio.sleep(0.01)
    assert order == []
    assert not overflowing.done()

    gate.set()
    assert await overflowing is False
    assert order == ["blocker", "queued", "overflow"]
    await pool.stop()


@pytest.mark.asyncio
async def test_pool_keeps_key_order_under_saturation():
    pool = BoundedWorkerPool(workers=2, queue_capacity=2)
    await pool.start()
    seen = []

    def job(n):
        async def run():
            await asyncio.sleep(0)
            seen.append(n)
        return run

    await asyncio.gather(*(pool.submit("same-key", job(n)) for n in range(20)))
    await pool.stop()
    assert seen == list(range(20))


@pytest.mark.asyncio
async def test_pool_survives_failing_job_and_runs_inline_when_stopped():
    pool = BoundedWorkerPool(workers=1, queue_capacity=5)
    ran = []

    async def boom():
        raise RuntimeError("listener exploded")

    async def ok():
        ran.append(True)

    assert await pool.submit(1, ok) is False  # not started → inline
    await pool.start()
    await pool.submit(1, boom)
    await pool.submit(1, ok)
    await pool.stop()
    assert ran == [True, True]


@pytest.mark.asyncio
async def test_notifier_isolates_listener_failures():
    pool = BoundedWorkerPool(workers=2, queue_capacity=10)
    await pool.start()
    received = []

    async def broken(e):
        raise RuntimeError("broken listener")

    async def recorder(e):
        received.append((e.product_id, e.quantity_after))

    notifier = StockChangeNotifier(pool, [broken])
    notifier.register(recorder)
    for after in (9, 8, 7):
        await notifier.publish(event(product_id=5, before=after + 1, after=after))
    await pool.stop()

    assert received == [(5, 9), (5, 8), (5, 7)]


@pytest.mark.asyncio
async def test_publish_never_raises():
    class BrokenPool:
        async def submit(self, key, job):
            raise RuntimeError("pool gone")

    await StockChangeNotifier(BrokenPool(), []).publish(event())


@pytest.mark.asyncio
async def test_low_stock_alert(caplog):
    alert = low_stock_alert(5)
    with caplog.at_level(logging.WARNING):
        await alert(event(before=8, after=5))
        await alert(event(before=8, after=6))
        await alert(event(before=8, after=2, operation=OperationKind.ADJUSTMENT))
    warnings = [r for r in caplog.records if "LOW STOCK" in r.getMessage()]
    assert len(warnings) == 1


@pytest.mark.asyncio
async def test_significant_adjustment_alert(caplog):
    alert = significant_adjustment_alert(50)
    with caplog.at_level(logging.WARNING):
        await alert(event(before=10, after=61, operation=OperationKind.ADJUSTMENT))
        await alert(event(before=10, after=60, operation=OperationKind.ADJUSTMENT))
        await alert(event(before=100, after=10, operation=OperationKind.PURCHASE))
    warnings = [r for r in caplog.records if "Significant" in r.getMessage()]
    assert len(warnings) == 1


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.published = []

    async def setex(self, key, ttl, value):
        self.values[key] = (ttl, value)

    async def publish(self, channel, message):
        self.published.append((channel, message))


@pytest.mark.asyncio
async def test_redis_bridge_caches_and_publishes():
    redis = FakeRedis()
    bridge = RedisStockBridge(redis, "stock-events", ttl_seconds=10)
    await bridge(event(product_id=3, before=4, after=1))

    assert redis.values["stock:3"] == (10, 1)
    channel, message = redis.published[0]
    assert channel == "stock-events"
    assert json.loads(message)["quantity_after"] == 1


def test_build_listeners_adds_bridge_only_with_redis():
    settings = get_settings()
    assert len(build_listeners(settings)) == 4
    listeners = build_listeners(settings, FakeRedis())
    assert isinstance(listeners[-1], RedisStockBridge)
