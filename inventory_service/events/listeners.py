"""
Inventory Service — Stock change listeners

All listeners are advisory: they log, alert, and mirror the new quantity to
Redis. None of them can affect the operation that produced the event.
"""
import json
import logging
from typing import Callable

import redis.asyncio as aioredis

from inventory_service.core.config import Settings
from inventory_service.events.stock_events import OperationKind, StockChangeEvent

logger = logging.getLogger(__name__)

STOCK_CACHE_KEY = "stock:{product_id}"


async def log_stock_change(event: StockChangeEvent) -> None:
    logger.info(
        "Stock %s product=%s %d→%d (delta=%+d)",
        event.operation.value, event.product_id,
        event.quantity_before, event.quantity_after, event.delta,
    )


def low_stock_alert(threshold: int) -> Callable:
    async def alert_low_stock(event: StockChangeEvent) -> None:
        if event.operation is OperationKind.PURCHASE and event.quantity_after <= threshold:
            logger.warning("LOW STOCK: product %s has %d units left",
                           event.product_id, event.quantity_after)
    return alert_low_stock


def significant_adjustment_alert(min_delta: int) -> Callable:
    async def alert_significant_adjustment(event: StockChangeEvent) -> None:
        if event.operation is OperationKind.ADJUSTMENT and abs(event.delta) > min_delta:
            logger.warning("Significant stock adjustment: product %s %d→%d (delta=%+d)",
                           event.product_id, event.quantity_before, event.quantity_after, event.delta)
    return alert_significant_adjustment


async def announce_new_stock(event: StockChangeEvent) -> None:
    if event.operation is OperationKind.CREATION:
        logger.info("New stock record: product %s starts with %d units",
                    event.product_id, event.quantity_after)


class RedisStockBridge:
    """Refresh the stock:{id} cache key and publish the event on a pub/sub channel."""

    def __init__(self, redis: aioredis.Redis, channel: str, ttl_seconds: int):
        self.redis = redis
        self.channel = channel
        self.ttl_seconds = ttl_seconds

    async def __call__(self, event: StockChangeEvent) -> None:
        key = STOCK_CACHE_KEY.format(product_id=event.product_id)
        await self.redis.setex(key, self.ttl_seconds, event.quantity_after)
        await self.redis.publish(self.channel, json.dumps(event.to_dict()))


def build_listeners(settings: Settings, redis: aioredis.Redis | None = None) -> list[Callable]:
    listeners = [
        log_stock_change,
        low_stock_alert(settings.LOW_STOCK_ALERT_THRESHOLD),
        significant_adjustment_alert(settings.SIGNIFICANT_ADJUSTMENT_DELTA),
        announce_new_stock,
    ]
    if redis is not None:
        listeners.append(
            RedisStockBridge(redis, settings.STOCK_EVENTS_CHANNEL, settings.STOCK_CACHE_TTL_SECONDS)
        )
    return listeners
