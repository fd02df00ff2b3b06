"""
Inventory Service — Stock change notifier

publish() hands the event to the worker pool keyed by product id, so events
for one product reach listeners in publish order. Listener failures are
logged and never reach the publisher.
"""
import logging
from typing import Awaitable, Callable, Iterable

from inventory_service.core.worker_pool import BoundedWorkerPool
from inventory_service.events.stock_events import StockChangeEvent

logger = logging.getLogger(__name__)

Listener = Callable[[StockChangeEvent], Awaitable[None]]


class StockChangeNotifier:
    def __init__(self, pool: BoundedWorkerPool, listeners: Iterable[Listener] = ()):
        self.pool = pool
        self.listeners: list[Listener] = list(listeners)

    def register(self, listener: Listener) -> None:
        self.listeners.append(listener)

    async def publish(self, event: StockChangeEvent) -> None:
        try:
            await self.pool.submit(event.product_id, lambda: self._dispatch(event))
        except Exception:
            logger.exception("Could not publish stock event for product %s", event.product_id)

    async def _dispatch(self, event: StockChangeEvent) -> None:
        for listener in self.listeners:
            try:
                await listener(event)
            except Exception:
                logger.exception(
                    "Stock listener %s failed for product %s",
                    getattr(listener, "__name__", type(listener).__name__), event.product_id,
                )
