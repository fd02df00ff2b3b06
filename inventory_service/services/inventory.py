"""
Inventory Service — Purchase orchestration

purchase(product_id, quantity):
  1. validate quantity (no remote call, no mutation on bad input)
  2. resolve the product through the Product Service client
  3. under the per-product lock: verify stock, decrement, price, journal, commit
  4. publish a PURCHASE StockChangeEvent (never fails the purchase)

The decrement and the journal row share one transaction: either both are
committed or neither is.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_service.clients.product_client import (
    ProductClient,
    ProductInfo,
    ProductLookupError,
    ProductNotFound,
)
from inventory_service.core.errors import (
    InternalFailure,
    InvalidArgument,
    InventoryError,
    NotFound,
    UpstreamUnavailable,
)
from inventory_service.core.keyed_lock import KeyedLock
from inventory_service.core.optimistic_lock import StaleDataError
from inventory_service.db.purchase_journal import CENTS, ProductSummary, PurchaseJournal
from inventory_service.db.stock_ledger import StockLedger
from inventory_service.events.notifier import StockChangeNotifier
from inventory_service.events.stock_events import OperationKind, StockChangeEvent
from inventory_service.models.inventory import PurchaseRecord, StockRecord

logger = logging.getLogger(__name__)

DEGRADED_PROCEED = "proceed"
DEGRADED_REJECT = "reject"


@dataclass(frozen=True)
class PurchaseResult:
    record: PurchaseRecord
    remaining: int


@dataclass(frozen=True)
class PurchaseFilters:
    product_id: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    name: str | None = None
    min_total: Decimal | None = None


@dataclass(frozen=True)
class PurchaseSummary:
    purchases: int
    revenue: Decimal
    products: list[ProductSummary]
    start: datetime | None = None
    end: datetime | None = None


def _require_quantity(value, *, allow_zero: bool) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument("Quantity must be an integer")
    if allow_zero and value < 0:
        raise InvalidArgument("Quantity cannot be negative")
    if not allow_zero and value <= 0:
        raise InvalidArgument("Quantity must be greater than zero")
    return value


class InventoryService:
    def __init__(self, db: AsyncSession, products: ProductClient, notifier: StockChangeNotifier,
                 locks: KeyedLock, degraded_policy: str = DEGRADED_PROCEED):
        if degraded_policy not in (DEGRADED_PROCEED, DEGRADED_REJECT):
            raise ValueError(f"Unknown degraded lookup policy: {degraded_policy!r}")
        self.db = db
        self.products = products
        self.notifier = notifier
        self.locks = locks
        self.degraded_policy = degraded_policy
        self.ledger = StockLedger(db)
        self.journal = PurchaseJournal(db)

    # ── Mutations ─────────────────────────────────────────────

    async def purchase(self, product_id: int, quantity: int) -> PurchaseResult:
        quantity = _require_quantity(quantity, allow_zero=False)
        product = await self._resolve_product(product_id)

        async with self._unit_of_work(product_id, "purchase"):
            # NotFound when the product has no stock row, InsufficientStock when short
            mutation = await self.ledger.try_decrement(product_id, quantity)
            unit_price = product.unit_price.quantize(CENTS)
            total_price = (unit_price * quantity).quantize(CENTS)
            record = await self.journal.append(
                product_id=product_id,
                quantity=quantity,
                unit_price=unit_price,
                total_price=total_price,
                product_name=product.name,
            )

        logger.info("Purchase #%s: %d x product %s (%s) total=%s, remaining=%d",
                    record.id, quantity, product_id, product.name, total_price, mutation.quantity_after)
        await self.notifier.publish(StockChangeEvent(
            product_id=product_id,
            quantity_before=mutation.quantity_before,
            quantity_after=mutation.quantity_after,
            operation=OperationKind.PURCHASE,
        ))
        return PurchaseResult(record=record, remaining=mutation.quantity_after)

    async def adjust_quantity(self, product_id: int, new_quantity: int) -> StockRecord:
        new_quantity = _require_quantity(new_quantity, allow_zero=True)
        async with self._unit_of_work(product_id, "adjustment"):
            mutation = await self.ledger.set_quantity(product_id, new_quantity)

        logger.info("Stock for product %s adjusted %d→%d",
                    product_id, mutation.quantity_before, mutation.quantity_after)
        await self.notifier.publish(StockChangeEvent(
            product_id=product_id,
            quantity_before=mutation.quantity_before,
            quantity_after=mutation.quantity_after,
            operation=OperationKind.ADJUSTMENT,
        ))
        return mutation.record

    async def create_stock(self, product_id: int, initial_quantity: int) -> StockRecord:
        initial_quantity = _require_quantity(initial_quantity, allow_zero=True)
        async with self._unit_of_work(product_id, "creation"):
            record = await self.ledger.create(product_id, initial_quantity)

        logger.info("Stock created for product %s with %d units", product_id, initial_quantity)
        await self.notifier.publish(StockChangeEvent(
            product_id=product_id,
            quantity_before=0,
            quantity_after=initial_quantity,
            operation=OperationKind.CREATION,
        ))
        return record

    # ── Reads ─────────────────────────────────────────────────

    async def get_stock(self, product_id: int) -> StockRecord:
        return await self.ledger.get(product_id)

    async def list_stock(self) -> list[StockRecord]:
        return await self.ledger.list_all()

    async def list_low_stock(self, threshold: int) -> list[StockRecord]:
        if threshold < 0:
            raise InvalidArgument("Threshold cannot be negative")
        return await self.ledger.list_below(threshold)

    async def list_out_of_stock(self) -> list[StockRecord]:
        return await self.ledger.list_zero()

    async def statistics(self) -> str:
        totals = await self.ledger.aggregate()
        without_stock = len(await self.ledger.list_zero())
        return (
            "Inventory statistics:\n"
            f"- Total products: {totals.count}\n"
            f"- Total quantity in stock: {totals.total_quantity}\n"
            f"- Products without stock: {without_stock}"
        )

    async def purchase_history(self, filters: PurchaseFilters | None = None) -> list[PurchaseRecord]:
        """Applies the first filter family present: product, date range, name, minimum total."""
        filters = filters or PurchaseFilters()
        if filters.product_id is not None:
            return await self.journal.by_product(filters.product_id)
        if filters.start is not None or filters.end is not None:
            if filters.start is None or filters.end is None:
                raise InvalidArgument("Both start and end dates are required")
            if filters.start > filters.end:
                raise InvalidArgument("Start date must not be after end date")
            return await self.journal.between(filters.start, filters.end)
        if filters.name:
            return await self.journal.by_name(filters.name)
        if filters.min_total is not None:
            return await self.journal.min_total(filters.min_total)
        return await self.journal.all()

    async def recent_purchases(self, limit: int = 10) -> list[PurchaseRecord]:
        if limit < 1:
            raise InvalidArgument("Limit must be greater than zero")
        return await self.journal.recent(limit)

    async def purchase_summary(self, start: datetime | None = None,
                               end: datetime | None = None) -> PurchaseSummary:
        """Purchase count, revenue and per-product totals, optionally for a date range."""
        if (start is None) != (end is None):
            raise InvalidArgument("Both start and end dates are required")
        if start is not None and start > end:
            raise InvalidArgument("Start date must not be after end date")

        products = await self.journal.product_summaries(start, end)
        if start is None:
            revenue = sum((p.revenue for p in products), Decimal("0.00"))
        else:
            revenue = await self.journal.revenue_between(start, end)
        return PurchaseSummary(
            purchases=await self.journal.count(start, end),
            revenue=revenue,
            products=products,
            start=start,
            end=end,
        )

    # ── Internals ─────────────────────────────────────────────

    async def _resolve_product(self, product_id: int) -> ProductInfo:
        """
        Under the reject policy an unusable lookup (retries exhausted, breaker
        open) fails the purchase; otherwise the client's placeholder is used.
        """
        try:
            if self.degraded_policy == DEGRADED_REJECT:
                return await self.products.fetch_product(product_id)
            product = await self.products.get_product(product_id)
        except ProductNotFound:
            raise NotFound(f"Product {product_id} not found")
        except ProductLookupError as exc:
            raise UpstreamUnavailable(
                f"Product service unavailable, purchase of product {product_id} rejected: {exc}"
            )

        if product.degraded:
            logger.warning("Proceeding with placeholder product info for product %s", product_id)
        return product

    @asynccontextmanager
    async def _unit_of_work(self, product_id: int, operation: str):
        async with self.locks.hold(product_id):
            try:
                yield
                await self.db.commit()
            except InventoryError as exc:
                await self.db.rollback()
                logger.warning("Stock %s for product %s rejected: %s", operation, product_id, exc.detail)
                raise
            except (StaleDataError, SQLAlchemyError):
                await self.db.rollback()
                logger.exception("Stock %s for product %s failed", operation, product_id)
                raise InternalFailure(f"Stock {operation} for product {product_id} could not be completed")
