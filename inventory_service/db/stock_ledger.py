"""
Inventory Service — Stock ledger with optimistic locking

The revision column acts as the conflict detector for every mutation:
  - READ:  fetch current quantity + revision
  - WRITE: UPDATE ... WHERE product_id = :id AND revision = <read_revision>
  - If another transaction committed first → StaleDataError → retry

The ledger never commits; the caller owns the transaction so a decrement can
be committed together with its journal entry.
"""
import logging
from dataclasses import dataclass
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from inventory_service.core.errors import AlreadyExists, InsufficientStock, InvalidArgument, NotFound
from inventory_service.core.optimistic_lock import StaleDataError, with_optimistic_retry
from inventory_service.models.inventory import StockRecord, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockMutation:
    record: StockRecord
    quantity_before: int
    quantity_after: int


@dataclass(frozen=True)
class StockTotals:
    count: int
    total_quantity: int


class StockLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(self, product_id: int) -> StockRecord | None:
        result = await self.db.execute(
            select(StockRecord)
            .where(StockRecord.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, product_id: int) -> StockRecord:
        record = await self.find(product_id)
        if record is None:
            raise NotFound(f"No stock record for product {product_id}")
        return record

    async def create(self, product_id: int, initial_quantity: int) -> StockRecord:
        if initial_quantity < 0:
            raise InvalidArgument("Quantity cannot be negative")
        if await self.find(product_id) is not None:
            raise AlreadyExists(f"Stock already exists for product {product_id}")

        record = StockRecord(product_id=product_id, quantity=initial_quantity, revision=1)
        self.db.add(record)
        try:
            await self.db.flush()
        except IntegrityError:
            # lost a creation race on the unique product_id
            await self.db.rollback()
            raise AlreadyExists(f"Stock already exists for product {product_id}")
        return record

    @with_optimistic_retry()
    async def set_quantity(self, product_id: int, new_quantity: int) -> StockMutation:
        if new_quantity < 0:
            raise InvalidArgument("Quantity cannot be negative")
        record = await self.get(product_id)
        before = record.quantity
        await self._compare_and_swap(record, new_quantity)
        return StockMutation(record=record, quantity_before=before, quantity_after=new_quantity)

    @with_optimistic_retry()
    async def try_decrement(self, product_id: int, amount: int) -> StockMutation:
        if amount <= 0:
            raise InvalidArgument("Quantity must be greater than zero")
        record = await self.get(product_id)
        if record.quantity < amount:
            raise InsufficientStock(product_id, available=record.quantity, requested=amount)

        before = record.quantity
        await self._compare_and_swap(record, before - amount)
        return StockMutation(record=record, quantity_before=before, quantity_after=before - amount)

    async def list_all(self) -> list[StockRecord]:
        result = await self.db.execute(select(StockRecord).order_by(StockRecord.updated_at.desc()))
        return list(result.scalars().all())

    async def list_below(self, threshold: int) -> list[StockRecord]:
        result = await self.db.execute(
            select(StockRecord)
            .where(StockRecord.quantity < threshold)
            .order_by(StockRecord.quantity.asc(), StockRecord.product_id.asc())
        )
        return list(result.scalars().all())

    async def list_zero(self) -> list[StockRecord]:
        result = await self.db.execute(
            select(StockRecord).where(StockRecord.quantity == 0).order_by(StockRecord.product_id)
        )
        return list(result.scalars().all())

    async def aggregate(self) -> StockTotals:
        result = await self.db.execute(
            select(func.count(StockRecord.id), func.coalesce(func.sum(StockRecord.quantity), 0))
        )
        count, total = result.one()
        return StockTotals(count=int(count), total_quantity=int(total))

    async def _compare_and_swap(self, record: StockRecord, new_quantity: int) -> None:
        # rollback() expires `record`; nothing below may touch its attributes on conflict
        record_id, product_id, expected = record.id, record.product_id, record.revision
        now = utcnow()
        result = await self.db.execute(
            update(StockRecord)
            .where(StockRecord.id == record_id, StockRecord.revision == expected)
            .values(quantity=new_quantity, revision=expected + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Another transaction won the race → trigger retry on a fresh snapshot
            await self.db.rollback()
            raise StaleDataError(
                f"Optimistic lock conflict: stock for product {product_id} "
                f"changed concurrently (expected revision {expected})."
            )

        set_committed_value(record, "quantity", new_quantity)
        set_committed_value(record, "revision", expected + 1)
        set_committed_value(record, "updated_at", now)
        logger.debug("Stock product=%s rev %d→%d quantity=%d",
                     product_id, expected, expected + 1, new_quantity)
