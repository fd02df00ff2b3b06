"""
Inventory Service — Purchase journal (append-only purchase_history)
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_service.models.inventory import PurchaseRecord

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ProductSummary:
    product_id: int
    product_name: str | None
    purchases: int
    units_sold: int
    revenue: Decimal


class PurchaseJournal:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, product_id: int, quantity: int, unit_price: Decimal,
                     total_price: Decimal, product_name: str | None) -> PurchaseRecord:
        """Stage a purchase row; id and purchased_at are assigned on flush. Caller commits."""
        record = PurchaseRecord(
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            total_price=total_price,
            product_name=product_name,
        )
        self.db.add(record)
        await self.db.flush()
        return record

    async def all(self) -> list[PurchaseRecord]:
        return await self._fetch(select(PurchaseRecord).order_by(*_newest_first()))

    async def by_product(self, product_id: int) -> list[PurchaseRecord]:
        return await self._fetch(
            select(PurchaseRecord)
            .where(PurchaseRecord.product_id == product_id)
            .order_by(*_newest_first())
        )

    async def between(self, start: datetime, end: datetime) -> list[PurchaseRecord]:
        return await self._fetch(
            select(PurchaseRecord)
            .where(PurchaseRecord.purchased_at.between(start, end))
            .order_by(*_newest_first())
        )

    async def by_name(self, fragment: str) -> list[PurchaseRecord]:
        return await self._fetch(
            select(PurchaseRecord)
            .where(func.lower(PurchaseRecord.product_name).contains(fragment.lower(), autoescape=True))
            .order_by(*_newest_first())
        )

    async def min_total(self, minimum: Decimal) -> list[PurchaseRecord]:
        return await self._fetch(
            select(PurchaseRecord)
            .where(PurchaseRecord.total_price > minimum)
            .order_by(PurchaseRecord.total_price.desc(), PurchaseRecord.id.desc())
        )

    async def recent(self, limit: int = 10) -> list[PurchaseRecord]:
        return await self._fetch(select(PurchaseRecord).order_by(*_newest_first()).limit(limit))

    async def count(self, start: datetime | None = None, end: datetime | None = None) -> int:
        stmt = select(func.count(PurchaseRecord.id))
        result = await self.db.execute(_in_range(stmt, start, end))
        return int(result.scalar_one())

    async def revenue_between(self, start: datetime, end: datetime) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(PurchaseRecord.total_price), 0))
            .where(PurchaseRecord.purchased_at.between(start, end))
        )
        # sqlite hands back floats for SUM over NUMERIC
        return Decimal(str(result.scalar_one())).quantize(CENTS)

    async def product_summaries(self, start: datetime | None = None,
                                end: datetime | None = None) -> list[ProductSummary]:
        revenue = func.sum(PurchaseRecord.total_price)
        stmt = select(
            PurchaseRecord.product_id,
            PurchaseRecord.product_name,
            func.count(PurchaseRecord.id),
            func.sum(PurchaseRecord.quantity),
            revenue,
        )
        result = await self.db.execute(
            _in_range(stmt, start, end)
            .group_by(PurchaseRecord.product_id, PurchaseRecord.product_name)
            .order_by(revenue.desc(), PurchaseRecord.product_id)
        )
        return [
            ProductSummary(
                product_id=product_id,
                product_name=name,
                purchases=int(purchases),
                units_sold=int(units),
                revenue=Decimal(str(total)).quantize(CENTS),
            )
            for product_id, name, purchases, units, total in result.all()
        ]

    async def _fetch(self, stmt) -> list[PurchaseRecord]:
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


def _in_range(stmt, start: datetime | None, end: datetime | None):
    if start is None or end is None:
        return stmt
    return stmt.where(PurchaseRecord.purchased_at.between(start, end))


def _newest_first():
    return PurchaseRecord.purchased_at.desc(), PurchaseRecord.id.desc()
