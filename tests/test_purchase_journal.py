"""
Purchase journal: append and the read-side filters.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from inventory_service.db.purchase_journal import PurchaseJournal
from inventory_service.models.inventory import PurchaseRecord


async def _append(journal, product_id, quantity, price, name):
    unit_price = Decimal(price)
    return await journal.append(product_id, quantity, unit_price, unit_price * quantity, name)


@pytest.mark.asyncio
async def test_append_assigns_id_and_timestamp(db):
    journal = PurchaseJournal(db)
    record = await _append(journal, 1, 3, "12.50", "Laptop Stand")
    await db.commit()

    assert record.id is not None
    assert record.purchased_at is not None
    assert record.total_price == Decimal("37.50")
    assert await journal.count() == 1


@pytest.mark.asyncio
async def test_filters_return_newest_first(db):
    journal = PurchaseJournal(db)
    first = await _append(journal, 1, 1, "10.00", "Mechanical Keyboard")
    second = await _append(journal, 2, 1, "5.00", "USB Cable")
    third = await _append(journal, 1, 2, "10.00", "Mechanical Keyboard")
    await db.commit()

    assert [r.id for r in await journal.by_product(1)] == [third.id, first.id]
    assert [r.id for r in await journal.all()] == [third.id, second.id, first.id]
    assert [r.id for r in await journal.recent(2)] == [third.id, second.id]


@pytest.mark.asyncio
async def test_by_name_is_case_insensitive_substring(db):
    journal = PurchaseJournal(db)
    await _append(journal, 1, 1, "10.00", "Mechanical Keyboard")
    await _append(journal, 2, 1, "5.00", "USB Cable")
    await _append(journal, 3, 1, "1.00", None)
    await db.commit()

    matches = await journal.by_name("KEYB")
    assert [r.product_name for r in matches] == ["Mechanical Keyboard"]
    assert await journal.by_name("100%") == []


@pytest.mark.asyncio
async def test_min_total_is_strict_and_ordered_by_total(db):
    journal = PurchaseJournal(db)
    await _append(journal, 1, 1, "20.00", "A")
    await _append(journal, 2, 3, "20.00", "B")
    await _append(journal, 3, 1, "50.00", "C")
    await db.commit()

    totals = [r.total_price for r in await journal.min_total(Decimal("20.00"))]
    assert totals == [Decimal("60.00"), Decimal("50.00")]


@pytest.mark.asyncio
async def test_between_and_revenue(db):
    base = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    for offset, total in [(0, "10.00"), (1, "15.50"), (5, "99.99")]:
        db.add(PurchaseRecord(product_id=1, quantity=1, unit_price=Decimal(total),
                              total_price=Decimal(total), product_name="Lamp",
                              purchased_at=base + timedelta(days=offset)))
    await db.commit()

    journal = PurchaseJournal(db)
    window = await journal.between(base - timedelta(hours=1), base + timedelta(days=2))
    assert [r.total_price for r in window] == [Decimal("15.50"), Decimal("10.00")]
    assert await journal.revenue_between(base - timedelta(hours=1), base + timedelta(days=2)) == Decimal("25.50")
    assert await journal.revenue_between(base + timedelta(days=30), base + timedelta(days=31)) == Decimal("0.00")


@pytest.mark.asyncio
async def test_product_summaries_ordered_by_revenue(db):
    journal = PurchaseJournal(db)
    await _append(journal, 1, 2, "10.00", "Mouse")
    await _append(journal, 1, 1, "10.00", "Mouse")
    await _append(journal, 2, 1, "80.00", "Monitor")
    await db.commit()

    summaries = await journal.product_summaries()
    assert [s.product_id for s in summaries] == [2, 1]
    mouse = summaries[1]
    assert (mouse.purchases, mouse.units_sold, mouse.revenue) == (2, 3, Decimal("30.00"))
