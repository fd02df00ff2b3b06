"""
Inventory Service — Database models

stock             : one quantity-on-hand counter per product, CAS on `revision`
purchase_history  : append-only journal of completed purchases
No foreign key between them: the journal outlives whatever happens to stock.
"""
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from inventory_service.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StockRecord(Base):
    """
    Quantity on hand for a product. `revision` is the optimistic locking
    column, bumped by every compare-and-swap update in the ledger.
    """
    __tablename__ = "stock"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<StockRecord product_id={self.product_id} quantity={self.quantity} rev={self.revision}>"


class PurchaseRecord(Base):
    """
    Immutable once inserted. total_price is unit_price * quantity at the time
    of purchase; product_name is a snapshot of the catalogue name.
    """
    __tablename__ = "purchase_history"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_purchase_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PurchaseRecord id={self.id} product_id={self.product_id} qty={self.quantity} total={self.total_price}>"
