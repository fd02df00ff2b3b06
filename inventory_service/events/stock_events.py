"""
Inventory Service — Stock change events
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from inventory_service.models.inventory import utcnow


class OperationKind(str, Enum):
    PURCHASE = "PURCHASE"
    ADJUSTMENT = "ADJUSTMENT"
    CREATION = "CREATION"


@dataclass(frozen=True)
class StockChangeEvent:
    product_id: int
    quantity_before: int
    quantity_after: int
    operation: OperationKind
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def delta(self) -> int:
        return self.quantity_after - self.quantity_before

    @property
    def increased(self) -> bool:
        return self.delta > 0

    @property
    def decreased(self) -> bool:
        return self.delta < 0

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity_before": self.quantity_before,
            "quantity_after": self.quantity_after,
            "delta": self.delta,
            "operation": self.operation.value,
            "occurred_at": self.occurred_at.isoformat(),
        }
