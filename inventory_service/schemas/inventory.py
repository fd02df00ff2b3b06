"""
Inventory Service — Pydantic schemas

Bodies follow the resource envelope {"data": {"type", "id", "attributes"}};
attribute names are camelCase on the wire.
"""
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from inventory_service.models.inventory import PurchaseRecord, StockRecord
from inventory_service.services.inventory import PurchaseSummary


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ──────────────────────────────────────────────────

class PurchaseRequestAttributes(CamelModel):
    producto_id: int
    cantidad: int


class PurchaseRequestData(CamelModel):
    type: str | None = "compras"
    attributes: PurchaseRequestAttributes


class PurchaseRequest(CamelModel):
    data: PurchaseRequestData


class StockUpdateAttributes(CamelModel):
    cantidad: int


class StockUpdateData(CamelModel):
    type: str | None = "inventario"
    attributes: StockUpdateAttributes


class StockUpdateRequest(CamelModel):
    data: StockUpdateData


# ── Responses ─────────────────────────────────────────────────

class StockAttributes(CamelModel):
    producto_id: int
    cantidad: int
    fecha_creacion: datetime
    fecha_actualizacion: datetime
    revision: int


class StockResource(CamelModel):
    type: str = "inventario"
    id: str
    attributes: StockAttributes

    @classmethod
    def from_record(cls, record: StockRecord) -> "StockResource":
        return cls(
            id=str(record.product_id),
            attributes=StockAttributes(
                producto_id=record.product_id,
                cantidad=record.quantity,
                fecha_creacion=record.created_at,
                fecha_actualizacion=record.updated_at,
                revision=record.revision,
            ),
        )


class StockDocument(CamelModel):
    data: StockResource


class StockListDocument(CamelModel):
    data: list[StockResource]


class PurchaseAttributes(CamelModel):
    producto_id: int
    cantidad: int
    precio_unitario: Decimal
    precio_total: Decimal
    nombre_producto: str | None = None
    fecha_compra: datetime
    inventario_restante: int | None = None


class PurchaseResource(CamelModel):
    type: str = "compras"
    id: str
    attributes: PurchaseAttributes

    @classmethod
    def from_record(cls, record: PurchaseRecord, remaining: int | None = None) -> "PurchaseResource":
        return cls(
            id=str(record.id),
            attributes=PurchaseAttributes(
                producto_id=record.product_id,
                cantidad=record.quantity,
                precio_unitario=record.unit_price,
                precio_total=record.total_price,
                nombre_producto=record.product_name,
                fecha_compra=record.purchased_at,
                inventario_restante=remaining,
            ),
        )


class PurchaseDocument(CamelModel):
    data: PurchaseResource


class PurchaseListDocument(CamelModel):
    data: list[PurchaseResource]


class ProductSalesAttributes(CamelModel):
    producto_id: int
    nombre_producto: str | None = None
    compras: int
    unidades_vendidas: int
    ingresos: Decimal


class PurchaseSummaryAttributes(CamelModel):
    total_compras: int
    ingresos: Decimal
    desde: datetime | None = None
    hasta: datetime | None = None
    productos: list[ProductSalesAttributes]


class PurchaseSummaryResource(CamelModel):
    type: str = "resumen-compras"
    attributes: PurchaseSummaryAttributes

    @classmethod
    def from_summary(cls, summary: PurchaseSummary) -> "PurchaseSummaryResource":
        return cls(
            attributes=PurchaseSummaryAttributes(
                total_compras=summary.purchases,
                ingresos=summary.revenue,
                desde=summary.start,
                hasta=summary.end,
                productos=[
                    ProductSalesAttributes(
                        producto_id=p.product_id,
                        nombre_producto=p.product_name,
                        compras=p.purchases,
                        unidades_vendidas=p.units_sold,
                        ingresos=p.revenue,
                    )
                    for p in summary.products
                ],
            ),
        )


class PurchaseSummaryDocument(CamelModel):
    data: PurchaseSummaryResource
