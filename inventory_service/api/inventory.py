"""
Inventory Service — API routes

Static paths (/compras/*, /bajos, /sin-stock, /estadisticas) are registered
before /{product_id} so they are never captured as ids.
"""
import logging
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse

from inventory_service.api.dependencies import get_inventory_service
from inventory_service.core.config import get_settings
from inventory_service.schemas.inventory import (
    PurchaseDocument,
    PurchaseListDocument,
    PurchaseRequest,
    PurchaseResource,
    PurchaseSummaryDocument,
    PurchaseSummaryResource,
    StockDocument,
    StockListDocument,
    StockResource,
    StockUpdateRequest,
)
from inventory_service.services.inventory import InventoryService, PurchaseFilters

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/inventario", tags=["inventory"])


@router.post("/compras", response_model=PurchaseDocument, status_code=status.HTTP_201_CREATED)
async def purchase(payload: PurchaseRequest, service: InventoryService = Depends(get_inventory_service)):
    """
    Buy `cantidad` units of `productoId`.
    Looks the product up, decrements stock and journals the purchase in one
    transaction, then emits a stock change event.
    """
    attributes = payload.data.attributes
    result = await service.purchase(attributes.producto_id, attributes.cantidad)
    return PurchaseDocument(data=PurchaseResource.from_record(result.record, remaining=result.remaining))


@router.get("/compras", response_model=PurchaseListDocument)
async def purchase_history(
    producto_id: int | None = Query(None, alias="productoId"),
    desde: datetime | None = None,
    hasta: datetime | None = None,
    nombre: str | None = None,
    total_minimo: Decimal | None = Query(None, alias="totalMinimo"),
    service: InventoryService = Depends(get_inventory_service),
):
    """Purchase history, newest first. Only the first filter present is applied."""
    records = await service.purchase_history(PurchaseFilters(
        product_id=producto_id, start=desde, end=hasta, name=nombre, min_total=total_minimo,
    ))
    return PurchaseListDocument(data=[PurchaseResource.from_record(r) for r in records])


@router.get("/compras/recientes", response_model=PurchaseListDocument)
async def recent_purchases(
    limite: int = Query(10, ge=1, le=100),
    service: InventoryService = Depends(get_inventory_service),
):
    records = await service.recent_purchases(limite)
    return PurchaseListDocument(data=[PurchaseResource.from_record(r) for r in records])


@router.get("/compras/resumen", response_model=PurchaseSummaryDocument)
async def purchase_summary(
    desde: datetime | None = None,
    hasta: datetime | None = None,
    service: InventoryService = Depends(get_inventory_service),
):
    """Purchases, revenue and per-product sales; both dates or neither."""
    summary = await service.purchase_summary(desde, hasta)
    return PurchaseSummaryDocument(data=PurchaseSummaryResource.from_summary(summary))


@router.get("/bajos", response_model=StockListDocument)
async def low_stock(
    cantidad_minima: int = Query(settings.LOW_STOCK_DEFAULT_THRESHOLD, alias="cantidadMinima"),
    service: InventoryService = Depends(get_inventory_service),
):
    records = await service.list_low_stock(cantidad_minima)
    logger.info("%d products below %d units", len(records), cantidad_minima)
    return StockListDocument(data=[StockResource.from_record(r) for r in records])


@router.get("/sin-stock", response_model=StockListDocument)
async def out_of_stock(service: InventoryService = Depends(get_inventory_service)):
    records = await service.list_out_of_stock()
    return StockListDocument(data=[StockResource.from_record(r) for r in records])


@router.get("/estadisticas", response_class=PlainTextResponse)
async def statistics(service: InventoryService = Depends(get_inventory_service)):
    return await service.statistics()


@router.get("", response_model=StockListDocument)
async def list_stock(service: InventoryService = Depends(get_inventory_service)):
    """All stock records, most recently updated first."""
    records = await service.list_stock()
    return StockListDocument(data=[StockResource.from_record(r) for r in records])


@router.get("/{product_id}", response_model=StockDocument)
async def get_stock(product_id: int, service: InventoryService = Depends(get_inventory_service)):
    record = await service.get_stock(product_id)
    return StockDocument(data=StockResource.from_record(record))


@router.patch("/{product_id}", response_model=StockDocument)
async def adjust_stock(product_id: int, payload: StockUpdateRequest,
                       service: InventoryService = Depends(get_inventory_service)):
    """Set the quantity on hand to an absolute value."""
    record = await service.adjust_quantity(product_id, payload.data.attributes.cantidad)
    return StockDocument(data=StockResource.from_record(record))


@router.post("/{product_id}", response_model=StockDocument, status_code=status.HTTP_201_CREATED)
async def create_stock(product_id: int, cantidad: int,
                       service: InventoryService = Depends(get_inventory_service)):
    record = await service.create_stock(product_id, cantidad)
    return StockDocument(data=StockResource.from_record(record))
