"""
Inventory Service — FastAPI dependencies

Long-lived collaborators (product client, notifier, per-product locks) are
built once in the lifespan and kept on app.state; the orchestrator itself is
built per request around the request's DB session.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_service.clients.product_client import ProductClient
from inventory_service.core.config import get_settings
from inventory_service.core.keyed_lock import KeyedLock
from inventory_service.db.database import get_db
from inventory_service.events.notifier import StockChangeNotifier
from inventory_service.services.inventory import InventoryService

settings = get_settings()


def get_product_client(request: Request) -> ProductClient:
    return request.app.state.product_client


def get_notifier(request: Request) -> StockChangeNotifier:
    return request.app.state.notifier


def get_stock_locks(request: Request) -> KeyedLock:
    return request.app.state.stock_locks


def get_inventory_service(
    db: AsyncSession = Depends(get_db),
    products: ProductClient = Depends(get_product_client),
    notifier: StockChangeNotifier = Depends(get_notifier),
    locks: KeyedLock = Depends(get_stock_locks),
) -> InventoryService:
    return InventoryService(
        db=db,
        products=products,
        notifier=notifier,
        locks=locks,
        degraded_policy=settings.DEGRADED_LOOKUP_POLICY,
    )
