"""
Inventory Service — FastAPI entrypoint
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from inventory_service.api import health, inventory
from inventory_service.api.errors import register_exception_handlers
from inventory_service.clients.product_client import ProductClient
from inventory_service.core.config import get_settings
from inventory_service.core.keyed_lock import KeyedLock
from inventory_service.core.logging_config import configure_logging
from inventory_service.core.redis_client import close_redis, get_redis
from inventory_service.core.worker_pool import BoundedWorkerPool
from inventory_service.db.database import Base, engine
from inventory_service.events.listeners import build_listeners
from inventory_service.events.notifier import StockChangeNotifier

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    pool = BoundedWorkerPool(settings.EVENT_WORKERS, settings.EVENT_QUEUE_CAPACITY, name="stock-events")
    await pool.start()
    redis = get_redis() if settings.REDIS_EVENTS_ENABLED else None

    app.state.product_client = ProductClient.from_settings(settings)
    app.state.notifier = StockChangeNotifier(pool, build_listeners(settings, redis))
    app.state.stock_locks = KeyedLock()
    yield
    await pool.stop()
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Inventory Service",
    description="Stock ledger and purchase transactions with optimistic locking and a resilient product lookup.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

register_exception_handlers(app)
app.include_router(inventory.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
