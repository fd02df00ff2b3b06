"""
Inventory Service — Health endpoint

Database (and Redis, when the event bridge is on) decide healthy/degraded.
The product-service breaker state is reported but never fails the check:
an open breaker degrades purchases, not this instance.
"""
import asyncio
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from inventory_service.core.config import get_settings
from inventory_service.core.redis_client import get_redis
from inventory_service.db.database import engine

settings = get_settings()
router = APIRouter(tags=["health"])


async def _ping_database() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _ping_redis() -> None:
    await get_redis().ping()


async def _status(check) -> str:
    try:
        await asyncio.wait_for(check(), timeout=settings.HEALTH_CHECK_TIMEOUT)
    except Exception as e:
        return f"error: {str(e)[:100]}"
    return "ok"


@router.get("/health")
async def health_check(request: Request):
    checks = {"database": _ping_database}
    if settings.REDIS_EVENTS_ENABLED:
        checks["redis"] = _ping_redis

    deps = {name: await _status(check) for name, check in checks.items()}
    healthy = all(result == "ok" for result in deps.values())

    product_client = getattr(request.app.state, "product_client", None)
    if product_client is not None:
        deps["product-service-circuit"] = product_client.breaker.state.value

    return JSONResponse(
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )
