"""
Inventory Service — Product Service client

GET /productos/{id} behind a timeout, a bounded retry and a circuit breaker.
  - 2xx          → ProductInfo parsed from {data: {id, attributes: {nombre, precio, descripcion}}}
  - 404 / 4xx    → definitive "not found": no retry, counts as a successful call
  - 5xx, transport errors, timeouts, malformed bodies → retried, counted as failures
  - retries spent or breaker open → ProductLookupError
get_product() turns ProductLookupError into a degraded placeholder.
"""
import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import httpx

from inventory_service.core.circuit_breaker import CircuitBreaker, CircuitOpenError
from inventory_service.core.config import Settings

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "product unavailable"


@dataclass(frozen=True)
class ProductInfo:
    id: int
    name: str
    unit_price: Decimal
    description: str | None = None
    degraded: bool = False

    @classmethod
    def placeholder(cls, product_id: int) -> "ProductInfo":
        return cls(
            id=product_id,
            name=PLACEHOLDER_NAME,
            unit_price=Decimal("0.00"),
            description="Product information temporarily unavailable",
            degraded=True,
        )


class ProductNotFound(Exception):
    pass


class ProductLookupError(Exception):
    """The product service gave no usable answer."""


class ProductClient:
    def __init__(self, base_url: str, timeout: float, max_attempts: int, backoff_ms: int,
                 breaker: CircuitBreaker, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_ms = backoff_ms
        self.breaker = breaker
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings,
                      transport: httpx.AsyncBaseTransport | None = None) -> "ProductClient":
        breaker = CircuitBreaker(
            name="product-service",
            window_size=settings.BREAKER_WINDOW_SIZE,
            minimum_calls=settings.BREAKER_MINIMUM_CALLS,
            failure_rate_threshold=settings.BREAKER_FAILURE_RATE_THRESHOLD,
            slow_call_rate_threshold=settings.BREAKER_SLOW_CALL_RATE_THRESHOLD,
            slow_call_seconds=settings.BREAKER_SLOW_CALL_SECONDS,
            open_seconds=settings.BREAKER_OPEN_SECONDS,
            half_open_calls=settings.BREAKER_HALF_OPEN_CALLS,
        )
        return cls(
            base_url=settings.PRODUCT_SERVICE_URL,
            timeout=settings.PRODUCT_LOOKUP_TIMEOUT_SECONDS,
            max_attempts=settings.PRODUCT_LOOKUP_MAX_ATTEMPTS,
            backoff_ms=settings.PRODUCT_LOOKUP_BACKOFF_MS,
            breaker=breaker,
            transport=transport,
        )

    async def get_product(self, product_id: int) -> ProductInfo:
        """ProductInfo, or a degraded placeholder when the lookup is unusable. Raises ProductNotFound."""
        try:
            return await self.fetch_product(product_id)
        except ProductLookupError as exc:
            logger.warning("Product %s lookup failed, using placeholder: %s", product_id, exc)
            return ProductInfo.placeholder(product_id)

    async def fetch_product(self, product_id: int) -> ProductInfo:
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                info = await self.breaker.call(self._request_product, product_id)
            except CircuitOpenError as exc:
                raise ProductLookupError(str(exc)) from exc
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                logger.warning("Product %s lookup attempt %d/%d failed: %s",
                               product_id, attempt, self.max_attempts, exc)
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.backoff_ms / 1000.0 * (2 ** (attempt - 1)))
                continue

            if info is None:
                raise ProductNotFound(f"Product {product_id} not found")
            return info

        raise ProductLookupError(
            f"Product {product_id} lookup failed after {self.max_attempts} attempts: {last_error}"
        ) from last_error

    async def product_exists(self, product_id: int) -> bool:
        try:
            return await self.breaker.call(self._request_exists, product_id)
        except (CircuitOpenError, httpx.HTTPError, ValueError) as exc:
            logger.warning("Existence check for product %s failed, assuming absent: %s", product_id, exc)
            return False

    async def _request_product(self, product_id: int) -> ProductInfo | None:
        async with self._client() as client:
            response = await client.get(f"/productos/{product_id}")
        if response.is_client_error:
            return None
        response.raise_for_status()
        return parse_product(product_id, response.json())

    async def _request_exists(self, product_id: int) -> bool:
        async with self._client() as client:
            response = await client.get(f"/productos/{product_id}/existe")
        if response.is_client_error:
            return False
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, bool):
            raise ValueError(f"Unexpected existence payload: {body!r}")
        return body

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )


def parse_product(product_id: int, payload) -> ProductInfo:
    """Raises ValueError when the envelope is missing fields or the price is not a decimal."""
    try:
        data = payload["data"]
        attributes = data["attributes"]
        name = attributes["nombre"]
        price = Decimal(str(attributes["precio"]))
    except (KeyError, TypeError, InvalidOperation) as exc:
        raise ValueError(f"Malformed product payload for {product_id}: {exc!r}") from exc
    if not name or not price.is_finite():
        raise ValueError(f"Malformed product payload for {product_id}")
    return ProductInfo(
        id=int(data.get("id", product_id)),
        name=name,
        unit_price=price,
        description=attributes.get("descripcion"),
    )
