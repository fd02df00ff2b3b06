"""
Inventory Service — Configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "inventory-service"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8082
    LOG_LEVEL: str = "INFO"

    # ── PostgreSQL ────────────────────────────────────────────
    POSTGRES_HOST: str = "inventory-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "inventory_db"
    POSTGRES_USER: str = "inventory_user"
    POSTGRES_PASSWORD: str = "inventory_pass"
    DATABASE_URL: str | None = None  # full override, e.g. sqlite+aiosqlite:///./inventory.db

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Optimistic Locking Retry ──────────────────────────────
    OPT_LOCK_MAX_RETRIES: int = 5
    OPT_LOCK_BASE_DELAY_MS: int = 50      # base exponential backoff delay in ms
    OPT_LOCK_MAX_DELAY_MS: int = 1000     # max backoff cap in ms
    OPT_LOCK_JITTER_MS: int = 50          # random jitter range in ms

    # ── Product Service (lookup collaborator) ─────────────────
    PRODUCT_SERVICE_URL: str = "http://product-service:8081"
    PRODUCT_LOOKUP_TIMEOUT_SECONDS: float = 5.0
    PRODUCT_LOOKUP_MAX_ATTEMPTS: int = 3
    PRODUCT_LOOKUP_BACKOFF_MS: int = 100
    DEGRADED_LOOKUP_POLICY: str = "proceed"   # "proceed" | "reject"

    # ── Circuit Breaker ───────────────────────────────────────
    BREAKER_WINDOW_SIZE: int = 10
    BREAKER_MINIMUM_CALLS: int = 5
    BREAKER_FAILURE_RATE_THRESHOLD: float = 50.0     # percent
    BREAKER_SLOW_CALL_RATE_THRESHOLD: float = 50.0   # percent
    BREAKER_SLOW_CALL_SECONDS: float = 3.0
    BREAKER_OPEN_SECONDS: float = 30.0
    BREAKER_HALF_OPEN_CALLS: int = 3

    # ── Stock Events ──────────────────────────────────────────
    EVENT_WORKERS: int = 3
    EVENT_QUEUE_CAPACITY: int = 50        # per worker
    LOW_STOCK_ALERT_THRESHOLD: int = 5
    SIGNIFICANT_ADJUSTMENT_DELTA: int = 50
    LOW_STOCK_DEFAULT_THRESHOLD: int = 10

    # ── Redis Event Bridge / Stock Cache ──────────────────────
    REDIS_EVENTS_ENABLED: bool = True
    STOCK_EVENTS_CHANNEL: str = "stock-events"
    STOCK_CACHE_TTL_SECONDS: int = 10

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
