"""
Inventory Service — Logging configuration
"""
import logging

from inventory_service.core.config import get_settings

NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy", "sqlalchemy.engine", "asyncpg", "aiosqlite")


def configure_logging(level: str | None = None) -> None:
    """Set root format/level from LOG_LEVEL and quiet chatty client libraries."""
    log_level = (level or get_settings().LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("inventory_service").setLevel(getattr(logging, log_level, logging.INFO))
