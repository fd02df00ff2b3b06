"""
Product Service — Logging configuration
"""
import logging

from product_service.core.config import get_settings


def configure_logging(level: str | None = None) -> None:
    log_level = getattr(logging, (level or get_settings().LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    for name in ("sqlalchemy", "sqlalchemy.engine", "asyncpg", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.WARNING)
