"""Neo4j connection utilities.

Driver lifecycle management and the pre-run health check live here so services
can depend on a single, well-defined place for graph DB connectivity.
"""

from __future__ import annotations

import asyncio
import threading

from neo4j import AsyncDriver, AsyncGraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from src.core.config import settings
from src.utils.logging import get_logger

logger = get_logger(__name__)


class Neo4jNotReadyError(Exception):
    """Raised when no Neo4j instance answers before extraction starts."""


class Neo4jConnection:
    """Singleton-style Neo4j driver manager."""

    _driver: AsyncDriver | None = None
    _lock = threading.Lock()

    @classmethod
    def get_driver(
        cls,
        username: str | None = None,
        password: str | None = None,
    ) -> AsyncDriver:
        """Return a cached Neo4j AsyncDriver, creating it if needed.

        Credentials passed on the first call override the configured ones;
        later calls return the cached driver.

        Thread-safe: Uses a lock to prevent multiple driver instances
        from being created during concurrent initialization.
        """
        if cls._driver is not None:
            return cls._driver

        with cls._lock:
            if cls._driver is None:
                username = username or settings.NEO4J_USERNAME
                password = password if password is not None else settings.NEO4J_PASSWORD
                if not settings.NEO4J_URI:
                    raise ValueError("NEO4J_URI is not configured")
                if not username:
                    raise ValueError("NEO4J_USERNAME is not configured")

                cls._driver = AsyncGraphDatabase.driver(
                    settings.NEO4J_URI,
                    auth=(username, password),
                    connection_timeout=settings.NEO4J_CONNECTION_TIMEOUT,
                    max_transaction_retry_time=60,
                    keep_alive=True,
                )
            return cls._driver

    @classmethod
    async def close_driver(cls) -> None:
        """Close the Neo4j driver, if open."""
        with cls._lock:
            driver, cls._driver = cls._driver, None
        if driver is not None:
            await driver.close()


async def is_neo4j_ready(
    driver: AsyncDriver,
    retries: int | None = None,
    interval_seconds: float | None = None,
) -> bool:
    """Poll the database until it accepts connections or the retries run out.

    Args:
        driver: Neo4j AsyncDriver instance
        retries: Number of attempts (default: settings.NEO4J_HEALTHCHECK_RETRIES)
        interval_seconds: Pause between attempts (default: settings value)

    Returns:
        True once connectivity is verified, False if every attempt failed.
    """
    retries = settings.NEO4J_HEALTHCHECK_RETRIES if retries is None else retries
    interval_seconds = (
        settings.NEO4J_HEALTHCHECK_INTERVAL_SECONDS
        if interval_seconds is None
        else interval_seconds
    )

    for attempt in range(1, retries + 1):
        try:
            await driver.verify_connectivity()
            logger.info(f"Neo4j is ready (attempt {attempt}/{retries})")
            return True
        except (DriverError, Neo4jError, OSError) as e:
            logger.warning(f"Neo4j not ready (attempt {attempt}/{retries}): {e}")
            if attempt < retries:
                await asyncio.sleep(interval_seconds)

    return False


async def ensure_neo4j_ready(driver: AsyncDriver) -> None:
    """Raise Neo4jNotReadyError unless the database answers the health check."""
    if not await is_neo4j_ready(driver):
        raise Neo4jNotReadyError(
            f"There is no Neo4j instance ready to use at {settings.NEO4J_URI}"
        )
