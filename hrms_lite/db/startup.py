import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from hrms_lite.db.session import Database

logger = logging.getLogger(__name__)


async def connect_with_retry(database: Database, retries: int = 5, delay_ms: int = 1500) -> bool:
    """Try to reach the database before serving traffic.

    Fixed delay between attempts, no delay after the last one. Returns whether
    a connection was made; failing here never stops the server from starting.
    """
    for attempt in range(1, retries + 1):
        try:
            database.connect()
            logger.info("Database connection established on attempt %s/%s.", attempt, retries)
            return True
        except SQLAlchemyError as exc:
            is_last = attempt == retries
            logger.warning(
                "Database connection attempt %s/%s failed%s: %s",
                attempt,
                retries,
                "" if is_last else f", retrying in {delay_ms}ms",
                exc,
            )
            if is_last:
                return False
            await asyncio.sleep(delay_ms / 1000)
    return False
