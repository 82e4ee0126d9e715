import logging
from datetime import datetime, timezone

import asyncpg

from shared import config
from shared.models import Alert

logger = logging.getLogger(__name__)

CREATE_ALERTS_TABLE = """
    CREATE TABLE IF NOT EXISTS alerts (
        id SERIAL PRIMARY KEY,
        patient_id TEXT NOT NULL,
        condition TEXT NOT NULL,
        triggered_at TIMESTAMPTZ NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""


class DatabaseWriter:
    """Alert sink that stores alerts in PostgreSQL."""

    def __init__(self, db_url: str = config.DATABASE_URL, pool=None):
        self.db_url = db_url
        self.pool = pool

    async def connect(self):
        if not self.pool:
            try:
                self.pool = await asyncpg.create_pool(self.db_url)
                async with self.pool.acquire() as connection:
                    await connection.execute(CREATE_ALERTS_TABLE)
                logger.info("DB Writer Connected")
            except (asyncpg.PostgresError, OSError) as e:
                self.pool = None
                logger.error("DB Connection Failed: %s", e)

    async def close(self):
        if self.pool:
            await self.pool.close()
            self.pool = None

    async def handle(self, alert: Alert) -> bool:
        if not self.pool:
            await self.connect()
        if not self.pool:
            return False

        query = """
            INSERT INTO alerts (patient_id, condition, triggered_at, created_at)
            VALUES ($1, $2, $3, NOW())
        """
        triggered_at = datetime.fromtimestamp(alert.timestamp / 1000, tz=timezone.utc)
        try:
            async with self.pool.acquire() as connection:
                await connection.execute(query, alert.patient_id, alert.condition.value, triggered_at)
            logger.info("ALERT SAVED for %s: %s", alert.patient_id, alert.condition.value)
            return True
        except (asyncpg.PostgresError, OSError) as e:
            logger.error("Failed to save alert: %s", e)
            return False
