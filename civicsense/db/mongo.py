from __future__ import annotations

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

TEAMS = "teams"
REPORTS = "reports"
AUDIT_LOGS = "audit_logs"


class MongoHandle:
    """
    Owns the Motor client. Created once by the application lifespan and
    handed to repositories; nothing connects at import time.
    """

    def __init__(self, uri: str, db_name: str):
        self.uri = uri
        self.db_name = db_name
        self._client: Optional[AsyncIOMotorClient] = None

    def connect(self) -> AsyncIOMotorDatabase:
        if self._client is None:
            logger.info("Connecting to MongoDB database %s", self.db_name)
            self._client = AsyncIOMotorClient(self.uri, tz_aware=True)
        return self._client[self.db_name]

    @property
    def db(self) -> AsyncIOMotorDatabase:
        return self.connect()

    async def ensure_indexes(self) -> None:
        db = self.db
        await db[TEAMS].create_index("name", unique=True)
        await db[TEAMS].create_index("department")
        await db[TEAMS].create_index("specialties")
        await db[TEAMS].create_index("is_active")
        await db[TEAMS].create_index([("current_load", ASCENDING), ("capacity", ASCENDING)])

        await db[REPORTS].create_index("tracking_id", unique=True)
        await db[REPORTS].create_index([("created_at", DESCENDING)])
        await db[REPORTS].create_index("status")
        await db[REPORTS].create_index("category")
        await db[REPORTS].create_index("assigned_to")

        await db[AUDIT_LOGS].create_index([("time", DESCENDING)])

    def close(self) -> None:
        if self._client is not None:
            logger.info("Closing MongoDB connection")
            self._client.close()
            self._client = None
