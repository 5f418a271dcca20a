"""
MongoDB access for Tubely.

Video records live in a single ``videos`` collection reached through Motor.
The application lifespan calls ``init_db`` once; request handlers reach the
shared client through ``get_db_client``.

Connection setup retries with exponential backoff (1s, then 2s) before giving
up, and every attempt is verified with a ``ping`` so a wrong URI fails at
startup rather than on the first upload.
"""

import asyncio
import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from tubely.config import Settings


logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"

CONNECT_ATTEMPTS = 3
INITIAL_BACKOFF_SECONDS = 1.0
SERVER_SELECTION_TIMEOUT_MS = 5000


class DatabaseClient:
    """
    Owns the Motor client for one MongoDB database.

    Datetimes come back timezone-aware (UTC) so they compare cleanly with the
    ``created_at`` / ``updated_at`` values the models produce.

    Example usage:
        ```python
        db = DatabaseClient(settings)
        if await db.connect():
            videos = db.get_videos_collection()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self._uri = settings.mongodb_uri
        self._db_name = settings.mongodb_db_name
        self._pool = (settings.mongodb_min_pool_size, settings.mongodb_max_pool_size)
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> bool:
        """
        Open the client and verify it with a ping.

        Returns:
            bool: False once every attempt has failed; the failures are logged.
        """
        delay = INITIAL_BACKOFF_SECONDS

        for attempt in range(1, CONNECT_ATTEMPTS + 1):
            client = AsyncIOMotorClient(
                self._uri,
                minPoolSize=self._pool[0],
                maxPoolSize=self._pool[1],
                serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
                tz_aware=True,
            )
            try:
                await client.admin.command("ping")
            except ConnectionFailure:
                client.close()
                logger.warning(
                    "MongoDB not reachable (attempt %d/%d)",
                    attempt,
                    CONNECT_ATTEMPTS,
                    exc_info=True,
                )
                if attempt < CONNECT_ATTEMPTS:
                    await asyncio.sleep(delay)
                    delay *= 2
                continue

            self._client = client
            self._database = client[self._db_name]
            logger.info("Connected to MongoDB database %s", self._db_name)
            return True

        logger.error("Giving up on MongoDB after %d attempts", CONNECT_ATTEMPTS)
        return False

    async def close(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._database = None
        logger.info("MongoDB connection closed")

    async def ping(self) -> bool:
        """True when the server answers a ping."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Raises:
            RuntimeError: If ``connect`` has not succeeded.
        """
        if self._database is None:
            raise RuntimeError("MongoDB is not connected")
        return self._database

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        return self.get_database()[VIDEOS_COLLECTION]

    async def create_indexes(self) -> None:
        """Indexes for the owner check and the per-user, newest-first listing."""
        videos = self.get_videos_collection()
        await videos.create_index([("user_id", ASCENDING)])
        await videos.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        logger.info("Ensured indexes on %s", VIDEOS_COLLECTION)


class _DatabaseClientContainer:
    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings) -> DatabaseClient:
    """
    Connect the shared client and ensure indexes.

    Raises:
        RuntimeError: If MongoDB cannot be reached.
    """
    if _container.client is not None:
        return _container.client

    client = DatabaseClient(settings)
    if not await client.connect():
        raise RuntimeError(f"Could not connect to MongoDB database {settings.mongodb_db_name}")

    await client.create_indexes()
    _container.client = client
    return client


async def close_db() -> None:
    if _container.client is not None:
        await _container.client.close()
        _container.client = None


def get_db_client() -> DatabaseClient:
    """
    The client set up by ``init_db``.

    Raises:
        RuntimeError: If ``init_db`` has not run or failed.
    """
    if _container.client is None:
        raise RuntimeError("Database client not initialized")
    return _container.client
