"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from habitflow.config import settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and make sure the lookup indexes exist."""
        self.client = AsyncIOMotorClient(settings.mongodb_url)
        self.db = self.client[settings.mongodb_db_name]
        await self.ensure_indexes()
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    async def ensure_indexes(self) -> None:
        """Create the indexes the services query by."""
        await self.db["users"].create_index("email", unique=True)
        await self.db["habits"].create_index([("user_id", 1), ("is_archived", 1)])
        await self.db["habits"].create_index([("user_id", 1), ("completions.date", 1)])
        await self.db["goals"].create_index([("user_id", 1), ("status", 1)])

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")


# Global database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db
