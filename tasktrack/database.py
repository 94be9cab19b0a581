"""MongoDB database connection using Motor (async driver)."""
import logging

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from tasktrack.config import settings

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
        """Create the indexes used by the per-user and per-task queries."""
        await self.db["users"].create_index("email", unique=True)
        await self.db["profiles"].create_index("user_id", unique=True)
        await self.db["team_members"].create_index(
            [("team_id", 1), ("user_id", 1)], unique=True
        )
        await self.db["tasks"].create_index("assignee_id")
        await self.db["time_entries"].create_index([("user_id", 1), ("task_id", 1)])
        await self.db["task_comments"].create_index("task_id")
        await self.db["running_timers"].create_index(
            [("user_id", 1), ("task_id", 1)], unique=True
        )

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


def parse_object_id(value: str, label: str) -> ObjectId:
    """
    Convert a string ID from a request into an ObjectId.

    Raises:
        ValueError: If the value is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValueError(f"Invalid {label} ID format")
