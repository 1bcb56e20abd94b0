"""Database connection setup for MongoDB and Redis."""
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
import redis.asyncio as redis
from shared.config import settings


class DatabaseConnection:
    """Manages MongoDB and Redis connections."""

    _mongo_client: Optional[AsyncIOMotorClient] = None
    _redis_client: Optional[redis.Redis] = None
    _db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def init_mongo(cls) -> AsyncIOMotorDatabase:
        """
        Initialize MongoDB connection.

        Pings the server first so an unreachable store fails startup.
        """
        if cls._mongo_client is None:
            client = AsyncIOMotorClient(settings.mongo_url)
            await client.admin.command("ping")
            cls._mongo_client = client
            cls._db = client[settings.mongo_db_name]
            await cls._setup_indexes()
        return cls._db

    @classmethod
    async def _setup_indexes(cls):
        """Set up MongoDB indexes for optimal query performance."""
        if cls._db is None:
            return

        # Jobs collection indexes
        await cls._db.jobs.create_index("status")
        await cls._db.jobs.create_index("submitted_at")

        # Job items collection indexes
        await cls._db.job_items.create_index([("status", 1), ("available_at", 1), ("created_at", 1)])
        await cls._db.job_items.create_index([("job_id", 1), ("status", 1)])

        # Word definitions: one row per (word, part of speech, definition)
        await cls._db.words.create_index(
            [("word", 1), ("part_of_speech", 1), ("definition", 1)],
            unique=True,
            name="word_pos_definition_unique"
        )
        await cls._db.words.create_index("difficulty")
        await cls._db.words.create_index("created_at")

    @classmethod
    async def get_mongo_db(cls) -> AsyncIOMotorDatabase:
        """Get MongoDB database instance."""
        if cls._db is None:
            await cls.init_mongo()
        return cls._db

    @classmethod
    async def init_redis(cls) -> redis.Redis:
        """Initialize Redis connection."""
        if cls._redis_client is None:
            client = redis.from_url(
                settings.redis_url,
                decode_responses=True
            )
            await client.ping()
            cls._redis_client = client
        return cls._redis_client

    @classmethod
    async def get_redis(cls) -> redis.Redis:
        """Get Redis client instance."""
        if cls._redis_client is None:
            await cls.init_redis()
        return cls._redis_client

    @classmethod
    async def close_connections(cls):
        """Close all database connections."""
        if cls._mongo_client:
            cls._mongo_client.close()
            cls._mongo_client = None
            cls._db = None
        if cls._redis_client:
            await cls._redis_client.close()
            cls._redis_client = None


# Convenience functions
async def get_db() -> AsyncIOMotorDatabase:
    """Dependency for getting MongoDB database."""
    return await DatabaseConnection.get_mongo_db()


async def get_redis() -> redis.Redis:
    """Dependency for getting Redis client."""
    return await DatabaseConnection.get_redis()
