"""
MongoDB connection management using Motor (async driver).

One DatabaseClient holder is shared by every request; routes receive the
selected database through the get_db() dependency rather than importing
the holder, which keeps them overridable in tests.

The connection is opened and closed by the FastAPI lifespan in main.py.
Collections used: users, user_profiles, ingredients, recipes,
user_favorite_recipes.
"""

import logging
import re

import certifi
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from nutricoach.core.config import settings

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Holds the Motor client and selected database (both None when offline)."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None


db_client = DatabaseClient()


async def connect_to_mongo() -> None:
    """
    Open the MongoDB connection and ping it.

    A failed ping leaves the API up in degraded mode: get_db() returns None
    and DB-backed routes answer 503, while /health reports "disconnected".
    """
    logger.info("Connecting to MongoDB at %s", _redact_uri(settings.mongo_uri))
    try:
        kwargs = {"serverSelectionTimeoutMS": 5000}
        if settings.mongo_uri.startswith("mongodb+srv://"):
            # Hosted clusters need a CA bundle the system store may lack
            kwargs["tlsCAFile"] = certifi.where()
        db_client.client = AsyncIOMotorClient(settings.mongo_uri, **kwargs)
        db_client.db = db_client.client[settings.mongo_db_name]
        await db_client.client.admin.command("ping")
        await ensure_indexes(db_client.db)
        logger.info("MongoDB connection established (db: %s)", settings.mongo_db_name)
    except Exception as exc:
        logger.warning(
            "MongoDB unavailable at startup: %s. "
            "Running in degraded mode; profile, recipe and auth routes will return 503.",
            exc,
        )
        db_client.client = None
        db_client.db = None


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the unique and lookup indexes the routes rely on (idempotent)."""
    await db["users"].create_index("email", unique=True)
    await db["user_profiles"].create_index("user_id", unique=True)
    await db["ingredients"].create_index([("user_id", 1), ("created_at", -1)])
    await db["recipes"].create_index("name")
    await db["user_favorite_recipes"].create_index(
        [("user_id", 1), ("recipe_id", 1)], unique=True
    )


async def close_mongo_connection() -> None:
    """Close the MongoDB connection on app shutdown."""
    if db_client.client is not None:
        db_client.client.close()
        logger.info("MongoDB connection closed")


def get_db() -> AsyncIOMotorDatabase | None:
    """
    FastAPI dependency — inject the database into route handlers.

    Returns None when MongoDB is unavailable; callers decide whether that
    is a 503 or an empty result.
    """
    return db_client.db


def _redact_uri(uri: str) -> str:
    """Strip credentials from URI before logging."""
    return re.sub(r"://[^:]+:[^@]+@", "://<redacted>@", uri)


def parse_oid(value: str, detail: str = "Invalid ID format") -> ObjectId:
    """Parse a path parameter as an ObjectId, raising 422 when malformed."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=422, detail=detail)


def require_db(db: AsyncIOMotorDatabase | None) -> AsyncIOMotorDatabase:
    """Return *db*, or raise 503 for routes that cannot degrade without it."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return db
