"""
MongoDB client initialization and access utilities.

This module configures and manages the asynchronous MongoDB client
used across EDC Panorama. It connects to the database using Motor
(the async MongoDB driver for Python) and exposes a global client and
database instance for use in other modules.

Collections:
    - assets: inventory records
    - users: user profiles and permissions
    - credentials: sign-in credentials, kept apart from the profiles
    - logs: append-only audit trail
    - parametre: holds the ``system_config`` singleton document

Usage example:
    >>> from panorama.db.client import init_mongo, get_db
    >>> await init_mongo()
    >>> db = get_db()
    >>> print(await db.list_collection_names())
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from panorama.core.config import MONGO_DB_NAME, MONGO_URI

# Global MongoDB client and database references
client: AsyncIOMotorClient = None
_db: AsyncIOMotorDatabase = None

# ------------------------------------------------------------------------------
# Initialization
# ------------------------------------------------------------------------------

async def init_mongo():
    """
    Initialize the global MongoDB client and database connection.

    This function connects to the MongoDB server using the connection string
    defined in the environment variables and makes sure the indexes the
    application relies on exist. It should be called once during
    application startup (e.g., in `main.py`).

    Example:
        >>> await init_mongo()
        ✅ Connected to MongoDB at mongodb://localhost:27017, using database 'edc_panorama'
    """
    global client, _db
    client = AsyncIOMotorClient(MONGO_URI)
    _db = client[MONGO_DB_NAME]
    print(f"✅ Connected to MongoDB at {MONGO_URI}, using database '{MONGO_DB_NAME}'")
    await ensure_indexes(_db)


async def ensure_indexes(db: AsyncIOMotorDatabase):
    """
    Create the indexes backing asset code uniqueness, credential lookup
    and the recent-log window.
    """
    await db["assets"].create_index([("code", ASCENDING)], unique=True)
    await db["assets"].create_index([("is_archived", ASCENDING)])
    await db["credentials"].create_index([("email", ASCENDING)], unique=True)
    await db["logs"].create_index([("timestamp", DESCENDING)])


def use_database(db: AsyncIOMotorDatabase):
    """
    Install an already-built database handle as the global database.

    Used by tests to plug in an in-memory database.
    """
    global _db
    _db = db

# ------------------------------------------------------------------------------
# Database Access
# ------------------------------------------------------------------------------

def get_db() -> AsyncIOMotorDatabase:
    """
    Retrieve the initialized MongoDB database instance.

    Returns:
        AsyncIOMotorDatabase: The connected MongoDB database instance.

    Raises:
        RuntimeError: If the database has not been initialized yet
        (i.e., `init_mongo()` has not been called).
    """

    if _db is None:
        raise RuntimeError("MongoDB was not initialized. Call init_mongo() first.")
    return _db
