"""
Database connection module for DYHE Delivery backend.
Manages MongoDB connection using motor async driver.
"""
import logging

import pymongo
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from config import MONGO_URL, DB_NAME

logger = logging.getLogger(__name__)

# MongoDB client and database instances
client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]


async def get_db() -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the active database handle."""
    return db


async def ensure_indexes(database) -> None:
    """
    Create the unique indexes that back application-level uniqueness checks.

    Email on drivers and merchants is optional, so those indexes are sparse and
    documents without an email simply omit the field.
    """
    await database.users.create_index("id", unique=True)
    await database.users.create_index("email", unique=True)
    await database.users.create_index("username", unique=True)

    await database.drivers.create_index("id", unique=True)
    await database.drivers.create_index("email", unique=True, sparse=True)
    await database.drivers.create_index("bank_account_number", unique=True)
    await database.drivers.create_index("user_id", sparse=True)

    await database.merchants.create_index("id", unique=True)
    await database.merchants.create_index("email", unique=True, sparse=True)
    await database.merchants.create_index("bank_account_number", unique=True)

    await database.packages.create_index("id", unique=True)
    await database.packages.create_index("package_number", unique=True)
    await database.packages.create_index("merchant_id")
    await database.packages.create_index("driver_id")
    await database.packages.create_index([("created_at", pymongo.DESCENDING)])

    await database.settings.create_index("key", unique=True)

    logger.info("Database indexes ensured")
