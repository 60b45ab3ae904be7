import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from config import MONGO_URL, DB_NAME
from errors import StoreError

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]


def get_db():
    """FastAPI dependency returning the active database handle"""
    return db


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    # Fixed width so stored timestamps sort lexicographically
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def next_sequence(database, name: str) -> int:
    """Atomically increment and return the named counter"""
    counter = await database.counters.find_one_and_update(
        {"_id": name},
        {"$inc": {"value": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["value"]


async def create_indexes(database=None):
    """Create database indexes for the query patterns used by the services"""
    database = database if database is not None else db
    try:
        await database.orders.create_index("order_id", unique=True)
        await database.orders.create_index([("client_id", ASCENDING), ("created_at", DESCENDING)])
        await database.orders.create_index([("artist_id", ASCENDING), ("created_at", DESCENDING)])
        await database.orders.create_index("status")

        await database.user_status.create_index("user_id", unique=True)
        await database.user_status.create_index([("is_online", ASCENDING), ("heartbeat_at", ASCENDING)])

        await database.users.create_index("user_id", unique=True)
        await database.users.create_index("email", unique=True)
        await database.user_sessions.create_index("session_token", unique=True)
        await database.user_sessions.create_index("user_id")

        await database.chats.create_index("chat_id", unique=True)
        await database.chats.create_index([("client.id", ASCENDING), ("artist.id", ASCENDING)])
        await database.chat_messages.create_index([("chat_id", ASCENDING), ("timestamp", DESCENDING)])

        await database.notifications.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

        logger.info("[Database] Indexes created successfully")
    except Exception as e:
        logger.warning(f"[Database] Index creation error (may already exist): {e}")


@contextmanager
def store_errors(action: str):
    """Surface driver failures as StoreError, keeping the cause"""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"[Database] {action} failed: {e}")
        raise StoreError(f"{action} failed") from e
