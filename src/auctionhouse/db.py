"""MongoDB store for Auction House.

The store is an explicit handle: build it with ``AuctionDB.connect()``,
call ``init()`` once at startup and ``close()`` at shutdown. Nothing here
is module-global.
"""

from typing import Optional, Any
from datetime import datetime
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo import ReturnDocument
import structlog

from .config import Settings, get_settings
from .models import as_utc

logger = structlog.get_logger()


# ============================================================
# Collection Names
# ============================================================

USERS_COLLECTION = "users"
AUCTION_ITEMS_COLLECTION = "auctionitems"


def format_datetime(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    result = {}
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            result[key] = str(value)
        elif isinstance(value, datetime):
            result[key] = format_datetime(value)
        elif isinstance(value, dict):
            result[key] = serialize_doc(value)
        elif isinstance(value, list):
            result[key] = [
                serialize_doc(v) if isinstance(v, dict)
                else str(v) if isinstance(v, ObjectId)
                else format_datetime(v) if isinstance(v, datetime)
                else v
                for v in value
            ]
        else:
            result[key] = value
    return result


def is_valid_id(value: Any) -> bool:
    """Whether value is a well-formed 24-hex ObjectId string."""
    return isinstance(value, str) and ObjectId.is_valid(value)


class AuctionDB:
    """Handle over the users and auction item collections."""

    def __init__(self, client: AsyncIOMotorClient, database_name: str):
        self.client = client
        self.db: AsyncIOMotorDatabase = client[database_name]
        self.database_name = database_name

    @classmethod
    def connect(cls, settings: Optional[Settings] = None) -> "AuctionDB":
        """Create a client for the configured MongoDB deployment.

        Motor connects lazily; ``init()`` performs the first round trip.
        """
        settings = settings or get_settings()
        client = AsyncIOMotorClient(settings.mongodb_uri)
        return cls(client, settings.mongodb_database)

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self.db[USERS_COLLECTION]

    @property
    def auction_items(self) -> AsyncIOMotorCollection:
        return self.db[AUCTION_ITEMS_COLLECTION]

    async def ping(self) -> bool:
        """Round-trip to the server."""
        await self.db.command("ping")
        return True

    async def init(self) -> bool:
        """Verify the connection and create indexes.

        Connection failures are logged, not raised, so the API still starts
        and each request reports its own storage error.
        """
        try:
            await self.ping()
        except Exception as e:
            logger.error("mongodb_connection_failed", database=self.database_name, error=str(e))
            return False

        logger.info("mongodb_connected", database=self.database_name)

        try:
            await self.setup_indexes()
        except Exception as e:
            logger.warning("index_setup_failed", error=str(e))
        return True

    async def setup_indexes(self):
        """Create indexes for all collections."""
        await self.users.create_index([("username", 1)], unique=True)
        await self.users.create_index([("email", 1)], unique=True)
        await self.auction_items.create_index([("isClosed", 1)])
        logger.info("indexes_created")

    def close(self):
        """Close database connection."""
        self.client.close()
        logger.info("mongodb_disconnected", database=self.database_name)

    # ============================================================
    # User Operations
    # ============================================================

    async def create_user(self, user_data: dict) -> str:
        """Insert a user. Returns the new user id."""
        result = await self.users.insert_one(dict(user_data))
        user_id = str(result.inserted_id)
        logger.info("user_created", user_id=user_id, username=user_data.get("username"))
        return user_id

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        return await self.users.find_one({"email": email})

    async def find_user_conflict(self, username: str, email: str) -> Optional[dict]:
        """Find a user holding either the username or the email."""
        return await self.users.find_one({"$or": [{"username": username}, {"email": email}]})

    # ============================================================
    # Auction Item Operations
    # ============================================================

    async def create_auction_item(self, item_data: dict) -> dict:
        """Insert an auction item. Returns the stored document."""
        doc = dict(item_data)
        result = await self.auction_items.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("auction_item_created", item_id=str(result.inserted_id), title=doc.get("title"))
        return doc

    async def get_auction_item(self, item_id: str) -> Optional[dict]:
        """Get auction item by ID (caller validates the id)."""
        return await self.auction_items.find_one({"_id": ObjectId(item_id)})

    async def get_all_auction_items(self) -> list[dict]:
        """Get every auction item in insertion order."""
        cursor = self.auction_items.find({}).sort("_id", 1)

        items = []
        async for doc in cursor:
            items.append(doc)
        return items

    async def update_auction_item(self, item_id: str, updates: dict) -> Optional[dict]:
        """Set fields on an auction item. Returns the updated document."""
        return await self.auction_items.find_one_and_update(
            {"_id": ObjectId(item_id)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_auction_item(self, item_id: str) -> bool:
        """Delete an auction item by ID."""
        result = await self.auction_items.delete_one({"_id": ObjectId(item_id)})
        if result.deleted_count > 0:
            logger.info("auction_item_deleted", item_id=item_id)
            return True
        return False
