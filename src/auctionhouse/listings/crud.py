"""Auction listing create/read/update/delete."""

from typing import Any, Optional
import structlog

from ..db import AuctionDB, is_valid_id
from ..errors import InvalidInputError, NotFoundError
from ..models import AuctionItem, EDITABLE_FIELDS, parse_amount, parse_timestamp

logger = structlog.get_logger()


def check_listing_id(listing_id: Any) -> str:
    """Reject identifiers that are not well-formed ObjectIds."""
    if not is_valid_id(listing_id):
        raise InvalidInputError("Invalid auction item ID")
    return listing_id


def _require_text(value: Any, field: str) -> str:
    if value is None or value == "":
        raise InvalidInputError(f"{field} is required")
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid {field}")
    return value


def _coerce_field(field: str, value: Any) -> Any:
    """Validate one editable field and convert it to its stored type."""
    if field == "startingBid":
        return parse_amount(value, "startingBid")
    if field == "auctionEndTime":
        return parse_timestamp(value, "auctionEndTime")
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid {field}")
    return value


async def create_listing(
    db: AuctionDB,
    title: Any,
    description: Any,
    starting_bid: Any,
    auction_end_time: Any,
) -> dict:
    """Create a new auction listing.

    All four fields are required. The end time is not required to be in the
    future.

    Returns:
        Stored listing document
    """
    if starting_bid is None:
        raise InvalidInputError("startingBid is required")
    if auction_end_time is None:
        raise InvalidInputError("auctionEndTime is required")

    item = AuctionItem(
        title=_require_text(title, "title"),
        description=_require_text(description, "description"),
        starting_bid=parse_amount(starting_bid, "startingBid"),
        auction_end_time=parse_timestamp(auction_end_time, "auctionEndTime"),
    )

    return await db.create_auction_item(item.model_dump(by_alias=True))


async def get_listing(db: AuctionDB, listing_id: Any) -> dict:
    """Get a listing by id."""
    listing_id = check_listing_id(listing_id)
    doc = await db.get_auction_item(listing_id)
    if not doc:
        raise NotFoundError("Auction item not found")
    return doc


async def list_listings(db: AuctionDB) -> list[dict]:
    """Get all listings, unfiltered."""
    return await db.get_all_auction_items()


async def update_listing(
    db: AuctionDB,
    listing_id: Any,
    fields: dict,
    strict: bool = False,
) -> dict:
    """Edit a listing's title, description, starting bid or end time.

    Args:
        db: Store handle
        listing_id: Listing to edit
        fields: Stored-name to new-value mapping; other keys are ignored
        strict: When False, any falsy value (0, "", None) leaves the stored
            value unchanged. When True, only None does.

    Returns:
        Updated listing document
    """
    doc = await get_listing(db, listing_id)

    updates = {}
    for field in EDITABLE_FIELDS:
        value: Optional[Any] = fields.get(field)
        skip = value is None if strict else not value
        if skip:
            continue
        updates[field] = _coerce_field(field, value)

    if not updates:
        return doc

    updated = await db.update_auction_item(listing_id, updates)
    if not updated:
        # Deleted between the read and the write
        raise NotFoundError("Auction item not found")

    logger.info("auction_item_updated", item_id=listing_id, updates=list(updates.keys()))
    return updated


async def delete_listing(db: AuctionDB, listing_id: Any) -> bool:
    """Permanently remove a listing."""
    await get_listing(db, listing_id)

    if not await db.delete_auction_item(listing_id):
        raise NotFoundError("Auction item not found")
    return True
