"""Bid placement on auction listings."""

import asyncio
import weakref
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional
import structlog

from ..db import AuctionDB
from ..errors import NotFoundError, AuctionClosedError, BidTooLowError, InvalidInputError
from ..listings import check_listing_id
from ..models import ListingState, parse_amount
from .lifecycle import listing_state, is_expired

logger = structlog.get_logger()


class BidLocks:
    """One asyncio.Lock per listing id, dropped once nobody holds it."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, listing_id: str) -> asyncio.Lock:
        lock = self._locks.get(listing_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[listing_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, listing_id: str):
        lock = self.get(listing_id)
        async with lock:
            yield


@asynccontextmanager
async def _no_lock():
    yield


async def place_bid(
    db: AuctionDB,
    listing_id: Any,
    bid_amount: Any,
    bidder_name: Any,
    locks: Optional[BidLocks] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Validate a bid and apply it to a listing.

    The bid is recorded before the expiry check, so a bid arriving after the
    end time still becomes the final highest bid as the listing closes.

    Args:
        db: Store handle
        listing_id: Listing to bid on
        bid_amount: Number or numeric string
        bidder_name: Free-form bidder identity
        locks: Per-listing locks serializing read-compare-write; None to skip
        now: Clock override

    Returns:
        Updated listing document
    """
    listing_id = check_listing_id(listing_id)

    guard = locks.hold(listing_id) if locks is not None else _no_lock()
    async with guard:
        listing = await db.get_auction_item(listing_id)
        if not listing:
            raise NotFoundError("Auction item not found")

        if listing_state(listing) == ListingState.CLOSED:
            raise AuctionClosedError("Auction has closed")

        try:
            amount = parse_amount(bid_amount, "bid amount")
        except InvalidInputError:
            raise InvalidInputError("Invalid bid amount")

        current = listing.get("highestBid", 0)
        if amount <= current:
            raise BidTooLowError(current)

        updates = {
            "highestBid": amount,
            "highestBidder": "" if bidder_name is None else str(bidder_name),
        }

        if is_expired(listing, now):
            updates["isClosed"] = True

        updated = await db.update_auction_item(listing_id, updates)
        if not updated:
            raise NotFoundError("Auction item not found")

    logger.info(
        "bid_placed",
        item_id=listing_id,
        amount=amount,
        bidder=updates["highestBidder"],
        closed=updates.get("isClosed", False),
    )

    return updated
