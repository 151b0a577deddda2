"""Listing lifecycle: open until a bid lands after the end time, then closed."""

from datetime import datetime, timezone
from typing import Optional

from ..models import ListingState, as_utc


def listing_state(listing: dict) -> ListingState:
    """Current state of a stored listing."""
    return ListingState.CLOSED if listing.get("isClosed") else ListingState.OPEN


def is_expired(listing: dict, now: Optional[datetime] = None) -> bool:
    """Whether the current time is strictly past the listing's end time."""
    now = now or datetime.now(timezone.utc)
    return as_utc(now) > as_utc(listing["auctionEndTime"])
