"""Bidding system module."""

from .place import place_bid, BidLocks
from .lifecycle import listing_state, is_expired

__all__ = ["place_bid", "BidLocks", "listing_state", "is_expired"]
