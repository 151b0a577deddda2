"""Listing store module."""

from .crud import (
    check_listing_id,
    create_listing,
    get_listing,
    list_listings,
    update_listing,
    delete_listing,
)

__all__ = [
    "check_listing_id",
    "create_listing",
    "get_listing",
    "list_listings",
    "update_listing",
    "delete_listing",
]
