"""Pydantic models for users, auction items and request bodies."""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any, Union
from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidInputError


# ============================================================
# Enums
# ============================================================

class ListingState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


# ============================================================
# Stored Records
# ============================================================

class User(BaseModel):
    """Registered user. Immutable after sign-up."""
    username: str
    email: str
    password: str  # bcrypt hash, never plaintext


class AuctionItem(BaseModel):
    """Auction listing with its bidding state.

    Field aliases are the stored (and wire) names.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    starting_bid: Union[int, float] = Field(alias="startingBid")
    auction_end_time: datetime = Field(alias="auctionEndTime")

    # Bidding state
    highest_bid: Union[int, float] = Field(default=0, alias="highestBid")
    highest_bidder: str = Field(default="", alias="highestBidder")
    is_closed: bool = Field(default=False, alias="isClosed")

    @property
    def state(self) -> ListingState:
        return ListingState.CLOSED if self.is_closed else ListingState.OPEN


# Editable listing fields, by stored name
EDITABLE_FIELDS = ("title", "description", "startingBid", "auctionEndTime")


# ============================================================
# Request Bodies
# ============================================================
#
# Every field is optional and untyped so that missing or malformed values
# reach the services, which decide the error.

class SignUpRequest(BaseModel):
    username: Optional[Any] = None
    email: Optional[Any] = None
    password: Optional[Any] = None


class SignInRequest(BaseModel):
    email: Optional[Any] = None
    password: Optional[Any] = None


class AuctionCreateRequest(BaseModel):
    title: Optional[Any] = None
    description: Optional[Any] = None
    startingBid: Optional[Any] = None
    auctionEndTime: Optional[Any] = None


class AuctionUpdateRequest(BaseModel):
    """Partial listing edit. Omitted fields are left as stored."""
    title: Optional[Any] = None
    description: Optional[Any] = None
    startingBid: Optional[Any] = None
    auctionEndTime: Optional[Any] = None


class BidRequest(BaseModel):
    bidAmount: Optional[Any] = None
    bidderName: Optional[Any] = None


# ============================================================
# Value Parsing
# ============================================================

def parse_amount(value: Any, field: str = "amount") -> Union[int, float]:
    """Parse a monetary value from a number or numeric string.

    Raises:
        InvalidInputError: if the value is missing, boolean, non-numeric,
            NaN or infinite
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError(f"Invalid {field}")

    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip())
        except ValueError:
            raise InvalidInputError(f"Invalid {field}")
    else:
        raise InvalidInputError(f"Invalid {field}")

    if not math.isfinite(amount):
        raise InvalidInputError(f"Invalid {field}")

    # Whole amounts stay integral on the wire: 10, not 10.0
    if amount.is_integer() and abs(amount) < 2 ** 53:
        return int(amount)
    return amount


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (MongoDB returns naive UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any, field: str = "timestamp") -> datetime:
    """Parse an ISO-8601 string, datetime, or epoch-milliseconds number."""
    if isinstance(value, datetime):
        return as_utc(value)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise InvalidInputError(f"Invalid {field}")
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise InvalidInputError(f"Invalid {field}")

    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            raise InvalidInputError(f"Invalid {field}")

    raise InvalidInputError(f"Invalid {field}")
