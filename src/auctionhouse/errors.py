"""Domain errors raised by the account, listing and bidding services."""


class AuctionHouseError(Exception):
    """Base class for expected, per-request failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(AuctionHouseError):
    """Malformed identifier, missing required field or non-numeric value."""


class NotFoundError(AuctionHouseError):
    """No matching user or listing."""


class ConflictError(AuctionHouseError):
    """Username or email already registered."""


class InvalidCredentialError(AuctionHouseError):
    """Password did not match the stored hash."""


class AuctionClosedError(AuctionHouseError):
    """Listing no longer accepts bids."""


class BidTooLowError(AuctionHouseError):
    """Bid is not strictly greater than the current highest bid."""

    def __init__(self, current_bid: float):
        super().__init__(f"Bid amount must be higher than the current bid of {_format_number(current_bid)}")
        self.current_bid = current_bid


def _format_number(value: float) -> str:
    # 50.0 -> "50", 12.5 -> "12.5"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
