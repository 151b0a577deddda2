"""User sign-up and sign-in."""

from typing import Any
from pymongo.errors import DuplicateKeyError
import structlog

from ..auth import hash_password, verify_password, generate_token
from ..db import AuctionDB
from ..errors import InvalidInputError, NotFoundError, ConflictError, InvalidCredentialError
from ..models import User

logger = structlog.get_logger()


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidInputError(f"{field} is required")
    return value


async def register_user(db: AuctionDB, username: Any, email: Any, password: Any) -> str:
    """Register a new user.

    Args:
        db: Store handle
        username: Unique display name
        email: Unique email address
        password: Plaintext password, stored only as a salted hash

    Returns:
        New user id
    """
    username = _require_text(username, "username")
    email = _require_text(email, "email")
    password = _require_text(password, "password")

    if await db.find_user_conflict(username, email):
        raise ConflictError("Username or email already exists")

    user = User(username=username, email=email, password=hash_password(password))

    try:
        user_id = await db.create_user(user.model_dump())
    except DuplicateKeyError:
        # Lost a race with a concurrent sign-up; the unique index caught it
        raise ConflictError("Username or email already exists")

    logger.info("user_registered", user_id=user_id, username=username)
    return user_id


async def authenticate_user(db: AuctionDB, email: Any, password: Any) -> str:
    """Check credentials and issue a bearer token.

    Returns:
        Signed token encoding the user id
    """
    user = await db.get_user_by_email(email) if isinstance(email, str) else None
    if not user:
        raise NotFoundError("User not found")

    if not isinstance(password, str) or not verify_password(password, user["password"]):
        logger.info("signin_rejected", user_id=str(user["_id"]))
        raise InvalidCredentialError("Invalid password")

    user_id = str(user["_id"])
    logger.info("user_signed_in", user_id=user_id)
    return generate_token(user_id)
