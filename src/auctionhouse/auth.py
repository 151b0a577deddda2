"""Password hashing and bearer-token authentication for Auction House.

Passwords are stored as salted bcrypt hashes. Sign-in issues a signed,
time-limited JWT carrying the user id:

1. Client signs in: POST /signin {email, password}
2. Server returns a token valid for ``token_expiry_seconds``
3. Client sends it as ``Authorization: Bearer <token>``
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from dataclasses import dataclass

import bcrypt
import jwt
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import structlog

from .config import get_settings

logger = structlog.get_logger()


@dataclass
class AuthenticatedUser:
    """Represents the holder of a valid token."""
    user_id: str
    expires_at: Optional[datetime] = None


# ============================================================
# Passwords
# ============================================================

def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with a fresh salt."""
    rounds = rounds or get_settings().bcrypt_rounds
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Compare a plaintext password against a stored hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ============================================================
# Tokens
# ============================================================

def generate_token(user_id: str, now: Optional[datetime] = None) -> str:
    """Issue a signed token for a user id.

    Args:
        user_id: Identifier placed in the ``userId`` claim
        now: Issuance time (defaults to the current UTC time)

    Returns:
        Encoded JWT string
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "iat": now,
        "exp": now + timedelta(seconds=settings.token_expiry_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[AuthenticatedUser]:
    """Verify a token's signature and expiry.

    Returns:
        AuthenticatedUser if valid, None otherwise
    """
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("token_expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning("token_invalid", error=str(e))
        return None

    user_id = claims.get("userId")
    if not user_id:
        return None

    return AuthenticatedUser(
        user_id=user_id,
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    )


# ============================================================
# FastAPI Dependencies
# ============================================================

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthenticatedUser]:
    """FastAPI dependency resolving the bearer token, if any."""
    if not credentials:
        return None
    return decode_token(credentials.credentials)


async def require_auth(
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
) -> AuthenticatedUser:
    """FastAPI dependency that requires a valid token."""
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Use /signin to get a token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def listing_write_auth(
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
) -> Optional[AuthenticatedUser]:
    """Guard for listing mutations.

    Open by default; enforces a token only when ``auth_required`` is set.
    """
    if not get_settings().auth_required:
        return user
    return await require_auth(user)
