"""Configuration settings for Auction House."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Auction House settings from environment."""

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "auctionDB"

    # Tokens (fixed shared secret unless overridden)
    jwt_secret: str = "secretkey"
    jwt_algorithm: str = "HS256"
    token_expiry_seconds: int = 3600

    # Password hashing
    bcrypt_rounds: int = 10

    # Listing behaviour
    strict_updates: bool = False  # True: only omitted/null fields are skipped on edit
    bid_locking: bool = True  # Serialize bids per listing within this process
    auth_required: bool = False  # Require a bearer token on listing mutations

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
