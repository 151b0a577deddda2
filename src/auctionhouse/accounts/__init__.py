"""Account service module."""

from .register import register_user, authenticate_user

__all__ = ["register_user", "authenticate_user"]
