"""Authentication services package."""

from fintrack.services.auth.provider import (
    AuthenticationError,
    AuthProviderInterface,
    SessionAuthProvider,
)

__all__ = [
    "AuthenticationError",
    "AuthProviderInterface",
    "SessionAuthProvider",
]
