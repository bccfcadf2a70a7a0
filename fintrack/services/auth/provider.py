"""
Authentication Collaborator

The tracker never handles passwords or tokens itself. It only needs to know
who the current user is and how to sign them out. Everything else belongs
to the identity provider behind this interface.

When `current_user()` returns None, no fetch or mutation is permitted.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import NAMESPACE_URL, uuid5

from fintrack.models.finance import UserIdentity


class AuthenticationError(Exception):
    """Signing in failed or the identity provider is unreachable."""
    pass


class AuthProviderInterface(ABC):
    """Supplies the current user identity and a sign-out action."""

    @abstractmethod
    def current_user(self) -> Optional[UserIdentity]:
        """The signed-in user, or None."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass


class SessionAuthProvider(AuthProviderInterface):
    """
    Keeps the identity for one UI session.

    User ids are derived from the email address, so the same person gets
    the same id (and the same data) across sessions.
    """

    def __init__(self, user: Optional[UserIdentity] = None):
        self._user = user

    def current_user(self) -> Optional[UserIdentity]:
        return self._user

    def sign_in(self, email: str, display_name: Optional[str] = None) -> UserIdentity:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise AuthenticationError(f"Not a valid email address: {email!r}")

        self._user = UserIdentity(
            id=str(uuid5(NAMESPACE_URL, f"fintrack:{email}")),
            display_name=(display_name or "").strip() or None,
            email=email,
        )
        return self._user

    async def sign_out(self) -> None:
        self._user = None
