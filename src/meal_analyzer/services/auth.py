"""Bearer credential resolution."""

from typing import Protocol
from uuid import UUID


class TokenVerifier(Protocol):
    """Resolves a bearer token to the authenticated user id."""

    def resolve_user_id(self, token: str) -> UUID:
        """Return the user id or raise InvalidCredentials."""


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an Authorization header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None
