"""Supabase Auth token verifier."""

import logging
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from meal_analyzer.domain.errors import InvalidCredentials
from meal_analyzer.services.auth import TokenVerifier

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseTokenVerifier(TokenVerifier):
    """Resolves JWTs issued by Supabase Auth."""

    client: Client

    def resolve_user_id(self, token: str) -> UUID:
        """Look up the user owning the token."""
        try:
            response = self.client.auth.get_user(token)
        except Exception as exc:
            _logger.warning("Token verification failed: %s", exc)
            raise InvalidCredentials(details=str(exc)) from exc
        user = getattr(response, "user", None)
        if user is None:
            raise InvalidCredentials()
        return UUID(str(user.id))
