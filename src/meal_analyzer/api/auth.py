"""Bearer token authentication for API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import Header, Request

from meal_analyzer.domain.errors import MissingCredentials
from meal_analyzer.services.auth import bearer_token

if TYPE_CHECKING:
    from meal_analyzer.containers import AppContainer


async def require_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> UUID:
    """Resolve the bearer credential to the authenticated user id."""
    token = bearer_token(authorization)
    if token is None:
        raise MissingCredentials()
    container: AppContainer = request.app.state.container
    return container.token_verifier.resolve_user_id(token)
