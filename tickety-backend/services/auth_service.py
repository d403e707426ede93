"""
Caller authentication against Supabase Auth.

Turns an `Authorization: Bearer <jwt>` header into an AuthenticatedUser.
"""

from __future__ import annotations

import logging
from typing import Optional

from supabase import AuthError, Client  # type: ignore[import-not-found]

from domain.caller import AuthenticatedUser
from domain.errors import Unauthenticated

logger = logging.getLogger(__name__)

_BEARER_PREFIX: str = "Bearer "


def resolve_caller(client: Client, authorization: Optional[str]) -> AuthenticatedUser:
    """
    Resolve the caller behind an Authorization header.

    Raises:
        Unauthenticated: header missing, or the token was rejected
    """

    if not authorization:
        raise Unauthenticated("Missing authorization header")

    token = authorization[len(_BEARER_PREFIX):] if authorization.startswith(_BEARER_PREFIX) else authorization
    token = token.strip()
    if not token:
        raise Unauthenticated("Invalid authentication")

    try:
        response = client.auth.get_user(token)
    except AuthError as e:
        logger.info("Rejected caller token", extra={"error": str(e)})
        raise Unauthenticated("Invalid authentication") from e

    user = getattr(response, "user", None) if response is not None else None
    if user is None or not getattr(user, "id", None):
        raise Unauthenticated("Invalid authentication")

    return AuthenticatedUser(user_id=str(user.id), email=getattr(user, "email", None))
