"""
Core security - authentication classes and session tokens for the API.
"""

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt
from django.conf import settings
from django.http import HttpRequest
from ninja.errors import HttpError
from ninja.security import HttpBearer

from apps.core.auth import AuthContext

if TYPE_CHECKING:
    from apps.accounts.models import User

SESSION_TOKEN_LIFETIME = timedelta(hours=12)


class BearerAuth(HttpBearer):
    """
    Bearer token authentication for API endpoints.

    Actual JWT validation is performed by JWTAuthMiddleware, which stores an
    AuthContext on the request. This class exposes it to django-ninja and
    documents the security scheme in OpenAPI.
    """

    def authenticate(self, request: HttpRequest, token: str) -> AuthContext | None:
        """
        Return the middleware-populated AuthContext if a user was resolved.

        Returning None makes django-ninja answer 401.
        """
        auth = getattr(request, "auth", None)
        if isinstance(auth, AuthContext) and auth.user is not None:
            return auth
        return None


def get_auth_context(request: HttpRequest) -> "User":
    """
    Get the authenticated user for an endpoint.

    Raises:
        HttpError 401: If the request carries no authenticated user
    """
    auth = getattr(request, "auth", None)
    if not isinstance(auth, AuthContext):
        raise HttpError(401, "Not authenticated")
    return auth.require_auth()


def create_session_token(user: "User", lifetime: timedelta = SESSION_TOKEN_LIFETIME) -> str:
    """Issue a signed session JWT for a user."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user.pk),
        "email": user.email,
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a session JWT.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, expired or forged
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
