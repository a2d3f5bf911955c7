"""
Core middleware.
"""

from collections.abc import Callable
from uuid import UUID, uuid4

import jwt
from django.http import HttpRequest, HttpResponse

from apps.core.auth import AuthContext
from apps.core.logging import bind_contextvars, clear_contextvars, get_logger
from apps.core.security import decode_session_token

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _client_ip(request: HttpRequest) -> str | None:
    """First address of X-Forwarded-For, else REMOTE_ADDR."""
    forwarded: str | None = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


class CorrelationIdMiddleware:
    """
    Attach a correlation ID to every request and bind it for logging.

    Reuses a valid UUID from the X-Correlation-ID header, otherwise generates
    one. The ID is echoed back in the response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        correlation_id = self._extract(request)
        request.correlation_id = correlation_id  # type: ignore[attr-defined]

        clear_contextvars()
        bind_contextvars(
            correlation_id=str(correlation_id),
            **{
                "http.method": request.method,
                "http.url_details.path": request.path,
                "request.ip_address": _client_ip(request),
            },
        )
        try:
            response = self.get_response(request)
        finally:
            clear_contextvars()

        response[CORRELATION_HEADER] = str(correlation_id)
        return response

    @staticmethod
    def _extract(request: HttpRequest) -> UUID:
        raw = request.headers.get(CORRELATION_HEADER)
        if raw:
            try:
                return UUID(raw)
            except ValueError:
                pass
        return uuid4()


class JWTAuthMiddleware:
    """
    Resolve the acting user from a Bearer session JWT.

    Sets request.auth to an AuthContext. Requests without a token get an
    empty context; requests with an invalid token get failed=True. Endpoints
    decide whether authentication is required (see BearerAuth).
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request.auth = self._authenticate(request)  # type: ignore[attr-defined]
        return self.get_response(request)

    def _authenticate(self, request: HttpRequest) -> AuthContext:
        from apps.accounts.models import User

        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return AuthContext()

        try:
            claims = decode_session_token(token.strip())
        except jwt.InvalidTokenError as e:
            logger.info("session_token_rejected", reason=str(e))
            return AuthContext(failed=True)

        user = User.objects.filter(pk=claims["sub"], is_active=True).first()
        if user is None:
            logger.info("session_user_missing", user_id=claims["sub"])
            return AuthContext(failed=True)

        bind_contextvars(**{"usr.id": str(user.pk), "usr.email": user.email})
        return AuthContext(user=user)
