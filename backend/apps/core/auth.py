"""
Authentication context for request lifecycle.

Provides a typed container for authentication state that middleware
populates and endpoints consume.

Company context is not part of the session: every endpoint names the
company, project or task it acts on, and the caller's role there is
resolved per request by apps.companies.membership.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ninja.errors import HttpError

if TYPE_CHECKING:
    from apps.accounts.models import User


@dataclass
class AuthContext:
    """
    Authentication context attached to requests by JWTAuthMiddleware.

    Attributes:
        user: The authenticated User, or None if not authenticated
        failed: True if auth was attempted but failed (vs just not present)
    """

    user: "User | None" = None
    failed: bool = False

    @property
    def is_authenticated(self) -> bool:
        """Check if the request is authenticated."""
        return self.user is not None

    def require_auth(self) -> "User":
        """
        Get the authenticated user or raise 401.

        Raises:
            HttpError 401: If not authenticated
        """
        if self.user is None:
            raise HttpError(401, "Not authenticated")
        return self.user
