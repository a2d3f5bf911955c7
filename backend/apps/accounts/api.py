"""
Auth API endpoints.

Credential login issuing session JWTs, and the current user's profile.
"""

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.accounts.schemas import TokenRequest, TokenResponse, UpdateProfileRequest
from apps.accounts.services import authenticate_credentials, update_profile
from apps.core.schemas import ErrorResponse, UserSummary
from apps.core.security import BearerAuth, create_session_token, get_auth_context

router = Router(tags=["auth"])
bearer_auth = BearerAuth()


@router.post(
    "/token",
    response={200: TokenResponse, 401: ErrorResponse},
    operation_id="createSessionToken",
    summary="Log in with email and password",
)
def create_token(request: HttpRequest, payload: TokenRequest) -> TokenResponse:
    """Exchange credentials for a session JWT."""
    user = authenticate_credentials(payload.email, payload.password)
    if user is None:
        raise HttpError(401, "Invalid email or password")

    return TokenResponse(
        access_token=create_session_token(user),
        user=UserSummary.from_orm(user),
    )


@router.get(
    "/me",
    response={200: UserSummary, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="getCurrentUser",
    summary="Get current user info",
)
def get_current_user(request: HttpRequest) -> UserSummary:
    """Return the authenticated user."""
    user = get_auth_context(request)
    return UserSummary.from_orm(user)


@router.patch(
    "/me",
    response={200: UserSummary, 401: ErrorResponse},
    auth=bearer_auth,
    operation_id="updateProfile",
    summary="Update user profile",
)
def update_current_user(request: HttpRequest, payload: UpdateProfileRequest) -> UserSummary:
    """Update the authenticated user's first and last name."""
    user = get_auth_context(request)
    user = update_profile(user, payload.first_name, payload.last_name)
    return UserSummary.from_orm(user)
