"""
Auth services - credential checks and profile updates.
"""

from apps.accounts.models import User
from apps.core.logging import get_logger

logger = get_logger(__name__)


def authenticate_credentials(email: str, password: str) -> User | None:
    """
    Return the active user matching email/password, or None.

    Runs the password hasher even for unknown emails so timing does not
    reveal which accounts exist.
    """
    email = User.objects.normalize_email(email)
    user = User.objects.filter(email=email).first()
    if user is None:
        User().set_password(password)
        logger.info("login_failed", reason="unknown_email")
        return None
    if not user.is_active or not user.check_password(password):
        logger.info("login_failed", reason="bad_credentials", user_id=user.id)
        return None
    logger.info("login_succeeded", user_id=user.id)
    return user


def update_profile(user: User, first_name: str, last_name: str) -> User:
    """Update the user's display name fields."""
    user.first_name = first_name.strip()
    user.last_name = last_name.strip()
    user.save(update_fields=["first_name", "last_name", "updated_at"])
    return user
