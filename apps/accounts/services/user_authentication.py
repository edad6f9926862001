"""User authentication service."""

from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()


def authenticate_user(*, email: str, password: str) -> User:
    """
    Check email/password credentials and stamp last_login.

    Args:
        email: User's email (case-insensitive)
        password: User's password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveAccountError: If account is deactivated
    """
    user = User.objects.filter(email__iexact=email.strip()).first()

    if user is None or not user.check_password(password):
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    # Single-column UPDATE; last_login races are harmless
    User.objects.filter(id=user.id).update(last_login=timezone.now())

    return user
