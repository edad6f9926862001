"""User registration service."""

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from apps.trust.services import TrustServiceError, get_trust_ledger

from .exceptions import UserRegistrationError

User = get_user_model()


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    display_name: str = "",
    ledger=None
) -> User:
    """
    Register a new user and open their trust account.

    The user starts at the initial trust score; the 'Account created'
    history entry is written in the same transaction.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        display_name: Optional display name
        ledger: TrustLedger to record the opening entry (defaults to the
            database-backed ledger)

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If registration fails
    """
    ledger = ledger or get_trust_ledger()

    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("A user with this email already exists")

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            display_name=display_name
        )
        ledger.open_account(user_id=user.id)
    except (IntegrityError, TrustServiceError) as e:
        raise UserRegistrationError(f"Registration failed: {str(e)}")

    return user
