"""Email/password login."""

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.models import update_last_login

from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()

logger = logging.getLogger(__name__)


def authenticate_user(*, email: str, password: str) -> User:
    """
    Check credentials and stamp ``last_login``.

    Emails are stored lowercased, so the lookup is case-insensitive.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: Credentials are right but the account is disabled
    """
    user = User.objects.filter(email=email.strip().lower()).first()

    if user is None or not user.check_password(password):
        logger.info("Rejected login for %s", email)
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    update_last_login(None, user)
    return user
