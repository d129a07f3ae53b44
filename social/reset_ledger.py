"""
Password reset tokens.

A token is a random string stored in the Django cache under
"reset-token:<token>" with the account email and an absolute expiry.
Tokens are single use. Expiry is checked when a token is presented; an
expired, orphaned or consumed token is removed at that point. The cache
timeout equals the token lifetime, so abandoned tokens also age out of the
cache on their own.

Only one caller can consume a given token: the entry is claimed with
cache.delete(), which reports whether this call removed it.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import send_mail
from django.db import DatabaseError
from django.utils import timezone
from django.utils.crypto import get_random_string

from .exceptions import InternalError, NotFound, Unauthorized, ValidationError
from .models import User


logger = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "reset-token:"
TOKEN_LENGTH = 48

GENERIC_RESET_MESSAGE = "If an account exists with this email, a reset link will be sent."


def _key(token):
    return f"{TOKEN_KEY_PREFIX}{token}"


def token_lifetime():
    return timedelta(seconds=settings.PARLEY_RESET_TOKEN_TTL_SECONDS)


def expose_tokens():
    """Whether issued tokens may be echoed back to the requester."""
    return settings.PARLEY_EXPOSE_RESET_TOKEN


def _send_reset_email(user, token, lifetime):
    minutes = int(lifetime.total_seconds() // 60)
    try:
        send_mail(
            subject="Reset your Parley password",
            message=(
                f"Hi {user.username},\n\n"
                f"Use this code to reset your password: {token}\n"
                f"It expires in {minutes} minutes. If you did not ask for a reset, "
                f"you can ignore this email."
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[user.email],
            fail_silently=False,
        )
    except Exception as email_error:
        logger.warning(f"Reset email delivery failed for {user.username}: {email_error}")


def _restore(key, entry):
    """Put a claimed entry back for the rest of its lifetime."""
    remaining = int((entry["expires_at"] - timezone.now()).total_seconds())
    if remaining > 0:
        cache.set(key, entry, timeout=remaining)


def issue_token(email):
    """
    Start a password reset for email.

    Returns the new token, or None when no account has that email. Callers
    must answer both cases identically to the requester.
    """
    if email is not None and not isinstance(email, str):
        raise ValidationError("Email must be a string")
    if not email or not email.strip():
        raise ValidationError("Email is required")

    try:
        user = User.objects.by_identifier(email.strip())
    except DatabaseError as e:
        logger.error(f"Account lookup failed during reset request: {e}")
        raise InternalError("Failed to process reset request") from e
    if user is None:
        logger.info("Password reset requested for an unknown email")
        return None

    lifetime = token_lifetime()
    token = get_random_string(TOKEN_LENGTH)
    cache.set(
        _key(token),
        {"email": user.email, "expires_at": timezone.now() + lifetime},
        timeout=int(lifetime.total_seconds()),
    )
    logger.info(f"Generated reset token for {user.username}")

    _send_reset_email(user, token, lifetime)
    return token


def consume_token(token, new_password):
    """
    Set a new password using a reset token.

    Raises:
        ValidationError: missing token/password, or password rejected by
            the configured validators (the token stays usable)
        Unauthorized: unknown, expired or already consumed token
        NotFound: the account behind the token no longer exists
        InternalError: the store failed; a token claimed before a failed
            save is put back and stays usable
    """
    if not token or not new_password:
        raise ValidationError("Token and new password are required")
    if not isinstance(token, str) or not isinstance(new_password, str):
        raise ValidationError("Token and new password must be strings")

    key = _key(token)
    entry = cache.get(key)
    if entry is None:
        raise Unauthorized("Invalid or expired reset token")

    if timezone.now() > entry["expires_at"]:
        cache.delete(key)
        raise Unauthorized("Reset token has expired")

    # The entry holds the canonical email, so match it exactly.
    try:
        user = User.objects.filter(email=entry["email"]).first()
    except DatabaseError as e:
        logger.error(f"Account lookup failed during password reset: {e}")
        raise InternalError("Failed to reset password") from e
    if user is None:
        cache.delete(key)
        raise NotFound("User not found")

    try:
        validate_password(new_password, user=user)
    except DjangoValidationError as e:
        raise ValidationError(" ".join(e.messages)) from e

    if not cache.delete(key):
        raise Unauthorized("Invalid or expired reset token")

    user.set_password(new_password)
    try:
        user.save(update_fields=['password'])
    except DatabaseError as e:
        logger.error(f"Password reset failed for {user.username}: {e}")
        _restore(key, entry)
        raise InternalError("Failed to reset password") from e

    logger.info(f"Password reset completed for {user.username}")
    return user
