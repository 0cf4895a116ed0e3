import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils.timezone import now

from Accounts.models import User, VerificationToken
from Notifications.service import notify, send_email
from Taskio.exceptions import BadRequest, Gone

logger = logging.getLogger(__name__)


def issue_verification_token(user: User) -> VerificationToken:
    """Invalidate earlier unused tokens and create a fresh one."""
    VerificationToken.objects.filter(user=user, purpose="VERIFY_EMAIL", used_at__isnull=True).delete()
    return VerificationToken.objects.create(
        user=user,
        token=secrets.token_hex(32),
        purpose="VERIFY_EMAIL",
        expires_at=now() + timedelta(hours=settings.EMAIL_VERIFICATION_TTL_HOURS),
    )


def send_verification_email(user: User) -> bool:
    token = issue_verification_token(user)
    link = f"{settings.FRONTEND_BASE_URL.rstrip('/')}/auth/verify?token={token.token}"
    body = (
        f"Hi {user.first_name or user.email},\n\n"
        f"Confirm your email address to activate your Taskio account:\n{link}\n\n"
        f"This link expires in {settings.EMAIL_VERIFICATION_TTL_HOURS} hours."
    )
    return send_email(user.email, "Verify your Taskio account", body)


@transaction.atomic
def consume_verification_token(raw_token: str) -> User:
    token = (
        VerificationToken.objects.select_for_update()
        .select_related("user")
        .filter(token=raw_token, purpose="VERIFY_EMAIL")
        .first()
    )
    if not token or token.used_at:
        raise BadRequest("Invalid or already used token.")
    if token.expires_at <= now():
        raise Gone("Verification link expired.")

    token.used_at = now()
    token.save(update_fields=["used_at"])

    user = token.user
    if not user.email_verified_at:
        user.email_verified_at = now()
        user.save(update_fields=["email_verified_at"])
        notify(user, "ACCOUNT_VERIFIED")
    logger.info("[VERIFY] email verified for user %s", user.id)
    return user
