import logging
from typing import Optional

from django.conf import settings
from django.core.mail import send_mail

from Notifications.models import Notification, NotificationPreference
from Notifications.templates import NOTIFICATION_TEMPLATES, render

logger = logging.getLogger(__name__)


def send_email(recipient: str, subject: str, body: str) -> bool:
    """Send a plain-text email through the configured backend. Never raises."""
    if not recipient:
        return False
    try:
        sent = send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient], fail_silently=False)
        logger.info("[EMAIL] sent '%s' to %s", subject, recipient)
        return sent > 0
    except Exception as e:
        logger.error("[EMAIL] failed to send '%s' to %s: %s", subject, recipient, e)
        return False


def get_preferences(user) -> NotificationPreference:
    pref, _ = NotificationPreference.objects.get_or_create(user=user)
    return pref


def notify(user, notification_type: str, **metadata) -> Optional[Notification]:
    """
    Create an in-app notification for `user` and optionally email it.

    Content comes from NOTIFICATION_TEMPLATES; user preferences decide which
    channels are used. Returns None when the type is unknown or every channel
    is disabled. Delivery problems are logged, never raised.
    """
    template = NOTIFICATION_TEMPLATES.get(notification_type)
    if not template:
        logger.error("[Notifications] No template found for type: %s", notification_type)
        return None
    if user is None:
        return None

    pref = get_preferences(user)
    if notification_type in (pref.disabled_types or []):
        logger.info("[Notifications] user %s disabled %s", user.pk, notification_type)
        return None

    wants_email = bool(template.get("email")) and pref.email_enabled
    if not pref.in_app_enabled and not wants_email:
        return None

    title = render(template["title"], metadata)
    message = render(template["message"], metadata)
    action_url = render(template["action_url"], metadata)

    notification = None
    safe_metadata = {k: (v if isinstance(v, (str, int, float, bool)) or v is None else str(v)) for k, v in metadata.items()}
    if pref.in_app_enabled:
        notification = Notification.objects.create(
            user=user,
            type=notification_type,
            title=title,
            message=message,
            action_url=action_url,
            priority=template.get("priority", "MEDIUM"),
            metadata=safe_metadata,
        )

    if wants_email:
        link = f"{settings.FRONTEND_BASE_URL.rstrip('/')}{action_url}"
        emailed = send_email(user.email, title, f"{message}\n\n{link}")
        if emailed and notification is not None:
            notification.emailed = True
            notification.save(update_fields=["emailed"])

    return notification
