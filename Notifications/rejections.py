import logging
from datetime import timedelta

from django.conf import settings
from django.utils.timezone import now

from Jobs.models import Application
from Notifications.service import send_email

logger = logging.getLogger(__name__)

BATCH_SIZE = 100

REJECTION_SUBJECT = "Update on your application for {job_title}"
REJECTION_BODY = (
    "Hi {candidate_name},\n\n"
    "Thank you for applying to {job_title} at {company_name}. After reviewing "
    "your profile the team decided to move forward with other candidates.\n\n"
    "We wish you the best in your search."
)


def send_rejection_emails(delay_days=None, limit: int = BATCH_SIZE):
    """
    Email candidates rejected at least `delay_days` ago.

    An application is marked as emailed only when the mail backend accepted
    the message, so failures are retried on the next run.
    """
    delay_days = settings.REJECTION_EMAIL_DELAY_DAYS if delay_days is None else delay_days
    cutoff = now() - timedelta(days=delay_days)
    pending = (
        Application.objects.filter(status="REJECTED", rejection_email_sent=False, rejected_at__lte=cutoff)
        .select_related("candidate", "job__company")
        .order_by("rejected_at")[:limit]
    )

    results = []
    for application in pending:
        candidate = application.candidate
        if not candidate.email:
            results.append({"id": application.id, "error": "candidate has no email"})
            continue

        context = {
            "candidate_name": candidate.first_name or candidate.full_name,
            "job_title": application.job.title,
            "company_name": application.job.company.name,
        }
        if send_email(candidate.email, REJECTION_SUBJECT.format(**context), REJECTION_BODY.format(**context)):
            Application.objects.filter(id=application.id).update(rejection_email_sent=True)
            results.append({"id": application.id, "ok": True})
        else:
            results.append({"id": application.id, "error": "send failed"})

    logger.info("[CRON] rejection emails processed: %s", len(results))
    return results
