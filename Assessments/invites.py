import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils.timezone import now

from Assessments.models import AssessmentAttempt, AssessmentInvite, AssessmentTemplate, JobAssessment
from Billing import credits as credit_service
from Notifications.service import notify
from Taskio.exceptions import BadRequest, NotFound

logger = logging.getLogger(__name__)

ACTIVE_INVITE_STATUSES = ("SENT", "STARTED")
COMPLETED_STATUSES = ("SUBMITTED", "EVALUATED")


def new_invite_token() -> str:
    return secrets.token_hex(24)


def is_invite_reusable(invite: AssessmentInvite, when=None) -> bool:
    when = when or now()
    if invite.status not in ACTIVE_INVITE_STATUSES:
        return False
    return not (invite.expires_at and invite.expires_at <= when)


def pick_template_for_application(application, template_id=None) -> AssessmentTemplate:
    assigned = JobAssessment.objects.filter(job_id=application.job_id).select_related("template")
    if template_id:
        assigned = assigned.filter(template_id=template_id)
    chosen = assigned.order_by("created_at", "id").first()
    if not chosen:
        if template_id:
            raise BadRequest("This assessment is not assigned to the job.")
        raise BadRequest("This job has no assessments assigned.")
    return chosen.template


@transaction.atomic
def ensure_invite_for_application(application, template: AssessmentTemplate, invited_by=None):
    """
    Make sure the candidate behind `application` holds a usable invite for `template`.

    An active invite (SENT/STARTED, not expired) is returned as is. Otherwise a
    new invite is created, or the old one is rotated to a fresh token and a
    new expiry, and the company's credits are reserved for it. When the
    reservation fails nothing is persisted.

    Returns (invite, attempt, reused).
    """
    when = now()
    attempt = (
        AssessmentAttempt.objects.filter(
            application=application,
            candidate_id=application.candidate_id,
            template=template,
            status__in=("NOT_STARTED", "IN_PROGRESS"),
        )
        .order_by("-created_at")
        .first()
    )
    if attempt is None:
        attempt = AssessmentAttempt.objects.create(
            application=application,
            candidate_id=application.candidate_id,
            template=template,
            status="NOT_STARTED",
        )

    invite = AssessmentInvite.objects.select_for_update().filter(application=application, template=template).first()
    if invite is not None and is_invite_reusable(invite, when):
        logger.info("[ASSESSMENT INVITE] reusing invite %s for application %s", invite.id, application.id)
        return invite, attempt, True

    expires_at = when + timedelta(days=settings.ASSESSMENT_INVITE_TTL_DAYS)
    if invite is None:
        try:
            with transaction.atomic():
                invite = AssessmentInvite.objects.create(
                    application=application,
                    job_id=application.job_id,
                    candidate_id=application.candidate_id,
                    template=template,
                    token=new_invite_token(),
                    status="SENT",
                    expires_at=expires_at,
                    sent_at=when,
                    invited_by=invited_by,
                )
        except IntegrityError:
            invite = AssessmentInvite.objects.select_for_update().get(application=application, template=template)
            if is_invite_reusable(invite, when):
                return invite, attempt, True
            invite = _rotate(invite, expires_at, when, invited_by)
    else:
        invite = _rotate(invite, expires_at, when, invited_by)

    credit_service.reserve_credits(application.job.company_id, invite, template.type, template.difficulty)

    notify(
        application.candidate,
        "ASSESSMENT_INVITATION",
        template_title=template.title,
        job_title=application.job.title,
        expires_at=expires_at.strftime("%Y-%m-%d"),
        template_id=template.id,
        token=invite.token,
    )
    logger.info(
        "[ASSESSMENT INVITE] invite %s sent for application %s (template %s, attempt %s)",
        invite.id, application.id, template.id, attempt.id,
    )
    return invite, attempt, False


def _rotate(invite: AssessmentInvite, expires_at, when, invited_by) -> AssessmentInvite:
    # a stale reservation must not stay blocked alongside the new one
    credit_service.refund_reserved_credits(invite.id, reason="Invite rotated")
    invite.token = new_invite_token()
    invite.status = "SENT"
    invite.expires_at = expires_at
    invite.sent_at = when
    invite.cancelled_at = None
    if invited_by is not None:
        invite.invited_by = invited_by
    invite.save(update_fields=["token", "status", "expires_at", "sent_at", "cancelled_at", "invited_by", "updated_at"])
    return invite


@transaction.atomic
def cancel_invite(invite_id: int, company_id: int) -> AssessmentInvite:
    invite = (
        AssessmentInvite.objects.select_for_update()
        .filter(id=invite_id, job__company_id=company_id)
        .first()
    )
    if not invite:
        raise NotFound("Invite not found.")
    if invite.status in COMPLETED_STATUSES:
        raise BadRequest("This invite was already completed.")
    if invite.status == "CANCELLED":
        raise BadRequest("This invite was already cancelled.")

    invite.status = "CANCELLED"
    invite.cancelled_at = now()
    invite.save(update_fields=["status", "cancelled_at", "updated_at"])
    credit_service.refund_reserved_credits(invite.id, reason="Invite cancelled")
    logger.info("[ASSESSMENT INVITE] invite %s cancelled", invite.id)
    return invite


def ui_state(invite: AssessmentInvite, attempt=None, when=None) -> str:
    """
    Collapse invite and attempt status into what the candidate sees.

    The attempt decides when it exists; an attempt that ran out of time
    shows as EXPIRED unless it was already handed in.
    """
    when = when or now()
    if attempt is not None:
        if attempt.status in AssessmentAttempt.CONSUMED:
            return "COMPLETED"
        if attempt.expires_at and attempt.expires_at <= when:
            return "EXPIRED"
        if attempt.status == "IN_PROGRESS":
            return "IN_PROGRESS"
        if attempt.status == "NOT_STARTED":
            return "IN_PROGRESS" if invite.status == "STARTED" else "PENDING"

    if invite.status in COMPLETED_STATUSES:
        return "COMPLETED"
    if invite.expires_at and invite.expires_at <= when:
        return "EXPIRED"
    if invite.status == "CANCELLED":
        return "CANCELLED"
    if invite.status == "STARTED":
        return "IN_PROGRESS"
    return "PENDING"


def summarize_ui_states(states) -> dict:
    """Count UI states; EXPIRED and CANCELLED both land in `inactive`."""
    counts = {"pending": 0, "inProgress": 0, "completed": 0, "inactive": 0}
    for state in states:
        if state == "PENDING":
            counts["pending"] += 1
        elif state == "IN_PROGRESS":
            counts["inProgress"] += 1
        elif state == "COMPLETED":
            counts["completed"] += 1
        else:
            counts["inactive"] += 1
    return counts


def candidate_invites(user):
    """Invites addressed to `user`, newest first, each paired with its latest attempt."""
    invites = (
        AssessmentInvite.objects.filter(candidate=user)
        .select_related("template", "job", "job__company")
        .order_by("-created_at")
    )
    when = now()
    result = []
    for invite in invites:
        attempt = (
            AssessmentAttempt.objects.filter(
                candidate=user, template_id=invite.template_id, application_id=invite.application_id
            )
            .order_by("-created_at")
            .first()
        )
        result.append((invite, attempt, ui_state(invite, attempt, when)))
    return result
