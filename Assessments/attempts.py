import json
import logging
import math
from datetime import timedelta

from django.db import transaction
from django.db.models import F, Q
from django.utils.timezone import now

from Assessments import scoring
from Assessments.models import (
    AssessmentAttempt,
    AssessmentInvite,
    AssessmentQuestion,
    AssessmentTemplate,
    AttemptAnswer,
    JobAssessment,
)
from Billing import credits as credit_service
from Jobs.models import Application
from Notifications.service import notify
from Taskio.exceptions import BadRequest, Forbidden, Gone, NotFound

logger = logging.getLogger(__name__)

QUESTION_FIELDS = (
    "id", "section", "difficulty", "tags", "question_text", "code_snippet", "options", "allow_multiple",
)


def _is_expired(attempt: AssessmentAttempt, when=None) -> bool:
    return bool(attempt.expires_at and attempt.expires_at <= (when or now()))


def _active_questions(template_id: int):
    return list(
        AssessmentQuestion.objects.filter(template_id=template_id, is_active=True)
        .order_by("id")
        .values(*QUESTION_FIELDS)
    )


def _saved_answers(attempt: AssessmentAttempt):
    answers, time_spent = {}, {}
    for row in attempt.answers.values("question_id", "selected_options", "time_spent"):
        answers[str(row["question_id"])] = row["selected_options"] or []
        if row["time_spent"] is not None:
            time_spent[str(row["question_id"])] = row["time_spent"]
    return answers, time_spent


def _own_attempt(attempt_id: int, user, lock=False) -> AssessmentAttempt:
    qs = AssessmentAttempt.objects.select_related("template")
    if lock:
        qs = qs.select_for_update()
    attempt = qs.filter(id=attempt_id).first()
    if not attempt:
        raise NotFound("Attempt not found.")
    if attempt.candidate_id != user.id:
        raise Forbidden("Not authorized.")
    return attempt


def consumed_attempts(user, template_id: int) -> int:
    return AssessmentAttempt.objects.filter(
        candidate=user, template_id=template_id, status__in=AssessmentAttempt.CONSUMED
    ).count()


def user_status(user, template: AssessmentTemplate):
    """Attempts used by `user` on `template` and whether a new one may start."""
    used = consumed_attempts(user, template.id)
    last = (
        AssessmentAttempt.objects.filter(candidate=user, template=template)
        .order_by("-created_at")
        .values("id", "status", "total_score", "passed", "submitted_at")
        .first()
    )
    can_start = used < template.max_attempts if template.allow_retry else used == 0
    return {
        "attempts_used": used,
        "max_attempts": template.max_attempts,
        "can_start": can_start,
        "last_attempt": last,
    }


def _resolve_invite(token: str, user, template: AssessmentTemplate, when) -> AssessmentInvite:
    invite = AssessmentInvite.objects.filter(token=token).first()
    if not invite:
        raise BadRequest("Invalid invitation.")
    if invite.candidate_id != user.id:
        raise Forbidden("This invitation belongs to another candidate.")
    if invite.template_id != template.id:
        raise BadRequest("This invitation is for a different assessment.")
    if invite.expires_at and invite.expires_at <= when:
        raise Gone("This invitation has expired.")
    if invite.status == "CANCELLED":
        raise Gone("This invitation was cancelled.")
    if invite.status in ("SUBMITTED", "EVALUATED"):
        raise BadRequest("This invitation was already completed.")
    return invite


def _mark_invite_started(invite):
    if invite is not None and invite.status == "SENT":
        invite.status = "STARTED"
        invite.save(update_fields=["status", "updated_at"])


@transaction.atomic
def start_attempt(template_id: int, user, application_id=None, token=None, ip_address="unknown", user_agent="unknown"):
    """
    Start (or resume) an attempt of `template_id` for `user`.

    A token binds the attempt to its invite and to the invite's application.
    An unexpired IN_PROGRESS attempt is resumed with its saved answers;
    otherwise retry rules apply and a NOT_STARTED attempt (created when the
    invite was sent) is reused before a new one is created.
    """
    when = now()
    template = AssessmentTemplate.objects.filter(id=template_id, is_active=True).first()
    if not template:
        raise NotFound("Assessment not found or inactive.")

    invite = None
    if token:
        invite = _resolve_invite(token, user, template, when)
        application_id = invite.application_id

    if application_id:
        application = Application.objects.filter(id=application_id, candidate=user).first()
        if not application:
            raise BadRequest("Invalid application.")
        if not JobAssessment.objects.filter(job_id=application.job_id, template=template).exists():
            raise BadRequest("This assessment is not assigned to the job.")
        if invite is not None and invite.job_id != application.job_id:
            raise BadRequest("This invitation does not match the application.")

    questions = _active_questions(template.id)
    base = AssessmentAttempt.objects.filter(candidate=user, template=template)
    if application_id:
        base = base.filter(Q(application_id=application_id) | Q(application__isnull=True))

    in_progress = (
        base.filter(status="IN_PROGRESS")
        .exclude(expires_at__lte=when)
        .order_by("-started_at")
        .first()
    )
    if in_progress:
        update_fields = []
        if application_id and not in_progress.application_id:
            in_progress.application_id = application_id
            update_fields.append("application")
        if not in_progress.expires_at:
            in_progress.expires_at = when + timedelta(minutes=template.time_limit)
            in_progress.started_at = in_progress.started_at or when
            update_fields += ["expires_at", "started_at"]
        if update_fields:
            in_progress.save(update_fields=update_fields)
        _mark_invite_started(invite)

        saved_answers, saved_time = _saved_answers(in_progress)
        return {
            "attempt_id": in_progress.id,
            "questions": scoring.build_questions_payload(questions, in_progress.flags),
            "expires_at": in_progress.expires_at,
            "time_limit": template.time_limit,
            "reused": True,
            "saved_answers": saved_answers,
            "saved_time_spent": saved_time,
        }

    used = consumed_attempts(user, template.id)
    if not template.allow_retry and used > 0:
        raise BadRequest("You already completed this assessment.")
    if used >= template.max_attempts:
        raise BadRequest("Attempt limit reached.")

    not_started = base.filter(status="NOT_STARTED").order_by("-created_at").first()
    meta = dict(not_started.flags or {}) if not_started else {}
    if not meta.get("questionOrder"):
        meta.update(scoring.build_attempt_order(questions, template.shuffle_questions))

    attempt = not_started or AssessmentAttempt(candidate=user, template=template)
    attempt.application_id = application_id or attempt.application_id
    attempt.status = "IN_PROGRESS"
    attempt.started_at = when
    attempt.expires_at = when + timedelta(minutes=template.time_limit)
    attempt.ip_address = ip_address
    attempt.user_agent = (user_agent or "unknown")[:400]
    attempt.flags = meta
    attempt.attempt_number = used + 1
    attempt.save()
    _mark_invite_started(invite)

    logger.info("[ASSESSMENT] user %s started attempt %s of template %s", user.id, attempt.id, template.id)
    return {
        "attempt_id": attempt.id,
        "questions": scoring.build_questions_payload(questions, meta),
        "expires_at": attempt.expires_at,
        "time_limit": template.time_limit,
        "reused": not_started is not None,
        "saved_answers": {},
        "saved_time_spent": {},
    }


def _require_running(attempt: AssessmentAttempt):
    if attempt.status != "IN_PROGRESS":
        raise BadRequest("The attempt is not in progress.")
    if _is_expired(attempt):
        raise BadRequest("Time is up for this attempt.")


@transaction.atomic
def save_answer(attempt_id: int, user, question_id, selected_options, time_spent=None) -> AttemptAnswer:
    if not question_id:
        raise BadRequest("question is required.")
    if not isinstance(selected_options, list):
        raise BadRequest("selected_options must be a list.")
    selected = scoring.normalize_selection(selected_options)
    if not isinstance(time_spent, (int, float)) or isinstance(time_spent, bool) or not math.isfinite(time_spent) or time_spent < 0:
        time_spent = None
    else:
        time_spent = int(time_spent)

    attempt = _own_attempt(attempt_id, user)
    _require_running(attempt)

    question = AssessmentQuestion.objects.filter(id=question_id, template_id=attempt.template_id, is_active=True).first()
    if not question:
        raise NotFound("Question not found.")
    if not question.allow_multiple and len(selected) > 1:
        raise BadRequest("This question accepts a single option.")
    if not selected:
        raise BadRequest("Select at least one option.")
    valid_ids = {scoring.option_key(o) for o in question.options or []}
    if any(option_id not in valid_ids for option_id in selected):
        raise BadRequest("Invalid option.")

    is_correct, points = scoring.grade_answer(question.options or [], selected, attempt.template.penalize_wrong)

    defaults = {
        "selected_options": selected,
        "is_correct": is_correct,
        "points_earned": points,
        "answered_at": now(),
    }
    if time_spent is not None:
        defaults["time_spent"] = time_spent
    answer, created = AttemptAnswer.objects.update_or_create(attempt=attempt, question=question, defaults=defaults)
    if created:
        AssessmentQuestion.objects.filter(id=question.id).update(times_used=F("times_used") + 1)
    return answer


@transaction.atomic
def record_flag(attempt_id: int, user, event, meta=None):
    event = str(event or "")
    if event not in scoring.ALLOWED_FLAG_EVENTS:
        raise BadRequest("Invalid event.")

    attempt = _own_attempt(attempt_id, user, lock=True)
    _require_running(attempt)

    safe_meta = None
    if isinstance(meta, dict):
        if len(json.dumps(meta, default=str)) <= scoring.MAX_FLAG_META_CHARS:
            safe_meta = meta

    flags = dict(attempt.flags or {})
    counts = dict(flags.get("counts") or {})
    counter = scoring.FLAG_COUNTERS[event]
    counts[counter] = counts.get(counter, 0) + 1

    stamp = now().isoformat()
    item = {"type": event, "ts": stamp}
    if safe_meta is not None:
        item["meta"] = safe_meta
    events = list(flags.get("events") or []) + [item]
    events = events[-scoring.MAX_FLAG_EVENTS:]

    severity_score, severity = scoring.flag_severity(counts)
    flags.update({
        "counts": counts,
        "events": events,
        "severity": severity,
        "severityScore": min(severity_score, 9999),
        "updatedAt": stamp,
    })
    attempt.flags = flags
    attempt.save(update_fields=["flags"])
    if severity != "NORMAL":
        logger.warning("[ANTI-CHEAT] attempt %s is %s (score %s)", attempt.id, severity, severity_score)
    return {"counts": counts, "severity": severity}


def attempt_state(attempt_id: int, user):
    attempt = _own_attempt(attempt_id, user)
    rows = list(
        attempt.answers.order_by("-answered_at", "-id").values("question_id", "selected_options", "time_spent")
    )
    answers = {str(r["question_id"]): r["selected_options"] or [] for r in rows}
    time_spent = {str(r["question_id"]): r["time_spent"] or 0 for r in rows}
    last_answered = rows[0]["question_id"] if rows else None
    order = (attempt.flags or {}).get("questionOrder") or []
    return {
        "attempt_id": attempt.id,
        "status": attempt.status,
        "expires_at": attempt.expires_at,
        "expired": _is_expired(attempt),
        "answers": answers,
        "time_spent": time_spent,
        "last_answered_question_id": last_answered,
        "current_index": scoring.current_index(order, last_answered),
        "answered_count": len(answers),
    }


@transaction.atomic
def submit_attempt(attempt_id: int, user):
    """
    Score and close an attempt.

    The status update only applies while the attempt is still IN_PROGRESS,
    so a concurrent second submit gets a 400 instead of a second score. The
    linked invite is closed and its reserved credits are charged.
    """
    attempt = _own_attempt(attempt_id, user)
    if attempt.status in AssessmentAttempt.CONSUMED:
        raise BadRequest("This attempt was already submitted.")
    if attempt.status != "IN_PROGRESS":
        raise BadRequest("The attempt is not in progress.")
    if _is_expired(attempt):
        raise BadRequest("Time is up for this attempt.")
    if not attempt.started_at:
        raise BadRequest("The attempt was not started correctly.")

    template = attempt.template
    answers = [
        {"points_earned": a.points_earned, "time_spent": a.time_spent, "section": a.question.section}
        for a in attempt.answers.select_related("question")
    ]
    result = scoring.score_attempt(answers, template.total_questions, template.sections)

    flags = dict(attempt.flags or {})
    if result["too_fast"]:
        flags["tooFast"] = True
    passed = result["total_score"] >= template.passing_score

    updated = AssessmentAttempt.objects.filter(id=attempt.id, candidate=user, status="IN_PROGRESS").update(
        status="SUBMITTED",
        submitted_at=now(),
        total_score=result["total_score"],
        section_scores=result["section_scores"],
        passed=passed,
        time_spent=result["time_spent"],
        flags=flags,
    )
    if not updated:
        raise BadRequest("Could not submit: the attempt is no longer in progress.")

    if attempt.application_id:
        invite = AssessmentInvite.objects.filter(
            application_id=attempt.application_id, template_id=template.id
        ).select_related("job__recruiter").first()
        if invite and invite.status not in ("CANCELLED", "SUBMITTED", "EVALUATED"):
            invite.status = "SUBMITTED"
            invite.save(update_fields=["status", "updated_at"])
            credit_service.charge_completion_credits(invite.id)
        if invite and invite.job.recruiter:
            notify(
                invite.job.recruiter,
                "ASSESSMENT_COMPLETED",
                candidate_name=user.full_name,
                template_title=template.title,
                job_title=invite.job.title,
                total_score=result["total_score"],
                attempt_id=attempt.id,
            )

    logger.info("[ASSESSMENT] attempt %s submitted with score %s", attempt.id, result["total_score"])
    return {
        "total_score": result["total_score"],
        "section_scores": result["section_scores"],
        "passed": passed,
        "passing_score": template.passing_score,
        "time_spent": result["time_spent"],
    }


def _recruiter_can_view(attempt: AssessmentAttempt, user) -> bool:
    if not user.is_recruiter or attempt.application_id is None:
        return False
    job = attempt.application.job
    if user.company_id and job.company_id == user.company_id:
        return True
    return job.recruiter_id is not None and job.recruiter_id == user.id


@transaction.atomic
def evaluate_attempt(attempt_id: int, user, notes: str = "") -> AssessmentAttempt:
    attempt = (
        AssessmentAttempt.objects.select_for_update()
        .select_related("template", "application__job", "candidate")
        .filter(id=attempt_id)
        .first()
    )
    if not attempt:
        raise NotFound("Attempt not found.")
    if not (user.is_platform_admin or _recruiter_can_view(attempt, user)):
        raise Forbidden("Not authorized.")
    if attempt.status != "SUBMITTED":
        raise BadRequest("Only submitted attempts can be evaluated.")

    attempt.status = "EVALUATED"
    attempt.reviewed_by = user
    attempt.review_notes = notes or ""
    attempt.save(update_fields=["status", "reviewed_by", "review_notes"])
    AssessmentInvite.objects.filter(
        application_id=attempt.application_id, template_id=attempt.template_id, status="SUBMITTED"
    ).update(status="EVALUATED", updated_at=now())

    notify(attempt.candidate, "ASSESSMENT_RESULTS", template_title=attempt.template.title, attempt_id=attempt.id)
    return attempt


def attempt_results(attempt_id: int, user):
    attempt = (
        AssessmentAttempt.objects.select_related("template", "candidate", "application__job")
        .filter(id=attempt_id)
        .first()
    )
    if not attempt:
        raise NotFound("Attempt not found.")

    is_owner = attempt.candidate_id == user.id
    is_admin = user.is_platform_admin
    recruiter_can_view = _recruiter_can_view(attempt, user)
    if not (is_owner or is_admin or recruiter_can_view):
        raise Forbidden("Not authorized.")
    if attempt.status not in AssessmentAttempt.CONSUMED:
        raise BadRequest("The assessment has not been completed yet.")

    answers = list(attempt.answers.select_related("question").order_by("id"))
    correct = sum(1 for a in answers if a.is_correct)
    template = attempt.template
    total_questions = template.total_questions if template.total_questions is not None else len(answers)

    result = {
        "attempt": {
            "id": attempt.id,
            "status": attempt.status,
            "attempt_number": attempt.attempt_number,
            "started_at": attempt.started_at,
            "submitted_at": attempt.submitted_at,
            "time_spent": attempt.time_spent,
            "total_score": attempt.total_score,
            "section_scores": attempt.section_scores,
            "passed": attempt.passed,
            "flags": attempt.flags,
            "review_notes": attempt.review_notes,
        },
        "template": {
            "title": template.title,
            "difficulty": template.difficulty,
            "passing_score": template.passing_score,
            "sections": template.sections,
        },
        "answers": [
            {
                "question_id": a.question_id,
                "section": a.question.section,
                "difficulty": a.question.difficulty,
                "question_text": a.question.question_text,
                "code_snippet": a.question.code_snippet,
                "options": a.question.options,
                "selected_options": a.selected_options,
                "is_correct": a.is_correct,
                "points_earned": a.points_earned,
                "time_spent": a.time_spent,
                "explanation": a.question.explanation,
            }
            for a in answers
        ],
        "stats": {
            "correct_answers": correct,
            "answered_questions": len(answers),
            "total_questions": total_questions,
            "accuracy": scoring.round_half_up(correct / total_questions * 100) if total_questions > 0 else 0,
        },
    }
    if is_admin or recruiter_can_view:
        result["candidate"] = {
            "id": attempt.candidate.id,
            "name": attempt.candidate.full_name,
            "email": attempt.candidate.email,
        }
    return result
