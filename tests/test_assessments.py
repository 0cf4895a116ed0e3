from datetime import timedelta
from decimal import Decimal

import pytest
from django.test import RequestFactory
from django.utils.timezone import now

from Accounts.models import Company, User
from Assessments.invites import ui_state
from Assessments.models import AssessmentAttempt, AssessmentInvite, AssessmentTemplate, AttemptAnswer
from Billing.models import CreditLedgerEntry
from Notifications.models import Notification
from Taskio.utils import get_client_ip

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def invite_url(application):
    return f"/api/applications/{application.id}/assessment-invite/"


def attempt_url(attempt_id, action):
    return f"/api/assessments/attempts/{attempt_id}/{action}/"


@pytest.fixture
def invite(client_for, recruiter, application, job_assessment):
    response = client_for(recruiter).post(invite_url(application), format="json")
    assert response.status_code == 200, response.data
    return AssessmentInvite.objects.get(id=response.data["body"]["invite"]["id"])


@pytest.fixture
def started(client_for, candidate, invite, template):
    response = client_for(candidate).post(
        f"/api/assessments/{template.id}/start/", {"token": invite.token}, format="json"
    )
    assert response.status_code == 200, response.data
    return response.data["body"]


def answer(client, attempt_id, question, options, seconds=20):
    return client.post(
        attempt_url(attempt_id, "answer"),
        {"question": question.id, "selected_options": options, "time_spent": seconds},
        format="json",
    )


class TestInvites:
    def test_invite_reserves_credits_and_notifies(self, invite, company, candidate, template):
        company.refresh_from_db()
        assert company.assessment_credits == Decimal("10")
        assert company.assessment_credits_reserved == Decimal("0.5")

        entry = CreditLedgerEntry.objects.get(invite=invite)
        assert entry.status == "RESERVED"
        assert entry.reserved_amount == Decimal("0.5")

        assert invite.status == "SENT"
        assert invite.expires_at > now() + timedelta(days=6)
        assert AssessmentAttempt.objects.get(candidate=candidate, template=template).status == "NOT_STARTED"
        assert Notification.objects.filter(user=candidate, type="ASSESSMENT_INVITATION").exists()

    def test_active_invite_is_reused(self, client_for, recruiter, application, invite, company):
        response = client_for(recruiter).post(invite_url(application), format="json")

        assert response.data["body"]["reused"] is True
        assert response.data["body"]["invite"]["token"] == invite.token
        assert CreditLedgerEntry.objects.count() == 1
        company.refresh_from_db()
        assert company.assessment_credits_reserved == Decimal("0.5")

    def test_expired_invite_is_rotated(self, client_for, recruiter, application, invite, company):
        AssessmentInvite.objects.filter(id=invite.id).update(expires_at=now() - timedelta(days=1))

        response = client_for(recruiter).post(invite_url(application), format="json")

        assert response.data["body"]["reused"] is False
        invite.refresh_from_db()
        assert response.data["body"]["invite"]["token"] == invite.token
        assert invite.status == "SENT"
        assert invite.expires_at > now()
        assert list(CreditLedgerEntry.objects.order_by("id").values_list("status", flat=True)) == [
            "REFUNDED", "RESERVED",
        ]
        company.refresh_from_db()
        assert company.assessment_credits_reserved == Decimal("0.5")

    def test_insufficient_credits_persist_nothing(self, client_for, recruiter, application, job_assessment, company):
        Company.objects.filter(id=company.id).update(assessment_credits=Decimal("0.25"))

        response = client_for(recruiter).post(invite_url(application), format="json")

        assert response.status_code == 402
        assert response.data["body"] == {"required": 0.5, "available": 0.25}
        assert not AssessmentInvite.objects.exists()
        assert not AssessmentAttempt.objects.exists()
        assert not CreditLedgerEntry.objects.exists()

    def test_job_without_assessments(self, client_for, recruiter, application):
        response = client_for(recruiter).post(invite_url(application), format="json")
        assert response.status_code == 400

    def test_cancel_refunds_reservation(self, client_for, recruiter, candidate, invite, company, template):
        response = client_for(recruiter).post(f"/api/assessments/invites/{invite.id}/cancel/")

        assert response.status_code == 200
        invite.refresh_from_db()
        assert invite.status == "CANCELLED"
        assert CreditLedgerEntry.objects.get(invite=invite).status == "REFUNDED"
        company.refresh_from_db()
        assert company.assessment_credits_reserved == Decimal("0")

        again = client_for(recruiter).post(f"/api/assessments/invites/{invite.id}/cancel/")
        assert again.status_code == 400

        start = client_for(candidate).post(
            f"/api/assessments/{template.id}/start/", {"token": invite.token}, format="json"
        )
        assert start.status_code == 410

    def test_other_company_cannot_cancel(self, client_for, other_recruiter, invite):
        response = client_for(other_recruiter).post(f"/api/assessments/invites/{invite.id}/cancel/")
        assert response.status_code == 404

    def test_my_invites_shows_ui_state(self, client_for, candidate, invite):
        response = client_for(candidate).get("/api/assessments/my-invites/")

        assert response.status_code == 200
        assert len(response.data["invites"]) == 1
        assert response.data["invites"][0]["ui_state"] == "PENDING"
        assert response.data["invites"][0]["attempt"]["status"] == "NOT_STARTED"
        assert response.data["counts"] == {"pending": 1, "inProgress": 0, "completed": 0, "inactive": 0}
        assert response.data["total"] == 1
        assert response.data["badge"] == 1

    def test_my_invites_badge_only(self, client_for, candidate, invite):
        AssessmentInvite.objects.filter(id=invite.id).update(status="CANCELLED")
        client = client_for(candidate)

        assert client.get("/api/assessments/my-invites/", {"mode": "count"}).data == {"badge": 0}
        assert client.get("/api/assessments/my-invites/").data["counts"]["inactive"] == 1


class TestUiState:
    def make(self, status="SENT", expires_in=timedelta(days=1)):
        return AssessmentInvite(status=status, expires_at=now() + expires_in)

    def test_invite_only(self):
        assert ui_state(self.make()) == "PENDING"
        assert ui_state(self.make("STARTED")) == "IN_PROGRESS"
        assert ui_state(self.make("CANCELLED")) == "CANCELLED"
        assert ui_state(self.make("EVALUATED")) == "COMPLETED"
        assert ui_state(self.make(expires_in=-timedelta(minutes=1))) == "EXPIRED"

    def test_attempt_takes_precedence(self):
        invite = self.make()
        running = AssessmentAttempt(status="IN_PROGRESS", expires_at=now() + timedelta(minutes=5))
        late = AssessmentAttempt(status="IN_PROGRESS", expires_at=now() - timedelta(minutes=5))
        handed_in = AssessmentAttempt(status="SUBMITTED", expires_at=now() - timedelta(minutes=5))

        assert ui_state(invite, running) == "IN_PROGRESS"
        assert ui_state(invite, late) == "EXPIRED"
        assert ui_state(invite, handed_in) == "COMPLETED"
        assert ui_state(self.make("STARTED"), AssessmentAttempt(status="NOT_STARTED")) == "IN_PROGRESS"


class TestAttemptFlow:
    def test_start_hides_answers_and_marks_invite(self, started, invite, template):
        assert started["reused"] is True
        assert started["time_limit"] == 30
        assert len(started["questions"]) == 2
        for question in started["questions"]:
            assert all(set(option) == {"id", "text"} for option in question["options"])

        invite.refresh_from_db()
        assert invite.status == "STARTED"
        attempt = AssessmentAttempt.objects.get(id=started["attempt_id"])
        assert attempt.status == "IN_PROGRESS"
        assert attempt.attempt_number == 1
        assert attempt.flags["questionOrder"] == list(template.questions.order_by("id").values_list("id", flat=True))

    def test_start_resumes_in_progress_attempt(self, client_for, candidate, started, questions, invite, template):
        client = client_for(candidate)
        answer(client, started["attempt_id"], questions[0], ["a"], seconds=12)

        again = client.post(f"/api/assessments/{template.id}/start/", {"token": invite.token}, format="json")

        body = again.data["body"]
        assert body["attempt_id"] == started["attempt_id"]
        assert body["saved_answers"] == {str(questions[0].id): ["a"]}
        assert body["saved_time_spent"] == {str(questions[0].id): 12}
        assert [q["id"] for q in body["questions"]] == [q["id"] for q in started["questions"]]

    def test_token_of_another_candidate(self, client_for, other_recruiter, invite, template):
        response = client_for(other_recruiter).post(
            f"/api/assessments/{template.id}/start/", {"token": invite.token}, format="json"
        )
        assert response.status_code == 403

    def test_answer_rules(self, client_for, candidate, started, questions, template):
        client = client_for(candidate)
        attempt_id = started["attempt_id"]

        assert answer(client, attempt_id, questions[0], ["a", "b"]).status_code == 400
        assert answer(client, attempt_id, questions[0], ["z"]).status_code == 400
        assert answer(client, attempt_id, questions[0], []).status_code == 400

        foreign = AssessmentTemplate.objects.create(title="Other", slug="other", total_questions=1)
        stray = foreign.questions.create(question_text="?", options=[{"id": "a", "isCorrect": True}, {"id": "b"}])
        assert answer(client, attempt_id, stray, ["a"]).status_code == 404

        assert answer(client, attempt_id, questions[0], ["b"]).status_code == 200
        assert answer(client, attempt_id, questions[0], ["a"]).status_code == 200
        saved = AttemptAnswer.objects.get(attempt_id=attempt_id, question=questions[0])
        assert saved.is_correct is True
        assert saved.points_earned == 1.0
        questions[0].refresh_from_db()
        assert questions[0].times_used == 1

    def test_answer_on_someone_elses_attempt(self, client_for, other_recruiter, started, questions):
        response = answer(client_for(other_recruiter), started["attempt_id"], questions[0], ["a"])
        assert response.status_code == 403

    def test_answer_after_time_is_up(self, client_for, candidate, started, questions):
        AssessmentAttempt.objects.filter(id=started["attempt_id"]).update(expires_at=now() - timedelta(seconds=1))
        response = answer(client_for(candidate), started["attempt_id"], questions[0], ["a"])
        assert response.status_code == 400

    def test_flags_accumulate_severity(self, client_for, candidate, started):
        client = client_for(candidate)
        url = attempt_url(started["attempt_id"], "flags")

        for _ in range(3):
            client.patch(url, {"event": "COPY"}, format="json")
        response = client.patch(url, {"event": "COPY", "meta": {"note": "x" * 2000}}, format="json")

        assert response.status_code == 200
        assert response.data["body"]["flags"] == {"counts": {"copyAttempts": 4}, "severity": "SUSPICIOUS"}
        flags = AssessmentAttempt.objects.get(id=started["attempt_id"]).flags
        assert len(flags["events"]) == 4
        assert "meta" not in flags["events"][-1]
        assert flags["severityScore"] == 12

        assert client.patch(url, {"event": "SCREENSHOT"}, format="json").status_code == 400

    def test_flag_events_keep_the_latest_200(self, client_for, candidate, started):
        attempt = AssessmentAttempt.objects.get(id=started["attempt_id"])
        attempt.flags = {**attempt.flags, "events": [{"type": "COPY", "ts": str(n)} for n in range(200)]}
        attempt.save(update_fields=["flags"])

        response = client_for(candidate).patch(
            attempt_url(attempt.id, "flags"), {"event": "RIGHT_CLICK"}, format="json"
        )

        assert response.status_code == 200
        events = AssessmentAttempt.objects.get(id=attempt.id).flags["events"]
        assert len(events) == 200
        assert events[0]["ts"] == "1"
        assert events[-1]["type"] == "RIGHT_CLICK"

    def test_start_records_first_forwarded_ip(self, client_for, candidate, invite, template):
        response = client_for(candidate).post(
            f"/api/assessments/{template.id}/start/",
            {"token": invite.token},
            format="json",
            HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1",
            HTTP_X_REAL_IP="10.0.0.2",
        )

        assert response.status_code == 200
        assert AssessmentAttempt.objects.get(id=response.data["body"]["attempt_id"]).ip_address == "203.0.113.7"

    def test_state_reports_resume_point(self, client_for, candidate, started, questions):
        client = client_for(candidate)
        answer(client, started["attempt_id"], questions[0], ["a"])

        response = client.get(attempt_url(started["attempt_id"], "state"))

        assert response.status_code == 200
        assert response["Cache-Control"] == "no-store"
        assert response.data["current_index"] == 1
        assert response.data["answered_count"] == 1
        assert response.data["expired"] is False

    def test_submit_scores_and_charges(self, client_for, candidate, recruiter, started, questions, invite, company):
        client = client_for(candidate)
        answer(client, started["attempt_id"], questions[0], ["a"])
        answer(client, started["attempt_id"], questions[1], ["c", "a"])

        response = client.post(attempt_url(started["attempt_id"], "submit"))

        assert response.status_code == 200
        body = response.data["body"]
        assert body["total_score"] == 100
        assert body["section_scores"] == {"Core": 100}
        assert body["passed"] is True
        assert body["time_spent"] == 40

        invite.refresh_from_db()
        assert invite.status == "SUBMITTED"
        assert CreditLedgerEntry.objects.get(invite=invite).status == "CHARGED"
        company.refresh_from_db()
        assert company.assessment_credits == Decimal("9")
        assert company.assessment_credits_reserved == Decimal("0")
        assert company.assessment_credits_used == Decimal("1")
        assert Notification.objects.filter(user=recruiter, type="ASSESSMENT_COMPLETED").exists()

        again = client.post(attempt_url(started["attempt_id"], "submit"))
        assert again.status_code == 400
        company.refresh_from_db()
        assert company.assessment_credits == Decimal("9")

    def test_submit_with_penalties_never_goes_negative(self, client_for, candidate, started, questions, template):
        AssessmentTemplate.objects.filter(id=template.id).update(penalize_wrong=True)
        client = client_for(candidate)
        answer(client, started["attempt_id"], questions[0], ["b"], seconds=1)
        answer(client, started["attempt_id"], questions[1], ["a"], seconds=1)

        body = client.post(attempt_url(started["attempt_id"], "submit")).data["body"]

        assert body["total_score"] == 0
        assert body["passed"] is False
        attempt = AssessmentAttempt.objects.get(id=started["attempt_id"])
        assert attempt.flags["tooFast"] is True

    def test_average_of_five_seconds_is_not_flagged(self, client_for, candidate, started, questions):
        client = client_for(candidate)
        answer(client, started["attempt_id"], questions[0], ["a"], seconds=5)
        answer(client, started["attempt_id"], questions[1], ["a", "c"], seconds=5)

        client.post(attempt_url(started["attempt_id"], "submit"))

        assert "tooFast" not in AssessmentAttempt.objects.get(id=started["attempt_id"]).flags

    def test_half_points_round_up(self, client_for, candidate, started, questions, template):
        AssessmentTemplate.objects.filter(id=template.id).update(total_questions=8, passing_score=13)
        client = client_for(candidate)
        answer(client, started["attempt_id"], questions[0], ["a"])

        body = client.post(attempt_url(started["attempt_id"], "submit")).data["body"]

        assert body["total_score"] == 13
        assert body["passed"] is True

    def test_retry_rules(self, client_for, candidate, started, template, invite):
        client = client_for(candidate)
        client.post(attempt_url(started["attempt_id"], "submit"))

        detail = client.get(f"/api/assessments/{template.id}/")
        assert detail.data["user_status"]["attempts_used"] == 1
        assert detail.data["user_status"]["can_start"] is False

        response = client.post(f"/api/assessments/{template.id}/start/", format="json")
        assert response.status_code == 400


class TestResults:
    @pytest.fixture
    def submitted(self, client_for, candidate, started, questions):
        client = client_for(candidate)
        answer(client, started["attempt_id"], questions[0], ["a"])
        answer(client, started["attempt_id"], questions[1], ["a"])
        client.post(attempt_url(started["attempt_id"], "submit"))
        return started["attempt_id"]

    def test_not_available_before_submit(self, client_for, candidate, started):
        response = client_for(candidate).get(attempt_url(started["attempt_id"], "results"))
        assert response.status_code == 400

    def test_candidate_sees_own_results_without_identity(self, client_for, candidate, submitted):
        response = client_for(candidate).get(attempt_url(submitted, "results"))

        assert response.status_code == 200
        assert response.data["attempt"]["total_score"] == 50
        assert response.data["stats"] == {
            "correct_answers": 1, "answered_questions": 2, "total_questions": 2, "accuracy": 50,
        }
        assert "candidate" not in response.data

    def test_accuracy_rounds_halves_up(self, client_for, candidate, submitted, template):
        AssessmentTemplate.objects.filter(id=template.id).update(total_questions=8)

        stats = client_for(candidate).get(attempt_url(submitted, "results")).data["stats"]

        assert stats["correct_answers"] == 1
        assert stats["total_questions"] == 8
        assert stats["accuracy"] == 13

    def test_zero_declared_questions_gives_zero_accuracy(self, client_for, candidate, submitted, template):
        AssessmentTemplate.objects.filter(id=template.id).update(total_questions=0)

        stats = client_for(candidate).get(attempt_url(submitted, "results")).data["stats"]

        assert stats["total_questions"] == 0
        assert stats["accuracy"] == 0

    def test_recruiter_of_the_job_sees_candidate(self, client_for, recruiter, candidate, submitted):
        response = client_for(recruiter).get(attempt_url(submitted, "results"))
        assert response.status_code == 200
        assert response.data["candidate"]["email"] == candidate.email

    def test_other_company_is_forbidden(self, client_for, other_recruiter, submitted):
        assert client_for(other_recruiter).get(attempt_url(submitted, "results")).status_code == 403

    def test_evaluate(self, client_for, recruiter, candidate, submitted, invite):
        client = client_for(recruiter)

        response = client.post(attempt_url(submitted, "evaluate"), {"notes": "Solid basics"}, format="json")

        assert response.status_code == 200
        attempt = AssessmentAttempt.objects.get(id=submitted)
        assert attempt.status == "EVALUATED"
        assert attempt.reviewed_by == recruiter
        invite.refresh_from_db()
        assert invite.status == "EVALUATED"
        assert Notification.objects.filter(user=candidate, type="ASSESSMENT_RESULTS").exists()

        assert client.post(attempt_url(submitted, "evaluate")).status_code == 400

    def test_candidates_cannot_evaluate(self, client_for, candidate, submitted):
        assert client_for(candidate).post(attempt_url(submitted, "evaluate")).status_code == 403

    def test_company_admin_can_evaluate(self, client_for, company, submitted):
        admin = User.objects.create_user(
            email="ops@acme.mx", password=PASSWORD, role=User.ROLE_ADMIN, company=company,
        )

        response = client_for(admin).post(attempt_url(submitted, "evaluate"), format="json")

        assert response.status_code == 200
        assert AssessmentAttempt.objects.get(id=submitted).reviewed_by == admin


class TestClientIp:
    def test_first_forwarded_hop_wins(self):
        request = RequestFactory().get("/", HTTP_X_FORWARDED_FOR=" 203.0.113.7 , 10.0.0.1", HTTP_X_REAL_IP="10.0.0.2")
        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip_then_remote_addr(self):
        assert get_client_ip(RequestFactory().get("/", HTTP_X_REAL_IP=" 198.51.100.4 ")) == "198.51.100.4"
        assert get_client_ip(RequestFactory().get("/", REMOTE_ADDR="192.0.2.9")) == "192.0.2.9"


class TestTemplates:
    def test_recruiter_creates_company_template(self, client_for, recruiter, company):
        payload = {
            "title": "SQL screening",
            "slug": "sql-screening",
            "type": "MCQ",
            "difficulty": "JUNIOR",
            "questions": [
                {
                    "question_text": "Which clause filters groups?",
                    "options": [{"id": "a", "text": "HAVING", "isCorrect": True}, {"id": "b", "text": "WHERE"}],
                },
            ],
        }

        response = client_for(recruiter).post("/api/assessments/", payload, format="json")

        assert response.status_code == 201, response.data
        template = AssessmentTemplate.objects.get(slug="sql-screening")
        assert template.company == company
        assert template.total_questions == 1

    def test_question_needs_a_correct_option(self, client_for, recruiter):
        payload = {
            "title": "Broken",
            "slug": "broken",
            "questions": [{"question_text": "?", "options": [{"id": "a", "text": "x"}, {"id": "b", "text": "y"}]}],
        }
        response = client_for(recruiter).post("/api/assessments/", payload, format="json")
        assert response.status_code == 400

    def test_listing_scopes_company_templates(self, client_for, candidate, other_recruiter, recruiter, template, company):
        AssessmentTemplate.objects.create(title="Acme only", slug="acme-only", company=company)

        def slugs(user):
            return [t["slug"] for t in client_for(user).get("/api/assessments/").data["results"]]

        assert slugs(recruiter) == ["acme-only", "python-basics"]
        assert slugs(other_recruiter) == ["python-basics"]
        assert slugs(candidate) == ["python-basics"]
