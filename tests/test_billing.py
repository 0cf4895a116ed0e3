from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils.timezone import now

from Accounts.models import Company
from Assessments.models import AssessmentInvite, AssessmentTemplate
from Billing import credits as credit_service
from Billing.models import CreditLedgerEntry, Invoice
from Jobs.models import Job
from Notifications.models import Notification
from Taskio.exceptions import PaymentRequired

pytestmark = pytest.mark.django_db


@pytest.fixture
def sent_invite(application, template):
    return AssessmentInvite.objects.create(
        application=application,
        job=application.job,
        candidate=application.candidate,
        template=template,
        token="tok-1",
        expires_at=now() + timedelta(days=7),
    )


def balances(company):
    company.refresh_from_db()
    return company.assessment_credits, company.assessment_credits_reserved, company.assessment_credits_used


class TestCreditLedger:
    def test_reserve_then_charge(self, company, sent_invite):
        credit_service.reserve_credits(company.id, sent_invite, "CODING", "SENIOR")
        assert balances(company) == (Decimal("10"), Decimal("0.5"), Decimal("0"))
        assert credit_service.has_available_credits(company.id, Decimal("9.5"))
        assert not credit_service.has_available_credits(company.id, Decimal("9.6"))

        assert credit_service.charge_completion_credits(sent_invite.id) is True
        assert balances(company) == (Decimal("6"), Decimal("0"), Decimal("4"))
        entry = CreditLedgerEntry.objects.get(invite=sent_invite)
        assert entry.status == "CHARGED"
        assert entry.charged_amount == Decimal("4")

        # nothing left to charge or refund
        assert credit_service.charge_completion_credits(sent_invite.id) is False
        assert credit_service.refund_reserved_credits(sent_invite.id) is False

    def test_reserve_needs_effective_balance(self, company, sent_invite):
        Company.objects.filter(id=company.id).update(
            assessment_credits=Decimal("1"), assessment_credits_reserved=Decimal("0.75")
        )
        with pytest.raises(PaymentRequired):
            credit_service.reserve_credits(company.id, sent_invite, "MCQ", "MID")
        assert not CreditLedgerEntry.objects.exists()

    def test_refund_releases_reservation(self, company, sent_invite):
        credit_service.reserve_credits(company.id, sent_invite, "MCQ", "JUNIOR")

        assert credit_service.refund_reserved_credits(sent_invite.id, reason="Cancelled") is True

        assert balances(company) == (Decimal("10"), Decimal("0"), Decimal("0"))
        entry = CreditLedgerEntry.objects.get(invite=sent_invite)
        assert entry.status == "REFUNDED"
        assert entry.amount == Decimal("0")
        assert entry.meta["reason"] == "Cancelled"

    def test_add_credits(self, company):
        credit_service.add_credits(company.id, "2.5")
        assert balances(company)[0] == Decimal("12.5")
        with pytest.raises(ValueError):
            credit_service.add_credits(company.id, 0)


class TestRefundCommand:
    def test_refunds_stale_reservations_only(self, company, sent_invite, application):
        credit_service.reserve_credits(company.id, sent_invite, "MCQ", "MID")
        CreditLedgerEntry.objects.update(created_at=now() - timedelta(days=8))

        fresh_invite = AssessmentInvite.objects.create(
            application=application, job=application.job, candidate=application.candidate,
            template=AssessmentTemplate.objects.create(title="Fresh", slug="fresh"), token="tok-2",
        )
        credit_service.reserve_credits(company.id, fresh_invite, "MCQ", "MID")

        out = StringIO()
        call_command("refund_uncompleted_invites", "--days", "7", stdout=out)

        assert "refunded=1" in out.getvalue()
        sent_invite.refresh_from_db()
        fresh_invite.refresh_from_db()
        assert sent_invite.status == "EXPIRED"
        assert fresh_invite.status == "SENT"
        assert balances(company)[1] == Decimal("0.5")

    def test_summary(self, company, sent_invite):
        credit_service.reserve_credits(company.id, sent_invite, "CODING", "MID")
        CreditLedgerEntry.objects.update(created_at=now() - timedelta(days=30))

        assert credit_service.refund_uncompleted_invites(7) == {"refunded": 1, "failed": 0, "total_amount": 0.5}
        assert credit_service.refund_uncompleted_invites(7) == {"refunded": 0, "failed": 0, "total_amount": 0.0}


class TestBillingEndpoints:
    def test_plans_are_public(self, api_client):
        response = api_client.get("/api/billing/plans/")
        assert response.status_code == 200
        assert {p["id"] for p in response.data["plans"]} >= {"FREE", "PRO"}
        assert response.data["assessment_pricing"]["MCQ"]["MID"]["total"] == 1.0

    def test_upgrade_creates_invoice(self, client_for, recruiter, company):
        response = client_for(recruiter).post("/api/billing/change-plan/", {"plan_id": "pro"}, format="json")

        assert response.status_code == 200
        assert response.data["body"]["changed"] is True
        company.refresh_from_db()
        assert company.billing_plan == "PRO"
        invoice = Invoice.objects.get(id=response.data["body"]["invoice_id"])
        assert invoice.total == Decimal("999")
        assert invoice.subtotal + invoice.tax == invoice.total
        assert invoice.customer_rfc == "XAXX010101000"
        assert Notification.objects.filter(user=recruiter, type="SUBSCRIPTION_CHANGED").exists()

        invoices = client_for(recruiter).get("/api/billing/invoices/")
        assert len(invoices.data) == 1

    def test_same_plan_is_a_no_op(self, client_for, recruiter):
        response = client_for(recruiter).post("/api/billing/change-plan/", {"plan_id": "FREE"}, format="json")
        assert response.status_code == 200
        assert response.data["body"]["changed"] is False
        assert not Invoice.objects.exists()

    def test_downgrade_blocked_by_open_jobs(self, client_for, recruiter, company):
        company.billing_plan = "PRO"
        company.save()
        for n in range(2):
            Job.objects.create(company=company, title=f"Job {n}", location="CDMX", description="x" * 20)

        response = client_for(recruiter).post("/api/billing/change-plan/", {"plan_id": "FREE"}, format="json")

        assert response.status_code == 409
        assert response.data["body"]["error_code"] == "PLAN_TOO_SMALL"
        assert response.data["body"]["active_jobs_count"] == 2
        company.refresh_from_db()
        assert company.billing_plan == "PRO"

    def test_invalid_plan(self, client_for, recruiter):
        assert client_for(recruiter).post("/api/billing/change-plan/", {"plan_id": "GOLD"}, format="json").status_code == 400
        assert client_for(recruiter).post("/api/billing/change-plan/", {}, format="json").status_code == 400

    def test_tax_data(self, client_for, recruiter, company):
        client = client_for(recruiter)

        ok = client.patch("/api/billing/taxdata/", {"tax_rfc": "abc010101xy9", "tax_zip": "06600"}, format="json")
        bad = client.patch("/api/billing/taxdata/", {"tax_rfc": "NOT-AN-RFC"}, format="json")

        assert ok.status_code == 200
        company.refresh_from_db()
        assert company.tax_rfc == "ABC010101XY9"
        assert bad.status_code == 400

    def test_credit_overview(self, client_for, recruiter):
        response = client_for(recruiter).get("/api/billing/credits/")
        assert response.status_code == 200
        assert response.data["balance"]["effective_balance"] == 10.0
        assert response.data["balance"]["plan"] == "FREE"
        assert response.data["history"] == []

    def test_only_admins_add_credits(self, client_for, admin_user, recruiter, company):
        payload = {"company": company.id, "amount": "5"}

        assert client_for(recruiter).post("/api/billing/credits/add/", payload, format="json").status_code == 403

        response = client_for(admin_user).post("/api/billing/credits/add/", payload, format="json")
        assert response.status_code == 200
        assert response.data["body"]["available"] == 15.0

    def test_candidates_have_no_billing(self, client_for, candidate):
        assert client_for(candidate).get("/api/billing/credits/").status_code == 403
