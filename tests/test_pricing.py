from datetime import datetime
from decimal import Decimal

import pytest
from django.utils import timezone

from Billing import pricing
from Billing.plans import PLANS, get_company_plan, get_plan, max_active_jobs
from Billing.subscriptions import split_tax


def test_every_type_reserves_half_a_credit():
    for by_difficulty in pricing.ASSESSMENT_PRICING.values():
        for price in by_difficulty.values():
            assert price.reserve == Decimal("0.5")
            assert price.reserve + price.complete == price.total


def test_assessment_cost_lookup():
    assert pricing.get_assessment_cost("CODING", "SENIOR").total == Decimal("4.0")
    with pytest.raises(ValueError):
        pricing.get_assessment_cost("ESSAY", "MID")


def test_total_cost_and_estimates():
    items = [{"type": "MCQ", "difficulty": "MID"}, {"type": "MIXED", "difficulty": "JUNIOR"}]
    assert pricing.calculate_total_cost(items) == Decimal("4.0")
    assert pricing.estimate_credits_needed(10, "CODING", "MID") == Decimal("30.0")
    assert pricing.format_credits(Decimal("2")) == "2.0"


def test_billing_cycle_is_year_month():
    when = timezone.make_aware(datetime(2024, 3, 15, 12, 0))
    assert pricing.get_current_billing_cycle(when) == 202403


def test_credit_stats_and_low_balance():
    stats = pricing.calculate_credit_stats(Decimal("6"), Decimal("1"), Decimal("3"))
    assert stats["total"] == 10.0
    assert stats["percent_used"] == 30.0
    assert pricing.calculate_credit_stats(0, 0, 0)["percent_used"] == 0.0

    assert pricing.needs_more_credits(Decimal("6"), Decimal("2")) is True
    assert pricing.needs_more_credits(Decimal("10"), Decimal("2")) is False


def test_split_tax_adds_up():
    subtotal, tax = split_tax(999)
    assert subtotal == Decimal("861.21")
    assert tax == Decimal("137.79")
    assert subtotal + tax == Decimal("999")


def test_plans_catalog():
    assert [p["id"] for p in PLANS][0] == "FREE"
    assert get_plan("pro")["id"] == "PRO"
    assert get_plan("nope") is None


@pytest.mark.django_db
def test_unknown_company_plan_falls_back_to_free(company):
    company.billing_plan = "LEGACY"
    assert get_company_plan(company)["id"] == "FREE"
    assert max_active_jobs(company) == 1
