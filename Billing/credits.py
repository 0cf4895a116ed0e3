import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, Optional

from django.db import transaction
from django.db.models import F
from django.utils.timezone import now

from Accounts.models import Company
from Assessments.models import AssessmentInvite
from Billing.models import CreditLedgerEntry
from Billing.plans import get_company_plan
from Billing.pricing import calculate_credit_stats, get_assessment_cost, get_current_billing_cycle, needs_more_credits
from Taskio.exceptions import PaymentRequired

logger = logging.getLogger(__name__)


def has_available_credits(company_id: int, required_credits=Decimal("0.5")) -> bool:
    company = Company.objects.filter(id=company_id).only(
        "assessment_credits", "assessment_credits_reserved"
    ).first()
    if not company:
        return False
    return company.effective_credits >= Decimal(required_credits)


@transaction.atomic
def reserve_credits(company_id: int, invite, assessment_type: str, difficulty: str) -> CreditLedgerEntry:
    """
    Reserve the invite price on the company balance.

    Raises PaymentRequired (nothing persisted) when the effective balance
    (credits - reserved) does not cover the reservation.
    """
    pricing = get_assessment_cost(assessment_type, difficulty)
    company = Company.objects.select_for_update().get(id=company_id)

    if company.effective_credits < pricing.reserve:
        logger.info(
            "[CREDITS] company %s cannot reserve %s (effective %s)",
            company_id, pricing.reserve, company.effective_credits,
        )
        raise PaymentRequired(
            "Not enough credits available.",
            required=float(pricing.reserve),
            available=float(company.effective_credits),
        )

    Company.objects.filter(id=company_id).update(
        assessment_credits_reserved=F("assessment_credits_reserved") + pricing.reserve
    )
    entry = CreditLedgerEntry.objects.create(
        invite=invite,
        company_id=company_id,
        kind="ASSESSMENT_INVITE",
        cycle=get_current_billing_cycle(),
        amount=pricing.reserve,
        status="RESERVED",
        reserved_amount=pricing.reserve,
        assessment_type=assessment_type,
        difficulty=difficulty,
        meta={
            "pricing": {k: str(v) for k, v in pricing._asdict().items()},
            "reserved_at": now().isoformat(),
            "type": "RESERVE",
        },
    )
    logger.info("[CREDITS] reserved %s credits for invite %s", pricing.reserve, invite.id)
    return entry


def _open_reservation(invite_id: int) -> Optional[CreditLedgerEntry]:
    return (
        CreditLedgerEntry.objects.select_for_update()
        .filter(invite_id=invite_id, status="RESERVED")
        .order_by("-created_at")
        .first()
    )


@transaction.atomic
def charge_completion_credits(invite_id: int) -> bool:
    """Release the reservation and charge the full price. False if no reservation exists."""
    entry = _open_reservation(invite_id)
    if not entry or not entry.assessment_type or not entry.difficulty:
        logger.warning("[CREDITS] no reservation found to charge for invite %s", invite_id)
        return False

    pricing = get_assessment_cost(entry.assessment_type, entry.difficulty)
    reserved = entry.reserved_amount if entry.reserved_amount is not None else pricing.reserve

    Company.objects.filter(id=entry.company_id).update(
        assessment_credits_reserved=F("assessment_credits_reserved") - reserved,
        assessment_credits=F("assessment_credits") - pricing.total,
        assessment_credits_used=F("assessment_credits_used") + pricing.total,
    )

    entry.status = "CHARGED"
    entry.charged_amount = pricing.total
    entry.amount = pricing.total
    entry.meta = {
        **(entry.meta or {}),
        "charged_at": now().isoformat(),
        "completion_charge": str(pricing.complete),
        "type": "CHARGE",
    }
    entry.save(update_fields=["status", "charged_amount", "amount", "meta", "updated_at"])
    logger.info("[CREDITS] charged %s credits for invite %s", pricing.total, invite_id)
    return True


@transaction.atomic
def refund_reserved_credits(invite_id: int, reason: str = "Not completed in time") -> bool:
    """Release the reservation without charging. False if no reservation exists."""
    entry = _open_reservation(invite_id)
    if not entry or not entry.reserved_amount:
        logger.warning("[CREDITS] no reservation found to refund for invite %s", invite_id)
        return False

    Company.objects.filter(id=entry.company_id).update(
        assessment_credits_reserved=F("assessment_credits_reserved") - entry.reserved_amount
    )

    entry.status = "REFUNDED"
    entry.refunded_amount = entry.reserved_amount
    entry.amount = Decimal("0")
    entry.meta = {
        **(entry.meta or {}),
        "refunded_at": now().isoformat(),
        "reason": reason,
        "type": "REFUND",
    }
    entry.save(update_fields=["status", "refunded_amount", "amount", "meta", "updated_at"])
    logger.info("[CREDITS] refunded %s credits for invite %s: %s", entry.reserved_amount, invite_id, reason)
    return True


@transaction.atomic
def add_credits(company_id: int, amount, reason: str = "Credit purchase") -> Company:
    amount = Decimal(str(amount))
    if amount <= 0:
        raise ValueError("amount must be positive")
    updated = Company.objects.filter(id=company_id).update(
        assessment_credits=F("assessment_credits") + amount
    )
    if not updated:
        raise Company.DoesNotExist(f"Company {company_id} not found")
    logger.info("[CREDITS] added %s credits to company %s: %s", amount, company_id, reason)
    return Company.objects.get(id=company_id)


def get_credit_balance(company: Company) -> Dict:
    company.refresh_from_db(fields=[
        "assessment_credits", "assessment_credits_reserved", "assessment_credits_used", "billing_plan",
    ])
    return {
        "available": float(company.assessment_credits),
        "reserved": float(company.assessment_credits_reserved),
        "used": float(company.assessment_credits_used),
        "effective_balance": float(company.effective_credits),
        "plan": get_company_plan(company)["id"],
        "needs_more_credits": needs_more_credits(company.assessment_credits, company.assessment_credits_reserved),
        "stats": calculate_credit_stats(
            company.assessment_credits, company.assessment_credits_reserved, company.assessment_credits_used,
        ),
    }


def get_credit_history(company_id: int, limit: int = 50):
    return (
        CreditLedgerEntry.objects.filter(company_id=company_id)
        .select_related("invite__candidate", "invite__job", "invite__template")
        .order_by("-created_at", "-id")[:limit]
    )


def refund_uncompleted_invites(older_than_days: int = 7) -> Dict:
    """
    Refund reservations of invites nobody completed within `older_than_days`.

    Invites still waiting on the candidate are marked EXPIRED. Each
    reservation is refunded in its own transaction so one failure does not
    block the rest.
    """
    cutoff = now() - timedelta(days=older_than_days)
    entries = list(
        CreditLedgerEntry.objects.filter(status="RESERVED", created_at__lt=cutoff)
        .select_related("invite__candidate")
    )
    logger.info("[CRON] %s uncompleted invites reserved before %s", len(entries), cutoff.isoformat())

    refunded, failed, total = 0, 0, Decimal("0")
    for entry in entries:
        try:
            with transaction.atomic():
                ok = refund_reserved_credits(
                    entry.invite_id,
                    reason=f"Auto-refund: not completed in {older_than_days} days "
                           f"(invited {entry.created_at.date().isoformat()})",
                )
                if ok:
                    AssessmentInvite.objects.filter(
                        id=entry.invite_id, status__in=("SENT", "STARTED")
                    ).update(status="EXPIRED", updated_at=now())
        except Exception:
            logger.exception("[CRON] error refunding ledger entry %s", entry.id)
            ok = False

        if ok:
            refunded += 1
            total += entry.reserved_amount or Decimal("0")
            logger.info(
                "[CRON] refunded %s credits for invite %s (candidate %s)",
                entry.reserved_amount, entry.invite_id, entry.invite.candidate.email,
            )
        else:
            failed += 1

    summary = {"refunded": refunded, "failed": failed, "total_amount": round(float(total), 1)}
    logger.info("[CRON] refund job done: %s", summary)
    return summary
