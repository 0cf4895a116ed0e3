import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Tuple

from django.db import transaction

from Accounts.models import Company
from Billing.models import Invoice
from Billing.plans import get_company_plan, get_plan
from Jobs.models import Job
from Taskio.exceptions import BadRequest, Conflict

logger = logging.getLogger(__name__)

IVA_RATE = Decimal("1.16")
CENT = Decimal("0.01")


def split_tax(total) -> Tuple[Decimal, Decimal]:
    """Split a VAT-inclusive total into (subtotal, tax) rounded to cents."""
    total = Decimal(total)
    subtotal = (total / IVA_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    tax = (total - subtotal).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, tax


@transaction.atomic
def change_plan(company: Company, plan_id: str) -> Dict:
    """
    Move the company to another subscription plan.

    Downgrades are refused while the company has more open jobs than the
    target plan allows. Paid plans record a PENDING invoice for the first
    month in the same transaction.
    """
    target = get_plan(plan_id)
    if not target:
        raise BadRequest("Invalid target plan.")

    company = Company.objects.select_for_update().get(pk=company.pk)
    current = get_company_plan(company)

    if current["id"] == target["id"]:
        return {"plan_id": target["id"], "previous_plan_id": current["id"], "invoice_id": None, "changed": False}

    active_jobs = Job.objects.filter(company=company, status="OPEN").count()
    limit = target["limits"]["max_active_jobs"]
    if limit is not None and active_jobs > limit:
        raise Conflict(
            f"Cannot switch to {target['name']}: you have {active_jobs} open jobs and that plan allows {limit}. "
            f"Close some jobs or choose a larger plan.",
            code="PLAN_TOO_SMALL",
            error_code="PLAN_TOO_SMALL",
            active_jobs_count=active_jobs,
            max_active_jobs=limit,
        )

    company.billing_plan = target["id"]
    company.save(update_fields=["billing_plan"])

    invoice = None
    if target["price_monthly"] > 0:
        total = Decimal(target["price_monthly"])
        subtotal, tax = split_tax(total)
        invoice = Invoice.objects.create(
            company=company,
            plan_id=target["id"],
            customer_name=company.tax_legal_name or company.name,
            customer_rfc=company.tax_rfc or "XAXX010101000",
            customer_email=company.tax_email or "",
            cfdi_use=company.cfdi_use_default or "G03",
            payment_method="PUE",
            payment_form="03",
            currency=target["currency"],
            subtotal=subtotal,
            tax=tax,
            total=total,
            status="PENDING",
        )

    logger.info(
        "[BILLING] company %s changed plan %s -> %s (invoice %s)",
        company.id, current["id"], target["id"], invoice.id if invoice else None,
    )
    return {
        "plan_id": target["id"],
        "previous_plan_id": current["id"],
        "invoice_id": invoice.id if invoice else None,
        "changed": True,
    }
