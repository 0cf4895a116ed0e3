"""
Credit pricing for assessments.

Each invite reserves `reserve` credits when it is sent; when the candidate
completes the attempt the company is charged `total` (the reservation is
released and the completion part added on top).
"""
from decimal import Decimal
from typing import Dict, Iterable, NamedTuple, Optional

from django.utils.timezone import localtime, now


class AssessmentPricing(NamedTuple):
    reserve: Decimal
    complete: Decimal
    total: Decimal


def _p(reserve, complete, total):
    return AssessmentPricing(Decimal(reserve), Decimal(complete), Decimal(total))


ASSESSMENT_PRICING: Dict[str, Dict[str, AssessmentPricing]] = {
    "MCQ": {
        "JUNIOR": _p("0.5", "0.5", "1.0"),
        "MID": _p("0.5", "0.5", "1.0"),
        "SENIOR": _p("0.5", "0.5", "1.0"),
    },
    "CODING": {
        "JUNIOR": _p("0.5", "2.0", "2.5"),
        "MID": _p("0.5", "2.5", "3.0"),
        "SENIOR": _p("0.5", "3.5", "4.0"),
    },
    "MIXED": {
        "JUNIOR": _p("0.5", "2.5", "3.0"),
        "MID": _p("0.5", "3.0", "3.5"),
        "SENIOR": _p("0.5", "4.0", "4.5"),
    },
}

CREDIT_PACKAGES = [
    {"id": "basic", "name": "Basic", "credits": 20, "price": 79, "price_per_credit": 3.95, "recommended": False},
    {"id": "pro", "name": "Professional", "credits": 75, "price": 249, "price_per_credit": 3.32, "recommended": True},
    {"id": "enterprise", "name": "Enterprise", "credits": 250, "price": 699, "price_per_credit": 2.8, "recommended": False},
]

CREDIT_ADDON_PRICE = 4.99
LOW_BALANCE_THRESHOLD = Decimal("5")


def get_assessment_cost(assessment_type: str, difficulty: str) -> AssessmentPricing:
    try:
        return ASSESSMENT_PRICING[assessment_type][difficulty]
    except KeyError:
        raise ValueError(f"No pricing for {assessment_type}/{difficulty}")


def calculate_total_cost(assessments: Iterable[Dict[str, str]]) -> Decimal:
    return sum(
        (get_assessment_cost(a["type"], a["difficulty"]).total for a in assessments),
        Decimal("0"),
    )


def estimate_credits_needed(candidate_count: int, assessment_type: str, difficulty: str) -> Decimal:
    return candidate_count * get_assessment_cost(assessment_type, difficulty).total


def format_credits(credits) -> str:
    return f"{Decimal(credits):.1f}"


def get_current_billing_cycle(when=None) -> int:
    """YYYYMM of the given (or current) local time."""
    when = localtime(when or now())
    return when.year * 100 + when.month


def calculate_credit_stats(available, reserved, used) -> Dict[str, float]:
    available, reserved, used = Decimal(available), Decimal(reserved), Decimal(used)
    total = available + reserved + used
    percent_used = (used / total * 100) if total > 0 else Decimal("0")
    return {
        "available": float(available),
        "reserved": float(reserved),
        "used": float(used),
        "total": float(total),
        "percent_used": round(float(percent_used), 2),
    }


def needs_more_credits(available, reserved, threshold: Optional[Decimal] = None) -> bool:
    threshold = LOW_BALANCE_THRESHOLD if threshold is None else Decimal(threshold)
    return Decimal(available) - Decimal(reserved) < threshold
