from typing import Dict, List, Optional

# limits: None means unlimited
PLANS: List[Dict] = [
    {
        "id": "FREE",
        "name": "Free",
        "slug": "free",
        "price_monthly": 0,
        "currency": "MXN",
        "tagline": "Try the platform",
        "features": [
            "1 active job",
            "Up to 20 candidates per month",
            "Basic ATS pipeline",
            "Listing on the tech job board",
        ],
        "limits": {
            "max_active_jobs": 1,
            "max_candidates_per_month": 20,
            "max_recruiters": 1,
            "max_clients": 1,
        },
    },
    {
        "id": "PRO",
        "name": "Pro",
        "slug": "pro",
        "price_monthly": 999,
        "currency": "MXN",
        "tagline": "For companies hiring continuously",
        "features": [
            "Up to 5 active jobs",
            "Unlimited candidates per job",
            "Full ATS with custom stages",
            "Featured jobs in search results",
        ],
        "limits": {
            "max_active_jobs": 5,
            "max_candidates_per_month": None,
            "max_recruiters": 3,
            "max_clients": 3,
        },
    },
    {
        "id": "BUSINESS",
        "name": "Business",
        "slug": "business",
        "price_monthly": 2499,
        "currency": "MXN",
        "tagline": "For growing recruiting teams",
        "features": [
            "Up to 15 active jobs",
            "Up to 5 recruiters",
            "Company branding",
            "AI candidate matching",
        ],
        "limits": {
            "max_active_jobs": 15,
            "max_candidates_per_month": None,
            "max_recruiters": 5,
            "max_clients": 10,
        },
    },
    {
        "id": "AGENCY",
        "name": "Agency",
        "slug": "agency",
        "price_monthly": 4999,
        "currency": "MXN",
        "tagline": "Built for agencies and headhunters",
        "features": [
            "Unlimited jobs",
            "Multi-client portfolios",
            "Data export",
        ],
        "limits": {
            "max_active_jobs": None,
            "max_candidates_per_month": None,
            "max_recruiters": None,
            "max_clients": 50,
        },
    },
]

PLANS_BY_ID = {p["id"]: p for p in PLANS}


def get_plan(plan_id: Optional[str]) -> Optional[Dict]:
    return PLANS_BY_ID.get((plan_id or "").upper())


def get_company_plan(company) -> Dict:
    """Plan of the company, falling back to FREE for unknown values."""
    return get_plan(company.billing_plan) or PLANS_BY_ID["FREE"]


def max_active_jobs(company) -> Optional[int]:
    return get_company_plan(company)["limits"]["max_active_jobs"]
