import re
from typing import Dict, List, Tuple

from django.db.models import Max

from Jobs.models import Application, Job

# expected skill level (0-100) for each job seniority
REQUIRED_LEVEL = {"JUNIOR": 40, "MID": 60, "SENIOR": 75, "LEAD": 85}
RESUME_MENTION_RATIO = 0.5
ASSESSMENT_BONUS_MAX = 10.0


def _mentions(text: str, skill: str) -> bool:
    """Whole-word match: "go" is not found in "google", "c++" is found in "c++ and go"."""
    return re.search(r"(?<![a-z0-9])" + re.escape(skill) + r"(?![a-z0-9])", text) is not None


def _build_skill_map(candidate) -> Dict[str, int]:
    """
    Return {skill_name_lower: level 0-100}
    """
    out: Dict[str, int] = {}
    for s in candidate.skills or []:
        if isinstance(s, dict) and s.get("name"):
            try:
                level = int(s.get("level", 0))
            except (TypeError, ValueError):
                level = 0
            out[str(s["name"]).strip().lower()] = max(0, min(100, level))
        elif isinstance(s, str) and s.strip():
            out[s.strip().lower()] = REQUIRED_LEVEL["MID"]
    return out


def compute_fit_score(job: Job, candidate, best_assessment_score=None) -> Tuple[float, Dict]:
    """
    Compute a 0-100 fit score from declared skills, resume mentions and assessments.

    Each job skill weighs the same. A declared skill contributes its level
    against the level the job's seniority expects; a skill only mentioned
    in the resume text counts half. The best passing assessment score adds
    up to 10 points.
    """
    required = REQUIRED_LEVEL.get(job.seniority, REQUIRED_LEVEL["MID"])
    wanted = [str(s).strip() for s in job.skills or [] if str(s).strip()]
    skill_map = _build_skill_map(candidate)
    resume = (candidate.resume_text or "").lower()

    details: List[Dict] = []
    total = 0.0
    for skill in wanted:
        key = skill.lower()
        if key in skill_map:
            ratio = min(1.0, skill_map[key] / float(required))
            source = "profile"
        elif _mentions(resume, key):
            ratio = RESUME_MENTION_RATIO
            source = "resume"
        else:
            ratio = 0.0
            source = None
        total += ratio
        details.append({"skill": skill, "level": skill_map.get(key, 0), "ratio": round(ratio, 3), "source": source})

    skill_score = (total / len(wanted)) * 100.0 if wanted else 0.0
    bonus = 0.0
    if best_assessment_score is not None:
        bonus = max(0.0, min(ASSESSMENT_BONUS_MAX, best_assessment_score / 100.0 * ASSESSMENT_BONUS_MAX))

    final = max(0.0, min(100.0, skill_score + bonus))
    breakdown = {
        "skills": details,
        "skill_score": round(skill_score, 2),
        "assessment_bonus": round(bonus, 2),
        "final": round(final, 2),
    }
    return round(final, 2), breakdown


def rank_applicants(job: Job, limit: int = 100) -> List[Tuple[Application, float, Dict]]:
    """
    Rank the job's applications by candidate fit, best first.
    """
    applications = list(Application.objects.filter(job=job).select_related("candidate"))
    best_scores = dict(
        Application.objects.filter(job=job, assessment_attempts__passed=True)
        .values_list("id")
        .annotate(best=Max("assessment_attempts__total_score"))
    )

    scored: List[Tuple[Application, float, Dict]] = []
    for application in applications:
        fit, breakdown = compute_fit_score(job, application.candidate, best_scores.get(application.id))
        scored.append((application, fit, breakdown))
    scored.sort(key=lambda t: t[1], reverse=True)
    return scored[:limit]
