import json
import logging
from typing import Any, Dict

from Jobs.prompt import ASSESSMENT_PROMPT, ASSESSMENT_SYSTEM
from Taskio.utils import generate_response_with_groq

TYPES = ("MCQ", "CODING", "MIXED")
DIFFICULTIES = ("JUNIOR", "MID", "SENIOR")
MAX_SUGGESTIONS = 2


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _strip_fences(s: str) -> str:
    t = s.strip()
    if t.startswith("```"):
        t = t[3:]
        if t.lower().startswith("json"):
            t = t[4:]
        if t.endswith("```"):
            t = t[:-3]
    return t.strip()


def _normalize(item: Dict[str, Any], seniority: str) -> Dict[str, Any]:
    kind = str(item.get("type") or "MCQ").strip().upper()
    difficulty = str(item.get("difficulty") or "").strip().upper()
    if difficulty not in DIFFICULTIES:
        difficulty = "SENIOR" if seniority in ("SENIOR", "LEAD") else seniority if seniority in DIFFICULTIES else "MID"

    sections = []
    for s in item.get("sections") or []:
        if isinstance(s, dict) and s.get("name"):
            sections.append({"name": str(s["name"]), "questions": max(1, _coerce_int(s.get("questions"), 5))})

    samples = item.get("sample_questions")
    return {
        "title": str(item.get("title") or "").strip(),
        "description": str(item.get("description") or "").strip(),
        "type": kind if kind in TYPES else "MCQ",
        "difficulty": difficulty,
        "time_limit": max(5, min(180, _coerce_int(item.get("time_limit"), 30))),
        "sections": sections,
        "sample_questions": [str(q) for q in samples] if isinstance(samples, list) else [],
    }


def ai_suggest_assessments_for_job(job_payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Ask the LLM for assessment outlines and normalize the answer into:
    { "assessments": [...], "rationale": "..." }
    Never throws; returns empty suggestions on failure.
    """
    out = {"assessments": [], "rationale": ""}
    try:
        prompt = ASSESSMENT_PROMPT.format(job_json=json.dumps(job_payload, ensure_ascii=False, indent=2))
        messages = [
            {"role": "system", "content": ASSESSMENT_SYSTEM},
            {"role": "user", "content": prompt},
        ]
        data, _usage = generate_response_with_groq(messages, response_format="json")

        if isinstance(data, str):
            data = json.loads(_strip_fences(data))
        if not isinstance(data, dict):
            return out

        # Sometimes wrapped like {"content": {...}} or {"data": {...}}
        for key in ("content", "data", "body", "result"):
            if key in data and isinstance(data[key], dict):
                data = data[key]

        items = data.get("assessments")
        if isinstance(items, list):
            seniority = str(job_payload.get("seniority") or "MID")
            normalized = [_normalize(i, seniority) for i in items if isinstance(i, dict)]
            out["assessments"] = [i for i in normalized if i["title"]][:MAX_SUGGESTIONS]
        out["rationale"] = str(data.get("rationale") or "")
        return out
    except Exception as e:
        logging.warning("AI assessment suggestions failed: %s", e, exc_info=True)
        return out
