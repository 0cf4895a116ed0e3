import random
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

HIDDEN_OPTION_KEYS = ("correct", "answer", "score", "points")

ALLOWED_FLAG_EVENTS = ("TAB_SWITCH", "VISIBILITY_HIDDEN", "COPY", "PASTE", "RIGHT_CLICK")
FLAG_COUNTERS = {
    "TAB_SWITCH": "tabSwitches",
    "VISIBILITY_HIDDEN": "visibilityHidden",
    "COPY": "copyAttempts",
    "PASTE": "pasteAttempts",
    "RIGHT_CLICK": "rightClicks",
}
MAX_FLAG_EVENTS = 200
MAX_FLAG_META_CHARS = 1000

WRONG_ANSWER_PENALTY = -0.25
TOO_FAST_SECONDS = 5


def option_key(option) -> str:
    if isinstance(option, dict):
        key = option.get("id", option.get("value"))
        if key is not None:
            return str(key)
    return str(option)


def sanitize_options(raw) -> List[Any]:
    """Strip every key that could reveal the right answer from a question's options."""
    cleaned = []
    for opt in raw if isinstance(raw, list) else []:
        if isinstance(opt, dict):
            opt = {k: v for k, v in opt.items() if not any(h in k.lower() for h in HIDDEN_OPTION_KEYS)}
        cleaned.append(opt)
    return cleaned


def build_attempt_order(questions: List[Dict], shuffle_questions: bool) -> Dict:
    """
    Freeze the order a candidate sees for one attempt.

    Questions are shuffled only when the template asks for it; options are
    always shuffled. The result is stored in the attempt's flags so a reload
    shows the same order.
    """
    ids = [q["id"] for q in questions]
    if shuffle_questions:
        random.shuffle(ids)

    option_order = {}
    for q in questions:
        keys = [option_key(o) for o in (q.get("options") or [])]
        random.shuffle(keys)
        option_order[str(q["id"])] = keys
    return {"questionOrder": ids, "optionOrderByQuestion": option_order}


def build_questions_payload(questions: List[Dict], meta: Optional[Dict]) -> List[Dict]:
    """Apply the stored order to sanitized questions. Unknown ids go last, in their natural order."""
    meta = meta or {}
    questions = [{**q, "options": sanitize_options(q.get("options"))} for q in questions]

    order = meta.get("questionOrder") or []
    if order:
        by_id = {q["id"]: q for q in questions}
        ordered = [by_id[i] for i in order if i in by_id]
        questions = ordered + [q for q in questions if q["id"] not in order]

    option_order = meta.get("optionOrderByQuestion") or {}
    result = []
    for q in questions:
        keys = option_order.get(str(q["id"]))
        if isinstance(keys, list):
            by_key = {option_key(o): o for o in q["options"]}
            ordered = [by_key[k] for k in keys if k in by_key]
            q = {**q, "options": ordered + [o for o in q["options"] if option_key(o) not in keys]}
        result.append(q)
    return result


def normalize_selection(selected: Iterable) -> List[str]:
    """Stringify, drop blanks and deduplicate keeping the first occurrence."""
    seen = []
    for value in selected:
        value = str(value)
        if value and value not in seen:
            seen.append(value)
    return seen


def grade_answer(options: List[Dict], selected: List[str], penalize_wrong: bool) -> Tuple[bool, float]:
    correct = {str(o.get("id")) for o in options if isinstance(o, dict) and o.get("isCorrect")}
    is_correct = correct == set(selected)
    if is_correct:
        return True, 1.0
    return False, WRONG_ANSWER_PENALTY if penalize_wrong else 0.0


def round_half_up(value) -> int:
    """Round to the nearest integer with halves going up: 12.5 is 13, not 12."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent(points: float, max_points) -> int:
    """Points as a 0-100 integer score. Never negative; 0 when there is nothing to score against."""
    max_points = int(max_points or 0)
    if max_points <= 0:
        return 0
    return max(0, round_half_up(points / max_points * 100))


def score_attempt(answers: List[Dict], total_questions: int, sections: List[Dict]) -> Dict:
    """
    Aggregate graded answers into the attempt result.

    `answers` items carry points_earned, time_spent and section. The total
    falls back to the answered count when the template declares no
    question count; sections are scored against their declared size.
    """
    answered = len(answers)
    total_points = sum(a.get("points_earned") or 0 for a in answers)
    total_score = percent(total_points, total_questions or answered)

    section_scores = {}
    for section in sections or []:
        name = section.get("name")
        points = sum(a.get("points_earned") or 0 for a in answers if a.get("section") == name)
        section_scores[name] = percent(points, section.get("questions"))

    time_spent = sum(a.get("time_spent") or 0 for a in answers)
    too_fast = answered > 0 and time_spent / answered < TOO_FAST_SECONDS
    return {
        "total_score": total_score,
        "section_scores": section_scores,
        "time_spent": time_spent,
        "too_fast": too_fast,
    }


def flag_severity(counts: Dict) -> Tuple[int, str]:
    score = (
        counts.get("tabSwitches", 0) * 2
        + counts.get("copyAttempts", 0) * 3
        + counts.get("pasteAttempts", 0) * 3
        + counts.get("rightClicks", 0)
    )
    if score >= 20:
        return score, "CRITICAL"
    if score >= 10:
        return score, "SUSPICIOUS"
    return score, "NORMAL"


def current_index(order: List, last_answered) -> int:
    """Index of the question to resume at: the one after the last answered, clamped to the order."""
    if not order:
        return 0
    index = 0
    if last_answered is not None and last_answered in order:
        index = order.index(last_answered) + 1
    return max(0, min(index, len(order) - 1))
