from Assessments import scoring


OPTIONS = [
    {"id": "a", "text": "def", "isCorrect": True, "points": 1},
    {"id": "b", "text": "func"},
    {"id": "c", "text": "lambda", "correctAnswer": "no"},
]


def test_sanitize_options_drops_answer_keys():
    cleaned = scoring.sanitize_options(OPTIONS)
    assert cleaned == [
        {"id": "a", "text": "def"},
        {"id": "b", "text": "func"},
        {"id": "c", "text": "lambda"},
    ]


def test_sanitize_options_ignores_non_lists():
    assert scoring.sanitize_options(None) == []
    assert scoring.sanitize_options("abc") == []


def test_option_key_prefers_id_then_value():
    assert scoring.option_key({"id": 3}) == "3"
    assert scoring.option_key({"value": "x"}) == "x"
    assert scoring.option_key("plain") == "plain"


def test_attempt_order_keeps_question_order_without_shuffle():
    questions = [{"id": 1, "options": OPTIONS}, {"id": 2, "options": OPTIONS}]
    meta = scoring.build_attempt_order(questions, shuffle_questions=False)

    assert meta["questionOrder"] == [1, 2]
    assert sorted(meta["optionOrderByQuestion"]["1"]) == ["a", "b", "c"]


def test_questions_payload_follows_stored_order():
    questions = [
        {"id": 1, "options": OPTIONS},
        {"id": 2, "options": OPTIONS},
        {"id": 3, "options": []},
    ]
    meta = {"questionOrder": [2, 1], "optionOrderByQuestion": {"2": ["c", "a", "b"]}}

    payload = scoring.build_questions_payload(questions, meta)

    assert [q["id"] for q in payload] == [2, 1, 3]
    assert [o["id"] for o in payload[0]["options"]] == ["c", "a", "b"]
    assert all("isCorrect" not in o for q in payload for o in q["options"])


def test_normalize_selection_dedupes_and_drops_blanks():
    assert scoring.normalize_selection(["a", "", "b", "a", 3]) == ["a", "b", "3"]


def test_grade_answer_exact_match_required():
    options = [{"id": "a", "isCorrect": True}, {"id": "b"}, {"id": "c", "isCorrect": True}]

    assert scoring.grade_answer(options, ["c", "a"], False) == (True, 1.0)
    assert scoring.grade_answer(options, ["a"], False) == (False, 0.0)
    assert scoring.grade_answer(options, ["a", "b", "c"], True) == (False, scoring.WRONG_ANSWER_PENALTY)


def test_percent_is_never_negative():
    assert scoring.percent(-0.5, 2) == 0
    assert scoring.percent(1, 0) == 0
    assert scoring.percent(2, 3) == 67


def test_percent_rounds_halves_up():
    assert scoring.percent(1, 8) == 13
    assert scoring.percent(5, 8) == 63
    assert scoring.percent(3, 8) == 38
    assert scoring.round_half_up(62.5) == 63
    assert scoring.round_half_up(62.49) == 62


def test_section_scores_round_halves_up():
    answers = [{"points_earned": 1.0, "time_spent": 30, "section": "SQL"}]
    result = scoring.score_attempt(answers, 8, [{"name": "SQL", "questions": 8}])
    assert result["total_score"] == 13
    assert result["section_scores"] == {"SQL": 13}


def test_score_attempt_totals_and_sections():
    answers = [
        {"points_earned": 1.0, "time_spent": 20, "section": "Core"},
        {"points_earned": 0.0, "time_spent": 40, "section": "Core"},
        {"points_earned": 1.0, "time_spent": 30, "section": "SQL"},
    ]
    sections = [{"name": "Core", "questions": 2}, {"name": "SQL", "questions": 2}]

    result = scoring.score_attempt(answers, 4, sections)

    assert result["total_score"] == 50
    assert result["section_scores"] == {"Core": 50, "SQL": 50}
    assert result["time_spent"] == 90
    assert result["too_fast"] is False


def test_score_attempt_with_no_answers():
    result = scoring.score_attempt([], 0, [])
    assert result == {"total_score": 0, "section_scores": {}, "time_spent": 0, "too_fast": False}


def test_score_attempt_marks_fast_answers():
    answers = [{"points_earned": 1.0, "time_spent": 2, "section": ""}] * 3
    assert scoring.score_attempt(answers, 3, [])["too_fast"] is True


def test_average_of_exactly_five_seconds_is_not_too_fast():
    answers = [
        {"points_earned": 1.0, "time_spent": 4, "section": ""},
        {"points_earned": 1.0, "time_spent": 6, "section": ""},
    ]
    assert scoring.score_attempt(answers, 2, [])["too_fast"] is False

    answers[1] = {"points_earned": 1.0, "time_spent": 5, "section": ""}
    assert scoring.score_attempt(answers, 2, [])["too_fast"] is True


def test_flag_severity_thresholds():
    assert scoring.flag_severity({}) == (0, "NORMAL")
    assert scoring.flag_severity({"copyAttempts": 4}) == (12, "SUSPICIOUS")
    assert scoring.flag_severity({"tabSwitches": 5, "pasteAttempts": 3, "rightClicks": 1}) == (20, "CRITICAL")
    # visibility changes are counted but not weighted
    assert scoring.flag_severity({"visibilityHidden": 50}) == (0, "NORMAL")


def test_current_index_resumes_after_last_answer():
    order = [10, 20, 30]
    assert scoring.current_index(order, None) == 0
    assert scoring.current_index(order, 10) == 1
    assert scoring.current_index(order, 30) == 2
    assert scoring.current_index(order, 99) == 0
    assert scoring.current_index([], 10) == 0
