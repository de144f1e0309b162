import pytest

from survey_app.models import Response, Survey, User
from survey_app.services.analysis_service import build_analysis
from survey_app.services.chart_service import top_sentiment_questions
from survey_app.services.classifier import AnswerType
from survey_app.services.csv_service import (
    UNKNOWN_SURVEY,
    UNKNOWN_TENURE,
    read_responses,
    write_responses_csv,
)
from survey_app.services.export_service import (
    build_flat_records,
    format_submission_time,
    generate_responses_csv,
    to_flat_record,
)
from survey_app.services.metrics import department_response_distribution

QUESTIONS = [
    {"text": "How satisfied are you?", "type": "radio", "options": ["Very Satisfied", "Satisfied", "Neutral"]},
    {"text": "Rate your manager", "type": "star", "options": []},
    {"text": "Which perks do you use?", "type": "checkbox", "options": ["Gym", "Snacks", "Transport"]},
    {"text": "Any comments?", "type": "text", "options": []},
]


def test_submission_time_is_rendered_in_export_zone():
    assert format_submission_time("2025-01-05T04:00:00+00:00") == ("1/5/2025", "09:30:00 AM")
    assert format_submission_time("2025-01-05T20:00:00+00:00") == ("1/6/2025", "01:30:00 AM")


def test_naive_timestamps_are_treated_as_utc():
    assert format_submission_time("2025-03-10T12:00:00", tz_name="UTC") == ("3/10/2025", "12:00:00 PM")


def test_flat_record_answers():
    record = to_flat_record({
        "userId": "jdoe",
        "department": "Engineering",
        "tenure": "",
        "answers": {"q0": "Neutral", "q1": "4", "q2": "Gym, Snacks"},
        "timestamp": "2025-01-05T04:00:00+00:00",
        "surveyTitle": None,
        "questions": QUESTIONS,
    }, tenure_by_user={"jdoe": "5+ years"})

    assert record.survey_title == UNKNOWN_SURVEY
    assert record.tenure == "5+ years"
    assert [qa.answer for qa in record.answers] == ["Neutral", "4 stars", "Gym, Snacks", "No answer"]
    assert [qa.type for qa in record.answers] == [
        AnswerType.MCQ, AnswerType.STAR_RATING, AnswerType.CHECKBOX, AnswerType.TEXT,
    ]
    assert [qa.number for qa in record.answers] == [1, 2, 3, 4]


def test_unknown_tenure_fallback():
    record = to_flat_record({
        "userId": "Engineering__1700000000000",
        "department": "Engineering",
        "tenure": None,
        "answers": {},
        "timestamp": "2025-01-05T04:00:00+00:00",
        "surveyTitle": "Pulse",
        "questions": [],
    })
    assert record.tenure == UNKNOWN_TENURE
    assert record.answers == ()


def test_database_export_round_trip(db, tmp_path):
    survey = Survey.add("Pulse", "Engineering", QUESTIONS)
    User.add("jdoe", "secret", "Engineering", "1001", "jdoe@example.com", "0-6 months")
    Response.add(survey, "jdoe", "Engineering", "0-6 months", {
        "q0": "Satisfied",
        "q1": 4,
        "q2": ["Gym", "Snacks"],
        "q3": "Great team",
    })

    assert len(build_flat_records()) == 1
    path = generate_responses_csv(str(tmp_path / "export.csv"))
    (record,) = read_responses(path)

    assert record.survey_title == "Pulse"
    assert record.department == "Engineering"
    assert record.tenure == "0-6 months"
    assert [(qa.question, qa.answer, qa.type) for qa in record.answers] == [
        ("How satisfied are you?", "Satisfied", AnswerType.MCQ),
        ("Rate your manager", "4 stars", AnswerType.STAR_RATING),
        ("Which perks do you use?", "Gym, Snacks", AnswerType.CHECKBOX),
        ("Any comments?", "Great team", AnswerType.TEXT),
    ]


def test_export_to_temp_folder(db, workdirs):
    temp_folder, _ = workdirs
    path = generate_responses_csv()

    assert path.startswith(str(temp_folder))
    with open(path, encoding="utf-8") as f:
        assert f.readline().startswith("Survey Title,Department,Tenure")


def _response(user_id, answers, questions):
    return {
        "userId": user_id,
        "department": "Engineering",
        "tenure": "5+ years",
        "answers": answers,
        "timestamp": "2025-01-05T04:00:00+00:00",
        "surveyTitle": "Pulse",
        "questions": questions,
    }


def test_yes_no_radio_question_is_not_sentiment(tmp_path):
    questions = [
        {"text": "Do you work remotely?", "type": "radio", "options": ["Yes", "No"]},
        {"text": "How satisfied are you?", "type": "radio",
         "options": ["Very Satisfied", "Satisfied", "Neutral", "Dissatisfied", "Very Dissatisfied"]},
    ]
    records = [
        to_flat_record(_response("jdoe", {"q0": "Yes", "q1": "Very Satisfied"}, questions)),
        to_flat_record(_response("asmith", {"q0": "No", "q1": "Satisfied"}, questions)),
    ]
    assert [qa.type for qa in records[0].answers] == [AnswerType.TEXT, AnswerType.MCQ]

    path = write_responses_csv(records, str(tmp_path / "export.csv"))
    report = build_analysis(read_responses(path))

    engineering = report.departments["Engineering"]
    assert [q.type for q in engineering.question_analysis.values()] == [AnswerType.TEXT, AnswerType.MCQ]

    distribution = department_response_distribution(engineering)
    assert sum(distribution.values()) == pytest.approx(100.0)
    assert distribution["Very Satisfied"] == pytest.approx(50.0)

    top = top_sentiment_questions(report)
    assert [q.question for q, _, _ in top] == ["How satisfied are you?"]
    assert top[0][1] == pytest.approx(100.0)
