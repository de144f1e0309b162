import pytest

from survey_app.services.analysis_service import reduce_department
from survey_app.services.metrics import (
    NOT_AVAILABLE,
    calculate_department_mcq_satisfaction,
    calculate_department_satisfaction_metrics,
    calculate_response_rate,
    calculate_satisfaction_percentage,
    calculate_sentiment_score,
    department_response_distribution,
    find_highest_dissatisfaction,
    round_half_up,
    sentiment_band,
)

QUESTION = "How satisfied are you?"


def test_satisfaction_and_dissatisfaction_are_independent(make_record):
    records = [
        make_record("Eng", [(QUESTION, "Very Satisfied")]),
        make_record("Eng", [(QUESTION, "Very Satisfied")]),
        make_record("Eng", [(QUESTION, "Very Dissatisfied")]),
    ]
    metrics = calculate_satisfaction_percentage(records)
    assert metrics.satisfaction == 100
    assert metrics.dissatisfaction == 100


def test_three_stars_differ_between_formulas(make_record):
    records = [make_record("Eng", [("Rate us", "3 stars")]) for _ in range(4)]

    overall = calculate_satisfaction_percentage(records)
    assert (overall.satisfaction, overall.dissatisfaction) == (60, 0)

    department = reduce_department("Eng", records)
    comparison = calculate_department_satisfaction_metrics(department)
    assert (comparison.satisfaction, comparison.dissatisfaction) == (0, 0)


def test_global_star_formula(make_record):
    records = [
        make_record("Eng", [("Rate us", "4 stars")]),
        make_record("Eng", [("Rate us", "1 star")]),
    ]
    metrics = calculate_satisfaction_percentage(records)
    assert metrics.satisfaction == 80
    assert metrics.dissatisfaction == 80


def test_no_scorable_answers_gives_zero(make_record):
    metrics = calculate_satisfaction_percentage([make_record("Eng", [("Comments", "Fine")])])
    assert (metrics.satisfaction, metrics.dissatisfaction) == (0, 0)


def test_department_metrics_are_count_weighted(make_record):
    records = [
        make_record("Eng", [(QUESTION, "Satisfied"), ("Rate us", "5 stars")]),
        make_record("Eng", [(QUESTION, "Satisfied"), ("Rate us", "2 stars")]),
    ]
    metrics = calculate_department_satisfaction_metrics(reduce_department("Eng", records))
    # (75 + 75 + 100) / 3 and (5 - 2) / 5
    assert metrics.satisfaction == 83
    assert metrics.dissatisfaction == 60


def test_highest_dissatisfaction_tie_keeps_first(make_record):
    by_department = {
        "Eng": [make_record("Eng", [(QUESTION, "Very Dissatisfied")])],
        "Ops": [make_record("Ops", [(QUESTION, "Very Dissatisfied")])],
    }
    assert find_highest_dissatisfaction(by_department) == ("Eng", 100)


def test_highest_dissatisfaction_defaults(make_record):
    by_department = {"Eng": [make_record("Eng", [(QUESTION, "Satisfied")])]}
    assert find_highest_dissatisfaction(by_department) == (NOT_AVAILABLE, 0)
    assert find_highest_dissatisfaction({}) == (NOT_AVAILABLE, 0)


def test_mcq_satisfaction_averages_per_question(make_record):
    records = [
        make_record("Eng", [(QUESTION, "Very Satisfied"), ("Second", "Neutral")]),
        make_record("Eng", [(QUESTION, "Dissatisfied"), ("Second", "Neutral")]),
    ]
    # question 1: (100 + 25) / 2, question 2: 50
    assert calculate_department_mcq_satisfaction(reduce_department("Eng", records)) == pytest.approx(56.25)


def test_mcq_satisfaction_not_available_without_mcq(make_record):
    department = reduce_department("Eng", [make_record("Eng", [("Rate us", "4 stars")])])
    assert calculate_department_mcq_satisfaction(department) is None


def test_response_rate_counts_answered_questions(make_record):
    records = [make_record("Eng", [(QUESTION, "Neutral"), ("Comments", "No answer")])]
    assert calculate_response_rate(reduce_department("Eng", records)) == 50.0


def test_response_distribution_shares(make_record):
    records = [
        make_record("Eng", [(QUESTION, "Very Satisfied")]),
        make_record("Eng", [(QUESTION, "Neutral")]),
    ]
    distribution = department_response_distribution(reduce_department("Eng", records))
    assert distribution["Very Satisfied"] == 50.0
    assert distribution["Neutral"] == 50.0
    assert distribution["Very Dissatisfied"] == 0.0


def test_sentiment_score(make_record):
    records = [
        make_record("Eng", [(QUESTION, "Very Satisfied")]),
        make_record("Eng", [(QUESTION, "Satisfied")]),
        make_record("Eng", [(QUESTION, "Neutral")]),
        make_record("Eng", [(QUESTION, "Dissatisfied")]),
    ]
    question = reduce_department("Eng", records).question_analysis[1]
    assert calculate_sentiment_score(question) == (25.0, 4)


@pytest.mark.parametrize("score, band", [
    (100, "Very Positive"),
    (75, "Positive"),
    (26, "Positive"),
    (0, "Neutral"),
    (-25, "Negative"),
    (-75, "Very Negative"),
    (-100, "Very Negative"),
])
def test_sentiment_bands(score, band):
    assert sentiment_band(score)[0] == band


@pytest.mark.parametrize("value, expected", [(0.5, 1), (2.5, 3), (83.33, 83), (56.7, 57)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
