"""
Satisfaction metrics over survey responses.

Two independent satisfaction formulas live here and report different numbers:

* :func:`calculate_satisfaction_percentage` works on raw records; stars >= 3
  count as satisfied, stars < 3 as dissatisfied. It feeds the executive
  summary.
* :func:`calculate_department_satisfaction_metrics` works on a department's
  question aggregates; stars >= 4 are satisfied, stars <= 2 dissatisfied and
  3 stars count for neither. It feeds the department comparison chart.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from survey_app.services.classifier import (
    SENTIMENT_BUCKETS,
    AnswerType,
    parse_answer,
    parse_stars,
)

if TYPE_CHECKING:  # pragma: no cover
    from survey_app.services.analysis_service import AnalysisReport, DepartmentAggregate, QuestionAggregate
    from survey_app.services.csv_service import FlatResponseRecord

# Weight of each sentiment word on a 0-100 scale
SENTIMENT_WEIGHTS: Dict[str, int] = {
    "Very Satisfied": 100,
    "Satisfied": 75,
    "Neutral": 50,
    "Dissatisfied": 25,
    "Very Dissatisfied": 0,
}
POSITIVE_SENTIMENTS = ("Very Satisfied", "Satisfied")
NEGATIVE_SENTIMENTS = ("Dissatisfied", "Very Dissatisfied")

NOT_AVAILABLE = "N/A"

# (lower bound exclusive, band name, colour); scores at or below -75 fall through
SENTIMENT_BANDS = (
    (75, "Very Positive", "#4bc0c0"),
    (25, "Positive", "#66bb6a"),
    (-25, "Neutral", "#ffce56"),
    (-75, "Negative", "#ff9f40"),
)
VERY_NEGATIVE_BAND = ("Very Negative", "#ff6384")


@dataclass(frozen=True)
class SatisfactionMetrics:
    satisfaction: int
    dissatisfaction: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean_or_zero(total: float, count: int) -> int:
    return round_half_up(total / count) if count > 0 else 0


def calculate_satisfaction_percentage(records: Iterable[FlatResponseRecord]) -> SatisfactionMetrics:
    """Overall satisfaction and dissatisfaction (0-100) for *records*.

    The two figures come from separate accumulators and are not complements:
    a set with both very satisfied and very dissatisfied answers can report
    100 for each.
    """
    satisfaction_score = 0.0
    dissatisfaction_score = 0.0
    satisfaction_questions = 0
    dissatisfaction_questions = 0

    for record in records:
        for qa in record.answers:
            if not qa.answer or not qa.question:
                continue
            answer = parse_answer(qa.question, qa.answer, qa.type)

            if answer.type is AnswerType.STAR_RATING:
                if answer.stars is None:
                    continue
                if answer.stars >= 3:
                    satisfaction_score += (answer.stars / 5) * 100
                    satisfaction_questions += 1
                else:
                    dissatisfaction_score += ((5 - answer.stars) / 5) * 100
                    dissatisfaction_questions += 1
                continue

            word = answer.raw.strip()
            if word in POSITIVE_SENTIMENTS:
                satisfaction_score += SENTIMENT_WEIGHTS[word]
                satisfaction_questions += 1
            elif word in NEGATIVE_SENTIMENTS:
                dissatisfaction_score += 100 - SENTIMENT_WEIGHTS[word]
                dissatisfaction_questions += 1

    return SatisfactionMetrics(
        satisfaction=_mean_or_zero(satisfaction_score, satisfaction_questions),
        dissatisfaction=_mean_or_zero(dissatisfaction_score, dissatisfaction_questions),
    )


def find_highest_dissatisfaction(
    records_by_department: Mapping[str, Sequence[FlatResponseRecord]],
) -> Tuple[str, int]:
    """Department with the highest dissatisfaction and its rate.

    Ties keep the first department seen; ``("N/A", 0)`` when no department
    reports any dissatisfaction.
    """
    highest_department = NOT_AVAILABLE
    highest_rate = 0
    for department, records in records_by_department.items():
        rate = calculate_satisfaction_percentage(records).dissatisfaction
        if rate > highest_rate:
            highest_rate = rate
            highest_department = department
    return highest_department, highest_rate


def calculate_department_satisfaction_metrics(department: DepartmentAggregate) -> SatisfactionMetrics:
    """Count-weighted satisfaction for the department comparison chart."""
    satisfaction_score = 0.0
    dissatisfaction_score = 0.0
    satisfaction_count = 0
    dissatisfaction_count = 0

    for question in department.question_analysis.values():
        if question.type is AnswerType.MCQ:
            for response, count in question.responses.items():
                if response in POSITIVE_SENTIMENTS:
                    satisfaction_score += SENTIMENT_WEIGHTS[response] * count
                    satisfaction_count += count
                elif response in NEGATIVE_SENTIMENTS:
                    dissatisfaction_score += (100 - SENTIMENT_WEIGHTS[response]) * count
                    dissatisfaction_count += count
        elif question.type is AnswerType.STAR_RATING:
            for response, count in question.responses.items():
                stars = parse_stars(response)
                if stars is None:
                    continue
                if stars >= 4:
                    satisfaction_score += (stars / 5) * 100 * count
                    satisfaction_count += count
                elif stars <= 2:
                    dissatisfaction_score += ((5 - stars) / 5) * 100 * count
                    dissatisfaction_count += count

    return SatisfactionMetrics(
        satisfaction=_mean_or_zero(satisfaction_score, satisfaction_count),
        dissatisfaction=_mean_or_zero(dissatisfaction_score, dissatisfaction_count),
    )


def calculate_department_mcq_satisfaction(department: DepartmentAggregate) -> Optional[float]:
    """Mean of per-question weighted MCQ averages (Neutral = 50), or None."""
    total = 0.0
    questions = 0
    for question in department.question_analysis.values():
        if question.type is not AnswerType.MCQ:
            continue
        weighted = 0
        answered = 0
        for response, count in question.responses.items():
            if response in SENTIMENT_WEIGHTS:
                weighted += SENTIMENT_WEIGHTS[response] * count
                answered += count
        if answered > 0:
            total += weighted / answered
            questions += 1
    return total / questions if questions else None


def calculate_response_rate(department: DepartmentAggregate) -> float:
    """Percentage of the department's questions with at least one response."""
    questions = department.question_analysis
    if not questions:
        return 0.0
    answered = sum(1 for q in questions.values() if q.response_count > 0)
    return answered / len(questions) * 100


def aggregate_satisfaction_levels(report: AnalysisReport) -> Dict[str, int]:
    """Sentiment bucket -> count over MCQ questions of every department."""
    counts = {bucket: 0 for bucket in SENTIMENT_BUCKETS}
    for department in report.departments.values():
        for question in department.question_analysis.values():
            if question.type is not AnswerType.MCQ:
                continue
            for response, count in question.responses.items():
                if response in counts:
                    counts[response] += count
    return counts


def department_response_distribution(department: DepartmentAggregate) -> Dict[str, float]:
    """Percentage share of each sentiment bucket in the department's MCQ answers."""
    bucket_counts = {bucket: 0 for bucket in SENTIMENT_BUCKETS}
    total = 0
    for question in department.question_analysis.values():
        if question.type is not AnswerType.MCQ:
            continue
        for response, count in question.responses.items():
            if response in bucket_counts:
                bucket_counts[response] += count
            total += count
    return {
        bucket: (count / total * 100 if total > 0 else 0.0)
        for bucket, count in bucket_counts.items()
    }


def calculate_sentiment_score(question: QuestionAggregate) -> Tuple[float, int]:
    """Sentiment score in [-100, 100] and the number of answers scored."""
    positive = 0
    negative = 0
    total = 0
    if question.type is AnswerType.MCQ:
        for response, count in question.responses.items():
            if response in POSITIVE_SENTIMENTS:
                positive += count
            elif response in NEGATIVE_SENTIMENTS:
                negative += count
            total += count
    elif question.type is AnswerType.STAR_RATING:
        for response, count in question.responses.items():
            stars = parse_stars(response)
            if stars is None:
                continue
            if stars >= 4:
                positive += count
            elif stars <= 2:
                negative += count
            total += count

    score = (positive - negative) / total * 100 if total > 0 else 0.0
    return score, total


def sentiment_band(score: float) -> Tuple[str, str]:
    """Band name and colour for a sentiment score."""
    for lower_bound, name, color in SENTIMENT_BANDS:
        if score > lower_bound:
            return name, color
    return VERY_NEGATIVE_BAND
