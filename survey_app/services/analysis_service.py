"""Aggregate flat survey responses into an :class:`AnalysisReport`."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import config
from survey_app.services.classifier import AnswerType, merge_answer_type, parse_answer
from survey_app.services.csv_service import FlatResponseRecord
from survey_app.services.metrics import (
    NOT_AVAILABLE,
    calculate_satisfaction_percentage,
    find_highest_dissatisfaction,
)

logger = logging.getLogger(__name__)

__all__ = [
    "QuestionAggregate",
    "DepartmentAggregate",
    "MergedQuestion",
    "Overview",
    "AnalysisReport",
    "reduce_department",
    "merge_questions",
    "build_analysis",
]


@dataclass
class QuestionAggregate:
    """Tally of one question's answers within a department."""

    question: str
    type: AnswerType
    responses: Dict[str, int] = field(default_factory=dict)
    response_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "type": self.type.value,
            "responses": dict(self.responses),
            "responseCount": self.response_count,
        }


@dataclass
class DepartmentAggregate:
    name: str
    total_responses: int
    # Positional question number -> aggregate
    question_analysis: Dict[int, QuestionAggregate] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalResponses": self.total_responses,
            "questionAnalysis": {
                str(number): q.to_dict() for number, q in self.question_analysis.items()
            },
        }


@dataclass
class MergedQuestion:
    """One question (by verbatim text) summed across departments."""

    question: str
    type: AnswerType
    department_counts: Dict[str, int] = field(default_factory=dict)
    responses: Dict[str, int] = field(default_factory=dict)
    total_response_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "type": self.type.value,
            "departmentResponses": dict(self.department_counts),
            "totalResponses": dict(self.responses),
            "totalResponseCount": self.total_response_count,
        }


@dataclass
class Overview:
    total_responses: int = 0
    department_count: int = 0
    overall_satisfaction: int = 0
    overall_dissatisfaction: int = 0
    highest_dissatisfaction_department: str = NOT_AVAILABLE
    highest_dissatisfaction_rate: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalResponses": self.total_responses,
            "numberOfDepartments": self.department_count,
            "averageSatisfaction": f"{self.overall_satisfaction}%",
            "averageDissatisfaction": f"{self.overall_dissatisfaction}%",
            "departmentWithHighestDissatisfaction": self.highest_dissatisfaction_department,
            "highestDissatisfactionRate": self.highest_dissatisfaction_rate,
        }


@dataclass
class AnalysisReport:
    overview: Overview
    departments: Dict[str, DepartmentAggregate] = field(default_factory=dict)
    questions: List[MergedQuestion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable ``dict`` with a stable key order."""
        return {
            "overview": self.overview.to_dict(),
            "departmentStats": {
                name: dept.to_dict() for name, dept in self.departments.items()
            },
            "questionAnalysis": [q.to_dict() for q in self.questions],
        }


def _tally(responses: Dict[str, int], keys: Sequence[str]) -> None:
    for key in keys:
        responses[key] = responses.get(key, 0) + 1


def reduce_department(name: str, records: Sequence[FlatResponseRecord],
                      comma_as_checkbox: bool = config.COMMA_AS_CHECKBOX) -> DepartmentAggregate:
    """Fold one department's records into a fresh :class:`DepartmentAggregate`.

    Questions are keyed by their position in the survey, so the text recorded
    for a number is the first one seen for it in this department.
    """
    questions: Dict[int, QuestionAggregate] = {}

    for record in records:
        for qa in record.answers:
            answer = parse_answer(qa.question, qa.answer, qa.type, comma_as_checkbox)
            aggregate = questions.get(qa.number)
            if aggregate is None:
                aggregate = QuestionAggregate(question=qa.question, type=answer.type)
                questions[qa.number] = aggregate

            if answer.is_missing:
                continue

            aggregate.type = merge_answer_type(aggregate.type, answer.type)
            _tally(aggregate.responses, answer.keys())
            aggregate.response_count += 1

    return DepartmentAggregate(
        name=name,
        total_responses=len(records),
        question_analysis=questions,
    )


def merge_questions(departments: Sequence[DepartmentAggregate]) -> List[MergedQuestion]:
    """Merge department aggregates by question text, in encounter order.

    Every key count adds to ``total_response_count``, so a checkbox answer
    selecting two options counts twice.
    """
    merged: Dict[str, MergedQuestion] = {}

    for department in departments:
        for aggregate in department.question_analysis.values():
            item = merged.get(aggregate.question)
            if item is None:
                item = MergedQuestion(question=aggregate.question, type=aggregate.type)
                merged[aggregate.question] = item
            else:
                item.type = merge_answer_type(item.type, aggregate.type)

            item.department_counts[department.name] = (
                item.department_counts.get(department.name, 0) + aggregate.response_count
            )
            for response, count in aggregate.responses.items():
                item.responses[response] = item.responses.get(response, 0) + count
                item.total_response_count += count

    return list(merged.values())


def _group_by_department(records: Sequence[FlatResponseRecord]) -> Dict[str, List[FlatResponseRecord]]:
    grouped: Dict[str, List[FlatResponseRecord]] = defaultdict(list)
    for record in records:
        grouped[record.department].append(record)
    return dict(grouped)


def build_analysis(records: Sequence[FlatResponseRecord],
                   comma_as_checkbox: Optional[bool] = None) -> AnalysisReport:
    """Build the full report for *records*; an empty input yields a zero overview."""
    if comma_as_checkbox is None:
        comma_as_checkbox = config.COMMA_AS_CHECKBOX

    by_department = _group_by_department(records)
    overall = calculate_satisfaction_percentage(records)
    highest_department, highest_rate = find_highest_dissatisfaction(by_department)

    departments = {
        name: reduce_department(name, dept_records, comma_as_checkbox)
        for name, dept_records in by_department.items()
    }
    questions = merge_questions(list(departments.values()))

    overview = Overview(
        total_responses=len(records),
        department_count=len(by_department),
        overall_satisfaction=overall.satisfaction,
        overall_dissatisfaction=overall.dissatisfaction,
        highest_dissatisfaction_department=highest_department,
        highest_dissatisfaction_rate=highest_rate,
    )

    logger.info(
        f"Analysed {overview.total_responses} responses across {overview.department_count} "
        f"departments ({len(questions)} distinct questions)"
    )
    return AnalysisReport(overview=overview, departments=departments, questions=questions)
