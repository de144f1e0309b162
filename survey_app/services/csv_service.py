"""
Service for reading and writing the flat survey-response CSV export.

One row per submission: survey title, department, tenure, submission date and
time, then ``Question N`` / ``Answer N`` (and optionally ``Type N``) columns for
N = 1..max questions of any exported survey.
"""

import os
import re
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

import config
from survey_app.exceptions import EmptyInputError, InvalidInputError, NotFoundError
from survey_app.services.classifier import AnswerType

logger = logging.getLogger(__name__)

BASE_HEADERS = ['Survey Title', 'Department', 'Tenure', 'Submission Date', 'Submission Time']
REQUIRED_HEADERS = ['Department', 'Submission Date', 'Submission Time']

UNKNOWN_SURVEY = 'Unknown Survey'
UNKNOWN_DEPARTMENT = 'Unknown Department'
UNKNOWN_TENURE = 'Unknown Tenure'

_QUESTION_COLUMN = re.compile(r'^Question (\d+)$')
# Spreadsheet-safe cells look like ="text"
_EXCEL_STRING = re.compile(r'^="(.*)"$', re.DOTALL)


@dataclass(frozen=True)
class QuestionAnswer:
    number: int
    question: str
    answer: str
    type: Optional[AnswerType] = None


@dataclass(frozen=True)
class FlatResponseRecord:
    """One exported survey submission."""

    survey_title: str
    department: str
    tenure: str
    submission_date: str
    submission_time: str
    answers: Tuple[QuestionAnswer, ...] = field(default_factory=tuple)

    @property
    def question_count(self) -> int:
        return len(self.answers)


def _unwrap(value: str) -> str:
    match = _EXCEL_STRING.match(value)
    if match:
        return match.group(1).replace('""', '"')
    return value


def _question_numbers(columns: Sequence[str]) -> List[int]:
    numbers = []
    for col in columns:
        match = _QUESTION_COLUMN.match(col)
        if match:
            numbers.append(int(match.group(1)))
    return sorted(numbers)


def _parse_tag(value: str) -> Optional[AnswerType]:
    if not value:
        return None
    try:
        return AnswerType(value)
    except ValueError:
        logger.warning(f"Ignoring unknown answer type tag: {value}")
        return None


def read_responses(file_path: str) -> List[FlatResponseRecord]:
    """
    Read a response export into :class:`FlatResponseRecord` objects.

    Raises:
        NotFoundError: the file does not exist
        EmptyInputError: the file has no data rows
        InvalidInputError: a required column is missing
    """
    if not os.path.exists(file_path):
        raise NotFoundError(f"CSV file not found at path: {file_path}")

    try:
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False, encoding='utf-8-sig')
    except pd.errors.EmptyDataError:
        raise EmptyInputError(f"CSV file is empty: {file_path}")

    if df.empty:
        raise EmptyInputError(f"CSV file is empty: {file_path}")

    df.columns = [_unwrap(str(c).strip()) for c in df.columns]

    missing_headers = [h for h in REQUIRED_HEADERS if h not in df.columns]
    if missing_headers:
        raise InvalidInputError(f"Missing required columns: {', '.join(missing_headers)}")

    df = df.apply(lambda col: col.map(_unwrap))
    numbers = _question_numbers(df.columns)

    records = []
    for _, row in df.iterrows():
        answers = []
        for n in numbers:
            question = row[f'Question {n}'].strip()
            if not question:
                continue
            answers.append(QuestionAnswer(
                number=n,
                question=question,
                answer=row.get(f'Answer {n}', ''),
                type=_parse_tag(row.get(f'Type {n}', '').strip()),
            ))

        records.append(FlatResponseRecord(
            survey_title=row.get('Survey Title', '') or UNKNOWN_SURVEY,
            department=row['Department'].strip() or UNKNOWN_DEPARTMENT,
            tenure=row.get('Tenure', '').strip() or UNKNOWN_TENURE,
            submission_date=row['Submission Date'],
            submission_time=row['Submission Time'],
            answers=tuple(answers),
        ))

    logger.info(f"Read {len(records)} responses with up to {len(numbers)} questions from {file_path}")
    return records


def max_question_count(records: Sequence[FlatResponseRecord]) -> int:
    """Highest question number in *records*; numbering may have gaps."""
    return max((qa.number for r in records for qa in r.answers), default=0)


def write_responses_csv(records: Sequence[FlatResponseRecord], output_path: str,
                        include_types: bool = config.EXPORT_TYPE_TAGS) -> str:
    """Write *records* as a response export and return *output_path*.

    All records are scanned first so the header covers the widest survey.
    """
    max_questions = max_question_count(records)

    fields = list(BASE_HEADERS)
    for i in range(1, max_questions + 1):
        fields += [f'Question {i}', f'Answer {i}']
        if include_types:
            fields.append(f'Type {i}')

    rows: List[Dict[str, str]] = []
    for record in records:
        row = {
            'Survey Title': record.survey_title,
            'Department': record.department,
            'Tenure': record.tenure,
            'Submission Date': record.submission_date,
            'Submission Time': record.submission_time,
        }
        for qa in record.answers:
            row[f'Question {qa.number}'] = qa.question
            row[f'Answer {qa.number}'] = qa.answer
            if include_types:
                row[f'Type {qa.number}'] = qa.type.value if qa.type else ''
        rows.append(row)

    df = pd.DataFrame(rows, columns=fields).fillna('')
    df.to_csv(output_path, index=False, encoding='utf-8')
    logger.info(f"Wrote {len(rows)} responses ({max_questions} question columns) to {output_path}")
    return output_path
