"""
Service for flattening persisted survey responses into the CSV export.
"""

import os
import uuid
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import config
from survey_app.models import Response, User
from survey_app.services.classifier import NO_ANSWER, format_stars, question_type_tag
from survey_app.services.csv_service import (
    UNKNOWN_SURVEY,
    UNKNOWN_TENURE,
    FlatResponseRecord,
    QuestionAnswer,
    write_responses_csv,
)

logger = logging.getLogger(__name__)


def format_submission_time(timestamp, tz_name=None):
    """Split an ISO timestamp into (``M/D/YYYY``, ``hh:mm:ss AM``) in the export zone."""
    submitted = datetime.fromisoformat(timestamp)
    if submitted.tzinfo is None:
        submitted = submitted.replace(tzinfo=timezone.utc)
    local = submitted.astimezone(ZoneInfo(tz_name or config.EXPORT_TIMEZONE))
    return f"{local.month}/{local.day}/{local.year}", local.strftime('%I:%M:%S %p')


def _export_answer(question, value):
    value = (value or '').strip()
    if not value:
        return NO_ANSWER
    if question.get('type') == 'star' and value.isdigit():
        return format_stars(int(value))
    return value


def to_flat_record(response, tenure_by_user=None):
    """Flatten one response row from :meth:`Response.get_all_with_surveys`."""
    tenure_by_user = tenure_by_user or {}
    submission_date, submission_time = format_submission_time(response['timestamp'])

    answers = []
    for index, question in enumerate(response['questions']):
        answers.append(QuestionAnswer(
            number=index + 1,
            question=question.get('text', ''),
            answer=_export_answer(question, response['answers'].get(f"q{index}")),
            type=question_type_tag(question),
        ))

    return FlatResponseRecord(
        survey_title=response['surveyTitle'] or UNKNOWN_SURVEY,
        department=response['department'],
        tenure=response['tenure'] or tenure_by_user.get(response['userId']) or UNKNOWN_TENURE,
        submission_date=submission_date,
        submission_time=submission_time,
        answers=tuple(answers),
    )


def build_flat_records():
    """Every stored response as a :class:`FlatResponseRecord`."""
    tenure_by_user = User.tenure_by_username()
    return [to_flat_record(r, tenure_by_user) for r in Response.get_all_with_surveys()]


def generate_responses_csv(output_path=None):
    """
    Write all stored responses to a CSV file and return its path.

    Without *output_path* a uniquely named file is created in the temp folder.
    """
    if output_path is None:
        os.makedirs(config.TEMP_FOLDER, exist_ok=True)
        output_path = os.path.join(config.TEMP_FOLDER, f"survey_responses_{uuid.uuid4().hex}.csv")

    records = build_flat_records()
    logger.info(f"Exporting {len(records)} responses")
    return write_responses_csv(records, output_path)
