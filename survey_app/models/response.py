import json
import logging
import sqlite3
from datetime import datetime, timezone
from .database import get_db
from survey_app.exceptions import AlreadySubmittedError, ValidationError

logger = logging.getLogger(__name__)

CHECKBOX_SEPARATOR = ", "


def _answer_text(value):
    """Checkbox answers may arrive as a list; store them comma-joined."""
    if isinstance(value, (list, tuple)):
        return CHECKBOX_SEPARATOR.join(str(v) for v in value)
    if value is None:
        return ''
    return str(value)


def validate_answers(survey, answers):
    """Check *answers* (``{"q0": ..., "q1": ...}``) against *survey*.

    Returns the normalised answers mapping. Radio answers must be one of the
    options, star ratings an integer 1-5, checkbox selections a subset of the
    options (possibly empty) and text answers non-blank.
    """
    if not isinstance(answers, dict):
        raise ValidationError("Answers are required")

    cleaned = {}
    for index, question in enumerate(survey['questions']):
        key = f"q{index}"
        answer = _answer_text(answers.get(key)).strip()
        qtype = question['type']

        if not answer and qtype != 'checkbox':
            raise ValidationError(f"Question {index + 1} is unanswered")

        if qtype == 'radio':
            if answer not in question['options']:
                raise ValidationError(f"Invalid option for question {index + 1}")
        elif qtype == 'star':
            try:
                rating = int(answer)
            except ValueError:
                raise ValidationError(f"Invalid star rating for question {index + 1}")
            if rating < 1 or rating > 5:
                raise ValidationError(f"Star rating for question {index + 1} must be 1-5")
            answer = str(rating)
        elif qtype == 'checkbox' and answer:
            selected = answer.split(CHECKBOX_SEPARATOR)
            if not all(opt in question['options'] for opt in selected):
                raise ValidationError(f"Invalid option for question {index + 1}")

        if answer:
            cleaned[key] = answer
    return cleaned


class Response:
    @staticmethod
    def add(survey, user_id, department, tenure, answers, submitted_at=None):
        """Store a validated response. Returns the new row id."""
        if not user_id or not department or not tenure:
            raise ValidationError("User, department and tenure are required")

        cleaned = validate_answers(survey, answers)
        submitted_at = submitted_at or datetime.now(timezone.utc)

        with get_db() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute('''
                    INSERT INTO responses (survey_id, user_id, department, tenure, answers, submitted_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                ''', (survey['id'], user_id, department.strip(), tenure.strip(),
                      json.dumps(cleaned), submitted_at.isoformat()))
            except sqlite3.IntegrityError:
                raise AlreadySubmittedError(
                    f"Survey {survey['id']} already submitted by {user_id}"
                )
            logger.info(f"Stored response for survey {survey['id']} from {department}")
            return cursor.lastrowid

    @staticmethod
    def get_by_user(user_id):
        """All responses submitted under *user_id*."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id, survey_id, user_id, department, tenure, answers, submitted_at
                FROM responses
                WHERE user_id = ?
                ORDER BY id
            ''', (user_id,))

            return [{
                'id': row['id'],
                'surveyId': row['survey_id'],
                'userId': row['user_id'],
                'department': row['department'],
                'tenure': row['tenure'],
                'answers': json.loads(row['answers']),
                'timestamp': row['submitted_at'],
            } for row in cursor.fetchall()]

    @staticmethod
    def get_all_with_surveys():
        """Every response joined with its survey's title and questions."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT r.user_id, r.department, r.tenure, r.answers, r.submitted_at,
                       s.title, s.questions
                FROM responses r
                LEFT JOIN surveys s ON s.id = r.survey_id
                ORDER BY r.id
            ''')

            return [{
                'userId': row['user_id'],
                'department': row['department'],
                'tenure': row['tenure'],
                'answers': json.loads(row['answers']),
                'timestamp': row['submitted_at'],
                'surveyTitle': row['title'],
                'questions': json.loads(row['questions']) if row['questions'] else [],
            } for row in cursor.fetchall()]
