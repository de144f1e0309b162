import json
import logging
from .database import get_db
from survey_app.exceptions import ValidationError
import config

logger = logging.getLogger(__name__)


def _row_to_survey(row):
    return {
        'id': row['id'],
        'title': row['title'],
        'department': row['department'],
        'isAllDepartments': bool(row['is_all_departments']),
        'color': row['color'],
        'active': bool(row['active']),
        'questions': json.loads(row['questions']),
        'createdAt': row['created_at'],
    }


def normalize_questions(questions):
    """Validate authored questions and return the list to persist.

    Star questions never carry options; radio and checkbox questions need at
    least two non-empty options.
    """
    if not questions:
        raise ValidationError("A survey needs at least one question")

    cleaned = []
    for index, question in enumerate(questions, 1):
        text = str(question.get('text', '')).strip()
        qtype = question.get('type')
        if not text:
            raise ValidationError(f"Question {index} has no text")
        if qtype not in config.QUESTION_TYPES:
            raise ValidationError(f"Question {index} has unknown type: {qtype}")

        options = []
        if qtype in ('radio', 'checkbox'):
            options = [str(opt).strip() for opt in question.get('options') or [] if str(opt).strip()]
            if len(options) < 2:
                raise ValidationError(f"Question {index} needs at least 2 options")

        cleaned.append({'text': text, 'type': qtype, 'options': options})
    return cleaned


class Survey:
    @staticmethod
    def add(title, department, questions, is_all_departments=False, color=None):
        """Create a survey. Returns the stored survey dict."""
        title = (title or '').strip()
        if not title:
            raise ValidationError("Survey title is required")
        if not is_all_departments and not (department or '').strip():
            raise ValidationError("Department is required")

        department = config.ALL_DEPARTMENTS if is_all_departments else department.strip()
        questions = normalize_questions(questions)

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO surveys (title, department, is_all_departments, color, questions)
                VALUES (?, ?, ?, ?, ?)
            ''', (title, department, int(bool(is_all_departments)),
                  color or config.DEFAULT_SURVEY_COLOR, json.dumps(questions)))
            survey_id = cursor.lastrowid

        logger.info(f"Created survey {survey_id} '{title}' for {department}")
        return Survey.get(survey_id)

    @staticmethod
    def get(survey_id):
        """Get a survey by id, or None."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM surveys WHERE id = ?', (survey_id,))
            row = cursor.fetchone()
            return _row_to_survey(row) if row else None

    @staticmethod
    def get_all():
        """Get all surveys, oldest first."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM surveys ORDER BY id')
            return [_row_to_survey(row) for row in cursor.fetchall()]

    @staticmethod
    def get_for_department(department):
        """Surveys addressed to *department* plus all-department surveys."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT * FROM surveys
                WHERE department = ? OR is_all_departments = 1
                ORDER BY id
            ''', (department,))
            return [_row_to_survey(row) for row in cursor.fetchall()]

    @staticmethod
    def delete(survey_id):
        """Delete a survey and its responses. Returns True if it existed."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM responses WHERE survey_id = ?', (survey_id,))
            responses_deleted = cursor.rowcount
            cursor.execute('DELETE FROM surveys WHERE id = ?', (survey_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted survey {survey_id} and {responses_deleted} responses")
        return deleted
