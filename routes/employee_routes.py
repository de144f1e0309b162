from flask import Blueprint, request, jsonify
from datetime import datetime, timezone
import logging
from survey_app.models import User, Survey, Response
from survey_app.exceptions import ValidationError, AlreadySubmittedError

logger = logging.getLogger(__name__)

employee_bp = Blueprint('employee', __name__)


def generated_user_id(department, tenure, now=None):
    """Anonymous submitter id built from department, tenure and the time in ms."""
    now = now or datetime.now(timezone.utc)
    return f"{department}_{tenure}_{int(now.timestamp() * 1000)}"


@employee_bp.route('/api/signup', methods=['POST'])
def signup():
    """Register an employee account."""
    data = request.get_json(silent=True) or {}
    username = str(data.get('username', '')).strip()
    password = data.get('password', '')
    department = str(data.get('department', '')).strip()

    if 'admin' in username.lower():
        return jsonify({'error': 'Invalid username'}), 400

    if not username or not password or not department:
        return jsonify({'error': 'Username, password and department are required'}), 400

    try:
        User.add(
            username=username,
            password=password,
            department=department,
            employee_id=data.get('employeeId'),
            email=str(data.get('email', '')).strip(),
            tenure=data.get('tenure'),
        )
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'success': True,
        'message': 'Account created successfully'
    })


@employee_bp.route('/api/departments', methods=['GET'])
def list_departments():
    try:
        return jsonify(User.departments())
    except Exception as e:
        logger.error(f"Error fetching departments: {e}")
        return jsonify({'error': 'Error fetching departments'}), 500


@employee_bp.route('/api/surveys/<department>', methods=['GET'])
def surveys_for_department(department):
    """Surveys visible to a department, including all-department surveys."""
    try:
        return jsonify(Survey.get_for_department(department))
    except Exception as e:
        logger.error(f"Error fetching surveys for {department}: {e}")
        return jsonify({'error': 'Error fetching surveys'}), 500


@employee_bp.route('/api/responses', methods=['POST'])
def submit_response():
    data = request.get_json(silent=True) or {}
    department = str(data.get('department', '')).strip()
    tenure = str(data.get('tenure', '')).strip()

    survey = Survey.get(data.get('surveyId'))
    if not survey:
        return jsonify({'error': 'Survey not found'}), 404

    user_id = str(data.get('userId') or '').strip() or generated_user_id(department, tenure)

    try:
        response_id = Response.add(survey, user_id, department, tenure, data.get('answers'))
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    except AlreadySubmittedError as e:
        logger.info(str(e))
        return jsonify({'error': 'You have already submitted this survey'}), 409

    return jsonify({
        'success': True,
        'id': response_id,
        'surveyId': survey['id'],
        'userId': user_id
    })


@employee_bp.route('/api/responses/user/<username>', methods=['GET'])
def user_responses(username):
    try:
        return jsonify(Response.get_by_user(username))
    except Exception as e:
        logger.error(f"Error fetching responses for {username}: {e}")
        return jsonify({'error': 'Error fetching user responses'}), 500
