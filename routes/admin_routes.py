from flask import Blueprint, request, jsonify, make_response, session
import os
import logging
import config
from survey_app.models import Survey
from survey_app.exceptions import ValidationError
from survey_app.services.export_service import generate_responses_csv
from report_generator import generate_analysis_report

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


def remove_file(path):
    """Delete a temporary file, logging instead of failing."""
    if not path or not os.path.exists(path):
        return
    try:
        os.remove(path)
        logger.info(f"Deleted file: {path}")
    except OSError as e:
        logger.warning(f"Could not delete {path}: {e}")


@admin_bp.route('/api/login', methods=['POST'])
def admin_login():
    data = request.get_json(silent=True) or {}
    username = str(data.get('username', '')).strip()
    password = data.get('password', '')

    if username.lower() != config.ADMIN_USERNAME.lower() or password != config.ADMIN_PASSWORD:
        return jsonify({'error': 'Invalid credentials'}), 401

    session['admin'] = True
    return jsonify({
        'user': {
            'username': config.ADMIN_USERNAME,
            'role': 'admin'
        }
    })


@admin_bp.route('/api/logout', methods=['POST'])
def admin_logout():
    session.clear()
    return jsonify({'success': True})


@admin_bp.route('/api/verify-session', methods=['GET'])
def verify_session():
    if not session.get('admin'):
        return jsonify({'error': 'Invalid session'}), 401
    return jsonify({'success': True})


@admin_bp.route('/api/surveys', methods=['POST'])
def create_survey():
    data = request.get_json(silent=True) or {}
    try:
        survey = Survey.add(
            title=data.get('title'),
            department=data.get('department'),
            questions=data.get('questions'),
            is_all_departments=bool(data.get('isAllDepartments')),
            color=data.get('color'),
        )
    except ValidationError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(survey)


@admin_bp.route('/api/surveys/all', methods=['GET'])
def list_all_surveys():
    try:
        return jsonify(Survey.get_all())
    except Exception as e:
        logger.error(f"Error fetching surveys: {e}")
        return jsonify({'error': 'Error fetching surveys'}), 500


@admin_bp.route('/api/surveys/<int:survey_id>', methods=['DELETE'])
def delete_survey(survey_id):
    if not Survey.delete(survey_id):
        return jsonify({'error': 'Survey not found'}), 404
    return jsonify({'message': 'Survey deleted successfully'})


@admin_bp.route('/api/responses/export', methods=['GET'])
def export_responses():
    """Download every response as ``survey_responses.csv``."""
    csv_path = None
    try:
        csv_path = generate_responses_csv()
        with open(csv_path, 'rb') as f:
            csv_content = f.read()

        response = make_response(csv_content)
        response.headers['Content-Type'] = 'text/csv'
        response.headers['Content-Disposition'] = 'attachment; filename="survey_responses.csv"'
        return response
    except Exception as e:
        logger.error(f"Export error: {e}")
        return jsonify({'error': f'Failed to export responses: {str(e)}'}), 500
    finally:
        remove_file(csv_path)


@admin_bp.route('/api/responses/analysis', methods=['GET'])
def responses_analysis():
    """Build the PDF analysis of every response and send it as an attachment."""
    csv_path = None
    pdf_path = None
    try:
        csv_path = generate_responses_csv()
        pdf_path = generate_analysis_report(csv_path)

        with open(pdf_path, 'rb') as f:
            pdf_content = f.read()

        response = make_response(pdf_content)
        response.headers['Content-Type'] = 'application/pdf'
        response.headers['Content-Disposition'] = 'attachment; filename="survey_analysis.pdf"'
        return response
    except Exception as e:
        logger.error(f"Analysis generation error: {e}")
        return jsonify({'error': 'Failed to generate analysis'}), 500
    finally:
        remove_file(csv_path)
        remove_file(pdf_path)
