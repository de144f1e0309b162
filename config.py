import os

# Database configuration
DATABASE_PATH = os.environ.get('SURVEY_DATABASE_PATH', os.path.join('data', 'survey.db'))

# File paths
TEMP_FOLDER = os.environ.get('SURVEY_TEMP_FOLDER', 'temp')
REPORTS_FOLDER = os.environ.get('SURVEY_REPORTS_FOLDER', 'reports')

SECRET_KEY = os.environ.get('SECRET_KEY', 'your_secret_key_change_in_production')
LOG_LEVEL = os.environ.get('SURVEY_LOG_LEVEL', 'INFO')

# Single admin account (plaintext comparison)
ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'admin123')

# Submission timestamps are rendered in this zone in the CSV export
EXPORT_TIMEZONE = os.environ.get('SURVEY_EXPORT_TIMEZONE', 'Asia/Kolkata')

TENURE_OPTIONS = [
    "0-6 months",
    "up to 1 year",
    "Less than 5 years",
    "more than 5 years",
    "5+ years",
]

# Question types an admin can author
QUESTION_TYPES = ['text', 'radio', 'checkbox', 'star']
DEFAULT_SURVEY_COLOR = '#253074'
ALL_DEPARTMENTS = 'all'

# Reporting
# Untagged answers containing a comma are read as checkbox selections when True
COMMA_AS_CHECKBOX = os.environ.get('SURVEY_COMMA_AS_CHECKBOX', 'true').lower() != 'false'
# Write a "Type N" column next to each answer in the CSV export
EXPORT_TYPE_TAGS = os.environ.get('SURVEY_EXPORT_TYPE_TAGS', 'true').lower() != 'false'
TOP_SENTIMENT_QUESTIONS = int(os.environ.get('SURVEY_TOP_SENTIMENT_QUESTIONS', '10'))
TEXT_SAMPLE_LIMIT = 5
# Points left on the page below which a new section item starts on a fresh page
PAGE_BREAK_THRESHOLD = 140
CHART_DPI = int(os.environ.get('SURVEY_CHART_DPI', '150'))
