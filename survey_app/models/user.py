import logging
import sqlite3
from werkzeug.security import generate_password_hash
from .database import get_db
from survey_app.exceptions import ValidationError
import config

logger = logging.getLogger(__name__)

class User:
    @staticmethod
    def add(username, password, department, employee_id, email, tenure):
        """Register a new employee. Returns the new row id."""
        if tenure not in config.TENURE_OPTIONS:
            raise ValidationError(f"Invalid tenure: {tenure}")

        try:
            employee_id = int(employee_id)
        except (TypeError, ValueError):
            raise ValidationError("Employee ID must be a number")

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT 1 FROM users WHERE employee_id = ?', (employee_id,))
            if cursor.fetchone():
                raise ValidationError("Employee ID already registered")

            try:
                cursor.execute('''
                    INSERT INTO users (username, password_hash, role, department, employee_id, email, tenure)
                    VALUES (?, ?, 'employee', ?, ?, ?, ?)
                ''', (username, generate_password_hash(password), department, employee_id, email, tenure))
            except sqlite3.IntegrityError:
                raise ValidationError("Username already taken")
            logger.info(f"Registered employee {username} ({department})")
            return cursor.lastrowid

    @staticmethod
    def tenure_by_username():
        """Map username -> tenure for every registered employee."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT username, tenure FROM users')
            return {row[0]: row[1] for row in cursor.fetchall()}

    @staticmethod
    def departments():
        """Distinct departments known from employees and surveys."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT department FROM users
                UNION
                SELECT department FROM surveys WHERE is_all_departments = 0
                ORDER BY department
            ''')
            return [row[0] for row in cursor.fetchall()]
