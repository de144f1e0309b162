import sqlite3
import os
from contextlib import contextmanager
import logging

import config

logger = logging.getLogger(__name__)

DATABASE_PATH = os.path.abspath(config.DATABASE_PATH)

def get_db_path():
    """Get the database path and ensure the directory exists."""
    db_dir = os.path.dirname(DATABASE_PATH)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)
    return DATABASE_PATH

@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = None
    try:
        conn = sqlite3.connect(get_db_path())
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        yield conn
        conn.commit()
    except Exception as e:
        if conn:
            conn.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn:
            conn.close()

def init_db():
    """Initialize the database with all required tables."""
    with get_db() as conn:
        cursor = conn.cursor()

        # Employees (the admin account lives in config, not here)
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                role TEXT NOT NULL DEFAULT 'employee',
                department TEXT NOT NULL,
                employee_id INTEGER NOT NULL UNIQUE,
                email TEXT NOT NULL,
                tenure TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_users_department
            ON users(department)
        ''')

        # Surveys; questions are stored as a JSON list of {text, type, options}
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS surveys (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                department TEXT NOT NULL,
                is_all_departments INTEGER NOT NULL DEFAULT 0,
                color TEXT NOT NULL DEFAULT '#253074',
                active INTEGER NOT NULL DEFAULT 1,
                questions TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_surveys_department
            ON surveys(department)
        ''')

        # Responses; answers are stored as a JSON object keyed q0, q1, ...
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS responses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                survey_id INTEGER NOT NULL REFERENCES surveys(id) ON DELETE CASCADE,
                user_id TEXT NOT NULL,
                department TEXT NOT NULL,
                tenure TEXT NOT NULL,
                answers TEXT NOT NULL,
                submitted_at TEXT NOT NULL,
                UNIQUE(survey_id, user_id)
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_responses_user
            ON responses(user_id)
        ''')

        conn.commit()
        logger.info("Database initialized successfully")

