"""Shared fixtures: an isolated database, working folders and sample records."""

import os
import tempfile

# Point the application at a scratch area before config is imported anywhere.
_WORKDIR = tempfile.mkdtemp(prefix="survey-tests-")
os.environ.setdefault("SURVEY_DATABASE_PATH", os.path.join(_WORKDIR, "survey.db"))
os.environ.setdefault("SURVEY_TEMP_FOLDER", os.path.join(_WORKDIR, "temp"))
os.environ.setdefault("SURVEY_REPORTS_FOLDER", os.path.join(_WORKDIR, "reports"))

import pytest

import config
from survey_app.models import database, init_db
from survey_app.services.csv_service import FlatResponseRecord, QuestionAnswer

SATISFACTION_OPTIONS = [
    "Very Satisfied",
    "Satisfied",
    "Neutral",
    "Dissatisfied",
    "Very Dissatisfied",
]


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(database, "DATABASE_PATH", str(tmp_path / "survey.db"))
    init_db()
    return database.DATABASE_PATH


@pytest.fixture
def workdirs(tmp_path, monkeypatch):
    temp_folder = tmp_path / "temp"
    reports_folder = tmp_path / "reports"
    temp_folder.mkdir()
    reports_folder.mkdir()
    monkeypatch.setattr(config, "TEMP_FOLDER", str(temp_folder))
    monkeypatch.setattr(config, "REPORTS_FOLDER", str(reports_folder))
    return temp_folder, reports_folder


@pytest.fixture
def client(db, workdirs):
    from app import create_app

    app = create_app()
    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def make_record():
    """Build a FlatResponseRecord from ``(question, answer[, type])`` tuples."""

    def _make(department, answers, tenure="0-6 months", survey_title="Pulse"):
        items = []
        for number, item in enumerate(answers, start=1):
            question, answer = item[0], item[1]
            answer_type = item[2] if len(item) > 2 else None
            items.append(QuestionAnswer(number=number, question=question, answer=answer, type=answer_type))
        return FlatResponseRecord(
            survey_title=survey_title,
            department=department,
            tenure=tenure,
            submission_date="1/5/2025",
            submission_time="09:30:00 AM",
            answers=tuple(items),
        )

    return _make


@pytest.fixture
def sample_records(make_record):
    return [
        make_record("Engineering", [
            ("How satisfied are you with your role?", "Very Satisfied"),
            ("Rate your manager", "5 stars"),
            ("Which perks do you use?", "Gym, Snacks"),
            ("Any comments?", "Great team"),
        ]),
        make_record("Engineering", [
            ("How satisfied are you with your role?", "Dissatisfied"),
            ("Rate your manager", "2 stars"),
            ("Which perks do you use?", "Snacks"),
            ("Any comments?", "Too many meetings"),
        ]),
        make_record("Operations", [
            ("How satisfied are you with your role?", "Satisfied"),
            ("Rate your manager", "4 stars"),
            ("Which perks do you use?", "Gym, Transport"),
            ("Any comments?", "No answer"),
        ], tenure="5+ years"),
    ]
