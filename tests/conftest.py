"""Shared fixtures for gradebook tests.

Every database lives under tmp_path; nothing touches ./db.
"""

from datetime import datetime, timezone

import pytest

from gradebook.config.app_config import clear_config_cache
from gradebook.core.passwords import WerkzeugPasswordHasher
from gradebook.core.submission_query import SubmissionQueryEngine
from gradebook.core.submission_store import SubmissionStore
from gradebook.db.database import open_db
from gradebook.db.exercises_repository import ExerciseCatalog
from gradebook.db.models import Exercise, Submission, User
from gradebook.db.users_repository import UserDirectory


def ms(value: int) -> datetime:
    """Datetime for an epoch-millisecond value."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db" / "gradebook.db"


@pytest.fixture
def db(db_path):
    """Open database with schema, closed after the test."""
    handle = open_db(db_path)
    yield handle
    handle.close()


@pytest.fixture
def users(db):
    # Cheap hashing keeps the suite fast
    return UserDirectory(db, hasher=WerkzeugPasswordHasher(method="pbkdf2:sha256:1000"))


@pytest.fixture
def catalog(db):
    return ExerciseCatalog(db)


@pytest.fixture
def store(db, users, catalog):
    return SubmissionStore(db, users=users, exercises=catalog)


@pytest.fixture
def queries(db):
    return SubmissionQueryEngine(db)


@pytest.fixture
def alice(users) -> User:
    user = User(username="alice", firstname="Alice", lastname="Liddell")
    users.add_or_update_user(user, "wonderland")
    return user


@pytest.fixture
def exercise(catalog) -> Exercise:
    """Exercise 1 with three questions worth 10, 20 and 70 points."""
    ex = Exercise(exercise_id=1, name="SQL basics", due_date=ms(1_700_000_000_000))
    ex.add_question("select", "Write a SELECT", 10)
    ex.add_question("join", "Write a JOIN", 20)
    ex.add_question("aggregate", "Write a GROUP BY", 70)
    catalog.add_exercise(ex)
    return ex


@pytest.fixture
def make_submission(alice, exercise):
    """Build a submission for alice on exercise 1."""

    def _make(raw_grades, at_ms, submission_id=-1, user=None, ex=None):
        return Submission(
            user=user or alice,
            exercise=ex or exercise,
            submission_time=ms(at_ms),
            question_grades=list(raw_grades),
            submission_id=submission_id,
        )

    return _make
