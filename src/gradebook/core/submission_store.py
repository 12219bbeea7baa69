"""Submission storage.

Responsibilities:
- Resolve the submitting user and the exercise
- Assign (or honor) the submission id
- Persist one Submission row plus one normalized QuestionGrade row per
  question, as a single transaction
"""

from __future__ import annotations

import structlog

from gradebook.core.errors import (
    GradeCountMismatchError,
    UnknownExerciseError,
    UnknownUserError,
)
from gradebook.db.database import Database
from gradebook.db.exercises_repository import ExerciseCatalog
from gradebook.db.models import UNASSIGNED_ID, Submission, to_epoch_ms
from gradebook.db.users_repository import UserDirectory

logger = structlog.get_logger(__name__)


def normalize_grades(raw_grades: list[float], points: list[int]) -> list[float]:
    """Express each raw grade as a fraction of its question's points."""
    return [raw / p for raw, p in zip(raw_grades, points)]


class SubmissionStore:
    """Append-only writer for submissions and their grades."""

    def __init__(
        self,
        db: Database,
        users: UserDirectory | None = None,
        exercises: ExerciseCatalog | None = None,
    ) -> None:
        self.db = db
        self.users = users or UserDirectory(db)
        self.exercises = exercises or ExerciseCatalog(db)

    def store(self, submission: Submission) -> int:
        """Store a submission.

        submission.submission_id is ignored when it is UNASSIGNED_ID; the
        store then assigns one. Points used for normalization come from the
        stored exercise, not from the caller's copy.

        Args:
            submission: Submission with raw grades per question

        Returns:
            The submission id

        Raises:
            UnknownUserError: If the username is not registered
            UnknownExerciseError: If the exercise id is not in the catalog
            GradeCountMismatchError: If grades and questions don't line up
            sqlite3.Error: Storage failures (e.g. a reused submission id)
        """
        username = submission.user.username
        exercise_id = submission.exercise.exercise_id

        with self.db.transaction() as conn:
            user_id = self.users.resolve(username)
            if user_id is None:
                logger.warning(
                    "submissions.unknown_user",
                    username=username,
                    exercise_id=exercise_id,
                )
                raise UnknownUserError(username)

            exercise = self.exercises.resolve(exercise_id)
            if exercise is None:
                logger.warning(
                    "submissions.unknown_exercise",
                    username=username,
                    exercise_id=exercise_id,
                )
                raise UnknownExerciseError(exercise_id)

            if len(submission.question_grades) != len(exercise.questions):
                raise GradeCountMismatchError(
                    exercise_id,
                    expected=len(exercise.questions),
                    actual=len(submission.question_grades),
                )

            submitted_at = to_epoch_ms(submission.submission_time)

            if submission.submission_id == UNASSIGNED_ID:
                cursor = conn.execute(
                    """
                    INSERT INTO Submission (UserId, ExerciseId, SubmissionTime)
                    VALUES (?, ?, ?)
                    """,
                    (user_id, exercise_id, submitted_at),
                )
                # Same statement, same connection: no lookup by instance key
                submission_id = cursor.lastrowid
            else:
                submission_id = submission.submission_id
                conn.execute(
                    """
                    INSERT INTO Submission (SubmissionId, UserId, ExerciseId, SubmissionTime)
                    VALUES (?, ?, ?, ?)
                    """,
                    (submission_id, user_id, exercise_id, submitted_at),
                )

            grades = normalize_grades(
                submission.question_grades, [q.points for q in exercise.questions]
            )
            conn.executemany(
                "INSERT INTO QuestionGrade (SubmissionId, QuestionId, Grade) VALUES (?, ?, ?)",
                [(submission_id, position, grade) for position, grade in enumerate(grades)],
            )

        logger.info(
            "submissions.stored",
            submission_id=submission_id,
            username=username,
            exercise_id=exercise_id,
            grades=len(grades),
        )
        return submission_id
