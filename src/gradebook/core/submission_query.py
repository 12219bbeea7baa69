"""Submission queries.

Answers, for a (user, exercise) pair:
- latest: the submission with the greatest SubmissionTime
- best: the submission with the greatest point total, where
  total = SUM(Grade * Points) over its questions

Each query picks a single winning SubmissionId first and only then joins its
grades, so the rows returned always belong to one submission.

Tie-breaking:
- latest: SubmissionTime DESC, SubmissionId DESC
- best: total DESC, SubmissionTime DESC, SubmissionId DESC
"""

from __future__ import annotations

import structlog

from gradebook.db.database import Database
from gradebook.db.models import Exercise, SubmissionRecord, User, from_epoch_ms

logger = structlog.get_logger(__name__)

# Totals are rounded before comparing so 0.1 + 0.2 style noise can't split ties
TOTAL_PRECISION = 6

LATEST_SUBMISSION_SQL = """
    WITH winner AS (
        SELECT Submission.SubmissionId, Submission.SubmissionTime
        FROM Submission
        JOIN User ON User.UserId = Submission.UserId
        WHERE User.Username = ? AND Submission.ExerciseId = ?
        ORDER BY Submission.SubmissionTime DESC, Submission.SubmissionId DESC
        LIMIT 1
    )
    SELECT winner.SubmissionId, QuestionGrade.QuestionId,
           QuestionGrade.Grade, winner.SubmissionTime
    FROM winner
    JOIN QuestionGrade ON QuestionGrade.SubmissionId = winner.SubmissionId
    ORDER BY QuestionGrade.QuestionId
"""

BEST_SUBMISSION_SQL = """
    WITH totals AS (
        SELECT Submission.SubmissionId, Submission.SubmissionTime,
               ROUND(SUM(QuestionGrade.Grade * Question.Points), ?) AS Total
        FROM Submission
        JOIN User ON User.UserId = Submission.UserId
        JOIN QuestionGrade ON QuestionGrade.SubmissionId = Submission.SubmissionId
        JOIN Question ON Question.ExerciseId = Submission.ExerciseId
                     AND Question.QuestionId = QuestionGrade.QuestionId
        WHERE User.Username = ? AND Submission.ExerciseId = ?
        GROUP BY Submission.SubmissionId, Submission.SubmissionTime
    ),
    winner AS (
        SELECT SubmissionId, SubmissionTime
        FROM totals
        ORDER BY Total DESC, SubmissionTime DESC, SubmissionId DESC
        LIMIT 1
    )
    SELECT winner.SubmissionId, QuestionGrade.QuestionId,
           QuestionGrade.Grade, winner.SubmissionTime
    FROM winner
    JOIN QuestionGrade ON QuestionGrade.SubmissionId = winner.SubmissionId
    ORDER BY QuestionGrade.QuestionId
"""


class SubmissionQueryEngine:
    """Read-only queries over stored submissions."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def latest(self, user: User, exercise: Exercise) -> SubmissionRecord | None:
        """Return the most recent submission, or None if there is none."""
        return self._fetch(
            "latest",
            user,
            exercise,
            LATEST_SUBMISSION_SQL,
            (user.username, exercise.exercise_id),
        )

    def best(self, user: User, exercise: Exercise) -> SubmissionRecord | None:
        """Return the highest-scoring submission, or None if there is none.

        Among equal totals the most recent submission wins.
        """
        return self._fetch(
            "best",
            user,
            exercise,
            BEST_SUBMISSION_SQL,
            (TOTAL_PRECISION, user.username, exercise.exercise_id),
        )

    def _fetch(
        self,
        kind: str,
        user: User,
        exercise: Exercise,
        sql: str,
        params: tuple,
    ) -> SubmissionRecord | None:
        rows = self.db.execute(sql, params).fetchall()

        if not rows:
            logger.debug(
                "submissions.none_found",
                query=kind,
                username=user.username,
                exercise_id=exercise.exercise_id,
            )
            return None

        first = rows[0]
        record = SubmissionRecord(
            submission_id=first["SubmissionId"],
            user=user,
            exercise=exercise,
            submission_time=from_epoch_ms(first["SubmissionTime"]),
            grades=[row["Grade"] for row in rows],
        )

        logger.debug(
            "submissions.found",
            query=kind,
            submission_id=record.submission_id,
            username=user.username,
            exercise_id=exercise.exercise_id,
        )
        return record
