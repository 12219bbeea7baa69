"""Repository for the Exercise and Question tables.

Exercises are insert-only: re-adding an existing id leaves the stored
exercise untouched and returns DUPLICATE_EXERCISE.
"""

from __future__ import annotations

import structlog

from gradebook.db.database import Database
from gradebook.db.models import (
    DUPLICATE_EXERCISE,
    Exercise,
    Question,
    from_epoch_ms,
    to_epoch_ms,
)

logger = structlog.get_logger(__name__)


class ExerciseCatalog:
    """Exercise inserts and lookups over an open Database."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def add_exercise(self, exercise: Exercise) -> int:
        """Add an exercise and its questions.

        Questions get QuestionId = their position in exercise.questions.

        Args:
            exercise: Exercise with caller-assigned id

        Returns:
            The exercise id, or DUPLICATE_EXERCISE if the id already exists

        Raises:
            ValueError: If the exercise has no questions or a question has
                non-positive points
        """
        if not exercise.questions:
            raise ValueError(
                f"El ejercicio {exercise.exercise_id} debe tener al menos una pregunta"
            )

        for position, question in enumerate(exercise.questions):
            if question.points <= 0:
                raise ValueError(
                    f"La pregunta {position} del ejercicio {exercise.exercise_id} "
                    f"debe valer más de 0 puntos (tiene {question.points})"
                )

        with self.db.transaction() as conn:
            existing = conn.execute(
                "SELECT 1 FROM Exercise WHERE ExerciseId = ?", (exercise.exercise_id,)
            ).fetchone()

            if existing is not None:
                logger.info("exercises.duplicate", exercise_id=exercise.exercise_id)
                return DUPLICATE_EXERCISE

            conn.execute(
                "INSERT INTO Exercise (ExerciseId, Name, DueDate) VALUES (?, ?, ?)",
                (exercise.exercise_id, exercise.name, to_epoch_ms(exercise.due_date)),
            )
            conn.executemany(
                """
                INSERT INTO Question (ExerciseId, QuestionId, Name, "Desc", Points)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (exercise.exercise_id, position, q.name, q.desc, q.points)
                    for position, q in enumerate(exercise.questions)
                ],
            )

        logger.info(
            "exercises.inserted",
            exercise_id=exercise.exercise_id,
            questions=len(exercise.questions),
        )
        return exercise.exercise_id

    def resolve(self, exercise_id: int) -> Exercise | None:
        """Get an exercise with its questions, or None if absent."""
        row = self.db.execute(
            "SELECT ExerciseId, Name, DueDate FROM Exercise WHERE ExerciseId = ?",
            (exercise_id,),
        ).fetchone()

        if row is None:
            return None

        return self._row_to_exercise(row)

    def load_exercises(self) -> list[Exercise]:
        """Get all exercises sorted by exercise id."""
        rows = self.db.execute(
            "SELECT ExerciseId, Name, DueDate FROM Exercise ORDER BY ExerciseId"
        ).fetchall()

        return [self._row_to_exercise(row) for row in rows]

    def _load_questions(self, exercise_id: int) -> list[Question]:
        rows = self.db.execute(
            """
            SELECT Name, "Desc", Points FROM Question
            WHERE ExerciseId = ?
            ORDER BY QuestionId
            """,
            (exercise_id,),
        ).fetchall()

        return [
            Question(name=r["Name"], desc=r["Desc"], points=r["Points"]) for r in rows
        ]

    def _row_to_exercise(self, row) -> Exercise:
        """Convert database row to Exercise, loading its questions."""
        return Exercise(
            exercise_id=row["ExerciseId"],
            name=row["Name"],
            due_date=from_epoch_ms(row["DueDate"]),
            questions=self._load_questions(row["ExerciseId"]),
        )
