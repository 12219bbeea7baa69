"""Gradebook records.

Tables (see database.py):
- User: registered students and staff
- Exercise / Question: exercises and their ordered questions
- Submission / QuestionGrade: submitted work and normalized per-question grades
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

# Submission id meaning "let the store assign one"
UNASSIGNED_ID = -1

# Returned by ExerciseCatalog.add_exercise when the id is already taken
DUPLICATE_EXERCISE = -1


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(round(value.timestamp() * 1000))


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass
class User:
    """A gradebook user. user_id is None until the directory assigns one."""

    username: str
    firstname: str = ""
    lastname: str = ""
    user_id: int | None = None

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


@dataclass
class Question:
    """A question inside an exercise."""

    name: str
    desc: str
    points: int


@dataclass
class Exercise:
    """An exercise with its questions in position order."""

    exercise_id: int
    name: str
    due_date: datetime
    questions: list[Question] = field(default_factory=list)

    def add_question(self, name: str, desc: str, points: int) -> Question:
        """Append a question; its position index is its place in the list."""
        question = Question(name=name, desc=desc, points=points)
        self.questions.append(question)
        return question

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)


@dataclass
class Submission:
    """A submission to be stored.

    question_grades holds raw scores (not normalized), one per question,
    aligned by position index.
    """

    user: User
    exercise: Exercise
    submission_time: datetime
    question_grades: list[float]
    submission_id: int = UNASSIGNED_ID


@dataclass
class SubmissionRecord:
    """A stored submission as returned by the query engine.

    grades holds the normalized grades (fraction of each question's points)
    in question position order.
    """

    submission_id: int
    user: User
    exercise: Exercise
    submission_time: datetime
    grades: list[float]

    @property
    def raw_grades(self) -> list[float]:
        """Grades scaled back to question points."""
        return [
            grade * question.points
            for grade, question in zip(self.grades, self.exercise.questions)
        ]

    @property
    def total(self) -> float:
        return sum(self.raw_grades)
