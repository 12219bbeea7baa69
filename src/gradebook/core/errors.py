"""Gradebook errors.

Absence (no submission found) is not an error: the query engine returns
None. Duplicate exercises are signaled with the DUPLICATE_EXERCISE sentinel.
"""


class GradebookError(Exception):
    """Base error for gradebook operations."""

    pass


class UnknownUserError(GradebookError):
    """Raised when a referenced username is not in the directory."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Usuario no encontrado: {username}")


class UnknownExerciseError(GradebookError):
    """Raised when a referenced exercise id is not in the catalog."""

    def __init__(self, exercise_id: int):
        self.exercise_id = exercise_id
        super().__init__(f"Ejercicio no encontrado: {exercise_id}")


class GradeCountMismatchError(GradebookError, ValueError):
    """Raised when a submission's grades don't line up with the questions."""

    def __init__(self, exercise_id: int, expected: int, actual: int):
        self.exercise_id = exercise_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"El ejercicio {exercise_id} tiene {expected} preguntas "
            f"pero la entrega trae {actual} notas"
        )
