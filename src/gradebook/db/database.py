"""SQLite database handle and schema management.

Provides an explicitly owned connection handle for the gradebook and the
idempotent creation of its five tables.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/gradebook.db")


class Database:
    """Owned SQLite connection shared by the repositories.

    Components receive the handle at construction and never open their own
    connection. Close it with close() or use it as a context manager.

    Example:
        with open_db(Path("db/gradebook.db")) as db:
            users = UserDirectory(db)
    """

    def __init__(self, db_path: Path | str | None = None, timeout: float = 5.0) -> None:
        self.path = Path(db_path) if db_path is not None else DEFAULT_DB_PATH
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)

        # Autocommit mode: transactions are opened explicitly in transaction()
        self._conn: sqlite3.Connection | None = sqlite3.connect(
            str(self.path), timeout=timeout, isolation_level=None
        )
        self._conn.row_factory = sqlite3.Row
        self._depth = 0

    @property
    def conn(self) -> sqlite3.Connection:
        """Underlying connection.

        Raises:
            sqlite3.ProgrammingError: If the handle was already closed
        """
        if self._conn is None:
            raise sqlite3.ProgrammingError("Database handle is closed")
        return self._conn

    @property
    def closed(self) -> bool:
        return self._conn is None

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a single parameterized statement."""
        return self.conn.execute(sql, params)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run a block as one all-or-nothing write.

        Commits when the block exits normally, rolls back and re-raises on
        any exception. Nested calls join the outer transaction.

        Yields:
            SQLite connection with row factory set to sqlite3.Row
        """
        conn = self.conn

        if self._depth > 0:
            self._depth += 1
            try:
                yield conn
            finally:
                self._depth -= 1
            return

        conn.execute("BEGIN IMMEDIATE")
        self._depth = 1
        try:
            yield conn
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        else:
            try:
                conn.execute("COMMIT")
            except BaseException:
                # A failed COMMIT (e.g. database is locked) leaves the transaction open
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                logger.warning("database.commit_failed", path=str(self.path))
                raise
        finally:
            self._depth = 0

    def close(self) -> None:
        """Close the connection if it is open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("database.closed", path=str(self.path))

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_db(db_path: Path | str | None = None, timeout: float = 5.0) -> Database:
    """Open the gradebook database, creating file and tables if needed.

    Args:
        db_path: Path to database file. Defaults to db/gradebook.db
        timeout: Seconds to wait on a locked database before failing

    Returns:
        Open Database handle with the schema in place
    """
    db = Database(db_path, timeout=timeout)
    init_schema(db)
    logger.info("database.initialized", path=str(db.path))
    return db


def init_schema(db: Database) -> None:
    """Create the gradebook tables.

    Uses IF NOT EXISTS for idempotency. Column names and keys are shared
    with databases written by the legacy grading service.
    """
    db.conn.executescript(
        """
        -- Usuarios: Username es UNIQUE, UserId lo asigna SQLite
        CREATE TABLE IF NOT EXISTS User (
            UserId INTEGER PRIMARY KEY,
            Username TEXT UNIQUE,
            Firstname TEXT,
            Lastname TEXT,
            Password TEXT
        );

        -- Ejercicios: ExerciseId lo asigna el llamador, DueDate en epoch ms
        CREATE TABLE IF NOT EXISTS Exercise (
            ExerciseId INTEGER PRIMARY KEY,
            Name TEXT,
            DueDate INTEGER
        );

        -- Preguntas: QuestionId es la posicion 0-based dentro del ejercicio
        CREATE TABLE IF NOT EXISTS Question (
            ExerciseId INTEGER,
            QuestionId INTEGER,
            Name TEXT,
            "Desc" TEXT,
            Points INTEGER,
            PRIMARY KEY (ExerciseId, QuestionId)
        );

        -- Entregas: SubmissionTime en epoch ms
        CREATE TABLE IF NOT EXISTS Submission (
            SubmissionId INTEGER PRIMARY KEY,
            UserId INTEGER,
            ExerciseId INTEGER,
            SubmissionTime INTEGER
        );

        -- Notas por pregunta: Grade normalizada (nota / puntos)
        CREATE TABLE IF NOT EXISTS QuestionGrade (
            SubmissionId INTEGER,
            QuestionId INTEGER,
            Grade REAL,
            PRIMARY KEY (SubmissionId, QuestionId)
        );

        -- Índices
        CREATE INDEX IF NOT EXISTS idx_submission_user_exercise
            ON Submission(UserId, ExerciseId);
        """
    )
