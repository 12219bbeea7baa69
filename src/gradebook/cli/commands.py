"""CLI commands for the gradebook.

Commands:
- init-db: Create the database schema
- add-user / login: Manage users and check credentials
- add-exercise / list: Register exercises and list them
- submit: Store a graded submission
- latest / best: Show the latest or best submission of a user
"""

import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.table import Table

from gradebook.config.app_config import build_password_hasher, load_app_config
from gradebook.core.errors import GradebookError
from gradebook.core.submission_query import SubmissionQueryEngine
from gradebook.core.submission_store import SubmissionStore
from gradebook.db.database import Database, open_db
from gradebook.db.exercises_repository import ExerciseCatalog
from gradebook.db.models import (
    DUPLICATE_EXERCISE,
    UNASSIGNED_ID,
    Exercise,
    Submission,
    SubmissionRecord,
    User,
)
from gradebook.db.users_repository import UserDirectory

app = typer.Typer(
    name="gradebook",
    help="Classroom gradebook: users, exercises and graded submissions.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    db: str | None = typer.Option(
        None, "--db", help="Path to the SQLite database (default: from config)"
    ),
) -> None:
    """Classroom gradebook."""
    ctx.obj = Path(db) if db else load_app_config().db_path


def _open(ctx: typer.Context) -> Database:
    """Open the database selected by --db or the config."""
    return open_db(ctx.obj)


def _parse_time(value: str | None) -> datetime:
    """Parse an ISO timestamp; None means now (UTC)."""
    if value is None:
        return datetime.now(timezone.utc)
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        console.print(f"[red]✗ Fecha inválida (se espera ISO 8601): {value}[/red]")
        raise typer.Exit(code=1)


def _load_exercise_file(path: Path) -> Exercise:
    """Load an exercise definition from YAML.

    Expected structure:
        id: 1
        name: "Ejercicio 1"
        due: "2024-03-01T23:59:00"
        questions:
          - {name: "q1", desc: "...", points: 10}
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("el archivo debe contener un mapeo YAML")

    due = data.get("due")
    if isinstance(due, str):
        due = datetime.fromisoformat(due)
    elif due is None:
        due = datetime.now(timezone.utc)
    elif isinstance(due, date) and not isinstance(due, datetime):
        # YAML parses bare dates (2024-03-01) as date objects
        due = datetime(due.year, due.month, due.day, tzinfo=timezone.utc)

    exercise = Exercise(exercise_id=int(data["id"]), name=data["name"], due_date=due)
    for q in data.get("questions", []):
        exercise.add_question(q["name"], q.get("desc", ""), int(q["points"]))
    return exercise


def _print_record(title: str, record: SubmissionRecord) -> None:
    """Print a submission as a per-question table."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Pregunta")
    table.add_column("Nota", justify="right")
    table.add_column("Puntos", justify="right")

    for position, (question, grade, raw) in enumerate(
        zip(record.exercise.questions, record.grades, record.raw_grades)
    ):
        table.add_row(
            str(position),
            question.name,
            f"{grade:.0%}",
            f"{raw:g}/{question.points}",
        )

    console.print(table)
    console.print(f"  [dim]entrega:[/dim] {record.submission_id}")
    console.print(f"  [dim]fecha:[/dim]   {record.submission_time.isoformat()}")
    console.print(f"  [dim]total:[/dim]   {record.total:g}/{record.exercise.total_points}")


@app.command(name="init-db")
def init_db(ctx: typer.Context) -> None:
    """Create the database and its tables."""
    with _open(ctx) as db:
        console.print(f"[green]✓ Base de datos lista:[/green] {db.path}")


@app.command(name="add-user")
def add_user(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Unique username"),
    password: str = typer.Option(..., "--password", "-p", help="User password"),
    first: str = typer.Option("", "--first", help="First name"),
    last: str = typer.Option("", "--last", help="Last name"),
) -> None:
    """Add a user, or update names and password of an existing one."""
    with _open(ctx) as db:
        users = UserDirectory(db, hasher=build_password_hasher())
        user_id = users.add_or_update_user(
            User(username=username, firstname=first, lastname=last), password
        )

    console.print(f"[green]✓ Usuario guardado:[/green] {username} (id {user_id})")


@app.command()
def login(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Username"),
    password: str = typer.Option(..., "--password", "-p", help="Password to check"),
) -> None:
    """Check a user's credentials."""
    with _open(ctx) as db:
        users = UserDirectory(db, hasher=build_password_hasher())
        ok = users.verify_login(username, password)

    if not ok:
        console.print("[red]✗ Usuario o contraseña incorrectos[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Credenciales válidas para {username}[/green]")


@app.command(name="add-exercise")
def add_exercise(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="Path to exercise YAML file"),
) -> None:
    """Register an exercise and its questions from a YAML file."""
    path = Path(file).expanduser().resolve()
    if not path.exists():
        console.print(f"[red]✗ Archivo no encontrado: {path}[/red]")
        raise typer.Exit(code=1)

    try:
        exercise = _load_exercise_file(path)
    except (KeyError, TypeError, AttributeError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]✗ Definición de ejercicio inválida: {e}[/red]")
        raise typer.Exit(code=1)

    with _open(ctx) as db:
        try:
            result = ExerciseCatalog(db).add_exercise(exercise)
        except ValueError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)

    if result == DUPLICATE_EXERCISE:
        console.print(
            f"[yellow]⚠ El ejercicio {exercise.exercise_id} ya existe; no se modificó[/yellow]"
        )
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓ Ejercicio {result} guardado[/green] "
        f"({len(exercise.questions)} preguntas, {exercise.total_points} puntos)"
    )


@app.command(name="list")
def list_exercises(ctx: typer.Context) -> None:
    """List all exercises with their questions."""
    with _open(ctx) as db:
        exercises = ExerciseCatalog(db).load_exercises()

    if not exercises:
        console.print("[yellow]No hay ejercicios registrados[/yellow]")
        console.print("  Usa: gradebook add-exercise <archivo.yaml>")
        return

    console.print(f"\n[bold]Ejercicios ({len(exercises)}):[/bold]\n")

    for exercise in exercises:
        console.print(f"  [bold]{exercise.exercise_id}[/bold] {exercise.name}")
        console.print(f"    [dim]entrega:[/dim] {exercise.due_date.isoformat()}")
        for position, q in enumerate(exercise.questions):
            console.print(f"    [dim]{position}.[/dim] {q.name} ({q.points} pts)")
        console.print()


@app.command()
def submit(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Submitting user"),
    exercise_id: int = typer.Argument(..., help="Exercise id"),
    grades: list[float] = typer.Option(
        ..., "--grade", "-g", help="Raw grade per question, in order (repeat)"
    ),
    time: str | None = typer.Option(
        None, "--time", "-t", help="Submission time, ISO 8601 (default: now)"
    ),
    submission_id: int = typer.Option(
        UNASSIGNED_ID, "--id", help="Explicit submission id (default: assigned)"
    ),
) -> None:
    """Store a graded submission."""
    submitted_at = _parse_time(time)

    with _open(ctx) as db:
        exercise = ExerciseCatalog(db).resolve(exercise_id)
        if exercise is None:
            console.print(f"[red]✗ Ejercicio no encontrado: {exercise_id}[/red]")
            raise typer.Exit(code=1)

        submission = Submission(
            user=User(username=username),
            exercise=exercise,
            submission_time=submitted_at,
            question_grades=list(grades),
            submission_id=submission_id,
        )

        try:
            stored_id = SubmissionStore(db).store(submission)
        except (GradebookError, sqlite3.Error) as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)

    console.print(f"[green]✓ Entrega guardada:[/green] {stored_id}")


def _show_submission(ctx: typer.Context, username: str, exercise_id: int, kind: str) -> None:
    with _open(ctx) as db:
        exercise = ExerciseCatalog(db).resolve(exercise_id)
        if exercise is None:
            console.print(f"[red]✗ Ejercicio no encontrado: {exercise_id}[/red]")
            raise typer.Exit(code=1)

        user = UserDirectory(db).get_user(username) or User(username=username)
        engine = SubmissionQueryEngine(db)
        record = engine.latest(user, exercise) if kind == "latest" else engine.best(user, exercise)

    if record is None:
        console.print(f"[yellow]{username} no tiene entregas para el ejercicio {exercise_id}[/yellow]")
        return

    title = "Última entrega" if kind == "latest" else "Mejor entrega"
    _print_record(f"{title}: {username} / {exercise.name}", record)


@app.command()
def latest(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Username"),
    exercise_id: int = typer.Argument(..., help="Exercise id"),
) -> None:
    """Show the most recent submission of a user for an exercise."""
    _show_submission(ctx, username, exercise_id, "latest")


@app.command()
def best(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Username"),
    exercise_id: int = typer.Argument(..., help="Exercise id"),
) -> None:
    """Show the highest-scoring submission of a user for an exercise."""
    _show_submission(ctx, username, exercise_id, "best")


if __name__ == "__main__":
    app()
