"""Tests for the gradebook CLI."""

import pytest
from typer.testing import CliRunner

from gradebook.cli.commands import app
from gradebook.config import app_config


runner = CliRunner()


@pytest.fixture
def cli_db(tmp_path, monkeypatch):
    """Temp database path; config points at a missing file."""
    monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "missing.yaml")
    return str(tmp_path / "db" / "cli.db")


@pytest.fixture
def exercise_file(tmp_path):
    path = tmp_path / "exercise.yaml"
    path.write_text(
        """
id: 1
name: "SQL basics"
due: "2024-03-01T23:59:00+00:00"
questions:
  - {name: "select", desc: "Write a SELECT", points: 10}
  - {name: "join", desc: "Write a JOIN", points: 90}
""",
        encoding="utf-8",
    )
    return str(path)


def _invoke(cli_db, *args):
    return runner.invoke(app, ["--db", cli_db, *args])


@pytest.fixture
def seeded(cli_db, exercise_file):
    """Database with user alice and exercise 1."""
    assert _invoke(cli_db, "add-user", "alice", "-p", "pw", "--first", "Alice").exit_code == 0
    assert _invoke(cli_db, "add-exercise", exercise_file).exit_code == 0
    return cli_db


class TestSetupCommands:
    """Tests for init-db, add-user, login, add-exercise and list."""

    def test_init_db(self, cli_db):
        result = _invoke(cli_db, "init-db")
        assert result.exit_code == 0
        assert "Base de datos lista" in result.stdout

    def test_login_ok(self, seeded):
        result = _invoke(seeded, "login", "alice", "-p", "pw")
        assert result.exit_code == 0

    def test_login_wrong_password(self, seeded):
        result = _invoke(seeded, "login", "alice", "-p", "nope")
        assert result.exit_code == 1

    def test_add_exercise_twice(self, seeded, exercise_file):
        result = _invoke(seeded, "add-exercise", exercise_file)
        assert result.exit_code == 1
        assert "ya existe" in result.stdout

    def test_add_exercise_missing_file(self, cli_db, tmp_path):
        result = _invoke(cli_db, "add-exercise", str(tmp_path / "nope.yaml"))
        assert result.exit_code == 1

    @pytest.mark.parametrize(
        "content",
        [
            "- id: 1\n  name: listed\n",
            'id: 2\nname: "nulls"\nquestions:\n  - {name: "q", points: null}\n',
            'id: 3\nname: "bare"\nquestions:\n  - q1\n',
        ],
        ids=["top-level-list", "null-points", "question-not-mapping"],
    )
    def test_add_exercise_malformed_file(self, cli_db, tmp_path, content):
        path = tmp_path / "bad.yaml"
        path.write_text(content, encoding="utf-8")

        result = _invoke(cli_db, "add-exercise", str(path))

        assert result.exit_code == 1
        assert "Definición de ejercicio inválida" in result.stdout
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_add_exercise_without_questions(self, cli_db, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text('id: 4\nname: "empty"\n', encoding="utf-8")

        result = _invoke(cli_db, "add-exercise", str(path))

        assert result.exit_code == 1
        assert "al menos una pregunta" in result.stdout

    def test_list(self, seeded):
        result = _invoke(seeded, "list")
        assert result.exit_code == 0
        assert "SQL basics" in result.stdout
        assert "join" in result.stdout

    def test_list_empty(self, cli_db):
        result = _invoke(cli_db, "list")
        assert result.exit_code == 0
        assert "No hay ejercicios" in result.stdout


class TestSubmissionCommands:
    """Tests for submit, latest and best."""

    def test_submit(self, seeded):
        result = _invoke(seeded, "submit", "alice", "1", "-g", "10", "-g", "45")
        assert result.exit_code == 0
        assert "Entrega guardada" in result.stdout

    def test_submit_unknown_user(self, seeded):
        result = _invoke(seeded, "submit", "ghost", "1", "-g", "10", "-g", "45")
        assert result.exit_code == 1
        assert "ghost" in result.stdout

    def test_submit_unknown_exercise(self, seeded):
        result = _invoke(seeded, "submit", "alice", "9", "-g", "1")
        assert result.exit_code == 1

    def test_submit_wrong_grade_count(self, seeded):
        result = _invoke(seeded, "submit", "alice", "1", "-g", "10")
        assert result.exit_code == 1

    def test_latest_and_best(self, seeded):
        _invoke(seeded, "submit", "alice", "1", "-g", "10", "-g", "80",
                "--time", "2024-01-01T10:00:00+00:00", "--id", "11")
        _invoke(seeded, "submit", "alice", "1", "-g", "5", "-g", "10",
                "--time", "2024-01-02T10:00:00+00:00", "--id", "12")

        latest = _invoke(seeded, "latest", "alice", "1")
        assert latest.exit_code == 0
        assert "entrega: 12" in latest.stdout

        best = _invoke(seeded, "best", "alice", "1")
        assert best.exit_code == 0
        assert "entrega: 11" in best.stdout

    def test_latest_without_submissions(self, seeded):
        result = _invoke(seeded, "latest", "alice", "1")
        assert result.exit_code == 0
        assert "no tiene entregas" in result.stdout
