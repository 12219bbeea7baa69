"""Tests for UserDirectory."""

from gradebook.core.passwords import PlaintextPasswordHasher
from gradebook.db.models import User
from gradebook.db.users_repository import UserDirectory


class TestAddOrUpdateUser:
    """Tests for add_or_update_user."""

    def test_insert_returns_id(self, users):
        user_id = users.add_or_update_user(User(username="carol", firstname="Carol"), "pw")
        assert isinstance(user_id, int)
        assert users.resolve("carol") == user_id

    def test_insert_sets_user_id(self, users):
        user = User(username="carol")
        user_id = users.add_or_update_user(user, "pw")
        assert user.user_id == user_id

    def test_distinct_users_get_distinct_ids(self, users):
        a = users.add_or_update_user(User(username="a"), "pw")
        b = users.add_or_update_user(User(username="b"), "pw")
        assert a != b

    def test_update_keeps_id(self, users):
        """Re-upserting a username keeps its identity."""
        first = users.add_or_update_user(User(username="dave", firstname="Dave"), "old")
        second = users.add_or_update_user(
            User(username="dave", firstname="David", lastname="Jones"), "new"
        )

        assert first == second
        user = users.get_user("dave")
        assert user.firstname == "David"
        assert user.lastname == "Jones"

    def test_update_changes_password(self, users):
        users.add_or_update_user(User(username="erin"), "old")
        users.add_or_update_user(User(username="erin"), "new")

        assert users.verify_login("erin", "new")
        assert not users.verify_login("erin", "old")

    def test_password_not_stored_in_clear(self, db, users):
        users.add_or_update_user(User(username="frank"), "hunter2")

        stored = db.execute(
            "SELECT Password FROM User WHERE Username = 'frank'"
        ).fetchone()["Password"]
        assert stored != "hunter2"
        assert stored.startswith("pbkdf2:sha256")


class TestVerifyLogin:
    """Tests for verify_login."""

    def test_correct_password(self, users, alice):
        assert users.verify_login("alice", "wonderland") is True

    def test_wrong_password(self, users, alice):
        assert users.verify_login("alice", "looking-glass") is False

    def test_unknown_user(self, users):
        assert users.verify_login("nobody", "wonderland") is False

    def test_plaintext_hasher_for_legacy_rows(self, db):
        """Legacy databases stored passwords as-is."""
        db.execute(
            "INSERT INTO User (Username, Firstname, Lastname, Password) VALUES (?, ?, ?, ?)",
            ("legacy", "L", "G", "plain"),
        )
        legacy = UserDirectory(db, hasher=PlaintextPasswordHasher())

        assert legacy.verify_login("legacy", "plain")
        assert not legacy.verify_login("legacy", "Plain")

    def test_hashing_directory_rejects_plaintext_rows(self, db, users):
        db.execute(
            "INSERT INTO User (Username, Password) VALUES (?, ?)", ("legacy", "plain")
        )
        assert users.verify_login("legacy", "plain") is False


class TestResolve:
    """Tests for resolve / get_user."""

    def test_resolve_unknown(self, users):
        assert users.resolve("nobody") is None

    def test_get_user_unknown(self, users):
        assert users.get_user("nobody") is None

    def test_get_user(self, users, alice):
        user = users.get_user("alice")
        assert user.username == "alice"
        assert user.full_name == "Alice Liddell"
        assert user.user_id == users.resolve("alice")
