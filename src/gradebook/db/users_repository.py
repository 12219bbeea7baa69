"""Repository for the User table.

Provides upsert-by-username, credential checks and username resolution.
"""

from __future__ import annotations

import structlog

from gradebook.core.passwords import PasswordHasher, WerkzeugPasswordHasher
from gradebook.db.database import Database
from gradebook.db.models import User

logger = structlog.get_logger(__name__)


class UserDirectory:
    """User lookups and upserts over an open Database."""

    def __init__(self, db: Database, hasher: PasswordHasher | None = None) -> None:
        self.db = db
        self.hasher = hasher or WerkzeugPasswordHasher()

    def add_or_update_user(self, user: User, password: str) -> int:
        """Add a user, or update names and password of an existing username.

        Args:
            user: User with username and names
            password: Clear-text password, stored through the hasher

        Returns:
            The user id (unchanged for existing users)
        """
        credential = self.hasher.hash(password)

        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT UserId FROM User WHERE Username = ?", (user.username,)
            ).fetchone()

            if row is None:
                cursor = conn.execute(
                    """
                    INSERT INTO User (Username, Firstname, Lastname, Password)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user.username, user.firstname, user.lastname, credential),
                )
                user_id = cursor.lastrowid
                logger.info("users.inserted", username=user.username, user_id=user_id)
            else:
                user_id = row["UserId"]
                conn.execute(
                    """
                    UPDATE User SET Firstname = ?, Lastname = ?, Password = ?
                    WHERE UserId = ?
                    """,
                    (user.firstname, user.lastname, credential, user_id),
                )
                logger.info("users.updated", username=user.username, user_id=user_id)

        user.user_id = user_id
        return user_id

    def verify_login(self, username: str, password: str) -> bool:
        """Check a login attempt.

        Returns:
            True if the user exists and the password matches; False otherwise.
        """
        row = self.db.execute(
            "SELECT Password FROM User WHERE Username = ?", (username,)
        ).fetchone()

        if row is None:
            logger.debug("users.login_unknown", username=username)
            return False

        ok = self.hasher.verify(row["Password"], password)
        if not ok:
            logger.debug("users.login_rejected", username=username)
        return ok

    def resolve(self, username: str) -> int | None:
        """Get the user id for a username, or None if not registered."""
        row = self.db.execute(
            "SELECT UserId FROM User WHERE Username = ?", (username,)
        ).fetchone()
        return None if row is None else row["UserId"]

    def get_user(self, username: str) -> User | None:
        """Get a user by username."""
        row = self.db.execute(
            "SELECT UserId, Username, Firstname, Lastname FROM User WHERE Username = ?",
            (username,),
        ).fetchone()

        if row is None:
            return None

        return User(
            username=row["Username"],
            firstname=row["Firstname"] or "",
            lastname=row["Lastname"] or "",
            user_id=row["UserId"],
        )
