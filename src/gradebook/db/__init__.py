"""Database module for SQLite persistence.

Provides:
- Database handle and schema initialization
- User directory (User table)
- Exercise catalog (Exercise and Question tables)
"""

from gradebook.db.database import Database, open_db
from gradebook.db.exercises_repository import ExerciseCatalog
from gradebook.db.users_repository import UserDirectory

__all__ = ["Database", "ExerciseCatalog", "UserDirectory", "open_db"]
