"""Core submission logic.

Modules:
- submission_store: store submissions and normalized grades atomically
- submission_query: latest / best submission queries
- passwords: pluggable password hashing for the user directory
- errors: gradebook exceptions
"""

__all__ = [
    "submission_store",
    "submission_query",
    "passwords",
    "errors",
]
