"""
db/errors.py
------------
Exceptions raised by the database layer during bootstrap.
Every failure carries its underlying cause so callers can log it with context.
"""


class DatabaseError(Exception):
    """Base class for all bootstrap failures."""


class ConnectivityError(DatabaseError):
    """The connection pool could not reach the database."""


class SchemaRebuildError(DatabaseError):
    """Dropping or creating a specific table failed."""

    def __init__(self, table: str, cause: BaseException):
        self.table = table
        self.cause = cause
        super().__init__(f"Failed to rebuild table '{table}': {cause}")


class SeedError(DatabaseError):
    """The privileged-account existence check or insert failed."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Failed to seed privileged account: {cause}")
