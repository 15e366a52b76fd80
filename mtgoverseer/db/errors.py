"""
Persistence error taxonomy.

Every failure raised by the connection manager and the repositories is one
of these types. Driver exceptions are chained as ``__cause__`` so the
original message is never lost.
"""


class DatabaseError(Exception):
    """Base class for local store failures."""

    pass


class NotConnectedError(DatabaseError):
    """Raised when an operation runs before a successful ``connect()``."""

    def __init__(self, database_name: str):
        self.database_name = database_name
        super().__init__(f"Database '{database_name}' is not connected")


class DatabaseConnectionError(DatabaseError):
    """Raised when the backing store cannot be opened."""

    pass


class DowngradeError(DatabaseError):
    """
    Raised when the stored schema version is newer than this build knows.

    The data on disk was written by a newer release. Nothing was changed;
    the caller should offer a reinstall or a data reset rather than a retry.
    """

    def __init__(self, stored_version: int, target_version: int):
        self.stored_version = stored_version
        self.target_version = target_version
        super().__init__(
            f"Cannot downgrade database from version {stored_version} to {target_version}"
        )


class MigrationError(DatabaseError):
    """
    Raised when a migration step fails.

    The whole migration transaction was rolled back, so the stored version
    is unchanged and ``connect()`` can be retried.
    """

    def __init__(self, step: int, message: str):
        self.step = step
        super().__init__(f"Migration {step} failed: {message}")


class QueryError(DatabaseError):
    """Raised when a statement is rejected by the engine."""

    def __init__(self, sql: str, message: str):
        self.sql = sql
        super().__init__(message)


class ConstraintViolationError(QueryError):
    """Foreign key, unique, primary key or NOT NULL violation."""

    pass


class SerializationError(DatabaseError):
    """Raised when a stored row cannot be mapped back to its entity."""

    def __init__(self, table: str, row_id: object, column: str | None, message: str):
        self.table = table
        self.row_id = row_id
        self.column = column
        location = f"{table}.{column}" if column else table
        super().__init__(f"Corrupt value in {location} for row {row_id!r}: {message}")


class InvalidRecordError(ValueError):
    """Raised before any SQL runs when an entity fails validation."""

    def __init__(self, entity: str, reason: str):
        self.entity = entity
        self.reason = reason
        super().__init__(f"Invalid {entity}: {reason}")
