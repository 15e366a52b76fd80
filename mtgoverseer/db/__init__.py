from mtgoverseer.db.client import Migration, QueryResult, SQLiteClient, Statement
from mtgoverseer.db.database import create_client, database_exists, init_db
from mtgoverseer.db.errors import (
    ConstraintViolationError,
    DatabaseConnectionError,
    DatabaseError,
    DowngradeError,
    InvalidRecordError,
    MigrationError,
    NotConnectedError,
    QueryError,
    SerializationError,
)
from mtgoverseer.db.migrations import DB_MIGRATIONS, sql_migration
from mtgoverseer.db.repository import CardsTable, DeckCardsTable, DecksTable, Repository

__all__ = [
    "CardsTable",
    "ConstraintViolationError",
    "DB_MIGRATIONS",
    "DatabaseConnectionError",
    "DatabaseError",
    "DeckCardsTable",
    "DecksTable",
    "DowngradeError",
    "InvalidRecordError",
    "Migration",
    "MigrationError",
    "NotConnectedError",
    "QueryError",
    "QueryResult",
    "Repository",
    "SQLiteClient",
    "SerializationError",
    "Statement",
    "create_client",
    "database_exists",
    "init_db",
    "sql_migration",
]
