"""
Local store bootstrap.

Builds the application's connection manager with the full migration list.
Create it once at startup, run ``init_db`` before any repository call, and
``disconnect()`` it at shutdown.
"""

from pathlib import Path

from mtgoverseer.config import settings
from mtgoverseer.db.client import SQLiteClient
from mtgoverseer.db.migrations import DB_MIGRATIONS
from mtgoverseer.db.repository import Repository


def create_client(database_name: str | None = None, directory: Path | None = None) -> SQLiteClient:
    """Connection manager for the app's store, not yet connected."""
    return SQLiteClient(
        database_name or settings.database_name,
        DB_MIGRATIONS,
        directory=directory or settings.data_dir,
        echo=settings.debug,
    )


async def init_db(client: SQLiteClient) -> Repository:
    """
    Connect and migrate the store.

    Returns:
        Repository bound to the connected client.

    Raises:
        DowngradeError: If the store was written by a newer release
        MigrationError: If a migration fails
    """
    await client.connect()
    return Repository(client)


def database_exists(client: SQLiteClient) -> bool:
    return client.exists()
