"""
SQLite connection manager.

Owns the single connection to the local store. Connecting applies any
pending migrations inside one transaction; afterwards the manager exposes
raw query primitives and scoped transactions.

Usage:
    client = SQLiteClient("mtg_overseer.db", DB_MIGRATIONS)
    await client.connect()
    rows = await client.query("SELECT * FROM decks")
    async with client.transaction():
        await client.execute("DELETE FROM deck_cards WHERE deck_id = ?", [deck_id])
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Mapping, Sequence
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple, TypeVar

from sqlalchemy import event
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from mtgoverseer.config import settings
from mtgoverseer.db.errors import (
    ConstraintViolationError,
    DatabaseConnectionError,
    DowngradeError,
    MigrationError,
    NotConnectedError,
    QueryError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = Sequence[Any] | Mapping[str, Any]

# A migration step receives the connection with the migration transaction open
Migration = Callable[[AsyncConnection], Awaitable[None]]

# SQLite leaves these next to the main file depending on journal mode
_SIDECAR_SUFFIXES = ("-journal", "-wal", "-shm")


class Statement(NamedTuple):
    """A single SQL statement with its bound parameters."""

    sql: str
    params: Params = ()


@dataclass(frozen=True)
class QueryResult:
    """Materialized outcome of one statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0
    lastrowid: int | None = None


def _driver_params(params: Params | None) -> tuple[Any, ...] | dict[str, Any] | None:
    if params is None:
        return None
    if isinstance(params, Mapping):
        return dict(params)
    return tuple(params)


def _driver_message(error: SQLAlchemyError) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


@contextmanager
def _translate_errors(sql: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as persistence errors."""
    try:
        yield
    except IntegrityError as e:
        raise ConstraintViolationError(e.statement or sql, _driver_message(e)) from e
    except SQLAlchemyError as e:
        raise QueryError(getattr(e, "statement", None) or sql, _driver_message(e)) from e


def _collect(result: CursorResult[Any]) -> QueryResult:
    try:
        rowcount = result.rowcount
        lastrowid = result.lastrowid
        rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
        return QueryResult(rows=rows, rowcount=rowcount, lastrowid=lastrowid)
    finally:
        # Failing to release a cursor must not mask the statement's own outcome
        try:
            result.close()
        except SQLAlchemyError as e:
            logger.warning("Error closing result cursor: %s", e)


async def _read_user_version(connection: AsyncConnection) -> int:
    result = await connection.exec_driver_sql("PRAGMA user_version")
    return int(result.scalar() or 0)


class SQLiteClient:
    """
    Connection manager for one named SQLite store.

    Create one instance at startup, ``connect()`` it before handing it to
    the repositories, and ``disconnect()`` it at shutdown.

    Every primitive runs in a transaction. Calls made while the current task
    holds an open ``transaction()`` join it; calls from other tasks wait
    until it finishes. Do not spawn concurrent tasks that use the client
    from inside a transaction, they will wait for it forever.

    Attributes:
        database_name: File name of the store inside ``directory``
        migrations: Ordered migration steps; the target version is their count
        directory: Folder holding the store
    """

    def __init__(
        self,
        database_name: str,
        migrations: Sequence[Migration] = (),
        *,
        directory: Path | None = None,
        echo: bool = False,
    ) -> None:
        self.database_name = database_name
        self.migrations: list[Migration] = list(migrations)
        self.directory = directory if directory is not None else settings.data_dir
        self.echo = echo

        self._engine: AsyncEngine | None = None
        self._connection: AsyncConnection | None = None
        self._connected = False
        self._lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()
        self._owner: asyncio.Task[Any] | None = None
        self._begin_mode = "DEFERRED"

    def __repr__(self) -> str:
        return f"<SQLiteClient(path={self.path}, connected={self._connected})>"

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self.directory / self.database_name

    @property
    def target_version(self) -> int:
        return len(self.migrations)

    def is_connected(self) -> bool:
        return self._connected

    def get_database(self) -> AsyncConnection | None:
        """The live connection, or None before ``connect()``."""
        return self._connection

    def exists(self) -> bool:
        """Check for the backing file without opening it."""
        return self.path.exists()

    # --- Lifecycle ---

    def _create_engine(self) -> AsyncEngine:
        engine = create_async_engine(f"sqlite+aiosqlite:///{self.path}", echo=self.echo)

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
            # Take transaction control away from the driver so DDL is transactional
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys = ON")
            finally:
                cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _on_begin(conn: Connection) -> None:
            conn.exec_driver_sql(f"BEGIN {self._begin_mode}")

        return engine

    async def connect(self) -> None:
        """
        Open the store and bring its schema up to date.

        Idempotent, also across concurrent callers: later calls wait for the
        first one and return once it is done. Runs migrations
        ``[stored_version, target_version)`` in one transaction and records the
        new version as its last statement.

        Raises:
            DowngradeError: If the stored version is newer than the target
            MigrationError: If a migration step fails (nothing is applied)
            DatabaseConnectionError: If the store cannot be opened or read
        """
        async with self._connect_lock:
            if self._connected:
                return
            await self._open()

    async def _open(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        engine = self._create_engine()
        try:
            connection = await engine.connect()
        except SQLAlchemyError as e:
            await engine.dispose()
            logger.error("Failed to open database %s: %s", self.database_name, e)
            raise DatabaseConnectionError(
                f"Failed to connect to database: {self.database_name}"
            ) from e

        logger.info("Database %s opened, foreign keys enabled", self.database_name)

        try:
            await self._migrate(connection)
        except (DowngradeError, MigrationError):
            await connection.close()
            await engine.dispose()
            raise
        except SQLAlchemyError as e:
            await connection.close()
            await engine.dispose()
            logger.error("Failed to connect to database %s: %s", self.database_name, e)
            raise DatabaseConnectionError(
                f"Failed to connect to database: {self.database_name}"
            ) from e

        self._engine = engine
        self._connection = connection
        self._connected = True

    async def _migrate(self, connection: AsyncConnection) -> None:
        target = self.target_version

        async with connection.begin():
            current = await _read_user_version(connection)
            logger.info("Current database version: %d, target version: %d", current, target)

            if current > target:
                logger.error("Refusing to downgrade database from %d to %d", current, target)
                raise DowngradeError(current, target)

            for step in range(current, target):
                logger.info("Running migration %d", step)
                try:
                    await self.migrations[step](connection)
                except Exception as e:
                    message = _driver_message(e) if isinstance(e, SQLAlchemyError) else str(e)
                    logger.error("Migration %d failed: %s", step, message)
                    raise MigrationError(step, message) from e
                logger.info("Migration %d completed", step)

            if current != target:
                await connection.exec_driver_sql(f"PRAGMA user_version = {target}")
                logger.info("Database version updated to %d", target)

    async def disconnect(self) -> None:
        """Close the connection. ``connect()`` may be called again afterwards."""
        async with self._connect_lock:
            if self._connection is not None:
                await self._connection.close()
            if self._engine is not None:
                await self._engine.dispose()
            self._connection = None
            self._engine = None
            self._connected = False

    async def delete(self) -> None:
        """
        Close the connection and remove the store from disk.

        WARNING: Destroys all data.
        """
        await self.disconnect()
        self.path.unlink(missing_ok=True)
        for suffix in _SIDECAR_SUFFIXES:
            self.path.with_name(self.path.name + suffix).unlink(missing_ok=True)
        logger.info("Database %s deleted", self.database_name)

    # --- Transactions ---

    def _require_connection(self) -> AsyncConnection:
        if not self._connected or self._connection is None:
            raise NotConnectedError(self.database_name)
        return self._connection

    @asynccontextmanager
    async def transaction(self, exclusive: bool = False) -> AsyncIterator[AsyncConnection]:
        """
        Scope an all-or-nothing unit of work.

        Commits when the block exits normally; rolls back and re-raises on
        any exception. Nested use from the same task joins the outer
        transaction (and its locking mode).

        Args:
            exclusive: Open with ``BEGIN EXCLUSIVE`` to block other readers

        Raises:
            NotConnectedError: If called before ``connect()``
        """
        connection = self._require_connection()
        task = asyncio.current_task()
        if task is not None and self._owner is task:
            yield connection
            return

        async with self._lock:
            self._owner = task
            self._begin_mode = "EXCLUSIVE" if exclusive else "DEFERRED"
            try:
                with _translate_errors("BEGIN"):
                    async with connection.begin():
                        self._begin_mode = "DEFERRED"
                        yield connection
            finally:
                self._owner = None
                self._begin_mode = "DEFERRED"

    async def run_in_transaction(self, callback: Callable[[], Awaitable[T]]) -> T:
        """Await ``callback`` inside ``transaction()`` and return its result."""
        async with self.transaction():
            return await callback()

    # --- Query primitives ---

    async def _run(self, sql: str, params: Params | None) -> QueryResult:
        async with self.transaction() as connection:
            with _translate_errors(sql):
                result = await connection.exec_driver_sql(sql, _driver_params(params))
            return _collect(result)

    async def query(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        """
        Run a row-returning statement.

        Raises:
            NotConnectedError: If called before ``connect()``
            QueryError: If the engine rejects the statement
        """
        return (await self._run(sql, params)).rows

    async def execute(self, sql: str, params: Params | None = None) -> int:
        """Run a write statement and return the number of affected rows."""
        return (await self._run(sql, params)).rowcount

    async def get_first(self, sql: str, params: Params | None = None) -> dict[str, Any] | None:
        """First row of a query, or None if it returned nothing."""
        rows = await self.query(sql, params)
        return rows[0] if rows else None

    async def get_version(self) -> int:
        """Schema version currently stored in the file."""
        row = await self.get_first("PRAGMA user_version")
        return int(row["user_version"]) if row else 0

    async def execute_batch(self, statements: Sequence[Statement]) -> list[QueryResult]:
        """
        Run several statements inside one exclusive transaction.

        Either every statement takes effect or none does.

        Returns:
            One QueryResult per statement, in order.
        """
        results: list[QueryResult] = []
        async with self.transaction(exclusive=True) as connection:
            for statement in statements:
                with _translate_errors(statement.sql):
                    result = await connection.exec_driver_sql(
                        statement.sql, _driver_params(statement.params)
                    )
                results.append(_collect(result))
        return results
